# -*- coding: utf-8 -*-
"""HealthKit ingestion adapter.

Turns the stored upload payloads into one ``SourceObservation`` per date:

- weight: mean of the day's body-mass samples
- steps: largest daily snapshot (uploads overlap)
- resting heart rate: the dedicated resting metric when present, otherwise the
  median of the lowest quartile of the day's raw samples
- sleep: stage time classified as sleep inside the prior-evening window
- exercises: the day's workouts, or an "Activity" entry from active energy
"""

from __future__ import annotations

import asyncio
import logging
import statistics
from datetime import date, datetime, time, timedelta
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Protocol, Sequence, Tuple
from zoneinfo import ZoneInfo

from ..days.models import ExerciseEntry, SourceObservation
from ..errors import TransientFetchError
from .storage import iter_payloads

logger = logging.getLogger(__name__)

ASLEEP_STAGES = frozenset({"asleep", "sleeping", "core", "light", "deep", "rem"})
NOT_ASLEEP_STAGES = frozenset({"awake", "out_of_bed", "in_bed", "inbed"})

# Sleep for a date is read from the prior day 18:00 to the date's 14:00.
SLEEP_WINDOW_START = time(18, 0)
SLEEP_WINDOW_END = time(14, 0)


class IngestionAdapter(Protocol):
    async def fetch(self, day: date) -> SourceObservation:
        ...


def _parse_iso(iso8601: str, tz: ZoneInfo) -> Optional[datetime]:
    if not iso8601:
        return None
    value = iso8601.replace("Z", "+00:00")
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=tz)
    return parsed.astimezone(tz)


def _local_day(iso8601: str, tz: ZoneInfo) -> Optional[date]:
    parsed = _parse_iso(iso8601, tz)
    return parsed.date() if parsed else None


def estimate_resting_hr(samples: Sequence[float]) -> Optional[int]:
    """Median of the lowest quartile of the day's heart-rate samples."""
    values = sorted(float(s) for s in samples if s and s > 0)
    if not values:
        return None
    quartile = values[: max(1, len(values) // 4)]
    return int(round(statistics.median(quartile)))


def sleep_window(day: date, tz: ZoneInfo) -> Tuple[datetime, datetime]:
    start = datetime.combine(day - timedelta(days=1), SLEEP_WINDOW_START, tzinfo=tz)
    end = datetime.combine(day, SLEEP_WINDOW_END, tzinfo=tz)
    return start, end


def _overlap_seconds(start: datetime, end: datetime, lo: datetime, hi: datetime) -> float:
    return max(0.0, (min(end, hi) - max(start, lo)).total_seconds())


def sleep_hours_for(day: date, sessions: Iterable[Dict[str, Any]], tz: ZoneInfo) -> Optional[float]:
    """Hours asleep attributed to ``day``; None when nothing was recorded."""
    lo, hi = sleep_window(day, tz)
    seen: set[Tuple[str, str]] = set()
    seconds = 0.0

    for session in sessions:
        start = _parse_iso(str(session.get("start_time") or ""), tz)
        end = _parse_iso(str(session.get("end_time") or ""), tz)
        if not start or not end or end <= start:
            continue
        if _overlap_seconds(start, end, lo, hi) <= 0:
            continue
        # The same session is re-sent by overlapping uploads.
        token = (start.isoformat(), end.isoformat())
        if token in seen:
            continue
        seen.add(token)

        stages = session.get("stages") or []
        if not stages:
            seconds += _overlap_seconds(start, end, lo, hi)
            continue
        for stage in stages:
            name = str(stage.get("stage") or "").strip().lower()
            if name not in ASLEEP_STAGES:
                continue
            s = _parse_iso(str(stage.get("start_time") or ""), tz)
            e = _parse_iso(str(stage.get("end_time") or ""), tz)
            if not s or not e or e <= s:
                continue
            seconds += _overlap_seconds(s, e, lo, hi)

    hours = round(seconds / 3600.0, 1)
    return hours if hours > 0 else None


def observation_from_payloads(day: date, payloads: Iterable[Dict[str, Any]], tz: ZoneInfo) -> SourceObservation:
    day_key = day.isoformat()
    weights: Dict[str, float] = {}
    steps: Optional[int] = None
    resting: set[float] = set()
    hr_samples: Dict[str, float] = {}
    sessions: List[Dict[str, Any]] = []
    workouts: Dict[Tuple[str, str, str], Tuple[datetime, float, float]] = {}
    active_kcal: Optional[float] = None

    for payload in payloads:
        for item in payload.get("body_mass") or []:
            ts = str(item.get("timestamp") or "")
            if _local_day(ts, tz) == day and item.get("kg"):
                weights[ts] = float(item["kg"])

        for item in payload.get("daily_steps") or []:
            if str(item.get("date") or "")[:10] != day_key:
                continue
            count = int(item.get("count") or 0)
            steps = count if steps is None else max(steps, count)

        for item in payload.get("resting_heart_rates") or []:
            if str(item.get("date") or "")[:10] == day_key and item.get("bpm"):
                resting.add(float(item["bpm"]))

        for item in payload.get("heart_rate_samples") or []:
            ts = str(item.get("timestamp") or "")
            if _local_day(ts, tz) == day and item.get("bpm"):
                hr_samples[ts] = float(item["bpm"])

        sessions.extend(payload.get("sleep_sessions") or [])

        for item in payload.get("workouts") or []:
            start_time = str(item.get("start_time") or "")
            start = _parse_iso(start_time, tz)
            if not start or start.date() != day:
                continue
            token = (start_time, str(item.get("end_time") or ""), str(item.get("activity_type") or "other"))
            minutes = float(item.get("duration_seconds") or 0.0) / 60.0
            energy = float(item.get("total_energy_kcal") or 0.0)
            prev = workouts.get(token)
            if prev is None or energy > prev[2]:
                workouts[token] = (start, minutes, energy)

        for item in payload.get("active_energy") or []:
            if str(item.get("date") or "")[:10] != day_key:
                continue
            kcal = float(item.get("kcal") or 0.0)
            active_kcal = kcal if active_kcal is None else max(active_kcal, kcal)

    weight_kg = round(statistics.fmean(weights.values()), 2) if weights else None

    if resting:
        resting_hr: Optional[int] = int(round(statistics.fmean(resting)))
    else:
        resting_hr = estimate_resting_hr(list(hr_samples.values()))

    exercises: Optional[List[ExerciseEntry]] = None
    if workouts:
        ordered = sorted(workouts.items(), key=lambda kv: kv[1][0])
        exercises = [
            ExerciseEntry(name=token[2], duration_min=int(round(minutes)), kcal=int(round(energy)))
            for token, (_, minutes, energy) in ordered
        ]
    elif active_kcal and int(active_kcal) > 0:
        exercises = [ExerciseEntry(name="Activity", duration_min=0, kcal=int(active_kcal))]

    return SourceObservation(
        date=day,
        weight_kg=weight_kg,
        steps=steps if steps else None,
        sleep_hours=sleep_hours_for(day, sessions, tz),
        resting_hr=resting_hr,
        exercises=exercises,
    )


class HealthKitAdapter:
    """Reads stored HealthKit uploads from ``root`` (one sub-directory per device)."""

    def __init__(self, root: Path, *, device_ids: Optional[Sequence[str]] = None, timezone: str = "UTC") -> None:
        self.root = root
        self.device_ids = list(device_ids or [])
        self.tz = ZoneInfo(timezone)

    def _read(self, day: date) -> SourceObservation:
        try:
            payloads = iter_payloads(self.root, self.device_ids or None)
        except OSError as exc:
            raise TransientFetchError(day, f"cannot read uploads: {exc}") from exc
        observation = observation_from_payloads(day, payloads, self.tz)
        logger.debug("%s observation: %s", day, observation.model_dump(exclude_none=True))
        return observation

    async def fetch(self, day: date) -> SourceObservation:
        return await asyncio.to_thread(self._read, day)
