# -*- coding: utf-8 -*-
"""Device merge: reconciles ingestion observations into the daily log.

Precedence is fill-null-only: a device value is written only where the
canonical field is empty, so anything entered by hand (or merged earlier)
always wins. A merge that leaves every device field as it was performs no
write, which keeps repeated syncs of the same data idempotent and stops them
from invalidating day annotations.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import date, timedelta
from enum import Enum
from typing import List, Optional, Set, Tuple

from ..days.models import DEVICE_FIELDS, DailyRecord, SourceObservation
from ..days.storage import DailyLogStore
from ..healthkit.adapter import IngestionAdapter
from ..weight.models import WeightSample, WeightSource
from ..weight.storage import WeightStore

logger = logging.getLogger(__name__)


class MergeOutcome(str, Enum):
    UNCHANGED = "unchanged"
    UPDATED = "updated"


def iter_days(start: date, end: date) -> List[date]:
    days: List[date] = []
    cur = start
    while cur <= end:
        days.append(cur)
        cur = cur + timedelta(days=1)
    return days


def fill_nulls(existing: DailyRecord, observation: SourceObservation) -> Tuple[DailyRecord, List[str]]:
    """Copy of ``existing`` with empty device fields taken from ``observation``, plus the names filled."""
    updates = {}
    for field in DEVICE_FIELDS:
        value = getattr(observation, field)
        if value is not None and getattr(existing, field) is None:
            updates[field] = value
    merged = existing.model_copy(update=updates) if updates else existing
    return merged, [f for f in DEVICE_FIELDS if f in updates]


def _describe(observation: SourceObservation) -> str:
    parts: List[str] = []
    if observation.weight_kg is not None:
        parts.append(f"weight={observation.weight_kg:.1f} kg")
    if observation.steps is not None:
        parts.append(f"steps={observation.steps}")
    if observation.sleep_hours is not None:
        parts.append(f"sleep={observation.sleep_hours}h")
    if observation.resting_hr is not None:
        parts.append(f"hr={observation.resting_hr} bpm")
    if observation.exercises:
        parts.append(f"exercises={len(observation.exercises)}")
    return ", ".join(parts)


class MergeEngine:
    def __init__(
        self,
        store: DailyLogStore,
        adapter: IngestionAdapter,
        weights: Optional[WeightStore] = None,
    ) -> None:
        self.store = store
        self.adapter = adapter
        self.weights = weights

    async def merge_observation(self, day: date, observation: SourceObservation) -> MergeOutcome:
        if observation.is_empty():
            return MergeOutcome.UNCHANGED

        existing = await asyncio.to_thread(self.store.get, day)
        before = existing or DailyRecord(date=day)
        merged, filled = fill_nulls(before, observation)

        if not filled:
            logger.info("%s: device data unchanged, skipping", day)
            return MergeOutcome.UNCHANGED

        # Only the filled columns; anything else may have been edited since the read.
        await asyncio.to_thread(self.store.upsert, merged, filled)
        logger.info(
            "%s: %s (%s)", day, "created" if existing is None else "merged", _describe(observation)
        )

        if self.weights is not None and observation.weight_kg is not None:
            sample = WeightSample(date=day, value_kg=observation.weight_kg, source=WeightSource.device)
            await asyncio.to_thread(self.weights.add, sample)

        return MergeOutcome.UPDATED

    async def sync_date(self, day: date) -> MergeOutcome:
        observation = await self.adapter.fetch(day)
        return await self.merge_observation(day, observation)

    async def sync_range(self, start: date, end: date) -> Set[date]:
        """Fetch and merge every date in ``[start, end]`` one at a time; returns the changed dates."""
        changed: Set[date] = set()
        days = iter_days(start, end)
        logger.info("Starting sync: %d days (%s -> %s)", len(days), start, end)
        for day in days:
            try:
                outcome = await self.sync_date(day)
            except asyncio.CancelledError:
                raise
            except Exception as exc:
                # One bad day never aborts the range.
                logger.warning("%s: sync failed, treating as no data: %s", day, exc)
                continue
            if outcome is MergeOutcome.UPDATED:
                changed.add(day)
        logger.info("Sync complete: %d/%d days updated", len(changed), len(days))
        return changed
