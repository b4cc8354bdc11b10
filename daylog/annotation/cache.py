# -*- coding: utf-8 -*-
"""Memoized day annotations.

Each stored annotation carries the content fingerprint it was generated from.
``generate`` calls the (slow, metered) generator only when the fingerprint of
the day's current inputs differs from the stored one, or when the stored text
is the pending placeholder. Validity therefore survives restarts: it lives on
the daily log row, not in process memory.

Annotation states as seen by readers:

- ``None``: never requested, or nothing to summarize
- ``PENDING_ANNOTATION``: generation in progress
- anything else: a generated summary consistent with its fingerprint
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import date, timedelta
from enum import Enum
from typing import AsyncIterator, Dict, Iterable, List, Optional, Tuple

from ..days.models import DailyRecord
from ..days.storage import DailyLogStore
from ..errors import ConfigurationError
from ..fingerprint import content_fingerprint
from ..goals.models import Goal
from ..goals.storage import GoalStore
from ..meals.models import MealEntry
from ..meals.storage import MealStore
from .context import build_day_context
from .generator import AnnotationGenerator
from .tasks import BackgroundQueue

logger = logging.getLogger(__name__)

PENDING_ANNOTATION = "⏳"


class AnnotationOutcome(str, Enum):
    GENERATED = "generated"
    CACHE_HIT = "cache_hit"
    NO_GENERATOR = "no_generator"
    NO_DATA = "no_data"
    FAILED = "failed"


@dataclass
class DayInputs:
    day: date
    record: Optional[DailyRecord]
    meals: List[MealEntry] = field(default_factory=list)
    goal: Optional[Goal] = None

    @property
    def has_data(self) -> bool:
        return bool(self.meals) or (self.record is not None and self.record.has_content())

    def fingerprint(self) -> str:
        return content_fingerprint(self.day, self.record, self.meals, self.goal)


def _is_fresh(record: Optional[DailyRecord], fingerprint: str) -> bool:
    if record is None or record.annotation is None or record.annotation == PENDING_ANNOTATION:
        return False
    return record.annotation_fingerprint == fingerprint


class AnnotationCache:
    def __init__(
        self,
        days: DailyLogStore,
        meals: MealStore,
        goals: GoalStore,
        generator: Optional[AnnotationGenerator] = None,
        queue: Optional[BackgroundQueue] = None,
    ) -> None:
        self.days = days
        self.meals = meals
        self.goals = goals
        self.generator = generator
        self.queue = queue
        # date -> (lock, number of callers holding or waiting on it)
        self._locks: Dict[date, Tuple[asyncio.Lock, int]] = {}
        # Bumped by every request; a generation only rolls back the placeholder of its own request.
        self._requests: Dict[date, int] = {}
        # Annotation text to put back if a pending generation fails.
        self._restore: Dict[date, Optional[str]] = {}

    @property
    def configured(self) -> bool:
        return self.generator is not None and self.generator.configured

    def _load(self, day: date) -> DayInputs:
        return DayInputs(
            day=day,
            record=self.days.get(day),
            meals=self.meals.for_date(day),
            goal=self.goals.current(),
        )

    def content_hash(self, day: date) -> str:
        return self._load(day).fingerprint()

    @asynccontextmanager
    async def _single_flight(self, day: date) -> AsyncIterator[None]:
        lock, users = self._locks.get(day) or (asyncio.Lock(), 0)
        self._locks[day] = (lock, users + 1)
        try:
            async with lock:
                yield
        finally:
            lock, users = self._locks[day]
            if users <= 1:
                del self._locks[day]
            else:
                self._locks[day] = (lock, users - 1)

    async def request_annotation(self, day: date, reason: str = "unknown") -> bool:
        """Mark ``day`` pending and queue its generation; returns False when nothing was queued."""
        if not self.configured:
            return False
        if self.queue is None or not self.queue.running:
            raise RuntimeError("Annotation requests need a running background queue")

        inputs = await asyncio.to_thread(self._load, day)
        if not inputs.has_data:
            return False
        record = inputs.record
        if _is_fresh(record, inputs.fingerprint()):
            logger.debug("%s annotation up to date (%s)", day, reason)
            return False

        previous = record.annotation if record else None
        if previous != PENDING_ANNOTATION:
            self._restore[day] = previous
        fingerprint = record.annotation_fingerprint if record else None
        await asyncio.to_thread(self.days.write_annotation, day, PENDING_ANNOTATION, fingerprint)
        self._requests[day] = self._requests.get(day, 0) + 1
        self.queue.submit(self.generate, day, reason, label=f"annotation {day}")
        return True

    async def _roll_back(self, day: date, record: Optional[DailyRecord], token: int) -> None:
        if self._requests.get(day, 0) != token:
            # A newer request owns the placeholder and the restore text.
            return
        restore = self._restore.pop(day, None)
        if record is None or record.annotation != PENDING_ANNOTATION:
            return
        await asyncio.to_thread(
            self.days.write_annotation, day, restore, record.annotation_fingerprint
        )

    async def generate(self, day: date, reason: str = "unknown") -> AnnotationOutcome:
        if not self.configured:
            return AnnotationOutcome.NO_GENERATOR

        async with self._single_flight(day):
            token = self._requests.get(day, 0)
            try:
                return await self._generate_locked(day, reason, token)
            finally:
                if self._requests.get(day, 0) == token:
                    self._requests.pop(day, None)

    async def _generate_locked(self, day: date, reason: str, token: int) -> AnnotationOutcome:
        inputs = await asyncio.to_thread(self._load, day)
        if not inputs.has_data:
            await self._roll_back(day, inputs.record, token)
            return AnnotationOutcome.NO_DATA

        fingerprint = inputs.fingerprint()
        if _is_fresh(inputs.record, fingerprint):
            self._restore.pop(day, None)
            logger.info("%s summary cache hit (%s)", day, reason)
            return AnnotationOutcome.CACHE_HIT

        assert self.generator is not None
        context = build_day_context(day, inputs.record, inputs.meals, inputs.goal)
        try:
            summary = await self.generator.generate(context)
        except ConfigurationError as exc:
            logger.info("%s summary skipped: %s", day, exc)
            await self._roll_back(day, await asyncio.to_thread(self.days.get, day), token)
            return AnnotationOutcome.NO_GENERATOR
        except Exception as exc:
            logger.error("%s summary failed (%s): %s", day, reason, exc)
            await self._roll_back(day, await asyncio.to_thread(self.days.get, day), token)
            return AnnotationOutcome.FAILED

        await asyncio.to_thread(self.days.write_annotation, day, summary, fingerprint)
        self._restore.pop(day, None)
        logger.info("%s summary generated (%s): %s", day, reason, summary[:60])
        return AnnotationOutcome.GENERATED

    async def batch(self, dates: Iterable[date], reason: str = "unknown") -> Dict[date, AnnotationOutcome]:
        """Generate for each date in ascending order, one at a time."""
        outcomes: Dict[date, AnnotationOutcome] = {}
        for day in sorted(set(dates)):
            outcomes[day] = await self.generate(day, reason)
        return outcomes

    async def resume_pending(self, today: Optional[date] = None, days: int = 30) -> List[date]:
        """Re-queue placeholders left behind by a previous process."""
        if not self.configured or self.queue is None or not self.queue.running:
            return []
        since = (today or date.today()) - timedelta(days=days)
        records = await asyncio.to_thread(self.days.since, since)
        pending = [r.date for r in records if r.annotation == PENDING_ANNOTATION]
        for day in pending:
            self.queue.submit(self.generate, day, "resume", label=f"annotation {day}")
        if pending:
            logger.info("Resumed %d pending summaries", len(pending))
        return pending
