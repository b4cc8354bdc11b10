# -*- coding: utf-8 -*-

from __future__ import annotations

import asyncio
import shutil
import tempfile
import unittest
from datetime import date
from pathlib import Path
from typing import List

from daylog.annotation.cache import PENDING_ANNOTATION, AnnotationCache, AnnotationOutcome
from daylog.annotation.tasks import BackgroundQueue
from daylog.app_db import init_app_db
from daylog.days.models import DailyRecord
from daylog.days.storage import DailyLogStore
from daylog.errors import GenerationError
from daylog.goals.models import Goal
from daylog.goals.storage import GoalStore
from daylog.meals.models import MealEntry
from daylog.meals.storage import MealStore

DAY = date(2025, 1, 15)


class FakeGenerator:
    def __init__(self, configured: bool = True) -> None:
        self._configured = configured
        self.contexts: List[str] = []
        self.fail = False

    @property
    def configured(self) -> bool:
        return self._configured

    async def generate(self, context_text: str) -> str:
        self.contexts.append(context_text)
        await asyncio.sleep(0)
        if self.fail:
            raise GenerationError("upstream 503", status_code=503)
        return f"summary {len(self.contexts)}"


class GatedGenerator(FakeGenerator):
    """Each call waits for its own gate; the first call can be made to fail."""

    def __init__(self, fail_first: bool = False) -> None:
        super().__init__()
        self.fail_first = fail_first
        self.gates = [asyncio.Event(), asyncio.Event()]

    async def generate(self, context_text: str) -> str:
        self.contexts.append(context_text)
        call = len(self.contexts)
        await self.gates[call - 1].wait()
        if self.fail_first and call == 1:
            raise GenerationError("upstream timeout")
        return f"summary {call}"


class TestAnnotationCache(unittest.IsolatedAsyncioTestCase):
    def setUp(self) -> None:
        self._tmp = Path(tempfile.mkdtemp(prefix="daylog-test-"))
        db_path = self._tmp / "daylog.db"
        init_app_db(db_path)
        self.days = DailyLogStore(db_path)
        self.meals = MealStore(db_path)
        self.goals = GoalStore(db_path)
        self.generator = FakeGenerator()
        self.queue = BackgroundQueue(workers=1)
        self.cache = AnnotationCache(self.days, self.meals, self.goals, self.generator, self.queue)

    async def asyncSetUp(self) -> None:
        self.queue.start()

    async def asyncTearDown(self) -> None:
        await self.queue.shutdown()

    def tearDown(self) -> None:
        shutil.rmtree(self._tmp, ignore_errors=True)

    def _annotation(self, day: date = DAY):
        record = self.days.get(day)
        assert record is not None
        return record.annotation, record.annotation_fingerprint

    async def test_first_generation_always_calls_generator(self) -> None:
        self.days.upsert(DailyRecord(date=DAY, steps=4000))

        outcome = await self.cache.generate(DAY, "test")

        self.assertEqual(outcome, AnnotationOutcome.GENERATED)
        self.assertEqual(len(self.generator.contexts), 1)
        self.assertEqual(self._annotation(), ("summary 1", self.cache.content_hash(DAY)))

    async def test_unchanged_inputs_hit_the_cache(self) -> None:
        self.days.upsert(DailyRecord(date=DAY, steps=4000))
        await self.cache.generate(DAY, "test")

        self.assertEqual(await self.cache.generate(DAY, "test"), AnnotationOutcome.CACHE_HIT)
        self.assertEqual(len(self.generator.contexts), 1)

    async def test_new_meal_regenerates(self) -> None:
        self.days.upsert(DailyRecord(date=DAY, steps=4000))
        await self.cache.generate(DAY, "test")
        self.meals.add(MealEntry(date=DAY, description="Pizza", total_kcal=900))

        self.assertEqual(await self.cache.generate(DAY, "meal_added"), AnnotationOutcome.GENERATED)
        self.assertEqual(self._annotation()[0], "summary 2")
        self.assertIn("Pizza", self.generator.contexts[-1])

    async def test_goal_change_regenerates(self) -> None:
        self.days.upsert(DailyRecord(date=DAY, weight_kg=70.0))
        await self.cache.generate(DAY, "test")
        self.goals.set(Goal(target_kg=65.0, rate_kg_per_week=0.5, deadline=date(2025, 6, 1)))

        self.assertEqual(await self.cache.generate(DAY, "goal"), AnnotationOutcome.GENERATED)

    async def test_failure_keeps_previous_annotation(self) -> None:
        self.days.upsert(DailyRecord(date=DAY, steps=4000))
        await self.cache.generate(DAY, "test")
        before = self._annotation()

        self.days.upsert(DailyRecord(date=DAY, steps=8000), fields=["steps"])
        self.generator.fail = True

        self.assertEqual(await self.cache.generate(DAY, "test"), AnnotationOutcome.FAILED)
        self.assertEqual(self._annotation(), before)

    async def test_without_generator(self) -> None:
        self.days.upsert(DailyRecord(date=DAY, steps=4000))
        cache = AnnotationCache(self.days, self.meals, self.goals, generator=None, queue=self.queue)
        self.assertEqual(await cache.generate(DAY), AnnotationOutcome.NO_GENERATOR)
        self.assertFalse(await cache.request_annotation(DAY))

        unconfigured = AnnotationCache(self.days, self.meals, self.goals, FakeGenerator(configured=False))
        self.assertEqual(await unconfigured.generate(DAY), AnnotationOutcome.NO_GENERATOR)

    async def test_day_without_data(self) -> None:
        self.assertEqual(await self.cache.generate(DAY), AnnotationOutcome.NO_DATA)
        self.assertFalse(await self.cache.request_annotation(DAY))
        self.assertEqual(self.generator.contexts, [])
        self.assertIsNone(self.days.get(DAY))

    async def test_request_marks_pending_then_generates(self) -> None:
        self.days.upsert(DailyRecord(date=DAY, steps=4000))

        self.assertTrue(await self.cache.request_annotation(DAY, "manual_edit"))
        self.assertEqual(self._annotation()[0], PENDING_ANNOTATION)

        await self.queue.join()
        self.assertEqual(self._annotation(), ("summary 1", self.cache.content_hash(DAY)))

    async def test_request_when_fresh_is_noop(self) -> None:
        self.days.upsert(DailyRecord(date=DAY, steps=4000))
        await self.cache.generate(DAY)

        self.assertFalse(await self.cache.request_annotation(DAY))
        self.assertEqual(self._annotation()[0], "summary 1")

    async def test_failed_request_restores_previous_text(self) -> None:
        self.days.upsert(DailyRecord(date=DAY, steps=4000))
        await self.cache.generate(DAY)
        before = self._annotation()
        self.days.upsert(DailyRecord(date=DAY, note="late snack"), fields=["note"])
        self.generator.fail = True

        self.assertTrue(await self.cache.request_annotation(DAY))
        await self.queue.join()

        self.assertEqual(self._annotation(), before)

    async def test_request_needs_running_queue(self) -> None:
        self.days.upsert(DailyRecord(date=DAY, steps=4000))
        cache = AnnotationCache(self.days, self.meals, self.goals, self.generator, BackgroundQueue())
        with self.assertRaises(RuntimeError):
            await cache.request_annotation(DAY)

    async def test_concurrent_generation_is_single_flight(self) -> None:
        self.days.upsert(DailyRecord(date=DAY, steps=4000))

        outcomes = await asyncio.gather(self.cache.generate(DAY, "sync"), self.cache.generate(DAY, "edit"))

        self.assertEqual(sorted(o.value for o in outcomes), ["cache_hit", "generated"])
        self.assertEqual(len(self.generator.contexts), 1)

    async def test_batch_runs_in_date_order(self) -> None:
        days = [date(2025, 1, 17), date(2025, 1, 15), date(2025, 1, 16)]
        for day in days:
            self.days.upsert(DailyRecord(date=day, steps=5000))

        outcomes = await self.cache.batch(days, "sync")

        self.assertEqual(list(outcomes), sorted(days))
        self.assertTrue(all(o is AnnotationOutcome.GENERATED for o in outcomes.values()))
        firsts = [c.splitlines()[0] for c in self.generator.contexts]
        self.assertEqual(firsts, [f"Date: {d.isoformat()}" for d in sorted(days)])

    async def test_resume_pending_requeues_placeholders(self) -> None:
        self.days.upsert(DailyRecord(date=DAY, steps=4000))
        self.days.write_annotation(DAY, PENDING_ANNOTATION, None)

        resumed = await self.cache.resume_pending(today=date(2025, 1, 20))
        await self.queue.join()

        self.assertEqual(resumed, [DAY])
        self.assertEqual(self._annotation()[0], "summary 1")

    async def test_meals_only_day_hits_the_cache(self) -> None:
        self.meals.add(MealEntry(date=DAY, description="Oats", total_kcal=350))

        self.assertEqual(await self.cache.generate(DAY), AnnotationOutcome.GENERATED)
        self.assertEqual(await self.cache.generate(DAY), AnnotationOutcome.CACHE_HIT)
        self.assertEqual(len(self.generator.contexts), 1)

    async def test_batch_over_meals_only_days(self) -> None:
        days = [date(2025, 1, 16), date(2025, 1, 15)]
        for day in days:
            self.meals.add(MealEntry(date=day, description="Soup", total_kcal=400))

        first = await self.cache.batch(days, "sync")
        second = await self.cache.batch(days, "sync")

        self.assertEqual(set(first.values()), {AnnotationOutcome.GENERATED})
        self.assertEqual(set(second.values()), {AnnotationOutcome.CACHE_HIT})
        self.assertEqual(len(self.generator.contexts), 2)

    async def test_goal_only_change_on_meals_day_regenerates(self) -> None:
        self.meals.add(MealEntry(date=DAY, description="Oats", total_kcal=350))
        await self.cache.generate(DAY)
        self.goals.set(Goal(target_kg=65.0, rate_kg_per_week=0.5, deadline=date(2025, 6, 1)))

        self.assertEqual(await self.cache.generate(DAY), AnnotationOutcome.GENERATED)
        self.assertEqual(await self.cache.generate(DAY), AnnotationOutcome.CACHE_HIT)

    async def test_failure_leaves_newer_placeholder_alone(self) -> None:
        generator = GatedGenerator(fail_first=True)
        cache = AnnotationCache(self.days, self.meals, self.goals, generator, self.queue)
        self.days.upsert(DailyRecord(date=DAY, steps=4000))

        self.assertTrue(await cache.request_annotation(DAY, "sync"))
        while len(generator.contexts) < 1:
            await asyncio.sleep(0)

        self.days.upsert(DailyRecord(date=DAY, note="late snack"), fields=["note"])
        self.assertTrue(await cache.request_annotation(DAY, "manual_edit"))

        # The first generation fails while the second request is still queued.
        generator.gates[0].set()
        while len(generator.contexts) < 2:
            await asyncio.sleep(0)
        self.assertEqual(self._annotation()[0], PENDING_ANNOTATION)

        generator.gates[1].set()
        await self.queue.join()
        self.assertEqual(self._annotation(), ("summary 2", cache.content_hash(DAY)))

    async def test_locks_are_released(self) -> None:
        self.days.upsert(DailyRecord(date=DAY, steps=4000))

        await asyncio.gather(self.cache.generate(DAY), self.cache.generate(DAY))
        await self.cache.batch([DAY, date(2025, 1, 16)])

        self.assertEqual(self.cache._locks, {})



class TestBackgroundQueue(unittest.IsolatedAsyncioTestCase):
    async def test_failed_job_does_not_stop_worker(self) -> None:
        queue = BackgroundQueue(workers=2)
        queue.start()
        done: List[int] = []

        async def ok(n: int) -> None:
            done.append(n)

        async def boom() -> None:
            raise ValueError("boom")

        queue.submit(ok, 1)
        with self.assertLogs("daylog.annotation.tasks", level="ERROR"):
            queue.submit(boom, label="boom")
            queue.submit(ok, 2)
            await queue.join()
        await queue.shutdown()

        self.assertEqual(sorted(done), [1, 2])
        self.assertFalse(queue.running)

    async def test_submit_requires_start(self) -> None:
        with self.assertRaises(RuntimeError):
            BackgroundQueue().submit(asyncio.sleep, 0)

    async def test_shutdown_drains_when_asked(self) -> None:
        queue = BackgroundQueue()
        queue.start()
        done: List[int] = []

        async def slow() -> None:
            await asyncio.sleep(0.01)
            done.append(1)

        queue.submit(slow)
        queue.submit(slow)
        await queue.shutdown(drain=True)
        self.assertEqual(done, [1, 1])


if __name__ == "__main__":
    unittest.main()
