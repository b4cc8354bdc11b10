# -*- coding: utf-8 -*-

from __future__ import annotations

import json
import shutil
import tempfile
import unittest
from datetime import date, datetime
from pathlib import Path

import httpx

from daylog.annotation.context import build_day_context
from daylog.annotation.generator import GeneratorSettings, OpenAIAnnotationGenerator
from daylog.annotation.usage import UsageStore
from daylog.app_db import init_app_db
from daylog.days.models import DailyRecord, ExerciseEntry
from daylog.errors import ConfigurationError, GenerationError
from daylog.goals.models import Goal
from daylog.meals.models import MealCategory, MealEntry


def _config(**overrides) -> GeneratorSettings:
    values = dict(
        api_key="sk-test",
        base_url="https://llm.example.com/v1/",
        model="gpt-4o-mini",
        timeout=5.0,
        max_tokens=128,
        temperature=0.4,
    )
    values.update(overrides)
    return GeneratorSettings(**values)


def _completion(content: str) -> dict:
    return {
        "model": "gpt-4o-mini",
        "choices": [{"message": {"role": "assistant", "content": content}}],
        "usage": {"prompt_tokens": 120, "completion_tokens": 18},
    }


class TestOpenAIAnnotationGenerator(unittest.IsolatedAsyncioTestCase):
    def setUp(self) -> None:
        self._tmp = Path(tempfile.mkdtemp(prefix="daylog-test-"))
        db_path = self._tmp / "daylog.db"
        init_app_db(db_path)
        self.usage = UsageStore(db_path)
        self.requests = []

    def tearDown(self) -> None:
        shutil.rmtree(self._tmp, ignore_errors=True)

    def _generator(self, handler, **overrides) -> OpenAIAnnotationGenerator:
        def recording(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            return handler(request)

        return OpenAIAnnotationGenerator(
            _config(**overrides), usage=self.usage, transport=httpx.MockTransport(recording)
        )

    async def test_returns_clean_summary_and_records_usage(self) -> None:
        generator = self._generator(lambda r: httpx.Response(200, json=_completion('"12k steps, solid day."')))

        summary = await generator.generate("Date: 2025-01-15\nSteps: 12,000")

        self.assertEqual(summary, "12k steps, solid day.")
        request = self.requests[0]
        self.assertEqual(str(request.url), "https://llm.example.com/v1/chat/completions")
        self.assertEqual(request.headers["authorization"], "Bearer sk-test")
        body = json.loads(request.content)
        self.assertEqual(body["model"], "gpt-4o-mini")
        self.assertEqual(body["max_tokens"], 128)
        self.assertEqual(body["messages"][1]["content"], "Date: 2025-01-15\nSteps: 12,000")

        usage = self.usage.summary()
        self.assertEqual(usage["requests"], 1)
        self.assertEqual(usage["prompt_tokens"], 120)
        self.assertEqual(usage["completion_tokens"], 18)
        self.assertEqual(usage["by_feature"][0]["feature"], "day_summary")

    async def test_language_instruction(self) -> None:
        generator = self._generator(lambda r: httpx.Response(200, json=_completion("Dober dan.")), language="sl")
        await generator.generate("Date: 2025-01-15")
        system = json.loads(self.requests[0].content)["messages"][0]["content"]
        self.assertIn("Slovenian", system)

    async def test_http_error_raises(self) -> None:
        generator = self._generator(lambda r: httpx.Response(503, text="overloaded"))
        with self.assertRaises(GenerationError) as ctx:
            await generator.generate("Date: 2025-01-15")
        self.assertEqual(ctx.exception.status_code, 503)
        self.assertEqual(self.usage.summary()["requests"], 0)

    async def test_malformed_or_empty_response_raises(self) -> None:
        generator = self._generator(lambda r: httpx.Response(200, json={"choices": []}))
        with self.assertRaises(GenerationError):
            await generator.generate("Date: 2025-01-15")

        generator = self._generator(lambda r: httpx.Response(200, json=_completion('  ""  ')))
        with self.assertRaises(GenerationError):
            await generator.generate("Date: 2025-01-15")

    async def test_connection_error_raises(self) -> None:
        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        generator = self._generator(refuse)
        with self.assertRaises(GenerationError):
            await generator.generate("Date: 2025-01-15")

    async def test_without_key(self) -> None:
        generator = self._generator(lambda r: httpx.Response(200, json=_completion("x")), api_key=None)
        self.assertFalse(generator.configured)
        with self.assertRaises(ConfigurationError):
            await generator.generate("Date: 2025-01-15")
        self.assertEqual(self.requests, [])


class TestDayContext(unittest.TestCase):
    def test_full_day(self) -> None:
        day = date(2025, 1, 15)
        record = DailyRecord(
            date=day,
            weight_kg=70.04,
            steps=12000,
            sleep_hours=7.5,
            resting_hr=56,
            exercises=[ExerciseEntry(name="running", duration_min=30, kcal=300)],
            note="Birthday dinner",
            off_plan=True,
        )
        meals = [
            MealEntry(id=1, date=day, description="Oats", total_kcal=350),
            MealEntry(id=2, date=day, category=MealCategory.restaurant, description="Steak", total_kcal=900, has_alcohol=True),
        ]
        goal = Goal(target_kg=65.0, rate_kg_per_week=0.5, deadline=date(2025, 6, 1))

        text = build_day_context(day, record, meals, goal, now=datetime(2025, 1, 20, 9, 0))
        lines = text.splitlines()

        self.assertEqual(lines[0], "Date: 2025-01-15")
        self.assertIn("Goal: 65 kg by 2025-06-01 at 0.5 kg/week", lines)
        self.assertIn("Weight: 70.0 kg", lines)
        self.assertIn("Steps: 12,000", lines)
        self.assertIn("Sleep: 7.5 hours", lines)
        self.assertIn("Resting HR: 56 bpm", lines)
        self.assertIn("Exercises: running 30 min 300 kcal", lines)
        self.assertIn("Marked as an off-plan day", lines)
        self.assertIn("Note: Birthday dinner", lines)
        self.assertIn("Meals logged: 2 (total 1250 kcal)", lines)
        self.assertIn("restaurant, alcohol", text)
        self.assertNotIn("Current time", text)

    def test_today_is_marked_in_progress(self) -> None:
        now = datetime(2025, 1, 15, 11, 30)
        text = build_day_context(date(2025, 1, 15), None, [], None, now=now)
        self.assertIn("Current time: 11:30", text)
        self.assertIn("No meals logged", text)


if __name__ == "__main__":
    unittest.main()
