# -*- coding: utf-8 -*-
"""Content fingerprint for day annotations.

The fingerprint covers exactly what the annotation is generated from: the
day's non-annotation fields, the meals linked to that date and the active goal
parameters. Timestamps, row ids and the annotation pair itself are left out, so
re-saving identical content never invalidates a stored annotation.
"""

from __future__ import annotations

import hashlib
import json
from datetime import date
from typing import Any, Dict, Iterable, Optional

from .days.models import USER_FIELDS, DailyRecord
from .goals.models import Goal
from .meals.models import MealEntry


def _record_payload(day: date, record: Optional[DailyRecord]) -> Dict[str, Any]:
    # A missing row hashes like the empty row its first write creates.
    record = record or DailyRecord(date=day)
    return record.model_dump(mode="json", include=set(USER_FIELDS))


def _meal_payload(meal: MealEntry) -> Dict[str, Any]:
    return meal.model_dump(mode="json", exclude={"id", "created_at", "date"})


def _goal_payload(goal: Optional[Goal]) -> Optional[Dict[str, Any]]:
    if goal is None:
        return None
    return goal.model_dump(
        mode="json",
        include={"target_kg", "rate_kg_per_week", "deadline", "daily_deficit_kcal"},
    )


def content_fingerprint(
    day: date,
    record: Optional[DailyRecord],
    meals: Iterable[MealEntry],
    goal: Optional[Goal],
) -> str:
    # Meals without an id (not yet stored) sort last, in their given order.
    ordered = sorted(meals, key=lambda m: (m.id is None, m.id or 0))
    payload = {
        "date": day.isoformat(),
        "record": _record_payload(day, record),
        "meals": [_meal_payload(m) for m in ordered],
        "goal": _goal_payload(goal),
    }
    canonical = json.dumps(payload, sort_keys=True, ensure_ascii=False, separators=(",", ":"))
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()
