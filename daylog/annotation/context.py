# -*- coding: utf-8 -*-
"""Day context assembly for the coaching summary prompt."""

from __future__ import annotations

from datetime import date, datetime
from typing import List, Optional, Sequence

from ..days.models import DailyRecord
from ..goals.models import Goal
from ..meals.models import MealEntry


def build_day_context(
    day: date,
    record: Optional[DailyRecord],
    meals: Sequence[MealEntry],
    goal: Optional[Goal],
    *,
    now: Optional[datetime] = None,
) -> str:
    now = now or datetime.now()
    parts: List[str] = [f"Date: {day.isoformat()}"]

    # Today is still in progress; the model should not flag meals that haven't happened yet.
    if day == now.date():
        parts.append(
            f"Current time: {now:%H:%M} (day still in progress, don't flag missing meals/data that haven't happened yet)"
        )

    if goal is not None:
        parts.append(
            f"Goal: {goal.target_kg:g} kg by {goal.deadline.isoformat()} at {goal.rate_kg_per_week:g} kg/week"
        )
        if goal.daily_deficit_kcal is not None:
            parts.append(f"Target daily deficit: {goal.daily_deficit_kcal} kcal")

    if record is not None:
        if record.weight_kg is not None:
            parts.append(f"Weight: {record.weight_kg:.1f} kg")
        if record.steps is not None:
            parts.append(f"Steps: {record.steps:,}")
        if record.sleep_hours is not None:
            parts.append(f"Sleep: {record.sleep_hours:.1f} hours")
        if record.resting_hr is not None:
            parts.append(f"Resting HR: {record.resting_hr} bpm")
        if record.exercises:
            items = ", ".join(
                f"{e.name} {e.duration_min} min {e.kcal} kcal" if e.duration_min else f"{e.name} {e.kcal} kcal"
                for e in record.exercises
            )
            parts.append(f"Exercises: {items}")
        if record.off_plan:
            parts.append("Marked as an off-plan day")
        if record.note:
            parts.append(f"Note: {record.note[:200]}")

    if meals:
        total = sum(m.total_kcal for m in meals)
        parts.append(f"Meals logged: {len(meals)} (total {total} kcal)")
        for m in meals:
            alcohol = ", alcohol" if m.has_alcohol else ""
            parts.append(f"  • {m.description[:50]} ({m.category.value}{alcohol}) {m.total_kcal} kcal")
    else:
        parts.append("No meals logged")

    return "\n".join(parts)
