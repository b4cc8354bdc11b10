# -*- coding: utf-8 -*-
"""Meal storage (SQLite)."""

from __future__ import annotations

from datetime import date, datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..app_db import db_conn
from .models import MealCategory, MealEntry


def _iso_now() -> str:
    return datetime.utcnow().isoformat()


def _row_to_meal(row: Dict[str, Any]) -> MealEntry:
    return MealEntry(
        id=row["id"],
        date=date.fromisoformat(row["date"]),
        category=MealCategory(row["category"]),
        description=row["description"],
        total_kcal=row["total_kcal"],
        has_alcohol=bool(row["has_alcohol"]),
        note=row.get("note"),
        created_at=row.get("created_at"),
    )


class MealStore:
    def __init__(self, db_path: Path) -> None:
        self.db_path = db_path

    def add(self, meal: MealEntry) -> MealEntry:
        created_at = meal.created_at or _iso_now()
        with db_conn(self.db_path) as conn:
            cur = conn.execute(
                """
                INSERT INTO meal_entries (date, category, description, total_kcal, has_alcohol, note, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    meal.date.isoformat(),
                    meal.category.value,
                    meal.description,
                    int(meal.total_kcal),
                    1 if meal.has_alcohol else 0,
                    meal.note,
                    created_at,
                ),
            )
            meal_id = cur.lastrowid
        return meal.model_copy(update={"id": meal_id, "created_at": created_at})

    def get(self, meal_id: int) -> Optional[MealEntry]:
        with db_conn(self.db_path) as conn:
            row = conn.execute("SELECT * FROM meal_entries WHERE id = ?", (meal_id,)).fetchone()
        return _row_to_meal(dict(row)) if row else None

    def for_date(self, day: date) -> List[MealEntry]:
        """Meals logged for ``day``, ordered by id."""
        with db_conn(self.db_path) as conn:
            rows = conn.execute(
                "SELECT * FROM meal_entries WHERE date = ? ORDER BY id ASC",
                (day.isoformat(),),
            ).fetchall()
        return [_row_to_meal(dict(r)) for r in rows]

    def delete(self, meal_id: int) -> bool:
        with db_conn(self.db_path) as conn:
            cur = conn.execute("DELETE FROM meal_entries WHERE id = ?", (meal_id,))
            return cur.rowcount > 0

    def wipe(self) -> None:
        with db_conn(self.db_path) as conn:
            conn.execute("DELETE FROM meal_entries")
