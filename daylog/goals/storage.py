# -*- coding: utf-8 -*-
"""Goal storage (SQLite). The current goal is the most recently created row."""

from __future__ import annotations

from datetime import date, datetime
from pathlib import Path
from typing import Optional

from ..app_db import db_conn
from .models import Goal


def _iso_now() -> str:
    return datetime.utcnow().isoformat()


class GoalStore:
    def __init__(self, db_path: Path) -> None:
        self.db_path = db_path

    def set(self, goal: Goal) -> Goal:
        created_at = goal.created_at or _iso_now()
        with db_conn(self.db_path) as conn:
            cur = conn.execute(
                """
                INSERT INTO goals (target_kg, rate_kg_per_week, deadline, daily_deficit_kcal, created_at)
                VALUES (?, ?, ?, ?, ?)
                """,
                (
                    float(goal.target_kg),
                    float(goal.rate_kg_per_week),
                    goal.deadline.isoformat(),
                    goal.daily_deficit_kcal,
                    created_at,
                ),
            )
            goal_id = cur.lastrowid
        return goal.model_copy(update={"id": goal_id, "created_at": created_at})

    def current(self) -> Optional[Goal]:
        with db_conn(self.db_path) as conn:
            row = conn.execute("SELECT * FROM goals ORDER BY id DESC LIMIT 1").fetchone()
        if not row:
            return None
        r = dict(row)
        return Goal(
            id=r["id"],
            target_kg=r["target_kg"],
            rate_kg_per_week=r["rate_kg_per_week"],
            deadline=date.fromisoformat(r["deadline"]),
            daily_deficit_kcal=r.get("daily_deficit_kcal"),
            created_at=r.get("created_at"),
        )

    def wipe(self) -> None:
        with db_conn(self.db_path) as conn:
            conn.execute("DELETE FROM goals")
