# -*- coding: utf-8 -*-
"""Weight history storage (SQLite, append-only)."""

from __future__ import annotations

from datetime import date, datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..app_db import db_conn
from .models import WeightSample, WeightSource


def _iso_now() -> str:
    return datetime.utcnow().isoformat()


def _row_to_sample(row: Dict[str, Any]) -> WeightSample:
    return WeightSample(
        id=row.get("id"),
        date=date.fromisoformat(row["date"]),
        value_kg=row["value_kg"],
        source=WeightSource(row["source"]),
        created_at=row.get("created_at"),
    )


class WeightStore:
    def __init__(self, db_path: Path) -> None:
        self.db_path = db_path

    def add(self, sample: WeightSample) -> bool:
        """Append a sample; returns False when the same (date, value, source) is already logged."""
        with db_conn(self.db_path) as conn:
            cur = conn.execute(
                """
                INSERT OR IGNORE INTO weight_entries (date, value_kg, source, created_at)
                VALUES (?, ?, ?, ?)
                """,
                (
                    sample.date.isoformat(),
                    float(sample.value_kg),
                    sample.source.value,
                    sample.created_at or _iso_now(),
                ),
            )
            return cur.rowcount > 0

    def history(self, since: Optional[date] = None) -> List[WeightSample]:
        """Chronological samples, oldest first."""
        sql = "SELECT * FROM weight_entries"
        params: list[Any] = []
        if since is not None:
            sql += " WHERE date >= ?"
            params.append(since.isoformat())
        sql += " ORDER BY date ASC, id ASC"
        with db_conn(self.db_path) as conn:
            rows = conn.execute(sql, params).fetchall()
        return [_row_to_sample(dict(r)) for r in rows]

    def latest(self) -> Optional[WeightSample]:
        with db_conn(self.db_path) as conn:
            row = conn.execute(
                "SELECT * FROM weight_entries ORDER BY date DESC, id DESC LIMIT 1"
            ).fetchone()
        return _row_to_sample(dict(row)) if row else None

    def wipe(self) -> None:
        with db_conn(self.db_path) as conn:
            conn.execute("DELETE FROM weight_entries")
