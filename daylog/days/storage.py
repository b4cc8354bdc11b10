# -*- coding: utf-8 -*-
"""Daily log storage (SQLite).

One row per calendar date. Rows are created lazily by the first write from any
writer role; ``upsert(record, fields=...)`` restricts the columns written on
conflict so the manual edit path, the device merge and the annotation cache
never overwrite each other's columns.
"""

from __future__ import annotations

import json
from datetime import date
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence

from ..app_db import db_conn
from .models import ANNOTATION_FIELDS, USER_FIELDS, DailyRecord, ExerciseEntry

_ALL_FIELDS = USER_FIELDS + ANNOTATION_FIELDS

# Model field -> column name.
_COLUMNS = {name: name for name in _ALL_FIELDS}
_COLUMNS["exercises"] = "exercises_json"


def _encode_exercises(exercises: Optional[List[ExerciseEntry]]) -> Optional[str]:
    if exercises is None:
        return None
    return json.dumps([e.model_dump() for e in exercises], ensure_ascii=False)


def _decode_exercises(raw: Optional[str]) -> Optional[List[ExerciseEntry]]:
    if raw is None:
        return None
    return [ExerciseEntry.model_validate(item) for item in json.loads(raw)]


def _column_value(record: DailyRecord, field: str) -> Any:
    value = getattr(record, field)
    if field == "exercises":
        return _encode_exercises(value)
    if field == "off_plan":
        return 1 if value else 0
    return value


def _row_to_record(row: Dict[str, Any]) -> DailyRecord:
    return DailyRecord(
        date=date.fromisoformat(row["date"]),
        weight_kg=row.get("weight_kg"),
        steps=row.get("steps"),
        sleep_hours=row.get("sleep_hours"),
        resting_hr=row.get("resting_hr"),
        exercises=_decode_exercises(row.get("exercises_json")),
        note=row.get("note"),
        off_plan=bool(row.get("off_plan")),
        annotation=row.get("annotation"),
        annotation_fingerprint=row.get("annotation_fingerprint"),
    )


class DailyLogStore:
    """Canonical per-date record storage."""

    def __init__(self, db_path: Path) -> None:
        self.db_path = db_path

    def get(self, day: date) -> Optional[DailyRecord]:
        with db_conn(self.db_path) as conn:
            row = conn.execute(
                "SELECT * FROM daily_logs WHERE date = ?", (day.isoformat(),)
            ).fetchone()
        return _row_to_record(dict(row)) if row else None

    def upsert(self, record: DailyRecord, fields: Optional[Sequence[str]] = None) -> None:
        """Insert the record, or update ``fields`` (default: every field) of the existing row."""
        selected: Iterable[str] = fields if fields is not None else _ALL_FIELDS
        selected = [f for f in selected if f in _COLUMNS]
        if not selected:
            raise ValueError("upsert needs at least one field")

        columns = [_COLUMNS[f] for f in selected]
        values = [_column_value(record, f) for f in selected]
        placeholders = ", ".join("?" for _ in columns)
        assignments = ", ".join(f"{c} = excluded.{c}" for c in columns)
        sql = (
            f"INSERT INTO daily_logs (date, {', '.join(columns)}) VALUES (?, {placeholders}) "
            f"ON CONFLICT(date) DO UPDATE SET {assignments}"
        )
        with db_conn(self.db_path) as conn:
            conn.execute(sql, [record.date.isoformat(), *values])

    def write_annotation(self, day: date, annotation: Optional[str], fingerprint: Optional[str]) -> None:
        record = DailyRecord(date=day, annotation=annotation, annotation_fingerprint=fingerprint)
        self.upsert(record, fields=ANNOTATION_FIELDS)

    def since(self, day: date) -> List[DailyRecord]:
        with db_conn(self.db_path) as conn:
            rows = conn.execute(
                "SELECT * FROM daily_logs WHERE date >= ? ORDER BY date ASC",
                (day.isoformat(),),
            ).fetchall()
        return [_row_to_record(dict(r)) for r in rows]

    def between(self, start: date, end: date) -> List[DailyRecord]:
        with db_conn(self.db_path) as conn:
            rows = conn.execute(
                "SELECT * FROM daily_logs WHERE date >= ? AND date <= ? ORDER BY date ASC",
                (start.isoformat(), end.isoformat()),
            ).fetchall()
        return [_row_to_record(dict(r)) for r in rows]

    def wipe(self) -> None:
        with db_conn(self.db_path) as conn:
            conn.execute("DELETE FROM daily_logs")
