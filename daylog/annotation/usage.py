# -*- coding: utf-8 -*-
"""AI token usage bookkeeping (SQLite)."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List

from ..app_db import db_conn


def _iso_now() -> str:
    return datetime.utcnow().isoformat()


class UsageStore:
    def __init__(self, db_path: Path) -> None:
        self.db_path = db_path

    def record(self, *, feature: str, model: str, prompt_tokens: int, completion_tokens: int) -> None:
        with db_conn(self.db_path) as conn:
            conn.execute(
                """
                INSERT INTO ai_usage (feature, model, prompt_tokens, completion_tokens, created_at)
                VALUES (?, ?, ?, ?, ?)
                """,
                (feature, model, int(prompt_tokens), int(completion_tokens), _iso_now()),
            )

    def summary(self) -> Dict[str, Any]:
        with db_conn(self.db_path) as conn:
            totals = conn.execute(
                """
                SELECT COUNT(*) AS requests,
                       COALESCE(SUM(prompt_tokens), 0) AS prompt_tokens,
                       COALESCE(SUM(completion_tokens), 0) AS completion_tokens
                FROM ai_usage
                """
            ).fetchone()
            by_feature = conn.execute(
                """
                SELECT feature, model, COUNT(*) AS requests,
                       SUM(prompt_tokens) AS prompt_tokens,
                       SUM(completion_tokens) AS completion_tokens
                FROM ai_usage
                GROUP BY feature, model
                ORDER BY (SUM(prompt_tokens) + SUM(completion_tokens)) DESC
                """
            ).fetchall()
        rows: List[Dict[str, Any]] = [dict(r) for r in by_feature]
        return {**dict(totals), "by_feature": rows}

    def wipe(self) -> None:
        with db_conn(self.db_path) as conn:
            conn.execute("DELETE FROM ai_usage")
