# -*- coding: utf-8 -*-
"""Sync orchestration: device merge followed by annotation refresh of the changed days."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Dict, List, Optional

from ..annotation.cache import AnnotationCache, AnnotationOutcome
from .merge import MergeEngine

logger = logging.getLogger(__name__)


@dataclass
class SyncReport:
    start: date
    end: date
    changed: List[date] = field(default_factory=list)
    annotations: Dict[date, AnnotationOutcome] = field(default_factory=dict)


class SyncService:
    def __init__(self, merge: MergeEngine, cache: AnnotationCache) -> None:
        self.merge = merge
        self.cache = cache

    async def run(self, days: int = 7, reason: str = "unknown", today: Optional[date] = None) -> SyncReport:
        end = today or date.today()
        start = end - timedelta(days=max(1, days) - 1)
        changed = await self.merge.sync_range(start, end)
        report = SyncReport(start=start, end=end, changed=sorted(changed))
        if changed:
            report.annotations = await self.cache.batch(changed, reason)
        logger.info("Sync (%s): %d changed days", reason, len(changed))
        return report

    def launch(self, days: int = 7, reason: str = "unknown") -> None:
        """Fire-and-forget ``run`` on the annotation queue."""
        if self.cache.queue is None:
            raise RuntimeError("No background queue configured")
        self.cache.queue.submit(self.run, days, reason, label=f"sync {reason}")

    async def run_periodically(self, interval_minutes: float, days: int = 7) -> None:
        """Run until cancelled; one failed round never stops the loop."""
        while True:
            try:
                await self.run(days, reason="periodic")
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("Periodic sync failed")
            await asyncio.sleep(interval_minutes * 60)
