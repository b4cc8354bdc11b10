# -*- coding: utf-8 -*-
"""Process-wide service wiring (stores, engines, background queue)."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Optional

from .annotation.cache import AnnotationCache
from .annotation.generator import GeneratorSettings, OpenAIAnnotationGenerator
from .annotation.tasks import BackgroundQueue
from .annotation.usage import UsageStore
from .config import Settings, settings
from .days.storage import DailyLogStore
from .goals.storage import GoalStore
from .healthkit.adapter import HealthKitAdapter
from .meals.storage import MealStore
from .sync.merge import MergeEngine
from .sync.service import SyncService
from .weight.storage import WeightStore

logger = logging.getLogger(__name__)


@dataclass
class Services:
    settings: Settings
    days: DailyLogStore
    weights: WeightStore
    meals: MealStore
    goals: GoalStore
    usage: UsageStore
    queue: BackgroundQueue
    cache: AnnotationCache
    merge: MergeEngine
    sync: SyncService

    def wipe(self) -> None:
        self.days.wipe()
        self.weights.wipe()
        self.meals.wipe()
        self.goals.wipe()
        self.usage.wipe()


def build_services(cfg: Settings) -> Services:
    db_path = cfg.app_db_path
    days = DailyLogStore(db_path)
    weights = WeightStore(db_path)
    meals = MealStore(db_path)
    goals = GoalStore(db_path)
    usage = UsageStore(db_path)
    queue = BackgroundQueue(workers=cfg.annotation_workers)
    generator = OpenAIAnnotationGenerator(GeneratorSettings.from_settings(cfg), usage=usage)
    cache = AnnotationCache(days, meals, goals, generator=generator, queue=queue)
    adapter = HealthKitAdapter(cfg.healthkit_root, device_ids=cfg.device_ids, timezone=cfg.timezone)
    merge = MergeEngine(days, adapter, weights)
    return Services(
        settings=cfg,
        days=days,
        weights=weights,
        meals=meals,
        goals=goals,
        usage=usage,
        queue=queue,
        cache=cache,
        merge=merge,
        sync=SyncService(merge, cache),
    )


_services: Optional[Services] = None


def get_services() -> Services:
    global _services
    if _services is None:
        _services = build_services(settings)
    return _services


async def request_summary(services: Services, day: date, reason: str) -> bool:
    """Queue a day annotation from a request handler; False when nothing was queued."""
    if not services.queue.running:
        logger.warning("%s summary not requested (%s): background queue is not running", day, reason)
        return False
    return await services.cache.request_annotation(day, reason)
