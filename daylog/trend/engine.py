# -*- coding: utf-8 -*-
"""Weight trend: exponentially smoothed averages, direction and goal projection.

Pure functions over the weight history; nothing here reads storage or the
clock unless ``today`` is omitted.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date, timedelta
from enum import Enum
from typing import List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from ..weight.models import WeightSample

# Direction changes smaller than this are treated as scale noise.
DIRECTION_THRESHOLD_KG = 0.1


class TrendDirection(str, Enum):
    UP = "up"
    DOWN = "down"
    FLAT = "flat"


@dataclass(frozen=True)
class TrendResult:
    avg_7d: float
    avg_14d: Optional[float]
    projected_goal_date: Optional[date]
    deviation_from_plan: float
    direction: TrendDirection
    confidence_range: Tuple[float, float]
    sample_count: int


def ema(values: Sequence[float]) -> float:
    """EMA over ``values`` (oldest first), seeded at the first value, alpha = 2 / (n + 1)."""
    if not values:
        return 0.0
    series = pd.Series(values, dtype="float64")
    return float(series.ewm(span=len(values), adjust=False).mean().iloc[-1])


def sample_std(values: Sequence[float]) -> float:
    if len(values) < 2:
        return 0.0
    return float(np.std(np.asarray(values, dtype="float64"), ddof=1))


def _direction(recent: float, avg_7d: float) -> TrendDirection:
    if recent < avg_7d - DIRECTION_THRESHOLD_KG:
        return TrendDirection.DOWN
    if recent > avg_7d + DIRECTION_THRESHOLD_KG:
        return TrendDirection.UP
    return TrendDirection.FLAT


def project_goal_date(
    avg_7d: float,
    target_weight: Optional[float],
    weekly_rate: Optional[float],
    today: date,
) -> Optional[date]:
    if target_weight is None or weekly_rate is None or weekly_rate <= 0:
        return None
    remaining = avg_7d - target_weight
    if remaining <= 0:
        return today
    return today + timedelta(days=math.ceil(remaining / weekly_rate * 7))


def calculate(
    samples: Sequence[WeightSample],
    target_weight: Optional[float] = None,
    weekly_rate: Optional[float] = None,
    *,
    today: Optional[date] = None,
) -> Optional[TrendResult]:
    if not samples:
        return None
    today = today or date.today()

    # Stable sort keeps same-day samples in logged order.
    values: List[float] = [s.value_kg for s in sorted(samples, key=lambda s: s.date)]

    last7 = values[-7:]
    avg_7d = ema(last7)
    avg_14d = ema(values[-14:]) if len(values) >= 14 else None
    recent = ema(values[-3:])

    spread = sample_std(last7)
    deviation = avg_7d - target_weight if target_weight is not None else 0.0

    return TrendResult(
        avg_7d=avg_7d,
        avg_14d=avg_14d,
        projected_goal_date=project_goal_date(avg_7d, target_weight, weekly_rate, today),
        deviation_from_plan=deviation,
        direction=_direction(recent, avg_7d),
        confidence_range=(avg_7d - spread, avg_7d + spread),
        sample_count=len(values),
    )
