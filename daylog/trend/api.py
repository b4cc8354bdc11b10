# -*- coding: utf-8 -*-
"""Trend: API endpoints."""

from __future__ import annotations

from datetime import date, timedelta

from fastapi import APIRouter, Depends, Query

from ..services import Services, get_services
from .engine import calculate
from .models import TrendResponse

router = APIRouter(prefix="/api/trend", tags=["Trend"])


@router.get("", response_model=TrendResponse, summary="Smoothed weight trend and goal projection")
def get_trend(
    days: int = Query(default=90, ge=1, le=3650),
    services: Services = Depends(get_services),
):
    today = date.today()
    samples = services.weights.history(today - timedelta(days=days - 1))
    goal = services.goals.current()
    target = goal.target_kg if goal else None
    rate = goal.rate_kg_per_week if goal else None

    result = calculate(samples, target, rate, today=today)
    if result is None:
        return TrendResponse(status="no_data", target_kg=target, warnings=["No weight samples in range"])

    warnings = []
    if result.avg_14d is None:
        warnings.append("Fewer than 14 samples: 14-day average unavailable")
    if goal is None:
        warnings.append("No goal set: projection unavailable")

    low, high = result.confidence_range
    return TrendResponse(
        status="ok",
        avg_7d=round(result.avg_7d, 2),
        avg_14d=round(result.avg_14d, 2) if result.avg_14d is not None else None,
        direction=result.direction.value,
        projected_goal_date=result.projected_goal_date,
        deviation_from_plan=round(result.deviation_from_plan, 2),
        confidence_low=round(low, 2),
        confidence_high=round(high, 2),
        sample_count=result.sample_count,
        target_kg=target,
        warnings=warnings,
    )
