# -*- coding: utf-8 -*-
"""Weight history: API endpoints."""

from __future__ import annotations

import asyncio
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query

from ..days.models import DailyRecord
from ..services import Services, get_services, request_summary
from .models import WeightHistoryResponse, WeightLogRequest, WeightSample, WeightSource

router = APIRouter(prefix="/api/weights", tags=["Weight"])


def _save_manual_weight(services: Services, sample: WeightSample) -> None:
    services.weights.add(sample)
    record = services.days.get(sample.date) or DailyRecord(date=sample.date)
    services.days.upsert(record.model_copy(update={"weight_kg": sample.value_kg}), fields=["weight_kg"])


@router.post("", response_model=WeightSample, summary="Log a weight by hand")
async def log_weight(request: WeightLogRequest, services: Services = Depends(get_services)):
    """Appends a manual sample and sets the day's weight (a manual value wins over the device)."""
    sample = WeightSample(date=request.date, value_kg=request.value_kg, source=WeightSource.manual)
    try:
        await asyncio.to_thread(_save_manual_weight, services, sample)
    except Exception as exc:
        raise HTTPException(status_code=500, detail=f"Failed to save weight: {exc}") from exc

    await request_summary(services, request.date, "weight_log")
    return sample


@router.get("", response_model=WeightHistoryResponse, summary="Weight history")
def weight_history(
    since: date | None = Query(default=None, description="YYYY-MM-DD (default: everything)"),
    services: Services = Depends(get_services),
):
    samples = services.weights.history(since)
    return WeightHistoryResponse(count=len(samples), samples=samples)
