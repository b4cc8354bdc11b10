# -*- coding: utf-8 -*-
"""Daily log: API endpoints (manual edit path)."""

from __future__ import annotations

import asyncio
from datetime import date, timedelta
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query

from ..annotation.cache import PENDING_ANNOTATION
from ..services import Services, get_services, request_summary
from ..weight.models import WeightSample, WeightSource
from .models import DailyRecord, DailyRecordListResponse, DailyRecordResponse, DailyRecordUpdate

router = APIRouter(prefix="/api/days", tags=["Days"])


def _to_response(record: DailyRecord) -> DailyRecordResponse:
    return DailyRecordResponse(
        **record.model_dump(),
        annotation_pending=record.annotation == PENDING_ANNOTATION,
    )


@router.get("", response_model=DailyRecordListResponse, summary="List daily logs since a date")
def list_days(
    since: date | None = Query(default=None, description="YYYY-MM-DD (default: last 30 days)"),
    until: date | None = Query(default=None, description="YYYY-MM-DD, inclusive"),
    services: Services = Depends(get_services),
):
    since = since or (date.today() - timedelta(days=29))
    if until is not None:
        if until < since:
            raise HTTPException(status_code=400, detail="until must not precede since")
        records = services.days.between(since, until)
    else:
        records = services.days.since(since)
    return DailyRecordListResponse(
        since=since,
        count=len(records),
        days=[_to_response(r) for r in records],
    )


@router.get("/{day}", response_model=DailyRecordResponse, summary="Get one daily log")
def get_day(day: date, services: Services = Depends(get_services)):
    record = services.days.get(day)
    if record is None:
        raise HTTPException(status_code=404, detail="No log for this date")
    return _to_response(record)


def _apply_edit(services: Services, day: date, request: DailyRecordUpdate, fields: List[str]) -> DailyRecord:
    existing = services.days.get(day) or DailyRecord(date=day)
    edited = existing.model_copy(update={f: getattr(request, f) for f in fields})
    services.days.upsert(edited, fields=fields)
    if "weight_kg" in fields and request.weight_kg is not None:
        services.weights.add(WeightSample(date=day, value_kg=request.weight_kg, source=WeightSource.manual))
    return edited


@router.put("/{day}", response_model=DailyRecordResponse, summary="Edit a daily log by hand")
async def edit_day(
    day: date,
    request: DailyRecordUpdate,
    services: Services = Depends(get_services),
):
    """Manual values always win: the sent fields are written as-is, whatever the device merged."""
    fields = sorted(request.model_fields_set)
    if not fields:
        raise HTTPException(status_code=400, detail="No fields to update")

    try:
        edited = await asyncio.to_thread(_apply_edit, services, day, request, fields)
    except Exception as exc:
        raise HTTPException(status_code=500, detail=f"Failed to save log: {exc}") from exc

    await request_summary(services, day, "manual_edit")
    return _to_response(await asyncio.to_thread(services.days.get, day) or edited)
