# -*- coding: utf-8 -*-
"""Day summaries: API endpoints."""

from __future__ import annotations

from datetime import date
from typing import List

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from ..services import Services, get_services, request_summary

router = APIRouter(prefix="/api", tags=["Annotations"])


class AnnotationBatchRequest(BaseModel):
    dates: List[date] = Field(..., min_length=1, max_length=366)
    reason: str = "batch"


@router.post("/annotations/batch", summary="Generate summaries for several days, in date order")
async def annotate_batch(request: AnnotationBatchRequest, services: Services = Depends(get_services)):
    outcomes = await services.cache.batch(request.dates, request.reason)
    return {
        "count": len(outcomes),
        "outcomes": {d.isoformat(): o.value for d, o in outcomes.items()},
    }


@router.post("/annotations/{day}", summary="Request a summary refresh for one day")
async def annotate_day(day: date, services: Services = Depends(get_services)):
    queued = await request_summary(services, day, "api")
    return {
        "date": day.isoformat(),
        "queued": queued,
        "configured": services.cache.configured,
    }


@router.get("/ai/usage", summary="Token usage of the summary model")
def ai_usage(services: Services = Depends(get_services)):
    return services.usage.summary()
