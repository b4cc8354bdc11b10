# -*- coding: utf-8 -*-
"""Device sync: API endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from ..services import Services, get_services

router = APIRouter(prefix="/api/sync", tags=["Sync"])


@router.post("", summary="Merge device data for recent days")
async def run_sync(
    days: int | None = Query(default=None, ge=1, le=365),
    background: bool = Query(default=False, description="Return immediately and sync on the queue"),
    services: Services = Depends(get_services),
):
    days = days or services.settings.sync_days
    if background and services.queue.running:
        services.sync.launch(days, reason="api")
        return {"status": "queued", "days": days}

    report = await services.sync.run(days, reason="api")
    return {
        "status": "ok",
        "start": report.start.isoformat(),
        "end": report.end.isoformat(),
        "changed": [d.isoformat() for d in report.changed],
        "annotations": {d.isoformat(): o.value for d, o in report.annotations.items()},
    }
