# -*- coding: utf-8 -*-
"""HealthKit data upload: API endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException

from ..services import Services, get_services
from .models import HealthSyncRequest, HealthSyncResponse
from .storage import count_payload, get_device_syncs, save_sync_data

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/healthkit", tags=["HealthKit"])


@router.post("/sync", response_model=HealthSyncResponse, summary="Receive and store a HealthKit upload")
def upload_health_data(request: HealthSyncRequest, services: Services = Depends(get_services)):
    """The phone posts raw samples here; they are merged into daily logs by the next sync run."""
    payload = request.model_dump(mode="json")
    received_counts = count_payload(payload)

    total = sum(received_counts.values())
    if total == 0:
        return HealthSyncResponse(
            status="ok",
            message="No data received",
            received_counts=received_counts,
            sync_id="",
        )

    try:
        sync_id = save_sync_data(services.settings.healthkit_root, request.device_id, payload)
    except OSError as exc:
        raise HTTPException(status_code=500, detail=f"Failed to save sync data: {exc}") from exc

    logger.info("Upload %s from %s: %d records", sync_id, request.device_id, total)
    return HealthSyncResponse(
        status="ok",
        message=f"Received {total} records",
        received_counts=received_counts,
        sync_id=sync_id,
    )


@router.get("/history/{device_id}", summary="Upload history of a device")
def get_sync_history(device_id: str, services: Services = Depends(get_services)):
    syncs = get_device_syncs(services.settings.healthkit_root, device_id)
    return {"device_id": device_id, "syncs": syncs, "count": len(syncs)}
