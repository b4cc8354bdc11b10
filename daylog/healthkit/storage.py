# -*- coding: utf-8 -*-
"""HealthKit data upload: JSON file storage."""

from __future__ import annotations

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional
from uuid import uuid4

logger = logging.getLogger(__name__)

PAYLOAD_KEYS = (
    "daily_steps",
    "heart_rate_samples",
    "resting_heart_rates",
    "body_mass",
    "sleep_sessions",
    "workouts",
    "active_energy",
)


def _ensure_dir(path: Path) -> None:
    path.mkdir(parents=True, exist_ok=True)


def count_payload(payload: Dict[str, Any]) -> Dict[str, int]:
    return {key: len(payload.get(key) or []) for key in PAYLOAD_KEYS}


def save_sync_data(root: Path, device_id: str, payload: Dict[str, Any]) -> str:
    """Persist one upload and return its sync_id."""
    sync_id = str(uuid4())
    device_dir = root / device_id
    _ensure_dir(device_dir)

    record = {
        "sync_id": sync_id,
        "device_id": device_id,
        "synced_at": datetime.utcnow().isoformat() + "Z",
        "data": payload,
    }
    file_path = device_dir / f"{sync_id}.json"
    file_path.write_text(json.dumps(record, ensure_ascii=False, indent=2), encoding="utf-8")
    return sync_id


def list_devices(root: Path) -> List[str]:
    if not root.exists():
        return []
    return sorted(p.name for p in root.iterdir() if p.is_dir())


def iter_payloads(root: Path, device_ids: Optional[Iterable[str]] = None) -> List[Dict[str, Any]]:
    """Every stored upload payload for the given devices (all devices when None), oldest file first."""
    devices = list(device_ids) if device_ids else list_devices(root)
    payloads: List[Dict[str, Any]] = []
    for device_id in devices:
        device_dir = root / device_id
        if not device_dir.exists():
            continue
        for fp in sorted(device_dir.glob("*.json")):
            try:
                record = json.loads(fp.read_text(encoding="utf-8"))
            except (OSError, json.JSONDecodeError) as exc:
                logger.warning("Skipping unreadable upload %s: %s", fp, exc)
                continue
            payload = record.get("data") or {}
            payload["_meta_synced_at"] = record.get("synced_at")
            payloads.append(payload)
    return payloads


def get_device_syncs(root: Path, device_id: str) -> List[Dict[str, Any]]:
    """Summaries (without the data) of every upload for a device, newest first."""
    device_dir = root / device_id
    if not device_dir.exists():
        return []

    syncs: List[Dict[str, Any]] = []
    for fp in sorted(device_dir.glob("*.json"), reverse=True):
        try:
            record = json.loads(fp.read_text(encoding="utf-8"))
            data = record.get("data", {})
            syncs.append({
                "sync_id": record.get("sync_id", fp.stem),
                "synced_at": record.get("synced_at"),
                "sync_start": data.get("sync_start"),
                "sync_end": data.get("sync_end"),
                "counts": count_payload(data),
            })
        except (json.JSONDecodeError, KeyError):
            continue
    return syncs
