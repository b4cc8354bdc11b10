# -*- coding: utf-8 -*-
"""HealthKit data upload: Pydantic models."""

from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class DailySteps(BaseModel):
    date: str = Field(..., description="ISO8601 date, e.g. 2025-01-15")
    count: int = Field(..., ge=0)


class HeartRateSample(BaseModel):
    timestamp: str = Field(..., description="ISO8601 timestamp")
    bpm: float = Field(..., gt=0)


class RestingHeartRate(BaseModel):
    date: str
    bpm: float = Field(..., gt=0)


class BodyMassSample(BaseModel):
    timestamp: str
    kg: float = Field(..., gt=0)


class SleepStage(BaseModel):
    start_time: str
    end_time: str
    stage: str = Field(..., description="asleep | core | light | deep | rem | awake | out_of_bed | in_bed")


class SleepSession(BaseModel):
    start_time: str
    end_time: str
    stages: List[SleepStage] = Field(default_factory=list)


class WorkoutRecord(BaseModel):
    start_time: str
    end_time: str
    activity_type: str = Field(..., description="running, cycling, walking, etc.")
    duration_seconds: float = Field(..., ge=0)
    total_energy_kcal: Optional[float] = None
    total_distance_meters: Optional[float] = None
    avg_heart_rate: Optional[float] = None


class DailyActiveEnergy(BaseModel):
    date: str
    kcal: float = Field(..., ge=0)


class HealthSyncRequest(BaseModel):
    device_id: str = Field(..., min_length=1)
    sync_start: str = Field(..., description="ISO8601 sync window start")
    sync_end: str = Field(..., description="ISO8601 sync window end")
    daily_steps: List[DailySteps] = []
    heart_rate_samples: List[HeartRateSample] = []
    resting_heart_rates: List[RestingHeartRate] = []
    body_mass: List[BodyMassSample] = []
    sleep_sessions: List[SleepSession] = []
    workouts: List[WorkoutRecord] = []
    active_energy: List[DailyActiveEnergy] = []


class HealthSyncResponse(BaseModel):
    status: str = Field(..., description="ok | error")
    message: str
    received_counts: Dict[str, int]
    sync_id: str = Field(..., description="UUID of this upload")
