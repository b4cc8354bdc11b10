# -*- coding: utf-8 -*-
"""Daily log: Pydantic models."""

from __future__ import annotations

from datetime import date as Date
from typing import List, Optional

from pydantic import BaseModel, Field

# Device-observable fields: the merge only fills these while they are null.
DEVICE_FIELDS = ("weight_kg", "steps", "sleep_hours", "resting_hr", "exercises")
# Fields the user edits directly; always win over device data.
USER_FIELDS = DEVICE_FIELDS + ("note", "off_plan")
# Written only by the annotation cache.
ANNOTATION_FIELDS = ("annotation", "annotation_fingerprint")


class ExerciseEntry(BaseModel):
    name: str = Field(..., min_length=1)
    duration_min: int = Field(0, ge=0)
    kcal: int = Field(0, ge=0)


class DailyRecord(BaseModel):
    date: Date
    weight_kg: Optional[float] = Field(None, gt=0)
    steps: Optional[int] = Field(None, ge=0)
    sleep_hours: Optional[float] = Field(None, ge=0)
    resting_hr: Optional[int] = Field(None, gt=0)
    exercises: Optional[List[ExerciseEntry]] = None
    note: Optional[str] = Field(None, max_length=4000)
    off_plan: bool = False
    annotation: Optional[str] = None
    annotation_fingerprint: Optional[str] = None

    def has_content(self) -> bool:
        """True when anything besides the annotation pair carries data."""
        if any(getattr(self, f) is not None for f in DEVICE_FIELDS):
            return True
        return bool(self.note) or self.off_plan


class SourceObservation(BaseModel):
    """One day's bag of device readings; never persisted as-is."""

    date: Date
    weight_kg: Optional[float] = Field(None, gt=0)
    steps: Optional[int] = Field(None, ge=0)
    sleep_hours: Optional[float] = Field(None, ge=0)
    resting_hr: Optional[int] = Field(None, gt=0)
    exercises: Optional[List[ExerciseEntry]] = None

    def is_empty(self) -> bool:
        return all(getattr(self, f) is None for f in DEVICE_FIELDS)


class DailyRecordUpdate(BaseModel):
    """Manual edit payload; only the fields sent are written."""

    weight_kg: Optional[float] = Field(None, gt=0)
    steps: Optional[int] = Field(None, ge=0)
    sleep_hours: Optional[float] = Field(None, ge=0, le=24)
    resting_hr: Optional[int] = Field(None, gt=0)
    exercises: Optional[List[ExerciseEntry]] = None
    note: Optional[str] = Field(None, max_length=4000)
    off_plan: Optional[bool] = None


class DailyRecordResponse(DailyRecord):
    annotation_pending: bool = False


class DailyRecordListResponse(BaseModel):
    since: Optional[Date] = None
    count: int
    days: List[DailyRecordResponse]
