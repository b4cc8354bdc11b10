# -*- coding: utf-8 -*-
"""Trend: response models."""

from __future__ import annotations

from datetime import date as Date
from typing import List, Optional

from pydantic import BaseModel, Field


class TrendResponse(BaseModel):
    status: str = Field(..., description="ok | no_data")
    avg_7d: Optional[float] = None
    avg_14d: Optional[float] = None
    direction: Optional[str] = Field(None, description="up | down | flat")
    projected_goal_date: Optional[Date] = None
    deviation_from_plan: Optional[float] = None
    confidence_low: Optional[float] = None
    confidence_high: Optional[float] = None
    sample_count: int = 0
    target_kg: Optional[float] = None
    warnings: List[str] = Field(default_factory=list)
