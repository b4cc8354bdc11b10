# -*- coding: utf-8 -*-
"""Goal: Pydantic models."""

from __future__ import annotations

from datetime import date as Date
from typing import Optional

from pydantic import BaseModel, Field


class Goal(BaseModel):
    id: Optional[int] = None
    target_kg: float = Field(..., gt=0)
    rate_kg_per_week: float = Field(..., gt=0, le=2)
    deadline: Date
    daily_deficit_kcal: Optional[int] = Field(None, ge=0)
    created_at: Optional[str] = None


class GoalSetRequest(BaseModel):
    target_kg: float = Field(..., gt=0)
    rate_kg_per_week: float = Field(..., gt=0, le=2)
    deadline: Date
    daily_deficit_kcal: Optional[int] = Field(None, ge=0)
