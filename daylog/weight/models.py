# -*- coding: utf-8 -*-
"""Weight history: Pydantic models."""

from __future__ import annotations

from datetime import date as Date
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


class WeightSource(str, Enum):
    manual = "manual"
    device = "device"


class WeightSample(BaseModel):
    id: Optional[int] = None
    date: Date
    value_kg: float = Field(..., gt=0)
    source: WeightSource = WeightSource.manual
    created_at: Optional[str] = None


class WeightLogRequest(BaseModel):
    date: Date
    value_kg: float = Field(..., gt=0, le=500)


class WeightHistoryResponse(BaseModel):
    count: int
    samples: List[WeightSample]
