# -*- coding: utf-8 -*-
"""Meals: Pydantic models."""

from __future__ import annotations

from datetime import date as Date
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


class MealCategory(str, Enum):
    home = "home"
    restaurant = "restaurant"
    fast_food = "fast_food"


class MealEntry(BaseModel):
    id: Optional[int] = None
    date: Date
    category: MealCategory = MealCategory.home
    description: str = Field(..., min_length=1, max_length=500)
    total_kcal: int = Field(0, ge=0)
    has_alcohol: bool = False
    note: Optional[str] = Field(None, max_length=2000)
    created_at: Optional[str] = None


class MealCreateRequest(BaseModel):
    date: Date
    category: MealCategory = MealCategory.home
    description: str = Field(..., min_length=1, max_length=500)
    total_kcal: int = Field(0, ge=0)
    has_alcohol: bool = False
    note: Optional[str] = Field(None, max_length=2000)


class MealListResponse(BaseModel):
    date: Date
    count: int
    total_kcal: int
    meals: List[MealEntry]
