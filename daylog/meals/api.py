# -*- coding: utf-8 -*-
"""Meals: API endpoints."""

from __future__ import annotations

import asyncio
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query

from ..services import Services, get_services, request_summary
from .models import MealCreateRequest, MealEntry, MealListResponse

router = APIRouter(prefix="/api/meals", tags=["Meals"])


@router.post("", response_model=MealEntry, summary="Log a meal")
async def add_meal(request: MealCreateRequest, services: Services = Depends(get_services)):
    try:
        meal = await asyncio.to_thread(services.meals.add, MealEntry(**request.model_dump()))
    except Exception as exc:
        raise HTTPException(status_code=500, detail=f"Failed to save meal: {exc}") from exc
    await request_summary(services, meal.date, "meal_added")
    return meal


@router.get("", response_model=MealListResponse, summary="Meals for one day")
def list_meals(
    day: date = Query(..., alias="date", description="YYYY-MM-DD"),
    services: Services = Depends(get_services),
):
    meals = services.meals.for_date(day)
    return MealListResponse(
        date=day,
        count=len(meals),
        total_kcal=sum(m.total_kcal for m in meals),
        meals=meals,
    )


@router.delete("/{meal_id}", summary="Delete a meal")
async def delete_meal(meal_id: int, services: Services = Depends(get_services)):
    meal = await asyncio.to_thread(services.meals.get, meal_id)
    if meal is None:
        raise HTTPException(status_code=404, detail="Meal not found")
    await asyncio.to_thread(services.meals.delete, meal_id)
    await request_summary(services, meal.date, "meal_deleted")
    return {"deleted": meal_id, "date": meal.date.isoformat()}
