# -*- coding: utf-8 -*-
"""Goal: API endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from ..services import Services, get_services
from .models import Goal, GoalSetRequest

router = APIRouter(prefix="/api/goal", tags=["Goal"])


@router.put("", response_model=Goal, summary="Set the weight goal")
def set_goal(request: GoalSetRequest, services: Services = Depends(get_services)):
    # Existing summaries go stale through their fingerprints; they are refreshed on the next request.
    try:
        return services.goals.set(Goal(**request.model_dump()))
    except Exception as exc:
        raise HTTPException(status_code=500, detail=f"Failed to save goal: {exc}") from exc


@router.get("", response_model=Goal, summary="Current weight goal")
def get_goal(services: Services = Depends(get_services)):
    goal = services.goals.current()
    if goal is None:
        raise HTTPException(status_code=404, detail="No goal set")
    return goal
