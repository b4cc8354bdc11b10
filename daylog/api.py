# -*- coding: utf-8 -*-
"""
daylog API

Daily health log: device sync, manual edits, weight trend and AI day summaries.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import AsyncIterator, Optional

from fastapi import Depends, FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware

from .annotation.api import router as annotation_router
from .app_db import init_app_db
from .config import settings
from .days.api import router as days_router
from .goals.api import router as goals_router
from .healthkit.api import router as healthkit_router
from .logs import configure_logging, read_log_tail
from .meals.api import router as meals_router
from .services import Services, get_services
from .sync.api import router as sync_router
from .trend.api import router as trend_router
from .weight.api import router as weight_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    configure_logging(settings.log_dir, settings.log_level)
    init_app_db(settings.app_db_path)

    services = get_services()
    services.queue.start()
    await services.cache.resume_pending()

    periodic: Optional[asyncio.Task] = None
    if settings.sync_interval_minutes > 0:
        periodic = asyncio.create_task(
            services.sync.run_periodically(settings.sync_interval_minutes, settings.sync_days)
        )
        logger.info("Periodic sync every %g minutes", settings.sync_interval_minutes)

    try:
        yield
    finally:
        if periodic is not None:
            periodic.cancel()
            await asyncio.gather(periodic, return_exceptions=True)
        await services.queue.shutdown()


app = FastAPI(
    title="daylog",
    description="Daily health log with device sync, weight trend and day summaries",
    version="1.0.0",
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Ensure the app DB exists even when lifespan events are not triggered (e.g. some test clients).
init_app_db(settings.app_db_path)

app.include_router(days_router)
app.include_router(weight_router)
app.include_router(meals_router)
app.include_router(goals_router)
app.include_router(healthkit_router)
app.include_router(sync_router)
app.include_router(trend_router)
app.include_router(annotation_router)


@app.get("/api/health")
def health_check(services: Services = Depends(get_services)):
    return {
        "status": "ok",
        "version": "1.0.0",
        "timestamp": datetime.now().isoformat(),
        "summaries_configured": services.cache.configured,
        "queue_running": services.queue.running,
    }


@app.get("/api/logs", summary="Tail of the activity log")
def get_logs(lines: int = Query(default=200, ge=1, le=5000)):
    tail = read_log_tail(settings.log_dir, lines)
    return {"count": len(tail), "lines": tail}


@app.delete("/api/data", summary="Delete every stored log, sample, meal and goal")
def wipe_data(
    confirm: bool = Query(default=False),
    services: Services = Depends(get_services),
):
    if not confirm:
        raise HTTPException(status_code=400, detail="Pass confirm=true to delete all data")
    services.wipe()
    logger.warning("All data wiped")
    return {"status": "ok"}
