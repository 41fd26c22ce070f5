from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException

from app.api.errors import to_http_exception
from app.config import settings
from app.core.database import check_database_health
from app.services.feed.assembler import FeedAssembler, get_feed_assembler
from app.services.feed.dataset import DatasetLoadError
from app.services.swipes.repositories import SwipeRepository, get_swipe_repository

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("")
async def health_check(assembler: FeedAssembler = Depends(get_feed_assembler)):
    """Basic health check endpoint with dataset sizes."""
    try:
        dataset = assembler.stats()
    except DatasetLoadError as exc:
        raise to_http_exception(exc) from exc
    return {
        "status": "healthy",
        "version": settings.app_version,
        "environment": settings.environment,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "dataset": dataset,
    }


@router.get("/ready")
async def readiness_check(repository: SwipeRepository = Depends(get_swipe_repository)):
    """Readiness check endpoint that includes database connectivity."""
    if not check_database_health(repository.engine):
        raise HTTPException(status_code=503, detail="Database is not available")

    return {
        "status": "ready",
        "version": settings.app_version,
        "environment": settings.environment,
        "database": "connected" if settings.database_url else "in-memory",
    }
