"""Ordered feeds and progress cursors per workspace member."""

from __future__ import annotations

import logging
from datetime import datetime

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from app.api.errors import to_http_exception
from app.api.routes.auth import WorkspaceContext, require_workspace_member
from app.models.fundraise import FeedMode, FundraiseRecord
from app.observability.metrics import metrics
from app.services.feed.assembler import FeedAssembler, get_feed_assembler
from app.services.feed.dataset import DatasetLoadError
from app.services.swipes.errors import SwipeServiceError
from app.services.swipes.progress import ProgressTracker
from app.services.swipes.repositories import SwipeRepository, get_swipe_repository

logger = logging.getLogger(__name__)
router = APIRouter()


class FeedResponse(BaseModel):
    feed: list[FundraiseRecord]
    total_count: int
    user_cursor: int


class ProgressResponse(BaseModel):
    cursor: int
    updated_at: datetime


class UpdateProgressRequest(BaseModel):
    cursor: int = Field(ge=0, description="Requested index; clamped to the feed length.")


def get_progress_tracker(
    repository: SwipeRepository = Depends(get_swipe_repository),
    assembler: FeedAssembler = Depends(get_feed_assembler),
) -> ProgressTracker:
    return ProgressTracker(repository, assembler)


@router.get("/feed/{mode}", response_model=FeedResponse)
async def get_feed(
    mode: FeedMode,
    ctx: WorkspaceContext = Depends(require_workspace_member),
    assembler: FeedAssembler = Depends(get_feed_assembler),
    tracker: ProgressTracker = Depends(get_progress_tracker),
) -> FeedResponse:
    """Ordered feed for the caller's workspace, with their clamped cursor."""
    try:
        feed = assembler.get_feed(mode, ctx.workspace.seed)
        snapshot = tracker.get_cursor(ctx.user.id, mode)
    except (SwipeServiceError, DatasetLoadError) as exc:
        raise to_http_exception(exc) from exc
    metrics.increment("feed.served", tags={"mode": mode})
    return FeedResponse(
        feed=feed,
        total_count=len(feed),
        user_cursor=min(snapshot.cursor, max(0, len(feed) - 1)),
    )


@router.get("/progress/{mode}", response_model=ProgressResponse)
async def read_progress(
    mode: FeedMode,
    ctx: WorkspaceContext = Depends(require_workspace_member),
    tracker: ProgressTracker = Depends(get_progress_tracker),
) -> ProgressResponse:
    try:
        snapshot = tracker.get_cursor(ctx.user.id, mode)
    except SwipeServiceError as exc:
        raise to_http_exception(exc) from exc
    return ProgressResponse(cursor=snapshot.cursor, updated_at=snapshot.updated_at)


@router.put("/progress/{mode}", response_model=ProgressResponse)
async def update_progress(
    mode: FeedMode,
    payload: UpdateProgressRequest,
    ctx: WorkspaceContext = Depends(require_workspace_member),
    tracker: ProgressTracker = Depends(get_progress_tracker),
) -> ProgressResponse:
    """Store the caller's cursor, clamped to the current feed length."""
    try:
        snapshot = tracker.set_cursor(ctx.user.id, mode, payload.cursor)
    except (SwipeServiceError, DatasetLoadError) as exc:
        raise to_http_exception(exc) from exc
    return ProgressResponse(cursor=snapshot.cursor, updated_at=snapshot.updated_at)
