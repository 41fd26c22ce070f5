"""Swipe submission, reflections, and the match inbox."""

from __future__ import annotations

import logging
from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from app.api.errors import to_http_exception
from app.api.routes.auth import WorkspaceContext, require_workspace_member
from app.models.fundraise import FeedMode, SwipeChoice
from app.models.inbox import MatchDetail, MatchSummary
from app.services.feed.assembler import FeedAssembler, get_feed_assembler
from app.services.feed.dataset import DatasetLoadError
from app.services.swipes.errors import SwipeServiceError
from app.services.swipes.inbox import MatchInbox
from app.services.swipes.matching import MatchEvaluator
from app.services.swipes.repositories import SwipeRepository, get_swipe_repository

logger = logging.getLogger(__name__)
router = APIRouter()


class SwipeRequest(BaseModel):
    fundraise_id: str = Field(min_length=1)
    decision: SwipeChoice


class SwipeResponse(BaseModel):
    id: UUID
    decision: SwipeChoice
    created_at: datetime
    match_created: bool
    match_id: UUID | None = None


class ReflectionRequest(BaseModel):
    swipe_id: UUID
    chips: list[str]
    note: str | None = None


class ReflectionResponse(BaseModel):
    id: UUID
    swipe_id: UUID
    chips: list[str]
    note: str | None = None
    created_at: datetime


class MatchListResponse(BaseModel):
    matches: list[MatchSummary]


def get_match_evaluator(
    repository: SwipeRepository = Depends(get_swipe_repository),
    assembler: FeedAssembler = Depends(get_feed_assembler),
) -> MatchEvaluator:
    return MatchEvaluator(repository, assembler)


def get_match_inbox(
    repository: SwipeRepository = Depends(get_swipe_repository),
    assembler: FeedAssembler = Depends(get_feed_assembler),
) -> MatchInbox:
    return MatchInbox(repository, assembler)


@router.post("/swipes/{mode}", response_model=SwipeResponse)
async def submit_swipe(
    mode: FeedMode,
    payload: SwipeRequest,
    ctx: WorkspaceContext = Depends(require_workspace_member),
    evaluator: MatchEvaluator = Depends(get_match_evaluator),
) -> SwipeResponse:
    """Save a like/pass; re-submitting for the same item overwrites the decision."""
    try:
        outcome = evaluator.record_swipe(
            ctx.user.id, ctx.workspace.id, payload.fundraise_id, mode, payload.decision
        )
    except (SwipeServiceError, DatasetLoadError) as exc:
        raise to_http_exception(exc) from exc
    return SwipeResponse(
        id=outcome.swipe_id,
        decision=outcome.decision,
        created_at=outcome.created_at,
        match_created=outcome.match_created,
        match_id=outcome.match_id,
    )


@router.post("/reflections", response_model=ReflectionResponse)
async def save_reflection(
    payload: ReflectionRequest,
    ctx: WorkspaceContext = Depends(require_workspace_member),
    inbox: MatchInbox = Depends(get_match_inbox),
) -> ReflectionResponse:
    try:
        reflection = inbox.save_reflection(ctx.user.id, payload.swipe_id, payload.chips, payload.note)
    except SwipeServiceError as exc:
        raise to_http_exception(exc) from exc
    return ReflectionResponse.model_validate(reflection, from_attributes=True)


@router.get("/matches", response_model=MatchListResponse)
async def list_matches(
    ctx: WorkspaceContext = Depends(require_workspace_member),
    inbox: MatchInbox = Depends(get_match_inbox),
) -> MatchListResponse:
    """All matches for the workspace, newest first."""
    try:
        return MatchListResponse(matches=inbox.list_matches(ctx.workspace.id))
    except (SwipeServiceError, DatasetLoadError) as exc:
        raise to_http_exception(exc) from exc


@router.get("/matches/{match_id}", response_model=MatchDetail)
async def get_match(
    match_id: UUID,
    ctx: WorkspaceContext = Depends(require_workspace_member),
    inbox: MatchInbox = Depends(get_match_inbox),
) -> MatchDetail:
    try:
        return inbox.get_match(ctx.workspace.id, match_id)
    except (SwipeServiceError, DatasetLoadError) as exc:
        raise to_http_exception(exc) from exc
