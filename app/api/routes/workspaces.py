"""Workspace creation, invite-code joins, and membership listing."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from app.api.errors import to_http_exception
from app.api.routes.auth import (
    AuthContext,
    UserResponse,
    WorkspaceResponse,
    require_user,
    user_response,
    workspace_response,
)
from app.services.swipes.errors import SwipeServiceError
from app.services.swipes.repositories import SwipeRepository, get_swipe_repository
from app.services.workspaces.service import WorkspaceService

logger = logging.getLogger(__name__)
router = APIRouter()


class CreateWorkspaceRequest(BaseModel):
    name: str = Field(min_length=1, pattern=r"\S")


class JoinWorkspaceRequest(BaseModel):
    invite_code: str = Field(min_length=1, pattern=r"\S")


class WorkspaceEnvelope(BaseModel):
    workspace: WorkspaceResponse


class CurrentWorkspaceResponse(BaseModel):
    workspace: WorkspaceResponse | None = None
    members: list[UserResponse] = Field(default_factory=list)


def get_workspace_service(
    repository: SwipeRepository = Depends(get_swipe_repository),
) -> WorkspaceService:
    return WorkspaceService(repository)


@router.post("", response_model=WorkspaceEnvelope)
async def create_workspace(
    payload: CreateWorkspaceRequest,
    auth: AuthContext = Depends(require_user),
    service: WorkspaceService = Depends(get_workspace_service),
) -> WorkspaceEnvelope:
    """Create a workspace and make the caller its first member."""
    try:
        workspace = service.create(auth.user, payload.name)
    except SwipeServiceError as exc:
        raise to_http_exception(exc) from exc
    return WorkspaceEnvelope(workspace=workspace_response(workspace))


@router.post("/join", response_model=WorkspaceEnvelope)
async def join_workspace(
    payload: JoinWorkspaceRequest,
    auth: AuthContext = Depends(require_user),
    service: WorkspaceService = Depends(get_workspace_service),
) -> WorkspaceEnvelope:
    """Join an existing workspace via invite code."""
    try:
        workspace = service.join(auth.user, payload.invite_code)
    except SwipeServiceError as exc:
        raise to_http_exception(exc) from exc
    return WorkspaceEnvelope(workspace=workspace_response(workspace))


@router.get("/current", response_model=CurrentWorkspaceResponse)
async def current_workspace(
    auth: AuthContext = Depends(require_user),
    service: WorkspaceService = Depends(get_workspace_service),
) -> CurrentWorkspaceResponse:
    try:
        workspace, members = service.current(auth.user)
    except SwipeServiceError as exc:
        raise to_http_exception(exc) from exc
    if workspace is None:
        return CurrentWorkspaceResponse()
    return CurrentWorkspaceResponse(
        workspace=workspace_response(workspace),
        members=[user_response(member) for member in members],
    )
