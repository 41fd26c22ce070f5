"""Name-based login, bearer sessions, and the auth dependencies other routes use."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from uuid import UUID

from fastapi import APIRouter, Depends, Header, HTTPException
from pydantic import BaseModel, Field

from app.api.errors import to_http_exception
from app.config import settings
from app.models.workspace import User, Workspace
from app.services.swipes.errors import SwipeServiceError
from app.services.swipes.repositories import SwipeRepository, get_swipe_repository

logger = logging.getLogger(__name__)
router = APIRouter()


class UserResponse(BaseModel):
    id: UUID
    name: str
    display_name: str
    workspace_id: UUID | None = None
    created_at: datetime


class WorkspaceResponse(BaseModel):
    id: UUID
    name: str
    seed: str
    invite_code: str
    created_at: datetime


class UserListResponse(BaseModel):
    users: list[UserResponse]


class LoginRequest(BaseModel):
    name: str = Field(min_length=1)


class LoginResponse(BaseModel):
    user: UserResponse
    token: str


class MeResponse(BaseModel):
    user: UserResponse
    workspace: WorkspaceResponse | None = None


@dataclass
class AuthContext:
    token: str
    user: User


def require_user(
    authorization: str | None = Header(default=None),
    repository: SwipeRepository = Depends(get_swipe_repository),
) -> AuthContext:
    if not authorization or not authorization.lower().startswith("bearer "):
        logger.warning("auth.session.missing_header")
        raise HTTPException(status_code=401, detail="Missing or invalid authorization header")
    token = authorization.split(" ", 1)[1].strip()
    try:
        user = repository.resolve_session(token)
    except SwipeServiceError as exc:
        raise to_http_exception(exc) from exc
    if user is None:
        logger.warning("auth.session.invalid")
        raise HTTPException(status_code=401, detail="Invalid or expired session")
    return AuthContext(token=token, user=user)


@dataclass
class WorkspaceContext:
    user: User
    workspace: Workspace


def require_workspace_member(
    auth: AuthContext = Depends(require_user),
    repository: SwipeRepository = Depends(get_swipe_repository),
) -> WorkspaceContext:
    if auth.user.workspace_id is None:
        raise HTTPException(status_code=403, detail="User must be in a workspace")
    try:
        workspace = repository.get_workspace(auth.user.workspace_id)
    except SwipeServiceError as exc:
        raise to_http_exception(exc) from exc
    if workspace is None:
        raise HTTPException(status_code=404, detail="Workspace not found")
    return WorkspaceContext(user=auth.user, workspace=workspace)


def user_response(user: User) -> UserResponse:
    return UserResponse.model_validate(user, from_attributes=True)


def workspace_response(workspace: Workspace) -> WorkspaceResponse:
    return WorkspaceResponse.model_validate(workspace, from_attributes=True)


@router.get("/users", response_model=UserListResponse)
async def list_users(
    repository: SwipeRepository = Depends(get_swipe_repository),
) -> UserListResponse:
    """List available users for the login selector."""
    try:
        users = repository.list_users()
    except SwipeServiceError as exc:
        raise to_http_exception(exc) from exc
    return UserListResponse(users=[user_response(user) for user in users])


@router.post("/login", response_model=LoginResponse)
async def login(
    payload: LoginRequest,
    repository: SwipeRepository = Depends(get_swipe_repository),
) -> LoginResponse:
    """Login by name; there is no password."""
    normalized = payload.name.strip().lower()
    try:
        user = repository.get_user_by_name(normalized)
        if user is None:
            logger.info("auth.login.unknown_user")
            raise HTTPException(status_code=404, detail="User not found")
        session = repository.create_session(
            user.id, timedelta(hours=settings.session_expiry_hours)
        )
    except SwipeServiceError as exc:
        raise to_http_exception(exc) from exc
    logger.info(
        "auth.session.issued",
        extra={"user_id": str(user.id), "expires_in_hours": settings.session_expiry_hours},
    )
    return LoginResponse(user=user_response(user), token=session.id)


@router.post("/logout")
async def logout(
    auth: AuthContext = Depends(require_user),
    repository: SwipeRepository = Depends(get_swipe_repository),
) -> dict[str, bool]:
    """Invalidate the current session."""
    try:
        repository.delete_session(auth.token)
    except SwipeServiceError as exc:
        raise to_http_exception(exc) from exc
    logger.info("auth.session.revoked", extra={"user_id": str(auth.user.id)})
    return {"success": True}


@router.get("/me", response_model=MeResponse)
async def me(
    auth: AuthContext = Depends(require_user),
    repository: SwipeRepository = Depends(get_swipe_repository),
) -> MeResponse:
    """Current user and workspace."""
    workspace = None
    if auth.user.workspace_id is not None:
        try:
            workspace = repository.get_workspace(auth.user.workspace_id)
        except SwipeServiceError as exc:
            raise to_http_exception(exc) from exc
    return MeResponse(
        user=user_response(auth.user),
        workspace=workspace_response(workspace) if workspace else None,
    )
