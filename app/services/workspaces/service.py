"""Workspace creation, invite-code joins, and member provisioning."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable

from app.models.workspace import User, Workspace
from app.services.feed.shuffle import generate_workspace_seed
from app.services.swipes.errors import NotFoundError, SwipeServiceError, WorkspaceConflictError
from app.services.swipes.repositories import SwipeRepository
from app.services.workspaces.invite_codes import generate_invite_code, normalize_invite_code

logger = logging.getLogger(__name__)

MAX_INVITE_CODE_ATTEMPTS = 10


class WorkspaceService:
    def __init__(
        self,
        repository: SwipeRepository,
        *,
        code_factory: Callable[[], str] = generate_invite_code,
        seed_factory: Callable[[], str] = generate_workspace_seed,
    ) -> None:
        self._repository = repository
        self._code_factory = code_factory
        self._seed_factory = seed_factory

    def create(self, user: User, name: str) -> Workspace:
        if user.workspace_id is not None:
            raise WorkspaceConflictError(
                "User is already in a workspace.", code="409_ALREADY_IN_WORKSPACE"
            )
        invite_code = self._unique_invite_code()
        workspace = self._repository.create_workspace(
            name=name.strip(),
            seed=self._seed_factory(),
            invite_code=invite_code,
            owner_id=user.id,
        )
        logger.info(
            "workspaces.created",
            extra={"workspace_id": str(workspace.id), "invite_code": invite_code},
        )
        return workspace

    def join(self, user: User, invite_code: str) -> Workspace:
        if user.workspace_id is not None:
            raise WorkspaceConflictError(
                "User is already in a workspace.", code="409_ALREADY_IN_WORKSPACE"
            )
        workspace = self._repository.get_workspace_by_invite(normalize_invite_code(invite_code))
        if workspace is None:
            raise NotFoundError("Invalid invite code.", code="404_INVITE_CODE_NOT_FOUND")
        self._repository.add_member(workspace.id, user.id)
        logger.info(
            "workspaces.joined",
            extra={"workspace_id": str(workspace.id), "user_id": str(user.id)},
        )
        return workspace

    def current(self, user: User) -> tuple[Workspace | None, list[User]]:
        if user.workspace_id is None:
            return None, []
        workspace = self._repository.get_workspace(user.workspace_id)
        if workspace is None:
            return None, []
        return workspace, self._repository.list_members(workspace.id)

    def _unique_invite_code(self) -> str:
        for _ in range(MAX_INVITE_CODE_ATTEMPTS):
            candidate = self._code_factory()
            if self._repository.get_workspace_by_invite(candidate) is None:
                return candidate
        raise SwipeServiceError(
            "Failed to generate unique invite code.", code="500_INVITE_CODE_EXHAUSTED"
        )


def ensure_users(repository: SwipeRepository, names: Iterable[str]) -> list[User]:
    """Create login users for each handle that does not exist yet."""
    users: list[User] = []
    for raw_name in names:
        display_name = raw_name.strip()
        if not display_name:
            continue
        users.append(repository.ensure_user(display_name.lower(), display_name.title()))
    return users
