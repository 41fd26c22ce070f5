"""Persistence for workspaces, members, swipes, matches, progress, and reflections."""

from __future__ import annotations

import logging
import secrets
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from typing import Any, Protocol
from uuid import UUID, uuid4

from sqlalchemy import func
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, select

from app.config import settings
from app.core.database import build_engine, init_database
from app.models.fundraise import FeedMode, SwipeChoice
from app.models.swipe_record import MatchRecord, ProgressCursor, Reflection, SwipeDecision
from app.models.workspace import User, UserSession, Workspace
from app.services.swipes.errors import SwipePersistenceError

logger = logging.getLogger(__name__)

_REPOSITORY_INSTANCE: SwipeRepository | None = None


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class MatchStore(Protocol):
    """Storage contract the match evaluator and progress tracker depend on."""

    def upsert_swipe(
        self, user_id: UUID, fundraise_id: str, mode: FeedMode, decision: SwipeChoice
    ) -> SwipeDecision:
        ...

    def get_workspace(self, workspace_id: UUID) -> Workspace | None:
        ...

    def list_members(self, workspace_id: UUID) -> list[User]:
        ...

    def count_member_likes(self, workspace_id: UUID, fundraise_id: str, mode: FeedMode) -> int:
        ...

    def create_match_if_absent(
        self, workspace_id: UUID, fundraise_id: str, mode: FeedMode
    ) -> tuple[MatchRecord, bool]:
        ...

    def get_progress(self, user_id: UUID, mode: FeedMode) -> ProgressCursor | None:
        ...

    def upsert_progress(self, user_id: UUID, mode: FeedMode, cursor_index: int) -> ProgressCursor:
        ...


class SwipeRepository(MatchStore):
    """SQLModel-backed repository; upserts are single ON CONFLICT statements."""

    def __init__(self, engine: Engine) -> None:
        dialect = engine.dialect.name
        if dialect == "postgresql":
            self._insert = postgresql_insert
        elif dialect == "sqlite":
            self._insert = sqlite_insert
        else:
            raise ValueError(f"Unsupported database dialect for upserts: {dialect}")
        self._engine = engine

    @property
    def engine(self) -> Engine:
        return self._engine

    def dispose(self) -> None:
        """Close the underlying SQLAlchemy engine."""
        self._engine.dispose()

    # Users and sessions

    def list_users(self) -> list[User]:
        with self._guard("list users"), self._session() as session:
            return list(session.exec(select(User).order_by(User.name)).all())

    def get_user(self, user_id: UUID) -> User | None:
        with self._guard("load user", user_id=str(user_id)), self._session() as session:
            return session.get(User, user_id)

    def get_user_by_name(self, name: str) -> User | None:
        with self._guard("load user"), self._session() as session:
            return session.exec(select(User).where(User.name == name)).first()

    def ensure_user(self, name: str, display_name: str) -> User:
        with self._guard("create user"), self._session() as session:
            existing = session.exec(select(User).where(User.name == name)).first()
            if existing:
                return existing
            user = User(name=name, display_name=display_name)
            session.add(user)
            session.commit()
            logger.info("auth.user.created", extra={"user_name": name})
            return user

    def create_session(self, user_id: UUID, ttl: timedelta) -> UserSession:
        token = secrets.token_urlsafe(32)
        record = UserSession(id=token, user_id=user_id, expires_at=_utcnow() + ttl)
        with self._guard("create session", user_id=str(user_id)), self._session() as session:
            session.add(record)
            session.commit()
            return record

    def resolve_session(self, token: str) -> User | None:
        """Return the session's user when the token exists and has not expired."""
        with self._guard("resolve session"), self._session() as session:
            statement = (
                select(User)
                .join(UserSession, UserSession.user_id == User.id)
                .where(UserSession.id == token, UserSession.expires_at > _utcnow())
            )
            return session.exec(statement).first()

    def delete_session(self, token: str) -> None:
        with self._guard("delete session"), self._session() as session:
            record = session.get(UserSession, token)
            if record:
                session.delete(record)
                session.commit()

    # Workspaces

    def get_workspace(self, workspace_id: UUID) -> Workspace | None:
        with self._guard("load workspace", workspace_id=str(workspace_id)), self._session() as session:
            return session.get(Workspace, workspace_id)

    def get_workspace_by_invite(self, invite_code: str) -> Workspace | None:
        with self._guard("load workspace"), self._session() as session:
            statement = select(Workspace).where(Workspace.invite_code == invite_code)
            return session.exec(statement).first()

    def create_workspace(
        self, *, name: str, seed: str, invite_code: str, owner_id: UUID
    ) -> Workspace:
        workspace = Workspace(name=name, seed=seed, invite_code=invite_code)
        with self._guard("create workspace", user_id=str(owner_id)), self._session() as session:
            session.add(workspace)
            session.flush()
            owner = session.get(User, owner_id)
            if owner is not None:
                owner.workspace_id = workspace.id
                session.add(owner)
            session.commit()
            return workspace

    def add_member(self, workspace_id: UUID, user_id: UUID) -> None:
        with self._guard("join workspace", workspace_id=str(workspace_id)), self._session() as session:
            user = session.get(User, user_id)
            if user is None:
                return
            user.workspace_id = workspace_id
            session.add(user)
            session.commit()

    def list_members(self, workspace_id: UUID) -> list[User]:
        with self._guard("list members", workspace_id=str(workspace_id)), self._session() as session:
            statement = (
                select(User).where(User.workspace_id == workspace_id).order_by(User.created_at)
            )
            return list(session.exec(statement).all())

    # Swipes

    def upsert_swipe(
        self, user_id: UUID, fundraise_id: str, mode: FeedMode, decision: SwipeChoice
    ) -> SwipeDecision:
        values = {
            "id": uuid4(),
            "user_id": user_id,
            "fundraise_id": fundraise_id,
            "mode": mode,
            "decision": decision,
            "created_at": _utcnow(),
        }
        self._upsert(
            SwipeDecision,
            values,
            conflict=("user_id", "fundraise_id", "mode"),
            update=("decision", "created_at"),
            operation="save swipe",
        )
        with self._guard("save swipe"), self._session() as session:
            statement = select(SwipeDecision).where(
                SwipeDecision.user_id == user_id,
                SwipeDecision.fundraise_id == fundraise_id,
                SwipeDecision.mode == mode,
            )
            return session.exec(statement).one()

    def get_swipe(self, swipe_id: UUID, user_id: UUID) -> SwipeDecision | None:
        with self._guard("load swipe"), self._session() as session:
            statement = select(SwipeDecision).where(
                SwipeDecision.id == swipe_id, SwipeDecision.user_id == user_id
            )
            return session.exec(statement).first()

    def count_member_likes(self, workspace_id: UUID, fundraise_id: str, mode: FeedMode) -> int:
        with self._guard("count likes", workspace_id=str(workspace_id)), self._session() as session:
            statement = (
                select(func.count(SwipeDecision.id))
                .select_from(SwipeDecision)
                .join(User, User.id == SwipeDecision.user_id)
                .where(
                    SwipeDecision.fundraise_id == fundraise_id,
                    SwipeDecision.mode == mode,
                    SwipeDecision.decision == "like",
                    User.workspace_id == workspace_id,
                )
            )
            return int(session.exec(statement).one())

    def list_member_likes(
        self, workspace_id: UUID, fundraise_id: str, mode: str
    ) -> list[tuple[SwipeDecision, User, Reflection | None]]:
        """Likes by current members for one item, oldest first, with any reflection."""
        with self._guard("list likes", workspace_id=str(workspace_id)), self._session() as session:
            statement = (
                select(SwipeDecision, User, Reflection)
                .join(User, User.id == SwipeDecision.user_id)
                .outerjoin(Reflection, Reflection.swipe_id == SwipeDecision.id)
                .where(
                    SwipeDecision.fundraise_id == fundraise_id,
                    SwipeDecision.mode == mode,
                    SwipeDecision.decision == "like",
                    User.workspace_id == workspace_id,
                )
                .order_by(SwipeDecision.created_at)
            )
            return [tuple(row) for row in session.exec(statement).all()]  # type: ignore[misc]

    # Matches

    def create_match_if_absent(
        self, workspace_id: UUID, fundraise_id: str, mode: FeedMode
    ) -> tuple[MatchRecord, bool]:
        """Insert-or-ignore on (workspace_id, fundraise_id, mode); flag is True when created."""
        existing = self._find_match(workspace_id, fundraise_id, mode)
        if existing is not None:
            return existing, False
        record = MatchRecord(workspace_id=workspace_id, fundraise_id=fundraise_id, mode=mode)
        context = {"workspace_id": str(workspace_id), "fundraise_id": fundraise_id, "mode": mode}
        try:
            with self._session() as session:
                session.add(record)
                session.commit()
            return record, True
        except IntegrityError:
            logger.info("swipes.match.already_exists", extra=context)
        except SQLAlchemyError as exc:
            logger.exception("swipes.persistence.error", extra={"operation": "create match", **context})
            raise SwipePersistenceError("Failed to create match.", code="500_INTERNAL") from exc
        existing = self._find_match(workspace_id, fundraise_id, mode)
        if existing is None:  # pragma: no cover - constraint fired without a row
            raise SwipePersistenceError("Match conflict without a stored match.", code="500_INTERNAL")
        return existing, False

    def list_matches(self, workspace_id: UUID) -> list[MatchRecord]:
        with self._guard("list matches", workspace_id=str(workspace_id)), self._session() as session:
            statement = (
                select(MatchRecord)
                .where(MatchRecord.workspace_id == workspace_id)
                .order_by(MatchRecord.created_at.desc())
            )
            return list(session.exec(statement).all())

    def get_match(self, match_id: UUID, workspace_id: UUID) -> MatchRecord | None:
        with self._guard("load match", match_id=str(match_id)), self._session() as session:
            statement = select(MatchRecord).where(
                MatchRecord.id == match_id, MatchRecord.workspace_id == workspace_id
            )
            return session.exec(statement).first()

    def _find_match(self, workspace_id: UUID, fundraise_id: str, mode: str) -> MatchRecord | None:
        with self._guard("load match", workspace_id=str(workspace_id)), self._session() as session:
            statement = select(MatchRecord).where(
                MatchRecord.workspace_id == workspace_id,
                MatchRecord.fundraise_id == fundraise_id,
                MatchRecord.mode == mode,
            )
            return session.exec(statement).first()

    # Progress

    def get_progress(self, user_id: UUID, mode: FeedMode) -> ProgressCursor | None:
        with self._guard("load progress", user_id=str(user_id)), self._session() as session:
            return session.get(ProgressCursor, (user_id, mode))

    def upsert_progress(self, user_id: UUID, mode: FeedMode, cursor_index: int) -> ProgressCursor:
        values = {
            "user_id": user_id,
            "mode": mode,
            "cursor_index": cursor_index,
            "updated_at": _utcnow(),
        }
        self._upsert(
            ProgressCursor,
            values,
            conflict=("user_id", "mode"),
            update=("cursor_index", "updated_at"),
            operation="save progress",
        )
        with self._guard("save progress", user_id=str(user_id)), self._session() as session:
            return session.get(ProgressCursor, (user_id, mode))  # type: ignore[return-value]

    # Reflections

    def upsert_reflection(
        self, swipe_id: UUID, user_id: UUID, chips: list[str], note: str | None
    ) -> Reflection:
        values = {
            "id": uuid4(),
            "swipe_id": swipe_id,
            "user_id": user_id,
            "chips": list(chips),
            "note": note,
            "created_at": _utcnow(),
        }
        self._upsert(
            Reflection,
            values,
            conflict=("swipe_id",),
            update=("chips", "note", "created_at"),
            operation="save reflection",
        )
        with self._guard("save reflection", swipe_id=str(swipe_id)), self._session() as session:
            statement = select(Reflection).where(Reflection.swipe_id == swipe_id)
            return session.exec(statement).one()

    # Internals

    def _upsert(
        self,
        model: Any,
        values: dict[str, Any],
        *,
        conflict: tuple[str, ...],
        update: tuple[str, ...],
        operation: str,
    ) -> None:
        statement = self._insert(model.__table__).values(**values)
        statement = statement.on_conflict_do_update(
            index_elements=list(conflict),
            set_={column: statement.excluded[column] for column in update},
        )
        with self._guard(operation), self._engine.begin() as connection:
            connection.execute(statement)

    @contextmanager
    def _session(self) -> Iterator[Session]:
        with Session(self._engine, expire_on_commit=False) as session:
            yield session

    @contextmanager
    def _guard(self, operation: str, **context: str) -> Iterator[None]:
        try:
            yield
        except SQLAlchemyError as exc:
            logger.exception(
                "swipes.persistence.error", extra={"operation": operation, **context}
            )
            raise SwipePersistenceError(f"Failed to {operation}.", code="500_INTERNAL") from exc


def build_swipe_repository(database_url: str | None = None) -> SwipeRepository:
    """Instantiate the repository using DATABASE_URL, or in-memory SQLite when unset."""
    engine = build_engine(database_url)
    if settings.auto_create_schema:
        init_database(engine)
    return SwipeRepository(engine)


def get_swipe_repository() -> SwipeRepository:
    """Singleton accessor used by API routes."""
    global _REPOSITORY_INSTANCE  # noqa: PLW0603
    if _REPOSITORY_INSTANCE is None:
        _REPOSITORY_INSTANCE = build_swipe_repository()
    return _REPOSITORY_INSTANCE
