"""SQLModel mappings for workspaces, members, and login sessions."""
# ruff: noqa: UP017

from __future__ import annotations

from datetime import datetime, timezone
from uuid import UUID, uuid4

import sqlalchemy as sa
from sqlalchemy import Column, DateTime, String, Uuid
from sqlalchemy.ext.compiler import compiles
from sqlalchemy.sql import expression
from sqlmodel import Field, SQLModel


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UtcNow(expression.FunctionElement):
    """Dialect-aware server default that pins timestamps to UTC."""

    type = DateTime(timezone=True)
    inherit_cache = True


@compiles(UtcNow)
def _utc_now_default(
    element, compiler, **kwargs
) -> str:  # pragma: no cover - trivial sql generator
    return "CURRENT_TIMESTAMP"


@compiles(UtcNow, "postgresql")
def _utc_now_default_postgres(
    element, compiler, **kwargs
) -> str:  # pragma: no cover - trivial sql generator
    return "timezone('utc', now())"


class Workspace(SQLModel, table=True):
    """Group of members sharing one archive ordering through a fixed seed."""

    __tablename__ = "workspaces"
    __table_args__ = (sa.UniqueConstraint("invite_code", name="uq_workspaces_invite_code"),)

    id: UUID = Field(
        default_factory=uuid4,
        sa_column=Column(Uuid(as_uuid=True), primary_key=True, nullable=False),
    )
    name: str = Field(sa_column=Column(String(length=255), nullable=False))
    seed: str = Field(sa_column=Column(String(length=64), nullable=False))
    invite_code: str = Field(sa_column=Column(String(length=16), nullable=False))
    created_at: datetime = Field(
        default_factory=_utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False, server_default=UtcNow()),
    )


class User(SQLModel, table=True):
    """Login identity; belongs to at most one workspace."""

    __tablename__ = "users"
    __table_args__ = (
        sa.UniqueConstraint("name", name="uq_users_name"),
        sa.Index("ix_users_workspace_id", "workspace_id"),
    )

    id: UUID = Field(
        default_factory=uuid4,
        sa_column=Column(Uuid(as_uuid=True), primary_key=True, nullable=False),
    )
    name: str = Field(sa_column=Column(String(length=64), nullable=False))
    display_name: str = Field(sa_column=Column(String(length=255), nullable=False))
    workspace_id: UUID | None = Field(
        default=None,
        sa_column=Column(
            Uuid(as_uuid=True),
            sa.ForeignKey("workspaces.id", ondelete="SET NULL"),
            nullable=True,
        ),
    )
    created_at: datetime = Field(
        default_factory=_utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False, server_default=UtcNow()),
    )


class UserSession(SQLModel, table=True):
    """Bearer token issued at login."""

    __tablename__ = "sessions"
    __table_args__ = (sa.Index("ix_sessions_user_id", "user_id"),)

    id: str = Field(sa_column=Column(String(length=128), primary_key=True, nullable=False))
    user_id: UUID = Field(
        sa_column=Column(
            Uuid(as_uuid=True),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        )
    )
    expires_at: datetime = Field(sa_column=Column(DateTime(timezone=True), nullable=False))
    created_at: datetime = Field(
        default_factory=_utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False, server_default=UtcNow()),
    )
