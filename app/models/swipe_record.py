"""SQLModel mappings for swipe decisions, matches, progress cursors, and reflections."""
# ruff: noqa: UP017

from __future__ import annotations

from datetime import datetime
from uuid import UUID, uuid4

import sqlalchemy as sa
from sqlalchemy import Column, DateTime, Integer, String, Text, Uuid
from sqlalchemy.dialects.postgresql import JSONB
from sqlmodel import Field, SQLModel

from app.models.workspace import UtcNow, _utcnow

JSON_BACKING_TYPE = sa.JSON().with_variant(JSONB(astext_type=sa.Text()), "postgresql")


class SwipeDecision(SQLModel, table=True):
    """Latest like/pass verdict for one (user, fundraise, mode)."""

    __tablename__ = "swipe_decisions"
    __table_args__ = (
        sa.UniqueConstraint("user_id", "fundraise_id", "mode", name="uq_swipes_user_fundraise_mode"),
        sa.Index("ix_swipes_fundraise_mode", "fundraise_id", "mode"),
    )

    id: UUID = Field(
        default_factory=uuid4,
        sa_column=Column(Uuid(as_uuid=True), primary_key=True, nullable=False),
    )
    user_id: UUID = Field(
        sa_column=Column(
            Uuid(as_uuid=True),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        )
    )
    fundraise_id: str = Field(sa_column=Column(String(length=64), nullable=False))
    mode: str = Field(sa_column=Column(String(length=16), nullable=False))
    decision: str = Field(sa_column=Column(String(length=8), nullable=False))
    created_at: datetime = Field(
        default_factory=_utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False, server_default=UtcNow()),
    )


class MatchRecord(SQLModel, table=True):
    """Every workspace member liked the same fundraise in the same mode."""

    __tablename__ = "matches"
    __table_args__ = (
        sa.UniqueConstraint(
            "workspace_id", "fundraise_id", "mode", name="uq_matches_workspace_fundraise_mode"
        ),
        sa.Index("ix_matches_workspace_created", "workspace_id", "created_at"),
    )

    id: UUID = Field(
        default_factory=uuid4,
        sa_column=Column(Uuid(as_uuid=True), primary_key=True, nullable=False),
    )
    workspace_id: UUID = Field(
        sa_column=Column(
            Uuid(as_uuid=True),
            sa.ForeignKey("workspaces.id", ondelete="CASCADE"),
            nullable=False,
        )
    )
    fundraise_id: str = Field(sa_column=Column(String(length=64), nullable=False))
    mode: str = Field(sa_column=Column(String(length=16), nullable=False))
    created_at: datetime = Field(
        default_factory=_utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False, server_default=UtcNow()),
    )


class ProgressCursor(SQLModel, table=True):
    """How far a user has advanced through one feed mode."""

    __tablename__ = "user_progress"

    user_id: UUID = Field(
        sa_column=Column(
            Uuid(as_uuid=True),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            primary_key=True,
            nullable=False,
        )
    )
    mode: str = Field(sa_column=Column(String(length=16), primary_key=True, nullable=False))
    cursor_index: int = Field(
        default=0, sa_column=Column(Integer, nullable=False, server_default=sa.text("0"))
    )
    updated_at: datetime = Field(
        default_factory=_utcnow,
        sa_column=Column(
            DateTime(timezone=True),
            nullable=False,
            server_default=UtcNow(),
            onupdate=UtcNow(),
        ),
    )


class Reflection(SQLModel, table=True):
    """Tags and an optional note captured after a like."""

    __tablename__ = "reflections"
    __table_args__ = (sa.UniqueConstraint("swipe_id", name="uq_reflections_swipe"),)

    id: UUID = Field(
        default_factory=uuid4,
        sa_column=Column(Uuid(as_uuid=True), primary_key=True, nullable=False),
    )
    swipe_id: UUID = Field(
        sa_column=Column(
            Uuid(as_uuid=True),
            sa.ForeignKey("swipe_decisions.id", ondelete="CASCADE"),
            nullable=False,
        )
    )
    user_id: UUID = Field(
        sa_column=Column(
            Uuid(as_uuid=True),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        )
    )
    chips: list[str] = Field(
        default_factory=list,
        sa_column=Column(JSON_BACKING_TYPE, nullable=False),
    )
    note: str | None = Field(default=None, sa_column=Column(Text, nullable=True))
    created_at: datetime = Field(
        default_factory=_utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False, server_default=UtcNow()),
    )
