"""Response models for the match inbox."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from app.models.fundraise import FundraiseRecord


class MemberReflection(BaseModel):
    """A member's like on a matched item, with any reflection they left."""

    user_id: UUID
    user_name: str
    display_name: str
    chips: list[str] = Field(default_factory=list)
    note: str | None = None
    liked_at: datetime


class MatchSummary(BaseModel):
    id: UUID
    fundraise_id: str
    company_name: str
    description: str
    stage: str
    amount_raised: str
    mode: str
    matched_at: datetime
    reflections: list[MemberReflection] = Field(default_factory=list)


class MatchDetail(BaseModel):
    match: MatchSummary
    fundraise: FundraiseRecord
