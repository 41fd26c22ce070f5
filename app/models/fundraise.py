"""Domain models for canonical fundraise records and swipe enumerations."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

FeedMode = Literal["archive", "recent"]
SwipeChoice = Literal["like", "pass"]

FEED_MODES: tuple[FeedMode, ...] = ("archive", "recent")


class FundraiseStage(str, Enum):
    PRE_SEED = "Pre-Seed"
    SEED = "Seed"
    SERIES_A = "Series A"
    SERIES_B = "Series B"
    SERIES_C = "Series C"
    SERIES_D_PLUS = "Series D+"
    GROWTH = "Growth"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class FundraiseRecord(BaseModel):
    """One funding announcement, immutable once loaded."""

    model_config = ConfigDict(frozen=True)

    id: str
    company_name: str
    description: str
    stage: FundraiseStage
    amount_raised: str
    announced_at: datetime
    source_url: str = ""
    investors: list[str] = Field(default_factory=list)
    geography: str = ""
    created_at: datetime = Field(default_factory=_utcnow)

    @property
    def identity_key(self) -> str:
        """Deduplication key: lowercase company name plus announcement time."""
        return dedupe_key(self.company_name, self.announced_at)


def dedupe_key(company_name: str, announced_at: datetime) -> str:
    return f"{company_name.lower()}|{announced_at.isoformat()}"
