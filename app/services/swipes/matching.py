"""Swipe recording and the all-members-liked match rule."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from app.models.fundraise import FeedMode, SwipeChoice
from app.models.swipe_record import MatchRecord
from app.observability.metrics import metrics
from app.services.feed.assembler import FeedAssembler
from app.services.swipes.errors import NotFoundError
from app.services.swipes.repositories import MatchStore

logger = logging.getLogger(__name__)

MIN_MATCH_MEMBERS = 2


@dataclass(frozen=True)
class SwipeOutcome:
    """Result of one swipe submission.

    ``match_created`` is True only for the call that created the match;
    ``match_id`` is set whenever a match exists for the item after the call.
    """

    swipe_id: UUID
    decision: SwipeChoice
    created_at: datetime
    match_created: bool
    match_id: UUID | None = None


class MatchEvaluator:
    """Upserts swipe decisions and materializes matches exactly once."""

    def __init__(self, repository: MatchStore, assembler: FeedAssembler) -> None:
        self._repository = repository
        self._assembler = assembler

    def record_swipe(
        self,
        user_id: UUID,
        workspace_id: UUID,
        fundraise_id: str,
        mode: FeedMode,
        decision: SwipeChoice,
    ) -> SwipeOutcome:
        if self._repository.get_workspace(workspace_id) is None:
            raise NotFoundError("Workspace not found.", code="404_WORKSPACE_NOT_FOUND")
        if self._assembler.find(mode, fundraise_id) is None:
            raise NotFoundError(
                f"Fundraise {fundraise_id} is not in the {mode} feed.",
                code="404_FUNDRAISE_NOT_FOUND",
            )

        swipe = self._repository.upsert_swipe(user_id, fundraise_id, mode, decision)
        metrics.increment("swipes.recorded", tags={"mode": mode, "decision": decision})
        logger.info(
            "swipes.recorded",
            extra={
                "user_id": str(user_id),
                "fundraise_id": fundraise_id,
                "mode": mode,
                "decision": decision,
            },
        )

        match: MatchRecord | None = None
        created = False
        if decision == "like":
            match, created = self._evaluate_match(workspace_id, fundraise_id, mode)
        return SwipeOutcome(
            swipe_id=swipe.id,
            decision=decision,
            created_at=swipe.created_at,
            match_created=created,
            match_id=match.id if match else None,
        )

    def _evaluate_match(
        self, workspace_id: UUID, fundraise_id: str, mode: FeedMode
    ) -> tuple[MatchRecord | None, bool]:
        # Membership is read now, not cached: late joiners count from their first like.
        member_count = len(self._repository.list_members(workspace_id))
        if member_count < MIN_MATCH_MEMBERS:
            return None, False
        like_count = self._repository.count_member_likes(workspace_id, fundraise_id, mode)
        if like_count < member_count:
            return None, False
        match, created = self._repository.create_match_if_absent(workspace_id, fundraise_id, mode)
        if created:
            metrics.increment("swipes.match.created", tags={"mode": mode})
            logger.info(
                "swipes.match.created",
                extra={
                    "workspace_id": str(workspace_id),
                    "fundraise_id": fundraise_id,
                    "mode": mode,
                    "match_id": str(match.id),
                },
            )
        return match, created
