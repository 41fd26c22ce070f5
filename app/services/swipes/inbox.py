"""Match listing enriched with fundraise display fields and member reflections."""

from __future__ import annotations

import logging
from uuid import UUID

from app.models.fundraise import FundraiseRecord
from app.models.inbox import MatchDetail, MatchSummary, MemberReflection
from app.models.swipe_record import MatchRecord, Reflection
from app.services.feed.assembler import FeedAssembler
from app.services.swipes.errors import NotFoundError, ReflectionNotAllowedError
from app.services.swipes.repositories import SwipeRepository

logger = logging.getLogger(__name__)

UNKNOWN_COMPANY = "Unknown Company"


class MatchInbox:
    def __init__(self, repository: SwipeRepository, assembler: FeedAssembler) -> None:
        self._repository = repository
        self._assembler = assembler

    def list_matches(self, workspace_id: UUID) -> list[MatchSummary]:
        """All matches for a workspace, newest first."""
        matches = self._repository.list_matches(workspace_id)
        return [
            self._summarize(workspace_id, match, self._lookup(match)) for match in matches
        ]

    def get_match(self, workspace_id: UUID, match_id: UUID) -> MatchDetail:
        match = self._repository.get_match(match_id, workspace_id)
        if match is None:
            raise NotFoundError("Match not found.", code="404_MATCH_NOT_FOUND")
        fundraise = self._assembler.find(match.mode, match.fundraise_id)  # type: ignore[arg-type]
        if fundraise is None:
            raise NotFoundError("Fundraise not found.", code="404_FUNDRAISE_NOT_FOUND")
        return MatchDetail(
            match=self._summarize(workspace_id, match, fundraise),
            fundraise=fundraise,
        )

    def save_reflection(
        self, user_id: UUID, swipe_id: UUID, chips: list[str], note: str | None
    ) -> Reflection:
        """Attach tags and a note to the caller's own like; re-saving overwrites."""
        swipe = self._repository.get_swipe(swipe_id, user_id)
        if swipe is None:
            raise NotFoundError("Swipe not found.", code="404_SWIPE_NOT_FOUND")
        if swipe.decision != "like":
            raise ReflectionNotAllowedError(
                "Reflections are only allowed on Like swipes.", code="400_REFLECTION_NOT_LIKE"
            )
        reflection = self._repository.upsert_reflection(swipe_id, user_id, chips, note or None)
        logger.info(
            "swipes.reflection.saved",
            extra={"swipe_id": str(swipe_id), "chip_count": len(chips)},
        )
        return reflection

    def _lookup(self, match: MatchRecord) -> FundraiseRecord | None:
        if match.mode in ("archive", "recent"):
            found = self._assembler.find(match.mode, match.fundraise_id)  # type: ignore[arg-type]
            if found is not None:
                return found
        return self._assembler.find_any(match.fundraise_id)

    def _summarize(
        self, workspace_id: UUID, match: MatchRecord, fundraise: FundraiseRecord | None
    ) -> MatchSummary:
        likes = self._repository.list_member_likes(workspace_id, match.fundraise_id, match.mode)
        reflections = [
            MemberReflection(
                user_id=user.id,
                user_name=user.name,
                display_name=user.display_name,
                chips=list(reflection.chips) if reflection else [],
                note=reflection.note if reflection else None,
                liked_at=swipe.created_at,
            )
            for swipe, user, reflection in likes
        ]
        return MatchSummary(
            id=match.id,
            fundraise_id=match.fundraise_id,
            company_name=fundraise.company_name if fundraise else UNKNOWN_COMPANY,
            description=fundraise.description if fundraise else "",
            stage=fundraise.stage.value if fundraise else "",
            amount_raised=fundraise.amount_raised if fundraise else "",
            mode=match.mode,
            matched_at=match.created_at,
            reflections=reflections,
        )
