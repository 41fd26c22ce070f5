"""Per-user, per-mode progress cursors clamped to the current feed length."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from uuid import UUID

from app.models.fundraise import FeedMode
from app.observability.metrics import metrics
from app.services.feed.assembler import FeedAssembler
from app.services.swipes.repositories import MatchStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProgressSnapshot:
    cursor: int
    updated_at: datetime


class ProgressTracker:
    def __init__(self, repository: MatchStore, assembler: FeedAssembler) -> None:
        self._repository = repository
        self._assembler = assembler

    def max_cursor(self, mode: FeedMode) -> int:
        # Archive length does not depend on the seed; shuffling only permutes.
        return max(0, self._assembler.feed_length(mode) - 1)

    def clamp(self, mode: FeedMode, requested: int) -> int:
        return min(max(requested, 0), self.max_cursor(mode))

    def get_cursor(self, user_id: UUID, mode: FeedMode) -> ProgressSnapshot:
        """Stored cursor, or 0 stamped with the current time when unset."""
        stored = self._repository.get_progress(user_id, mode)
        if stored is None:
            return ProgressSnapshot(cursor=0, updated_at=datetime.now(timezone.utc))
        return ProgressSnapshot(cursor=stored.cursor_index, updated_at=stored.updated_at)

    def set_cursor(self, user_id: UUID, mode: FeedMode, requested: int) -> ProgressSnapshot:
        bounded = self.clamp(mode, requested)
        stored = self._repository.upsert_progress(user_id, mode, bounded)
        metrics.increment("progress.updated", tags={"mode": mode})
        if bounded != requested:
            logger.info(
                "progress.cursor.clamped",
                extra={"user_id": str(user_id), "mode": mode, "requested": requested, "stored": bounded},
            )
        return ProgressSnapshot(cursor=stored.cursor_index, updated_at=stored.updated_at)
