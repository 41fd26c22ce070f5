"""Feed ordering for archive (seed-shuffled) and recent (newest first) modes."""

from __future__ import annotations

import logging

from app.config import settings
from app.models.fundraise import FeedMode, FundraiseRecord
from app.services.feed.dataset import DatasetStore
from app.services.feed.shuffle import deterministic_shuffle

logger = logging.getLogger(__name__)

_ASSEMBLER_INSTANCE: FeedAssembler | None = None


class FeedAssembler:
    """Builds ordered feeds from an injected dataset store.

    Feeds are recomputed on every call; the shuffle is a pure function of the
    seed and the id set, so recomputation is equivalent to caching.
    """

    def __init__(self, store: DatasetStore) -> None:
        self._store = store

    def get_feed(self, mode: FeedMode, workspace_seed: str) -> list[FundraiseRecord]:
        records = self._store.records(mode)
        if mode == "archive":
            return deterministic_shuffle(records, workspace_seed)
        # sorted() is stable with reverse=True, so equal timestamps keep input order.
        return sorted(records, key=lambda record: record.announced_at, reverse=True)

    def feed_length(self, mode: FeedMode) -> int:
        return len(self._store.records(mode))

    def find(self, mode: FeedMode, fundraise_id: str) -> FundraiseRecord | None:
        for record in self._store.records(mode):
            if record.id == fundraise_id:
                return record
        return None

    def find_any(self, fundraise_id: str) -> FundraiseRecord | None:
        return self.find("archive", fundraise_id) or self.find("recent", fundraise_id)

    def stats(self) -> dict[str, int]:
        self._store.ensure_loaded()
        return self._store.stats()


def get_feed_assembler() -> FeedAssembler:
    """Singleton accessor used by API routes."""
    global _ASSEMBLER_INSTANCE  # noqa: PLW0603
    if _ASSEMBLER_INSTANCE is None:
        store = DatasetStore(settings.archive_dataset_path, settings.recent_dataset_path)
        _ASSEMBLER_INSTANCE = FeedAssembler(store)
    return _ASSEMBLER_INSTANCE
