"""Print a feed ordering for a seed so orderings can be diffed across builds and clients."""

from __future__ import annotations

import argparse
import hashlib
import json
import logging
from collections.abc import Sequence
from pathlib import Path

from app.config import settings
from app.models.fundraise import FEED_MODES, FundraiseRecord
from app.services.feed.assembler import FeedAssembler
from app.services.feed.dataset import DatasetStore

logger = logging.getLogger("tools.feed_snapshot")


def ordering_digest(records: Sequence[FundraiseRecord]) -> str:
    """SHA-256 over the newline-joined ids, in feed order."""
    payload = "\n".join(record.id for record in records)
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


def build_snapshot(assembler: FeedAssembler, mode: str, seed: str, limit: int | None = None) -> dict:
    feed = assembler.get_feed(mode, seed)  # type: ignore[arg-type]
    shown = feed if limit is None else feed[:limit]
    return {
        "mode": mode,
        "seed": seed,
        "total_count": len(feed),
        "sha256": ordering_digest(feed),
        "items": [
            {"position": index, "id": record.id, "company_name": record.company_name}
            for index, record in enumerate(shown)
        ],
    }


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Snapshot a workspace feed ordering.")
    parser.add_argument("--seed", required=True, help="Workspace seed to order the archive with.")
    parser.add_argument("--mode", choices=FEED_MODES, default="archive")
    parser.add_argument(
        "--archive",
        type=Path,
        default=Path(settings.archive_dataset_path),
        help="Archive CSV path.",
    )
    parser.add_argument(
        "--recent",
        type=Path,
        default=Path(settings.recent_dataset_path),
        help="Recent CSV path.",
    )
    parser.add_argument("--limit", type=int, default=None, help="Only list the first N items.")
    parser.add_argument("--json", action="store_true", help="Emit JSON instead of text.")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    assembler = FeedAssembler(DatasetStore(args.archive, args.recent))
    snapshot = build_snapshot(assembler, args.mode, args.seed, args.limit)
    if args.json:
        print(json.dumps(snapshot, indent=2))
        return 0
    for item in snapshot["items"]:
        print(f"{item['position']:>5}  {item['id']}  {item['company_name']}")
    print(f"total={snapshot['total_count']} sha256={snapshot['sha256']}")
    return 0


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    raise SystemExit(main())
