"""Canonical fundraise datasets: CSV ingestion, deduplication, and load-once store."""

from __future__ import annotations

import csv
import io
import logging
import re
from collections.abc import Callable, Iterable, Mapping, Sequence
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from threading import Lock
from uuid import NAMESPACE_URL, uuid5

from app.models.fundraise import FeedMode, FundraiseRecord, FundraiseStage, dedupe_key
from app.observability.metrics import metrics

logger = logging.getLogger(__name__)

RawRecord = Mapping[str, str]

_AMOUNT_NOISE = re.compile(r"[,$\s]")
_DATE_FORMATS = ("%Y-%m-%d", "%b %d, %Y", "%B %d, %Y", "%m/%d/%Y")


class DatasetLoadError(RuntimeError):
    """Raised when a dataset file exists but cannot be read or parsed."""

    def __init__(self, message: str, code: str = "500_DATASET_LOAD_FAILED") -> None:
        super().__init__(message)
        self.code = code


def map_funding_type(funding_type: str) -> FundraiseStage:
    value = (funding_type or "").lower()
    if "pre-seed" in value or "pre seed" in value:
        return FundraiseStage.PRE_SEED
    if "seed" in value:
        return FundraiseStage.SEED
    if "series a" in value:
        return FundraiseStage.SERIES_A
    if "series b" in value:
        return FundraiseStage.SERIES_B
    if "series c" in value:
        return FundraiseStage.SERIES_C
    if any(marker in value for marker in ("series d", "series e", "series f")):
        return FundraiseStage.SERIES_D_PLUS
    if any(marker in value for marker in ("growth", "private equity", "post-ipo")):
        return FundraiseStage.GROWTH
    return FundraiseStage.SEED


def format_amount(usd_amount: str | float | None) -> str:
    """Render a USD amount as ``$1.5B`` / ``$12M`` / ``$250K``."""
    if usd_amount is None:
        return "Undisclosed"
    if isinstance(usd_amount, str):
        cleaned = _AMOUNT_NOISE.sub("", usd_amount)
        try:
            amount = float(cleaned)
        except ValueError:
            return "Undisclosed"
    else:
        amount = float(usd_amount)
    if amount != amount or amount == 0:
        return "Undisclosed"
    if amount >= 1_000_000_000:
        return f"${_trim_decimal(amount / 1_000_000_000)}B"
    if amount >= 1_000_000:
        return f"${_trim_decimal(amount / 1_000_000)}M"
    if amount >= 1_000:
        return f"${amount / 1_000:.0f}K"
    return f"${amount:g}"


def _trim_decimal(value: float) -> str:
    rendered = f"{value:.1f}"
    return rendered[:-2] if rendered.endswith(".0") else rendered


def parse_investors(value: str | None) -> list[str]:
    if not value or not value.strip():
        return []
    return [name.strip() for name in value.split(",") if name.strip()]


def parse_announced_at(value: str | None) -> datetime | None:
    """Parse an announcement date into an aware UTC datetime; ``None`` if unusable."""
    text = (value or "").strip()
    if not text:
        return None
    try:
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        parsed = None
        for fmt in _DATE_FORMATS:
            try:
                parsed = datetime.strptime(text, fmt)
                break
            except ValueError:
                continue
    if parsed is None:
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def fundraise_id_for(company_name: str, announced_at: datetime) -> str:
    """Stable id derived from the dedupe key so ids survive process restarts."""
    return str(uuid5(NAMESPACE_URL, f"fundraise:{dedupe_key(company_name, announced_at)}"))


def map_crunchbase_row(row: RawRecord) -> FundraiseRecord | None:
    """Convert one Crunchbase export row into a canonical record."""
    announced_at = parse_announced_at(row.get("Announced Date"))
    if announced_at is None:
        return None
    company_name = (row.get("Organization Name") or "").strip() or "Unknown"
    return FundraiseRecord(
        id=fundraise_id_for(company_name, announced_at),
        company_name=company_name,
        description=(row.get("Organization Description") or "").strip()
        or "No description available",
        stage=map_funding_type(row.get("Funding Type") or ""),
        amount_raised=format_amount(row.get("Money Raised (in USD)")),
        announced_at=announced_at,
        source_url=row.get("Transaction Name URL") or row.get("Organization Name URL") or "",
        investors=parse_investors(row.get("Lead Investors") or row.get("Investor Names")),
        geography=(
            row.get("Organization Location") or row.get("Headquarters Location") or ""
        ).strip(),
    )


def read_csv_rows(payload: str) -> list[dict[str, str]]:
    reader = csv.DictReader(io.StringIO(payload))
    rows: list[dict[str, str]] = []
    for row in reader:
        if not any((value or "").strip() for value in row.values() if isinstance(value, str)):
            continue
        rows.append({key.strip(): (value or "").strip() for key, value in row.items() if key})
    return rows


def deduplicate(records: Iterable[FundraiseRecord]) -> list[FundraiseRecord]:
    """Keep the first record for each identity key, preserving input order."""
    seen: dict[str, FundraiseRecord] = {}
    for record in records:
        seen.setdefault(record.identity_key, record)
    return list(seen.values())


def load(raw_records: Iterable[RawRecord]) -> list[FundraiseRecord]:
    """Map raw rows into canonical records and drop duplicates."""
    mapped: list[FundraiseRecord] = []
    skipped = 0
    for row in raw_records:
        record = map_crunchbase_row(row)
        if record is None:
            skipped += 1
            continue
        mapped.append(record)
    if skipped:
        logger.warning("feed.dataset.rows_skipped", extra={"skipped": skipped})
    return deduplicate(mapped)


def read_csv_file(path: Path) -> list[dict[str, str]]:
    return read_csv_rows(path.read_text(encoding="utf-8-sig"))


class DatasetState(str, Enum):
    UNLOADED = "unloaded"
    LOADING = "loading"
    LOADED = "loaded"


class DatasetStore:
    """Owns the archive and recent datasets; loads them once per process."""

    def __init__(
        self,
        archive_path: str | Path,
        recent_path: str | Path,
        *,
        reader: Callable[[Path], Sequence[RawRecord]] = read_csv_file,
    ) -> None:
        self._paths: dict[FeedMode, Path] = {
            "archive": Path(archive_path),
            "recent": Path(recent_path),
        }
        self._reader = reader
        self._lock = Lock()
        self._state = DatasetState.UNLOADED
        self._records: dict[FeedMode, tuple[FundraiseRecord, ...]] = {
            "archive": (),
            "recent": (),
        }

    @classmethod
    def from_records(
        cls,
        *,
        archive: Iterable[FundraiseRecord] = (),
        recent: Iterable[FundraiseRecord] = (),
    ) -> DatasetStore:
        """Build an already-loaded store from canonical records."""
        store = cls("", "")
        store._records = {
            "archive": tuple(deduplicate(archive)),
            "recent": tuple(deduplicate(recent)),
        }
        store._state = DatasetState.LOADED
        return store

    @property
    def state(self) -> DatasetState:
        return self._state

    def ensure_loaded(self) -> None:
        """Load both datasets unless already loaded; concurrent callers share one load."""
        if self._state is DatasetState.LOADED:
            return
        with self._lock:
            if self._state is DatasetState.LOADED:
                return
            self._state = DatasetState.LOADING
            try:
                with metrics.timer("feed.dataset.load_ms"):
                    loaded = {mode: tuple(self._load_mode(mode)) for mode in self._paths}
            except DatasetLoadError:
                self._state = DatasetState.UNLOADED
                raise
            self._records = loaded
            self._state = DatasetState.LOADED
        for mode, records in loaded.items():
            metrics.gauge("feed.dataset.records", len(records), tags={"mode": mode})
        logger.info("feed.dataset.loaded", extra=self.stats())

    def records(self, mode: FeedMode) -> tuple[FundraiseRecord, ...]:
        self.ensure_loaded()
        return self._records[mode]

    def stats(self) -> dict[str, int]:
        return {
            "archive_count": len(self._records["archive"]),
            "recent_count": len(self._records["recent"]),
        }

    def _load_mode(self, mode: FeedMode) -> list[FundraiseRecord]:
        path = self._paths[mode]
        if not path.is_file():
            logger.warning("feed.dataset.missing", extra={"mode": mode, "path": str(path)})
            return []
        try:
            rows = self._reader(path)
            records = load(rows)
        except (OSError, UnicodeDecodeError, csv.Error, ValueError) as exc:
            logger.exception("feed.dataset.load_failed", extra={"mode": mode, "path": str(path)})
            raise DatasetLoadError(f"Failed to load {mode} dataset from {path}.") from exc
        logger.info(
            "feed.dataset.mode_loaded",
            extra={"mode": mode, "path": str(path), "count": len(records)},
        )
        return records
