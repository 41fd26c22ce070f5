from __future__ import annotations

from datetime import timedelta

from app.services.feed.assembler import FeedAssembler
from app.services.feed.dataset import DatasetStore
from tests.helpers.records import REFERENCE_NOW, make_record


def test_recent_feed_is_newest_first(assembler):
    feed = assembler.get_feed("recent", "ignored-seed")
    assert [record.company_name for record in feed] == ["One Hour", "Ten Hours", "Forty Hours"]


def test_recent_feed_ignores_seed(assembler):
    first = [record.id for record in assembler.get_feed("recent", "seed-a")]
    second = [record.id for record in assembler.get_feed("recent", "seed-b")]
    assert first == second


def test_recent_feed_keeps_input_order_for_equal_timestamps():
    announced = REFERENCE_NOW - timedelta(hours=3)
    tied = [make_record("Zeta", announced), make_record("Alpha", announced)]
    older = make_record("Older", REFERENCE_NOW - timedelta(hours=30))
    assembler = FeedAssembler(DatasetStore.from_records(recent=[older, *tied]))
    feed = assembler.get_feed("recent", "seed")
    assert [record.company_name for record in feed] == ["Zeta", "Alpha", "Older"]


def test_archive_feed_is_independent_of_load_order(archive_records):
    forward = FeedAssembler(DatasetStore.from_records(archive=archive_records))
    backward = FeedAssembler(DatasetStore.from_records(archive=list(reversed(archive_records))))
    seed = "shared-workspace-seed"
    assert [r.id for r in forward.get_feed("archive", seed)] == [
        r.id for r in backward.get_feed("archive", seed)
    ]


def test_archive_feed_contains_every_record(assembler, archive_records):
    feed = assembler.get_feed("archive", "any-seed")
    assert sorted(record.id for record in feed) == sorted(record.id for record in archive_records)
    assert assembler.feed_length("archive") == len(archive_records)


def test_find_is_scoped_to_mode(assembler, archive_records, recent_records):
    archive_id = archive_records[0].id
    recent_id = recent_records[0].id
    assert assembler.find("archive", archive_id) == archive_records[0]
    assert assembler.find("recent", archive_id) is None
    assert assembler.find_any(recent_id) == recent_records[0]
    assert assembler.find_any("missing") is None


def test_stats_reports_counts(assembler):
    assert assembler.stats() == {"archive_count": 5, "recent_count": 3}
