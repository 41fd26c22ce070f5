from __future__ import annotations

from uuid import uuid4

import pytest

from app.services.feed.assembler import FeedAssembler
from app.services.feed.dataset import DatasetStore
from app.services.swipes import matching as matching_module
from app.services.swipes.errors import NotFoundError
from app.services.swipes.matching import MatchEvaluator
from tests.helpers.metrics_stub import StubMetrics
from tests.helpers.records import REFERENCE_NOW, make_record


def _workspace(repository, *names: str):
    users = [repository.ensure_user(name, name.title()) for name in names]
    workspace = repository.create_workspace(
        name="Deal Team", seed="match-seed", invite_code="ABC234", owner_id=users[0].id
    )
    for user in users[1:]:
        repository.add_member(workspace.id, user.id)
    return workspace, users


def test_match_is_created_once_when_every_member_likes(repository, assembler, archive_records):
    workspace, (alice, bob) = _workspace(repository, "alice", "bob")
    evaluator = MatchEvaluator(repository, assembler)
    target = archive_records[0].id

    first = evaluator.record_swipe(alice.id, workspace.id, target, "archive", "like")
    assert first.match_created is False
    assert first.match_id is None

    second = evaluator.record_swipe(bob.id, workspace.id, target, "archive", "like")
    assert second.match_created is True
    assert second.match_id is not None

    again = evaluator.record_swipe(alice.id, workspace.id, target, "archive", "like")
    assert again.swipe_id == first.swipe_id
    assert again.match_created is False
    assert again.match_id == second.match_id
    assert len(repository.list_matches(workspace.id)) == 1


def test_pass_blocks_match(repository, assembler, archive_records):
    workspace, (alice, bob) = _workspace(repository, "alice", "bob")
    evaluator = MatchEvaluator(repository, assembler)
    target = archive_records[1].id

    evaluator.record_swipe(alice.id, workspace.id, target, "archive", "like")
    outcome = evaluator.record_swipe(bob.id, workspace.id, target, "archive", "pass")
    assert outcome.match_created is False
    assert repository.list_matches(workspace.id) == []


def test_changing_pass_to_like_overwrites_decision(repository, assembler, archive_records):
    workspace, (alice, bob) = _workspace(repository, "alice", "bob")
    evaluator = MatchEvaluator(repository, assembler)
    target = archive_records[2].id

    evaluator.record_swipe(alice.id, workspace.id, target, "archive", "like")
    passed = evaluator.record_swipe(bob.id, workspace.id, target, "archive", "pass")
    liked = evaluator.record_swipe(bob.id, workspace.id, target, "archive", "like")
    assert liked.swipe_id == passed.swipe_id
    assert liked.decision == "like"
    assert liked.match_created is True


def test_modes_are_isolated(repository):
    shared = make_record("Shared Co", REFERENCE_NOW)
    assembler = FeedAssembler(DatasetStore.from_records(archive=[shared], recent=[shared]))
    workspace, (alice, bob) = _workspace(repository, "alice", "bob")
    evaluator = MatchEvaluator(repository, assembler)

    evaluator.record_swipe(alice.id, workspace.id, shared.id, "archive", "like")
    outcome = evaluator.record_swipe(bob.id, workspace.id, shared.id, "recent", "like")
    assert outcome.match_created is False
    assert repository.list_matches(workspace.id) == []


def test_single_member_workspace_never_matches(repository, assembler, archive_records):
    workspace, (solo,) = _workspace(repository, "solo")
    evaluator = MatchEvaluator(repository, assembler)
    outcome = evaluator.record_swipe(solo.id, workspace.id, archive_records[0].id, "archive", "like")
    assert outcome.match_created is False
    assert repository.list_matches(workspace.id) == []


def test_every_current_member_must_like(repository, assembler, archive_records):
    workspace, (alice, bob, carol) = _workspace(repository, "alice", "bob", "carol")
    evaluator = MatchEvaluator(repository, assembler)
    target = archive_records[3].id

    evaluator.record_swipe(alice.id, workspace.id, target, "archive", "like")
    partial = evaluator.record_swipe(bob.id, workspace.id, target, "archive", "like")
    assert partial.match_created is False

    complete = evaluator.record_swipe(carol.id, workspace.id, target, "archive", "like")
    assert complete.match_created is True


def test_unknown_fundraise_is_rejected_before_writing(repository, assembler):
    workspace, (alice, _bob) = _workspace(repository, "alice", "bob")
    evaluator = MatchEvaluator(repository, assembler)
    with pytest.raises(NotFoundError) as excinfo:
        evaluator.record_swipe(alice.id, workspace.id, "not-a-fundraise", "archive", "like")
    assert excinfo.value.code == "404_FUNDRAISE_NOT_FOUND"
    assert repository.count_member_likes(workspace.id, "not-a-fundraise", "archive") == 0


def test_unknown_workspace_is_rejected(repository, assembler, archive_records):
    alice = repository.ensure_user("alice", "Alice")
    evaluator = MatchEvaluator(repository, assembler)
    with pytest.raises(NotFoundError) as excinfo:
        evaluator.record_swipe(alice.id, uuid4(), archive_records[0].id, "archive", "like")
    assert excinfo.value.code == "404_WORKSPACE_NOT_FOUND"


def test_metrics_emitted_for_swipes_and_matches(repository, assembler, archive_records, monkeypatch):
    stub = StubMetrics()
    monkeypatch.setattr(matching_module, "metrics", stub)
    workspace, (alice, bob) = _workspace(repository, "alice", "bob")
    evaluator = MatchEvaluator(repository, assembler)
    target = archive_records[0].id

    evaluator.record_swipe(alice.id, workspace.id, target, "archive", "like")
    evaluator.record_swipe(bob.id, workspace.id, target, "archive", "like")
    assert stub.names() == ["swipes.recorded", "swipes.recorded", "swipes.match.created"]
