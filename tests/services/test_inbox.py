from __future__ import annotations

from uuid import uuid4

import pytest

from app.services.feed.assembler import FeedAssembler
from app.services.feed.dataset import DatasetStore
from app.services.swipes.errors import NotFoundError, ReflectionNotAllowedError
from app.services.swipes.inbox import UNKNOWN_COMPANY, MatchInbox
from app.services.swipes.matching import MatchEvaluator


@pytest.fixture
def matched(repository, assembler, archive_records):
    alice = repository.ensure_user("alice", "Alice")
    bob = repository.ensure_user("bob", "Bob")
    workspace = repository.create_workspace(
        name="Deal Team", seed="inbox-seed", invite_code="INBX23", owner_id=alice.id
    )
    repository.add_member(workspace.id, bob.id)
    evaluator = MatchEvaluator(repository, assembler)
    target = archive_records[0]
    alice_swipe = evaluator.record_swipe(alice.id, workspace.id, target.id, "archive", "like")
    bob_swipe = evaluator.record_swipe(bob.id, workspace.id, target.id, "archive", "like")
    return {
        "workspace": workspace,
        "alice": alice,
        "bob": bob,
        "target": target,
        "alice_swipe": alice_swipe,
        "match_id": bob_swipe.match_id,
    }


def test_list_matches_enriches_with_record_and_reflections(repository, assembler, matched):
    inbox = MatchInbox(repository, assembler)
    inbox.save_reflection(matched["alice"].id, matched["alice_swipe"].swipe_id, ["team", "market"], "Strong founders")

    summaries = inbox.list_matches(matched["workspace"].id)
    assert len(summaries) == 1
    summary = summaries[0]
    assert summary.id == matched["match_id"]
    assert summary.company_name == matched["target"].company_name
    assert summary.stage == matched["target"].stage.value
    assert [member.user_name for member in summary.reflections] == ["alice", "bob"]
    alice_entry = summary.reflections[0]
    assert alice_entry.chips == ["team", "market"]
    assert alice_entry.note == "Strong founders"
    assert summary.reflections[1].chips == []


def test_reflection_upsert_overwrites(repository, assembler, matched):
    inbox = MatchInbox(repository, assembler)
    swipe_id = matched["alice_swipe"].swipe_id
    first = inbox.save_reflection(matched["alice"].id, swipe_id, ["team"], "first")
    second = inbox.save_reflection(matched["alice"].id, swipe_id, ["traction"], "")
    assert second.id == first.id
    assert second.chips == ["traction"]
    assert second.note is None


def test_reflection_requires_own_swipe(repository, assembler, matched):
    inbox = MatchInbox(repository, assembler)
    with pytest.raises(NotFoundError) as excinfo:
        inbox.save_reflection(matched["bob"].id, matched["alice_swipe"].swipe_id, ["team"], None)
    assert excinfo.value.code == "404_SWIPE_NOT_FOUND"


def test_reflection_rejected_on_pass(repository, assembler, archive_records, matched):
    evaluator = MatchEvaluator(repository, assembler)
    passed = evaluator.record_swipe(
        matched["alice"].id, matched["workspace"].id, archive_records[1].id, "archive", "pass"
    )
    inbox = MatchInbox(repository, assembler)
    with pytest.raises(ReflectionNotAllowedError) as excinfo:
        inbox.save_reflection(matched["alice"].id, passed.swipe_id, ["team"], None)
    assert excinfo.value.code == "400_REFLECTION_NOT_LIKE"


def test_get_match_returns_full_record(repository, assembler, matched):
    detail = MatchInbox(repository, assembler).get_match(matched["workspace"].id, matched["match_id"])
    assert detail.fundraise == matched["target"]
    assert detail.match.id == matched["match_id"]


def test_get_match_unknown_id(repository, assembler, matched):
    with pytest.raises(NotFoundError) as excinfo:
        MatchInbox(repository, assembler).get_match(matched["workspace"].id, uuid4())
    assert excinfo.value.code == "404_MATCH_NOT_FOUND"


def test_match_for_dropped_record_is_labelled_unknown(repository, matched):
    empty = FeedAssembler(DatasetStore.from_records())
    summaries = MatchInbox(repository, empty).list_matches(matched["workspace"].id)
    assert summaries[0].company_name == UNKNOWN_COMPANY
