from __future__ import annotations

from app.config import Settings


def test_seed_users_accepts_comma_separated_env(monkeypatch):
    monkeypatch.setenv("SEED_USERS", "alice, bob,,carol ")
    assert Settings(_env_file=None).seed_users == ["alice", "bob", "carol"]


def test_seed_users_accepts_json_list_env(monkeypatch):
    monkeypatch.setenv("SEED_USERS", '["alice", "bob"]')
    assert Settings(_env_file=None).seed_users == ["alice", "bob"]


def test_seed_users_defaults_to_empty(monkeypatch):
    monkeypatch.delenv("SEED_USERS", raising=False)
    assert Settings(_env_file=None).seed_users == []
