from __future__ import annotations

import pytest

from app.services.workspaces.service import ensure_users


def _login(client, name: str) -> dict[str, str]:
    response = client.post("/api/auth/login", json={"name": name})
    assert response.status_code == 200
    return {"Authorization": f"Bearer {response.json()['token']}"}


@pytest.fixture
def team(client, api_overrides):
    """Two logged-in members sharing one workspace."""
    repository, _ = api_overrides
    ensure_users(repository, ["Alice", "Bob"])
    alice = _login(client, "alice")
    bob = _login(client, "Bob")

    created = client.post("/api/workspaces", json={"name": "Deal Team"}, headers=alice)
    assert created.status_code == 200
    invite_code = created.json()["workspace"]["invite_code"]
    joined = client.post(
        "/api/workspaces/join", json={"invite_code": f" {invite_code.lower()} "}, headers=bob
    )
    assert joined.status_code == 200
    return {"alice": alice, "bob": bob, "workspace": created.json()["workspace"]}


def test_health_reports_dataset_counts(client, api_overrides):
    response = client.get("/health")
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "healthy"
    assert body["dataset"] == {"archive_count": 5, "recent_count": 3}


def test_readiness_checks_database(client, api_overrides):
    response = client.get("/health/ready")
    assert response.status_code == 200
    assert response.json()["status"] == "ready"


def test_login_unknown_user(client, api_overrides):
    response = client.post("/api/auth/login", json={"name": "nobody"})
    assert response.status_code == 404


def test_protected_routes_require_session(client, api_overrides):
    assert client.get("/api/auth/me").status_code == 401
    bad = {"Authorization": "Bearer not-a-token"}
    assert client.get("/api/feed/archive", headers=bad).status_code == 401


def test_logout_invalidates_token(client, api_overrides):
    ensure_users(api_overrides[0], ["Alice"])
    headers = _login(client, "alice")
    assert client.get("/api/auth/me", headers=headers).status_code == 200
    assert client.post("/api/auth/logout", headers=headers).json() == {"success": True}
    assert client.get("/api/auth/me", headers=headers).status_code == 401


def test_feed_requires_workspace(client, api_overrides):
    ensure_users(api_overrides[0], ["Carol"])
    headers = _login(client, "carol")
    assert client.get("/api/feed/archive", headers=headers).status_code == 403


def test_users_listing_and_me(client, team):
    users = client.get("/api/auth/users").json()["users"]
    assert [user["name"] for user in users] == ["alice", "bob"]
    me = client.get("/api/auth/me", headers=team["bob"]).json()
    assert me["user"]["display_name"] == "Bob"
    assert me["workspace"]["id"] == team["workspace"]["id"]


def test_current_workspace_lists_members(client, team):
    body = client.get("/api/workspaces/current", headers=team["alice"]).json()
    assert body["workspace"]["name"] == "Deal Team"
    assert [member["name"] for member in body["members"]] == ["alice", "bob"]


def test_second_workspace_is_conflict(client, team):
    response = client.post("/api/workspaces", json={"name": "Other"}, headers=team["alice"])
    assert response.status_code == 409


def test_blank_workspace_name_is_rejected(client, api_overrides):
    ensure_users(api_overrides[0], ["Dana"])
    headers = _login(client, "dana")
    response = client.post("/api/workspaces", json={"name": "   "}, headers=headers)
    assert response.status_code == 422


def test_members_share_archive_order(client, team):
    alice_feed = client.get("/api/feed/archive", headers=team["alice"]).json()
    bob_feed = client.get("/api/feed/archive", headers=team["bob"]).json()
    assert alice_feed["total_count"] == 5
    assert alice_feed["user_cursor"] == 0
    assert [item["id"] for item in alice_feed["feed"]] == [item["id"] for item in bob_feed["feed"]]


def test_recent_feed_is_newest_first(client, team):
    feed = client.get("/api/feed/recent", headers=team["alice"]).json()["feed"]
    assert [item["company_name"] for item in feed] == ["One Hour", "Ten Hours", "Forty Hours"]


def test_invalid_mode_is_rejected(client, team):
    assert client.get("/api/feed/someday", headers=team["alice"]).status_code == 422


def test_swipe_to_match_and_inbox(client, team):
    target = client.get("/api/feed/archive", headers=team["alice"]).json()["feed"][0]["id"]

    first = client.post(
        "/api/swipes/archive", json={"fundraise_id": target, "decision": "like"}, headers=team["alice"]
    ).json()
    assert first["match_created"] is False
    second = client.post(
        "/api/swipes/archive", json={"fundraise_id": target, "decision": "like"}, headers=team["bob"]
    ).json()
    assert second["match_created"] is True
    repeat = client.post(
        "/api/swipes/archive", json={"fundraise_id": target, "decision": "like"}, headers=team["alice"]
    ).json()
    assert repeat["id"] == first["id"]
    assert repeat["match_created"] is False
    assert repeat["match_id"] == second["match_id"]

    reflection = client.post(
        "/api/reflections",
        json={"swipe_id": first["id"], "chips": ["team"], "note": "Great founders"},
        headers=team["alice"],
    )
    assert reflection.status_code == 200

    matches = client.get("/api/matches", headers=team["bob"]).json()["matches"]
    assert len(matches) == 1
    assert matches[0]["fundraise_id"] == target
    assert matches[0]["reflections"][0]["note"] == "Great founders"

    detail = client.get(f"/api/matches/{second['match_id']}", headers=team["alice"])
    assert detail.status_code == 200
    assert detail.json()["fundraise"]["id"] == target


def test_swipe_validation_and_unknown_item(client, team):
    bad_decision = client.post(
        "/api/swipes/archive", json={"fundraise_id": "x", "decision": "maybe"}, headers=team["alice"]
    )
    assert bad_decision.status_code == 422
    unknown = client.post(
        "/api/swipes/archive", json={"fundraise_id": "x", "decision": "like"}, headers=team["alice"]
    )
    assert unknown.status_code == 404


def test_reflection_on_pass_is_bad_request(client, team):
    target = client.get("/api/feed/archive", headers=team["alice"]).json()["feed"][1]["id"]
    swipe = client.post(
        "/api/swipes/archive", json={"fundraise_id": target, "decision": "pass"}, headers=team["alice"]
    ).json()
    response = client.post(
        "/api/reflections", json={"swipe_id": swipe["id"], "chips": []}, headers=team["alice"]
    )
    assert response.status_code == 400


def test_unknown_match_is_404(client, team):
    response = client.get(
        "/api/matches/00000000-0000-0000-0000-000000000000", headers=team["alice"]
    )
    assert response.status_code == 404


def test_progress_is_clamped_and_validated(client, team):
    headers = team["alice"]
    assert client.get("/api/progress/archive", headers=headers).json()["cursor"] == 0

    clamped = client.put("/api/progress/archive", json={"cursor": 9999}, headers=headers)
    assert clamped.status_code == 200
    assert clamped.json()["cursor"] == 4
    assert client.get("/api/feed/archive", headers=headers).json()["user_cursor"] == 4

    negative = client.put("/api/progress/archive", json={"cursor": -1}, headers=headers)
    assert negative.status_code == 422
