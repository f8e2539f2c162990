import pytest
from fastapi.testclient import TestClient
from pr_throttle.api import app

@pytest.fixture
def client():
    return TestClient(app)

def test_healthz(client):
    response = client.get("/healthz")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}

def test_decision_smoke(client):
    response = client.post(
        "/decision",
        json={"author": "alice", "open_count": 2, "merged_count": 0},
    )

    assert response.status_code == 200

    data = response.json()
    assert data["decision"] == "closed"
    assert data["reason"] == "OVER_LIMIT"
    assert data["open_count"] == 1
    assert data["allowed_open"] == 1
    assert data["dry_run"] is True
    assert data["comment"] == "@alice has 1 open PRs (limit 1)."
    assert all(step["data"].get("dry_run") for step in data["steps"])

def test_decision_uses_default_policy_file(client):
    # config/policy.yaml: 1 merged PR allows 2 open
    response = client.post("/decision", json={"author": "alice", "open_count": 2, "merged_count": 1})
    assert response.json()["decision"] == "ok"

def test_decision_revert_preview(client):
    response = client.post(
        "/decision",
        json={
            "author": "dave",
            "action": "ready_for_review",
            "count_drafts": False,
            "back_to_draft_comment": "{openCount}/{allowedOpen}",
            "open_count": 4,
            "merged_count": 0,
            "policy": [{"minMerged": 0, "allowedOpen": 1}],
        },
    )
    data = response.json()
    assert data["decision"] == "reverted_to_draft"
    assert data["comment"] == "3/1"

def test_decision_team_exclusion(client):
    response = client.post(
        "/decision",
        json={
            "author": "erin",
            "open_count": 9,
            "merged_count": 0,
            "exclude_teams": ["octo/core"],
            "team_memberships": {"octo/core": "active"},
        },
    )
    data = response.json()
    assert data["decision"] == "skipped"
    assert data["reason"] == "EXCLUDED_TEAM"

def test_decision_invalid_policy_is_400(client):
    response = client.post(
        "/decision",
        json={"author": "alice", "open_count": 0, "merged_count": 0, "policy": [{"minMerged": -1, "allowedOpen": 1}]},
    )
    assert response.status_code == 400
    assert "index 0" in response.json()["detail"]

def test_decision_team_failure_without_skip_continues(client):
    response = client.post(
        "/decision",
        json={
            "author": "erin",
            "open_count": 9,
            "merged_count": 0,
            "skip_on_failure": False,
            "exclude_teams": ["octo/core"],
            "team_memberships": {"octo/core": "error"},
        },
    )
    # Failed team lookups without skip_on_failure continue without exclusion
    assert response.status_code == 200
    assert response.json()["decision"] == "closed"

def test_decision_request_validation(client):
    response = client.post("/decision", json={"author": "", "open_count": -1, "merged_count": 0})
    assert response.status_code == 422
