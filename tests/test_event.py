import json
import pytest
from pr_throttle.github.event import load_event_payload, parse_event, split_repository
from pr_throttle.core.errors import ConfigError, EventParseError
from pr_throttle.core.models import EventAction, PullRequestState

def _payload(**pr_overrides) -> dict:
    pr = {"number": 7, "draft": True, "state": "open", "node_id": "PR_x", "user": {"login": "alice", "type": "User"}}
    pr.update(pr_overrides)
    return {"action": "ready_for_review", "pull_request": pr, "repository": {"full_name": "octo/repo"}}

def test_parse_event_extracts_pr_and_author():
    event = parse_event("pull_request_target", _payload(), env={})
    assert (event.owner, event.repo) == ("octo", "repo")
    assert event.author_login == "alice"
    assert event.author_type == "User"
    pr = event.pull_request
    assert pr.number == 7 and pr.is_draft and pr.node_id == "PR_x"
    assert pr.event_action == EventAction.READY_FOR_REVIEW
    assert pr.state == PullRequestState.OPEN

def test_unknown_action_maps_to_other():
    payload = _payload()
    payload["action"] = "synchronize"
    assert parse_event("pull_request", payload, env={}).pull_request.event_action == EventAction.OTHER

def test_missing_pull_request_and_user():
    event = parse_event("pull_request", {"action": "opened"}, repository="o/r", env={})
    assert event.pull_request is None
    assert event.author_login is None

def test_repository_resolution_order():
    payload = _payload()
    assert parse_event("pull_request", payload, repository="x/y", env={}).owner == "x"
    del payload["repository"]
    assert parse_event("pull_request", payload, env={"GITHUB_REPOSITORY": "env/repo"}).repo == "repo"
    with pytest.raises(ConfigError):
        parse_event("pull_request", payload, env={})

def test_split_repository_rejects_bad_names():
    with pytest.raises(ConfigError):
        split_repository("just-a-name")
    with pytest.raises(ConfigError):
        split_repository("o/")

def test_load_event_payload(tmp_path):
    good = tmp_path / "event.json"
    good.write_text(json.dumps(_payload()), encoding="utf-8")
    assert load_event_payload(str(good))["action"] == "ready_for_review"

    bad = tmp_path / "bad.json"
    bad.write_text("{not json", encoding="utf-8")
    with pytest.raises(EventParseError):
        load_event_payload(str(bad))

    array = tmp_path / "array.json"
    array.write_text("[]", encoding="utf-8")
    with pytest.raises(EventParseError, match="not a JSON object"):
        load_event_payload(str(array))

    with pytest.raises(EventParseError, match="not found"):
        load_event_payload(str(tmp_path / "missing.json"))
