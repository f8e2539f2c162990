"""
Event payload parsing.

The webhook payload is loosely typed JSON; it is read here once and turned
into a frozen EventContext. Nothing past this module looks at the raw dict.
"""
import json
import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple
from ..core.errors import EventParseError, ConfigError
from ..core.models import EventAction, EventContext, PullRequestContext, PullRequestState

def load_event_payload(path: str) -> Dict[str, Any]:
    try:
        with open(Path(path), encoding="utf-8") as f:
            payload = json.load(f)
    except FileNotFoundError as e:
        raise EventParseError(f"Event payload not found: {path}") from e
    except json.JSONDecodeError as e:
        raise EventParseError(f"Failed to parse event payload {path}: {e}") from e
    if not isinstance(payload, dict):
        raise EventParseError(f"Event payload {path} is not a JSON object")
    return payload

def split_repository(full_name: str) -> Tuple[str, str]:
    parts = full_name.strip().split("/")
    if len(parts) != 2 or not all(parts):
        raise ConfigError(f"Repository '{full_name}' must be in owner/repo form.")
    return parts[0], parts[1]

def resolve_repository(payload: Mapping[str, Any], override: Optional[str], env: Mapping[str, str]) -> str:
    """Explicit override, then payload repository.full_name, then GITHUB_REPOSITORY."""
    if override and override.strip():
        return override.strip()
    repository = payload.get("repository")
    if isinstance(repository, dict) and isinstance(repository.get("full_name"), str):
        return repository["full_name"]
    if env.get("GITHUB_REPOSITORY"):
        return env["GITHUB_REPOSITORY"]
    raise ConfigError("Repository not provided. Set --repository or GITHUB_REPOSITORY.")

def _parse_pull_request(pr: Any, action: Optional[str]) -> Optional[PullRequestContext]:
    if not isinstance(pr, dict):
        return None
    try:
        number = int(pr.get("number"))
    except (TypeError, ValueError):
        return None
    state = pr.get("state") or "open"
    return PullRequestContext(
        number=number,
        is_draft=bool(pr.get("draft", False)),
        state=PullRequestState.OPEN if state == "open" else PullRequestState.CLOSED,
        event_action=EventAction.parse(action),
        node_id=pr.get("node_id") if isinstance(pr.get("node_id"), str) else None,
    )

def parse_event(
    event_name: str,
    payload: Mapping[str, Any],
    repository: Optional[str] = None,
    env: Optional[Mapping[str, str]] = None,
) -> EventContext:
    if env is None:
        env = os.environ
    owner, repo = split_repository(resolve_repository(payload, repository, env))
    action = payload.get("action") if isinstance(payload.get("action"), str) else None

    raw_pr = payload.get("pull_request")
    user = raw_pr.get("user") if isinstance(raw_pr, dict) else None
    user = user if isinstance(user, dict) else {}
    login = user.get("login") if isinstance(user.get("login"), str) else None
    user_type = user.get("type") if isinstance(user.get("type"), str) else None

    return EventContext(
        event_name=event_name,
        owner=owner,
        repo=repo,
        pull_request=_parse_pull_request(raw_pr, action),
        author_login=login or None,
        author_type=user_type,
    )
