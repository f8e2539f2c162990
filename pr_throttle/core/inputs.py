"""
Action input parsing.

Inputs arrive as INPUT_<NAME> environment variables (the runner upper-cases
the input name). load_config() reads them once and returns a frozen
EnforcementConfig; nothing downstream looks at the environment again.
"""
import json
import os
from typing import Mapping, Optional, List
from .errors import ConfigError
from .models import EnforcementConfig
from .policy import parse_rules, load_policy_file

_TRUE_VALUES = ("true", "1", "yes", "on")
_FALSE_VALUES = ("false", "0", "no", "off")

def get_input(env: Mapping[str, str], name: str, required: bool = False) -> str:
    value = env.get(f"INPUT_{name.upper()}", "") or ""
    if required and not value.strip():
        raise ConfigError(f"Input required and not supplied: {name}")
    return value

def parse_bool(raw: str, name: str, default: bool) -> bool:
    value = raw.strip().lower()
    if not value:
        return default
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ConfigError(f"Input '{name}' must be a boolean, got: {raw!r}")

def parse_list_or_json_array(raw: str) -> List[str]:
    """Accept either a JSON array or a comma-separated list."""
    trimmed = raw.strip()
    if not trimmed:
        return []
    try:
        parsed = json.loads(trimmed)
    except json.JSONDecodeError:
        parsed = None
    if isinstance(parsed, list):
        return [str(v).strip() for v in parsed if str(v).strip()]
    return [s.strip() for s in trimmed.split(",") if s.strip()]

def parse_policy(raw: str) -> list:
    try:
        decoded = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ConfigError(f"Failed to parse 'policy' input: {e}") from e
    return parse_rules(decoded, source="policy")

def resolve_token(env: Mapping[str, str]) -> Optional[str]:
    return get_input(env, "token").strip() or env.get("GITHUB_TOKEN") or env.get("TOKEN") or None

def load_config(env: Optional[Mapping[str, str]] = None) -> EnforcementConfig:
    """Build EnforcementConfig from action inputs. Raises ConfigError."""
    if env is None:
        env = os.environ

    policy_raw = get_input(env, "policy").strip()
    policy_file = get_input(env, "policyFile").strip()
    if policy_raw:
        policy = parse_policy(policy_raw)
    elif policy_file:
        policy = load_policy_file(policy_file)
    else:
        raise ConfigError("Input required and not supplied: policy (or policyFile)")
    if not policy:
        raise ConfigError("Failed to parse 'policy' input: at least one rule is required")

    close_comment = get_input(env, "closeComment", required=True)

    label = get_input(env, "labelWhenClosed").strip()

    return EnforcementConfig(
        policy=policy,
        close_comment=close_comment,
        back_to_draft_comment=get_input(env, "backToDraftComment"),
        count_drafts=parse_bool(get_input(env, "countDrafts"), "countDrafts", True),
        skip_on_failure=parse_bool(get_input(env, "skipOnFailure"), "skipOnFailure", True),
        revert_to_draft_on_ready=parse_bool(
            get_input(env, "revertToDraftOnReady"), "revertToDraftOnReady", True
        ),
        exclude_users=frozenset(u.lower() for u in parse_list_or_json_array(get_input(env, "excludeUsers"))),
        exclude_teams=parse_list_or_json_array(get_input(env, "excludeTeams")),
        label_when_closed=label or None,
        token=resolve_token(env),
        dry_run=parse_bool(get_input(env, "dryRun"), "dryRun", False),
    )
