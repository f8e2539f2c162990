import yaml
from typing import Iterable, List, Any
from pydantic import ValidationError
from .models import PolicyRule
from .errors import ConfigError
from .config import get_policy_path

# Used when the table has no rules at all: allow a single open PR.
DEFAULT_ALLOWED_OPEN = 1

class PolicyTable:
    def __init__(self, rules: Iterable[PolicyRule]):
        # sorted() is stable, so ties keep their configured order and the
        # later one wins during the scan.
        self.rules: List[PolicyRule] = sorted(rules, key=lambda r: r.min_merged)

    def resolve(self, merged_count: int) -> int:
        """Return allowed_open for the rule with the greatest min_merged <= merged_count.

        Counts below every rule fall back to the smallest rule.
        """
        if not self.rules:
            return DEFAULT_ALLOWED_OPEN

        selected = self.rules[0]
        for rule in self.rules:
            if rule.min_merged <= merged_count:
                selected = rule
            else:
                break
        return selected.allowed_open

def parse_rules(raw: Any, source: str = "policy") -> List[PolicyRule]:
    """Validate a decoded rule list. Raises ConfigError naming the bad index."""
    if not isinstance(raw, list):
        raise ConfigError(f"Failed to parse '{source}': policy must be a list of rules")

    rules = []
    for idx, item in enumerate(raw):
        if not isinstance(item, dict):
            raise ConfigError(f"Failed to parse '{source}': invalid policy rule at index {idx}")
        try:
            rules.append(PolicyRule.model_validate(item))
        except ValidationError as e:
            fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in e.errors())
            raise ConfigError(
                f"Failed to parse '{source}': invalid policy rule at index {idx} ({fields})"
            ) from e
    return rules

def load_policy_file(path: str) -> List[PolicyRule]:
    """Load rules from a YAML file holding a rule list or a {version, rules} mapping."""
    policy_path = get_policy_path(path)
    try:
        with open(policy_path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except FileNotFoundError as e:
        raise ConfigError(f"Policy file not found: {path} (resolved to {policy_path})") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in policy file {path}: {e}") from e

    if isinstance(data, dict):
        if "rules" not in data:
            raise ConfigError(f"Invalid policy file {path}: missing 'rules' field")
        data = data["rules"]
    return parse_rules(data, source=path)
