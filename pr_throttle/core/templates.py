import re
from typing import Mapping, Union

# Closed vocabulary; anything else renders as an empty string.
PLACEHOLDERS = ("author", "openCount", "allowedOpen", "mergedCount")

_TOKEN = re.compile(r"\{(\w+)\}")

def render_template(template: str, values: Mapping[str, Union[str, int]]) -> str:
    """Single-pass {name} substitution. Substituted text is never re-scanned."""
    def _sub(match: "re.Match[str]") -> str:
        key = match.group(1)
        if key not in PLACEHOLDERS or key not in values:
            return ""
        return str(values[key])

    return _TOKEN.sub(_sub, template)

def template_values(author: str, open_count: int, allowed_open: int, merged_count: int) -> dict:
    return {
        "author": author,
        "openCount": open_count,
        "allowedOpen": allowed_open,
        "mergedCount": merged_count,
    }
