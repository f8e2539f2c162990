import os
import sys
from typing import Dict, Mapping, Optional, TextIO
from ..core.models import EnforcementResult

def result_outputs(result: EnforcementResult) -> Dict[str, str]:
    """Action outputs for a result. Counts are omitted when the run ended before they were known."""
    outputs = {"decision": result.decision.value}
    if result.open_count is not None:
        outputs["openCount"] = str(result.open_count)
    if result.allowed_open is not None:
        outputs["allowedOpen"] = str(result.allowed_open)
    if result.merged_count is not None:
        outputs["mergedCount"] = str(result.merged_count)
    return outputs

def write_outputs(
    outputs: Mapping[str, str],
    env: Optional[Mapping[str, str]] = None,
    stream: Optional[TextIO] = None,
) -> None:
    """Append key=value lines to $GITHUB_OUTPUT, or print them when it is unset."""
    if env is None:
        env = os.environ
    lines = "".join(f"{key}={value}\n" for key, value in outputs.items())
    output_path = env.get("GITHUB_OUTPUT")
    if output_path:
        with open(output_path, "a", encoding="utf-8") as f:
            f.write(lines)
    else:
        (stream or sys.stdout).write(lines)
