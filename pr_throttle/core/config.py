"""
Configuration path management.

Centralizes file path resolution so policy files do not depend on the
working directory the action is launched from.
"""
from pathlib import Path
import os

# pr_throttle/core/config.py -> pr_throttle -> project root
_PROJECT_ROOT = Path(__file__).parent.parent.parent.resolve()

CONFIG_DIR = _PROJECT_ROOT / "config"

# Support environment variable override (for testing/deployment)
if os.getenv("PR_THROTTLE_CONFIG_DIR"):
    CONFIG_DIR = Path(os.getenv("PR_THROTTLE_CONFIG_DIR")).resolve()

def get_policy_path(filename: str) -> Path:
    """Resolve a policy file path.

    Absolute paths and paths with a directory component are used as given
    (relative ones against the working directory, which is the checked-out
    repository inside a workflow). Bare filenames are looked up in CONFIG_DIR.
    """
    path = Path(filename)
    if path.is_absolute() or len(path.parts) > 1:
        return path.resolve()
    return CONFIG_DIR / filename
