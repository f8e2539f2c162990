"""Per-author open pull request cap, derived from merged PR history."""

__version__ = "0.1.0"
