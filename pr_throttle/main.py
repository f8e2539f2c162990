"""
Action entry point: python -m pr_throttle

Reads inputs and the event payload, runs one enforcement pass, and writes
the action outputs. Exits 0 for every decision and 1 on a fatal error.
"""
import argparse
import asyncio
import logging
import os
import sys
from typing import List, Mapping, Optional
from .core.errors import ConfigError, EventParseError, UpstreamQueryError, ActionError
from .core.gate import enforce
from .core.inputs import load_config
from .core.models import EnforcementResult
from .github.event import load_event_payload, parse_event
from .github.outputs import result_outputs, write_outputs

logger = logging.getLogger("pr_throttle")

class WorkflowCommandFormatter(logging.Formatter):
    """Render warnings and errors as GitHub workflow commands so they show up as annotations."""

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        if record.levelno >= logging.ERROR:
            prefix = "::error::"
        elif record.levelno >= logging.WARNING:
            prefix = "::warning::"
        elif record.levelno < logging.INFO:
            prefix = "::debug::"
        else:
            return message
        # Workflow commands are single-line
        return prefix + message.replace("\n", "%0A")

def configure_logging(verbose: bool = False) -> None:
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(WorkflowCommandFormatter("%(message)s"))
    logger.handlers[:] = [handler]
    logger.propagate = False
    debug = verbose or os.getenv("RUNNER_DEBUG") == "1"
    logger.setLevel(logging.DEBUG if debug else logging.INFO)

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pr-throttle",
        description="Cap open pull requests per author based on merged PR history",
    )
    parser.add_argument("--event-path", default=None, help="Event payload JSON (default: $GITHUB_EVENT_PATH)")
    parser.add_argument("--event-name", default=None, help="Event name (default: $GITHUB_EVENT_NAME)")
    parser.add_argument("--repository", default=None, help="owner/repo (default: payload, then $GITHUB_REPOSITORY)")
    parser.add_argument("--dry-run", action="store_true", help="Decide without commenting, closing or labelling")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return parser

async def run(args: argparse.Namespace, env: Mapping[str, str]) -> EnforcementResult:
    config = load_config(env)
    if args.dry_run and not config.dry_run:
        config = config.model_copy(update={"dry_run": True})

    event_path = args.event_path or env.get("GITHUB_EVENT_PATH")
    if not event_path:
        raise ConfigError("No event payload. Set --event-path or GITHUB_EVENT_PATH.")
    event_name = args.event_name or env.get("GITHUB_EVENT_NAME", "")

    payload = load_event_payload(event_path)
    event = parse_event(event_name, payload, repository=args.repository, env=env)
    return await enforce(event, config)

def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.verbose)
    env = os.environ

    try:
        result = asyncio.run(run(args, env))
    except (ConfigError, EventParseError, UpstreamQueryError, ActionError) as e:
        logger.error("%s", e)
        return 1

    write_outputs(result_outputs(result), env)
    return 0

if __name__ == "__main__":
    sys.exit(main())
