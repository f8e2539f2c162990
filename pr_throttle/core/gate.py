"""
Enforcement pipeline orchestration.

This module is the ONLY place where a Decision is created. Stages in
engine.py return Actions, the executor returns step results, and enforce()
maps them to exactly one EnforcementResult, or raises when a fatal failure
is not tolerated by skip_on_failure.

Stages:
1. Event and author gating
2. Credential gating
3. Exclusion filter (bot, user list, teams)
4. Draft / state gating
5. Count fetch (fatal unless skip_on_failure)
6. Threshold comparison and branch selection
7. Action execution (close / revert fatal unless skip_on_failure)
"""
import logging
from typing import Optional, TYPE_CHECKING
from .models import (
    Action, ActionKind, AuthorContext, Decision, EnforcementConfig,
    EnforcementResult, EventContext, StepResult,
)
from .engine import DecisionEngine, REASON_COUNT_FETCH_FAILED, REASON_ACTION_FAILED_PREFIX
from .exclusions import ExclusionFilter
from .executor import ActionExecutor
from .errors import UpstreamQueryError, ActionError

if TYPE_CHECKING:
    from ..github.client import GitHubGateway

logger = logging.getLogger(__name__)

_ACTION_TO_DECISION = {
    ActionKind.NOOP: Decision.OK,
    ActionKind.SKIP: Decision.SKIPPED,
    ActionKind.CLOSE: Decision.CLOSED,
    ActionKind.REVERT_TO_DRAFT: Decision.REVERTED_TO_DRAFT,
}

def _map_action_to_decision(action: Action) -> Decision:
    """Only function that creates Decision."""
    return _ACTION_TO_DECISION[action.kind]

def _finish(
    event: EventContext,
    config: EnforcementConfig,
    decision: Decision,
    reason: str,
    action: Optional[Action] = None,
    steps: Optional[list] = None,
) -> EnforcementResult:
    result = EnforcementResult(
        decision=decision,
        reason=reason,
        author=event.author_login,
        pull_number=event.pull_request.number if event.pull_request else None,
        open_count=action.open_count if action else None,
        allowed_open=action.allowed_open if action else None,
        merged_count=action.merged_count if action else None,
        comment=action.comment if action else None,
        dry_run=config.dry_run,
        steps=steps or [],
    )
    logger.info(
        "PR #%s by %s: decision=%s reason=%s openCount=%s allowedOpen=%s mergedCount=%s%s",
        result.pull_number, result.author, result.decision.value, result.reason,
        result.open_count, result.allowed_open, result.merged_count,
        " (dry run)" if config.dry_run else "",
    )
    return result

def _tolerate_or_raise(config: EnforcementConfig, failed: StepResult, error_cls: type, what: str) -> None:
    """Fatal step failed: return if skip_on_failure allows skipping, otherwise raise."""
    message = f"{what}: {failed.error}"
    if failed.status is not None:
        message = f"{what} (status {failed.status}): {failed.error}"
    if not config.skip_on_failure:
        raise error_cls(message)
    logger.warning("%s. Skipping enforcement per configuration.", message)

async def enforce(
    event: EventContext,
    config: EnforcementConfig,
    gateway: Optional["GitHubGateway"] = None,
) -> EnforcementResult:
    """Run one enforcement pass.

    When no gateway is supplied, a GitHubClient is opened with config.token
    for the duration of the call.
    """
    engine = DecisionEngine(config)

    action = engine.check_event(event) or engine.check_credential()
    if action is not None:
        return _finish(event, config, _map_action_to_decision(action), action.reason)

    if gateway is None:
        from ..github.client import GitHubClient

        async with GitHubClient(config.token) as client:
            return await _enforce_with_gateway(engine, event, config, client)
    return await _enforce_with_gateway(engine, event, config, gateway)

async def _enforce_with_gateway(
    engine: DecisionEngine,
    event: EventContext,
    config: EnforcementConfig,
    gateway: "GitHubGateway",
) -> EnforcementResult:
    pr = event.pull_request
    author = AuthorContext(login=event.author_login, user_type=event.author_type)

    exclusion = await ExclusionFilter(gateway).is_excluded(author, config)
    action = engine.check_exclusion_and_state(exclusion, pr)
    if action is not None:
        return _finish(event, config, _map_action_to_decision(action), action.reason)

    counts = await gateway.fetch_author_pr_counts(
        event.owner, event.repo, author.login, config.count_drafts
    )
    if not counts.ok:
        _tolerate_or_raise(config, counts, UpstreamQueryError, "PR count query failed")
        return _finish(event, config, Decision.SKIPPED, REASON_COUNT_FETCH_FAILED, steps=[counts])

    author = author.model_copy(update={
        "raw_open_count": counts.data["open_count"],
        "merged_count": counts.data["merged_count"],
    })
    action = engine.decide(author, pr)
    logger.info(
        "Author=%s, openCount(search)=%s, effectiveOpen(excl current)=%s, mergedCount=%s, "
        "allowedOpen=%s, isDraft=%s, countDrafts=%s",
        author.login, author.raw_open_count, action.open_count, action.merged_count,
        action.allowed_open, pr.is_draft, config.count_drafts,
    )

    outcome = await ActionExecutor(gateway, event.owner, event.repo, config.dry_run).execute(action, pr)
    if not outcome.completed:
        failed = outcome.failed_step
        _tolerate_or_raise(config, failed, ActionError, f"Failed to {failed.step.replace('_', ' ')} PR #{pr.number}")
        return _finish(
            event, config, Decision.SKIPPED, REASON_ACTION_FAILED_PREFIX + failed.step.upper(),
            action=action, steps=outcome.steps,
        )

    return _finish(
        event, config, _map_action_to_decision(action), action.reason,
        action=action, steps=outcome.steps,
    )
