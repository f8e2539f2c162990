"""
Enforcement decision stages.

These functions are pure: they look at already-fetched facts and return an
Action (or None to continue to the next stage). They never touch GitHub and
never create a Decision; gate.py maps the final Action to a Decision.
"""
from typing import Optional
from .models import (
    Action, ActionKind, AuthorContext, EnforcementConfig, EventAction,
    EventContext, ExclusionResult, PullRequestContext, PullRequestState,
)
from .policy import PolicyTable
from .counts import normalize_open_count
from .templates import render_template, template_values

SUPPORTED_EVENTS = ("pull_request", "pull_request_target")
SUPPORTED_ACTIONS = (EventAction.OPENED, EventAction.REOPENED, EventAction.READY_FOR_REVIEW)

# Reason codes
REASON_UNSUPPORTED_EVENT = "UNSUPPORTED_EVENT"
REASON_UNSUPPORTED_ACTION = "UNSUPPORTED_ACTION"
REASON_NO_PULL_REQUEST = "NO_PULL_REQUEST"
REASON_NO_AUTHOR = "NO_AUTHOR"
REASON_NO_CREDENTIAL = "NO_CREDENTIAL"
REASON_EXCLUDED_PREFIX = "EXCLUDED_"
REASON_DRAFT_NOT_COUNTED = "DRAFT_NOT_COUNTED"
REASON_NOT_OPEN = "PR_NOT_OPEN"
REASON_COUNT_FETCH_FAILED = "COUNT_FETCH_FAILED"
REASON_WITHIN_LIMIT = "WITHIN_LIMIT"
REASON_OVER_LIMIT = "OVER_LIMIT"
REASON_ACTION_FAILED_PREFIX = "ACTION_FAILED_"

def _skip(reason: str) -> Action:
    return Action(kind=ActionKind.SKIP, reason=reason)

class DecisionEngine:
    def __init__(self, config: EnforcementConfig):
        self.config = config
        self.policy = PolicyTable(config.policy)

    def check_event(self, event: EventContext) -> Optional[Action]:
        """Stages 1-2: supported trigger and resolvable author."""
        if event.event_name not in SUPPORTED_EVENTS:
            return _skip(REASON_UNSUPPORTED_EVENT)
        if event.pull_request is None:
            return _skip(REASON_NO_PULL_REQUEST)
        if event.pull_request.event_action not in SUPPORTED_ACTIONS:
            return _skip(REASON_UNSUPPORTED_ACTION)
        if not event.author_login:
            return _skip(REASON_NO_AUTHOR)
        return None

    def check_credential(self) -> Optional[Action]:
        """Stage 3."""
        if not self.config.token:
            return _skip(REASON_NO_CREDENTIAL)
        return None

    def check_exclusion_and_state(
        self, exclusion: ExclusionResult, pr: PullRequestContext
    ) -> Optional[Action]:
        """Stages 4-6: exclusion, uncounted draft, PR state."""
        if exclusion.excluded:
            return _skip(REASON_EXCLUDED_PREFIX + exclusion.reason.value.upper())
        # Within policy by construction, so this is ok rather than skipped.
        if not self.config.count_drafts and pr.is_draft:
            return Action(kind=ActionKind.NOOP, reason=REASON_DRAFT_NOT_COUNTED)
        if pr.state != PullRequestState.OPEN:
            return _skip(REASON_NOT_OPEN)
        return None

    def should_revert(self, pr: PullRequestContext) -> bool:
        return (
            not self.config.count_drafts
            and self.config.revert_to_draft_on_ready
            and pr.event_action == EventAction.READY_FOR_REVIEW
        )

    def decide(self, author: AuthorContext, pr: PullRequestContext) -> Action:
        """Threshold comparison and branch selection once counts are known."""
        open_count = normalize_open_count(author.raw_open_count, pr.is_draft, self.config.count_drafts)
        allowed_open = self.policy.resolve(author.merged_count)
        counts = dict(open_count=open_count, allowed_open=allowed_open, merged_count=author.merged_count)

        if open_count < allowed_open:
            return Action(kind=ActionKind.NOOP, reason=REASON_WITHIN_LIMIT, **counts)

        values = template_values(author.login, open_count, allowed_open, author.merged_count)
        if self.should_revert(pr):
            template = self.config.back_to_draft_comment.strip()
            return Action(
                kind=ActionKind.REVERT_TO_DRAFT,
                reason=REASON_OVER_LIMIT,
                comment=render_template(template, values) if template else None,
                **counts,
            )

        return Action(
            kind=ActionKind.CLOSE,
            reason=REASON_OVER_LIMIT,
            comment=render_template(self.config.close_comment, values),
            label=(self.config.label_when_closed or "").strip() or None,
            **counts,
        )
