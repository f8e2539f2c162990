"""
Side-effect execution for an engine Action.

An Action is expanded into an ordered list of PlannedStep, each carrying its
own failure policy. Non-fatal failures (comment, label) are logged and the
sequence continues; the first fatal failure (close, revert) stops it and is
handed back to the gate runner to resolve.
"""
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, List, Optional, TYPE_CHECKING
from .models import Action, ActionKind, PullRequestContext, StepPolicy, StepResult

if TYPE_CHECKING:
    from ..github.client import GitHubGateway

logger = logging.getLogger(__name__)

@dataclass(frozen=True)
class PlannedStep:
    name: str
    policy: StepPolicy
    call: Callable[[], Awaitable[StepResult]]

@dataclass
class ExecutionOutcome:
    steps: List[StepResult] = field(default_factory=list)
    failed_step: Optional[StepResult] = None

    @property
    def completed(self) -> bool:
        return self.failed_step is None

class ActionExecutor:
    def __init__(self, gateway: "GitHubGateway", owner: str, repo: str, dry_run: bool = False):
        self.gateway = gateway
        self.owner = owner
        self.repo = repo
        self.dry_run = dry_run

    def plan(self, action: Action, pr: PullRequestContext) -> List[PlannedStep]:
        gw, owner, repo, number = self.gateway, self.owner, self.repo, pr.number
        steps: List[PlannedStep] = []

        if action.kind == ActionKind.REVERT_TO_DRAFT:
            if action.comment:
                steps.append(PlannedStep(
                    "comment", StepPolicy.NON_FATAL,
                    lambda: gw.create_comment(owner, repo, number, action.comment),
                ))
            else:
                logger.info("No backToDraftComment provided; reverting to draft without posting a comment.")
            steps.append(PlannedStep(
                "revert_to_draft", StepPolicy.FATAL,
                lambda: gw.convert_to_draft(owner, repo, number, pr.node_id),
            ))

        elif action.kind == ActionKind.CLOSE:
            steps.append(PlannedStep(
                "comment", StepPolicy.NON_FATAL,
                lambda: gw.create_comment(owner, repo, number, action.comment or ""),
            ))
            steps.append(PlannedStep(
                "close", StepPolicy.FATAL,
                lambda: gw.close_pull_request(owner, repo, number),
            ))
            if action.label:
                steps.append(PlannedStep(
                    "label", StepPolicy.NON_FATAL,
                    lambda: gw.add_labels(owner, repo, number, [action.label]),
                ))
        return steps

    async def execute(self, action: Action, pr: PullRequestContext) -> ExecutionOutcome:
        outcome = ExecutionOutcome()
        for step in self.plan(action, pr):
            if self.dry_run:
                logger.info("[dry-run] would run step '%s' on PR #%s", step.name, pr.number)
                outcome.steps.append(StepResult.success(step.name, dry_run=True))
                continue

            result = await step.call()
            outcome.steps.append(result)
            if result.ok:
                continue

            if step.policy == StepPolicy.NON_FATAL:
                logger.warning("Step '%s' failed on PR #%s: %s. Continuing.", step.name, pr.number, result.error)
                continue

            outcome.failed_step = result
            break
        return outcome
