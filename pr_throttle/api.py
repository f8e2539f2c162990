from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field
from typing import Optional, List, Dict
from .core.models import (
    EnforcementConfig, EnforcementResult, EventAction, EventContext,
    PullRequestContext, PullRequestState,
)
from .core.errors import ConfigError
from .core.gate import enforce
from .core.policy import parse_rules, load_policy_file
from .replay.fake import RecordedGateway

app = FastAPI(title="PR Throttle Gate")

# The preview never talks to GitHub; this only satisfies the credential stage.
_PREVIEW_TOKEN = "preview"

class DecisionRequest(BaseModel):
    author: str = Field(..., min_length=1, description="PR author login")
    author_type: Optional[str] = Field(None, description="Platform user type, e.g. 'User' or 'Bot'")
    pr_number: int = Field(1, ge=1)
    is_draft: bool = False
    state: PullRequestState = PullRequestState.OPEN
    action: EventAction = EventAction.OPENED
    event_name: str = "pull_request"
    open_count: int = Field(..., ge=0, description="Raw open PR search count (may include this PR)")
    merged_count: int = Field(..., ge=0)
    team_memberships: Dict[str, str] = Field(
        default_factory=dict,
        description="'org/team' -> active | pending | none | error",
    )

    policy: Optional[List[dict]] = Field(None, description="Rules as [{minMerged, allowedOpen}]")
    policy_file: Optional[str] = Field(None, description="YAML policy file name under the config directory")
    close_comment: str = "@{author} has {openCount} open PRs (limit {allowedOpen})."
    back_to_draft_comment: str = ""
    count_drafts: bool = True
    skip_on_failure: bool = True
    revert_to_draft_on_ready: bool = True
    exclude_users: List[str] = Field(default_factory=list)
    exclude_teams: List[str] = Field(default_factory=list)
    label_when_closed: Optional[str] = None

def _build_config(req: DecisionRequest) -> EnforcementConfig:
    if req.policy is not None:
        rules = parse_rules(req.policy)
    elif req.policy_file:
        rules = load_policy_file(req.policy_file)
    else:
        rules = load_policy_file("policy.yaml")
    if not rules:
        raise ConfigError("policy must contain at least one rule")
    if not req.close_comment.strip():
        raise ConfigError("close_comment must not be empty")
    return EnforcementConfig(
        policy=rules,
        close_comment=req.close_comment,
        back_to_draft_comment=req.back_to_draft_comment,
        count_drafts=req.count_drafts,
        skip_on_failure=req.skip_on_failure,
        revert_to_draft_on_ready=req.revert_to_draft_on_ready,
        exclude_users=frozenset(u.lower() for u in req.exclude_users),
        exclude_teams=req.exclude_teams,
        label_when_closed=req.label_when_closed,
        token=_PREVIEW_TOKEN,
        dry_run=True,
    )

@app.post("/decision", response_model=EnforcementResult)
async def decision(req: DecisionRequest) -> EnforcementResult:
    """
    Preview the enforcement decision for the given counts and configuration.

    Runs the full pipeline in dry-run mode against the supplied numbers;
    nothing is commented, closed, reverted or labelled.
    """
    try:
        config = _build_config(req)
    except ConfigError as e:
        raise HTTPException(status_code=400, detail=f"Invalid configuration: {e}") from e

    event = EventContext(
        event_name=req.event_name,
        owner="preview",
        repo="preview",
        pull_request=PullRequestContext(
            number=req.pr_number,
            is_draft=req.is_draft,
            state=req.state,
            event_action=req.action,
        ),
        author_login=req.author,
        author_type=req.author_type,
    )
    gateway = RecordedGateway(
        open_count=req.open_count,
        merged_count=req.merged_count,
        memberships=req.team_memberships,
    )
    try:
        return await enforce(event, config, gateway)
    except RuntimeError as e:
        raise HTTPException(status_code=500, detail=f"Enforcement error: {e}") from e

@app.get("/healthz")
async def healthz():
    return {"status": "ok"}
