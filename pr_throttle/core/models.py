from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional, Dict, Any, List
from enum import Enum

class Decision(str, Enum):
    OK = "ok"
    SKIPPED = "skipped"
    CLOSED = "closed"
    REVERTED_TO_DRAFT = "reverted_to_draft"

class EventAction(str, Enum):
    OPENED = "opened"
    REOPENED = "reopened"
    READY_FOR_REVIEW = "ready_for_review"
    OTHER = "other"

    @classmethod
    def parse(cls, raw: Optional[str]) -> "EventAction":
        try:
            return cls(raw)
        except ValueError:
            return cls.OTHER

class PullRequestState(str, Enum):
    OPEN = "open"
    CLOSED = "closed"

class ExclusionReason(str, Enum):
    BOT = "bot"
    USER_LIST = "user_list"
    TEAM = "team"
    TEAM_CHECK_FAILED = "team_check_failed"
    NONE = "none"

class ActionKind(str, Enum):
    NOOP = "noop"
    SKIP = "skip"
    CLOSE = "close"
    REVERT_TO_DRAFT = "revert_to_draft"

class StepPolicy(str, Enum):
    """How a failed step is treated by the runner."""
    FATAL = "fatal"
    NON_FATAL = "non_fatal"

class PolicyRule(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    min_merged: int = Field(..., ge=0, alias="minMerged")
    allowed_open: int = Field(..., ge=0, alias="allowedOpen")

    @field_validator("min_merged", "allowed_open", mode="before")
    @classmethod
    def reject_non_numbers(cls, v: Any) -> Any:
        # bool is an int subclass and strings would be coerced by pydantic
        if isinstance(v, bool) or not isinstance(v, (int, float)):
            raise ValueError(f"must be a number, got {type(v).__name__}")
        if isinstance(v, float) and not v.is_integer():
            raise ValueError(f"must be a whole number, got {v}")
        return int(v)

class TeamSlug(BaseModel):
    model_config = ConfigDict(frozen=True)

    org: str
    team: str

    def __str__(self) -> str:
        return f"{self.org}/{self.team}"

class AuthorContext(BaseModel):
    model_config = ConfigDict(frozen=True)

    login: str
    user_type: Optional[str] = None
    merged_count: int = Field(0, ge=0)
    raw_open_count: int = Field(0, ge=0)

    @property
    def is_bot(self) -> bool:
        return bool(self.user_type) and self.user_type.lower() == "bot"

class PullRequestContext(BaseModel):
    model_config = ConfigDict(frozen=True)

    number: int
    is_draft: bool = False
    state: PullRequestState = PullRequestState.OPEN
    event_action: EventAction = EventAction.OTHER
    node_id: Optional[str] = None

class EventContext(BaseModel):
    """Validated snapshot of the triggering webhook event."""
    model_config = ConfigDict(frozen=True)

    event_name: str
    owner: str
    repo: str
    pull_request: Optional[PullRequestContext] = None
    author_login: Optional[str] = None
    author_type: Optional[str] = None

class EnforcementConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    policy: List[PolicyRule]
    close_comment: str
    back_to_draft_comment: str = ""
    count_drafts: bool = True
    skip_on_failure: bool = True
    revert_to_draft_on_ready: bool = True
    exclude_users: frozenset[str] = frozenset()
    exclude_teams: List[str] = Field(default_factory=list)
    label_when_closed: Optional[str] = None
    token: Optional[str] = Field(None, repr=False)
    dry_run: bool = False

class ExclusionResult(BaseModel):
    excluded: bool
    reason: ExclusionReason = ExclusionReason.NONE
    detail: Optional[str] = None

class StepResult(BaseModel):
    """Outcome of one external call. Gateway methods return this instead of raising."""
    step: str
    ok: bool
    data: Dict[str, Any] = Field(default_factory=dict)
    error: Optional[str] = None
    status: Optional[int] = None

    @classmethod
    def success(cls, step: str, **data: Any) -> "StepResult":
        return cls(step=step, ok=True, data=data)

    @classmethod
    def failure(cls, step: str, error: str, status: Optional[int] = None) -> "StepResult":
        return cls(step=step, ok=False, error=error, status=status)

class Action(BaseModel):
    """What the engine decided to do. Carries everything the executor needs."""
    model_config = ConfigDict(frozen=True)

    kind: ActionKind
    reason: str
    comment: Optional[str] = None
    label: Optional[str] = None
    open_count: Optional[int] = None
    allowed_open: Optional[int] = None
    merged_count: Optional[int] = None

class EnforcementResult(BaseModel):
    decision: Decision
    reason: str
    author: Optional[str] = None
    pull_number: Optional[int] = None
    open_count: Optional[int] = None
    allowed_open: Optional[int] = None
    merged_count: Optional[int] = None
    comment: Optional[str] = None
    dry_run: bool = False
    steps: List[StepResult] = Field(default_factory=list)
