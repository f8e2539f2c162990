"""
In-memory gateway answering from recorded responses.

Used by the replay runner, the dry-run API and the tests. Every call is
recorded in `calls` as (step, args) so callers can assert which side effects
would have happened.
"""
from typing import Any, Dict, Iterable, List, Optional, Tuple
from ..core.models import StepResult

# Membership values with a special meaning in recordings. Any other state,
# such as "pending", is reported as-is and is not active.
MEMBERSHIP_ACTIVE = "active"
MEMBERSHIP_NONE = "none"
MEMBERSHIP_ERROR = "error"

class RecordedGateway:
    def __init__(
        self,
        open_count: int = 0,
        merged_count: int = 0,
        memberships: Optional[Dict[str, str]] = None,
        fail: Iterable[str] = (),
    ):
        self.open_count = open_count
        self.merged_count = merged_count
        self.memberships = memberships or {}
        self.fail = set(fail)
        self.calls: List[Tuple[str, Dict[str, Any]]] = []

    @classmethod
    def from_recording(cls, recording: Dict[str, Any]) -> "RecordedGateway":
        return cls(
            open_count=recording.get("open_count", 0),
            merged_count=recording.get("merged_count", 0),
            memberships=recording.get("memberships"),
            fail=recording.get("fail", []),
        )

    def steps_called(self) -> List[str]:
        return [step for step, _ in self.calls]

    def _answer(self, step: str, args: Dict[str, Any], **data: Any) -> StepResult:
        self.calls.append((step, args))
        if step in self.fail:
            return StepResult.failure(step, f"recorded failure for {step}", status=500)
        return StepResult.success(step, **data)

    async def fetch_author_pr_counts(self, owner: str, repo: str, author: str, count_drafts: bool) -> StepResult:
        return self._answer(
            "count_query",
            {"owner": owner, "repo": repo, "author": author, "count_drafts": count_drafts},
            open_count=self.open_count,
            merged_count=self.merged_count,
        )

    async def get_team_membership(self, org: str, team: str, username: str) -> StepResult:
        state = self.memberships.get(f"{org}/{team}", MEMBERSHIP_NONE)
        args = {"org": org, "team": team, "username": username}
        if state == MEMBERSHIP_ERROR:
            self.calls.append(("team_membership", args))
            return StepResult.failure("team_membership", f"recorded failure for {org}/{team}", status=403)
        return self._answer("team_membership", args, active=state == MEMBERSHIP_ACTIVE, state=state)

    async def create_comment(self, owner: str, repo: str, number: int, body: str) -> StepResult:
        return self._answer("comment", {"number": number, "body": body})

    async def close_pull_request(self, owner: str, repo: str, number: int) -> StepResult:
        return self._answer("close", {"number": number})

    async def convert_to_draft(self, owner: str, repo: str, number: int, node_id: Optional[str] = None) -> StepResult:
        return self._answer("revert_to_draft", {"number": number, "node_id": node_id})

    async def add_labels(self, owner: str, repo: str, number: int, labels: List[str]) -> StepResult:
        return self._answer("label", {"number": number, "labels": list(labels)})
