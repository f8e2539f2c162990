"""
GitHub API gateway.

Every method makes at most one attempt and returns a StepResult. HTTP errors,
GraphQL errors and transport failures become StepResult.failure values; the
callers decide whether a failure is fatal.
"""
import logging
import os
from typing import Any, Dict, List, Mapping, Optional, Protocol
import httpx
from ..core.errors import AuthError, ConfigError
from ..core.models import StepResult

logger = logging.getLogger(__name__)

API_URL = os.getenv("GITHUB_API_URL", "https://api.github.com")
GRAPHQL_URL = os.getenv("GITHUB_GRAPHQL_URL", f"{API_URL}/graphql")
DEFAULT_TIMEOUT = 30.0
TIMEOUT_ENV = "PR_THROTTLE_HTTP_TIMEOUT"

COUNTS_QUERY = """
query($openQuery: String!, $mergedQuery: String!) {
  open: search(query: $openQuery, type: ISSUE) { issueCount }
  merged: search(query: $mergedQuery, type: ISSUE) { issueCount }
}
"""

PULL_REQUEST_ID_QUERY = """
query($owner: String!, $name: String!, $number: Int!) {
  repository(owner: $owner, name: $name) {
    pullRequest(number: $number) { id }
  }
}
"""

CONVERT_TO_DRAFT_MUTATION = """
mutation($pullRequestId: ID!) {
  convertPullRequestToDraft(input: {pullRequestId: $pullRequestId}) {
    pullRequest { number isDraft }
  }
}
"""

class GitHubGateway(Protocol):
    async def fetch_author_pr_counts(self, owner: str, repo: str, author: str, count_drafts: bool) -> StepResult: ...
    async def get_team_membership(self, org: str, team: str, username: str) -> StepResult: ...
    async def create_comment(self, owner: str, repo: str, number: int, body: str) -> StepResult: ...
    async def close_pull_request(self, owner: str, repo: str, number: int) -> StepResult: ...
    async def convert_to_draft(self, owner: str, repo: str, number: int, node_id: Optional[str] = None) -> StepResult: ...
    async def add_labels(self, owner: str, repo: str, number: int, labels: List[str]) -> StepResult: ...

def build_search_queries(owner: str, repo: str, author: str, count_drafts: bool) -> Dict[str, str]:
    # Current repo and author scope only; type ISSUE + is:pr gives issueCount for PRs.
    base = f"repo:{owner}/{repo} is:pr author:{author}"
    open_query = f"{base} is:open" if count_drafts else f"{base} is:open -is:draft"
    return {"openQuery": open_query, "mergedQuery": f"{base} is:merged"}

def resolve_timeout(env: Optional[Mapping[str, str]] = None) -> float:
    """HTTP timeout in seconds from PR_THROTTLE_HTTP_TIMEOUT, or the default."""
    if env is None:
        env = os.environ
    raw = (env.get(TIMEOUT_ENV) or "").strip()
    if not raw:
        return DEFAULT_TIMEOUT
    try:
        timeout = float(raw)
    except ValueError as e:
        raise ConfigError(f"{TIMEOUT_ENV} must be a number of seconds, got: {raw!r}") from e
    if timeout <= 0:
        raise ConfigError(f"{TIMEOUT_ENV} must be positive, got: {raw!r}")
    return timeout

def _error_message(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(payload, dict) and payload.get("message"):
        return str(payload["message"])
    return response.text

class GitHubClient:
    """Async GitHub REST/GraphQL client. Use as an async context manager."""

    def __init__(
        self,
        token: Optional[str],
        api_url: str = API_URL,
        graphql_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        if not token:
            raise AuthError("No GitHub token provided or found in environment.")
        self.graphql_url = graphql_url or (GRAPHQL_URL if api_url == API_URL else f"{api_url}/graphql")
        self._client = httpx.AsyncClient(
            base_url=api_url,
            timeout=timeout if timeout is not None else resolve_timeout(),
            transport=transport,
            headers={
                "Authorization": f"Bearer {token}",
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": "2022-11-28",
            },
        )

    async def __aenter__(self) -> "GitHubClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(self, step: str, method: str, url: str, **kwargs) -> StepResult:
        try:
            response = await self._client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            logger.debug("%s %s failed: %r", method, url, e)
            return StepResult.failure(step, f"{type(e).__name__}: {e}")
        if response.is_success:
            try:
                data = response.json() if response.content else {}
            except ValueError:
                data = {}
            return StepResult(step=step, ok=True, data={"body": data}, status=response.status_code)
        return StepResult.failure(step, _error_message(response), status=response.status_code)

    async def _graphql(self, step: str, query: str, variables: Dict[str, Any]) -> StepResult:
        result = await self._request(step, "POST", self.graphql_url, json={"query": query, "variables": variables})
        if not result.ok:
            return result
        body = result.data.get("body") or {}
        if body.get("errors"):
            messages = "; ".join(str(e.get("message", e)) for e in body["errors"])
            return StepResult.failure(step, f"GraphQL errors: {messages}", status=result.status)
        if body.get("data") is None:
            return StepResult.failure(step, "GraphQL response contained no data", status=result.status)
        return StepResult(step=step, ok=True, data=body["data"], status=result.status)

    async def fetch_author_pr_counts(self, owner: str, repo: str, author: str, count_drafts: bool) -> StepResult:
        step = "count_query"
        result = await self._graphql(step, COUNTS_QUERY, build_search_queries(owner, repo, author, count_drafts))
        if not result.ok:
            return result
        try:
            open_count = int(result.data["open"]["issueCount"])
            merged_count = int(result.data["merged"]["issueCount"])
        except (KeyError, TypeError, ValueError) as e:
            return StepResult.failure(step, f"Unexpected search response shape: {e!r}", status=result.status)
        return StepResult.success(step, open_count=open_count, merged_count=merged_count)

    async def get_team_membership(self, org: str, team: str, username: str) -> StepResult:
        step = "team_membership"
        result = await self._request(step, "GET", f"/orgs/{org}/teams/{team}/memberships/{username}")
        if result.ok:
            state = (result.data.get("body") or {}).get("state")
            return StepResult.success(step, active=state == "active", state=state)
        if result.status == 404:
            return StepResult.success(step, active=False, state=None)
        return result

    async def create_comment(self, owner: str, repo: str, number: int, body: str) -> StepResult:
        return await self._request(
            "comment", "POST", f"/repos/{owner}/{repo}/issues/{number}/comments", json={"body": body}
        )

    async def close_pull_request(self, owner: str, repo: str, number: int) -> StepResult:
        return await self._request(
            "close", "PATCH", f"/repos/{owner}/{repo}/pulls/{number}", json={"state": "closed"}
        )

    async def convert_to_draft(self, owner: str, repo: str, number: int, node_id: Optional[str] = None) -> StepResult:
        step = "revert_to_draft"
        if not node_id:
            lookup = await self._graphql(
                step, PULL_REQUEST_ID_QUERY, {"owner": owner, "name": repo, "number": number}
            )
            if not lookup.ok:
                return lookup
            node_id = ((lookup.data.get("repository") or {}).get("pullRequest") or {}).get("id")
            if not node_id:
                return StepResult.failure(step, f"Pull request {owner}/{repo}#{number} was not found")
        return await self._graphql(step, CONVERT_TO_DRAFT_MUTATION, {"pullRequestId": node_id})

    async def add_labels(self, owner: str, repo: str, number: int, labels: List[str]) -> StepResult:
        return await self._request(
            "label", "POST", f"/repos/{owner}/{repo}/issues/{number}/labels", json={"labels": labels}
        )
