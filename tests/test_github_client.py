"""
GitHubClient against httpx.MockTransport.

Gateway methods never raise for HTTP, GraphQL or transport failures; they
return StepResult.failure with the status when one exists.
"""
import json
import httpx
import pytest

from pr_throttle.github.client import GitHubClient, build_search_queries, resolve_timeout, DEFAULT_TIMEOUT
from pr_throttle.core.errors import AuthError, ConfigError

API = "https://api.test"

def _client(handler) -> GitHubClient:
    return GitHubClient("tok", api_url=API, transport=httpx.MockTransport(handler))

def test_search_queries_scope_and_draft_filter():
    with_drafts = build_search_queries("octo", "repo", "alice", count_drafts=True)
    assert with_drafts["openQuery"] == "repo:octo/repo is:pr author:alice is:open"
    assert with_drafts["mergedQuery"] == "repo:octo/repo is:pr author:alice is:merged"
    without = build_search_queries("octo", "repo", "alice", count_drafts=False)
    assert without["openQuery"].endswith("is:open -is:draft")

def test_empty_token_is_auth_error():
    with pytest.raises(AuthError):
        GitHubClient("")

def test_timeout_from_environment():
    assert resolve_timeout({}) == DEFAULT_TIMEOUT
    assert resolve_timeout({"PR_THROTTLE_HTTP_TIMEOUT": " 12.5 "}) == 12.5

@pytest.mark.parametrize("raw", ["thirty", "0", "-5"])
def test_malformed_timeout_is_config_error(raw):
    with pytest.raises(ConfigError, match="PR_THROTTLE_HTTP_TIMEOUT"):
        resolve_timeout({"PR_THROTTLE_HTTP_TIMEOUT": raw})

def test_client_reads_timeout_when_constructed(monkeypatch):
    monkeypatch.setenv("PR_THROTTLE_HTTP_TIMEOUT", "soon")
    with pytest.raises(ConfigError):
        GitHubClient("tok")

@pytest.mark.asyncio
async def test_fetch_counts_single_graphql_call():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"data": {"open": {"issueCount": 3}, "merged": {"issueCount": 7}}})

    async with _client(handler) as client:
        result = await client.fetch_author_pr_counts("octo", "repo", "alice", False)

    assert result.ok
    assert result.data == {"open_count": 3, "merged_count": 7}
    assert len(seen) == 1
    assert str(seen[0].url) == f"{API}/graphql"
    assert seen[0].headers["Authorization"] == "Bearer tok"
    body = json.loads(seen[0].content)
    assert body["variables"]["openQuery"].endswith("-is:draft")

@pytest.mark.asyncio
async def test_fetch_counts_graphql_errors_are_failure():
    def handler(request):
        return httpx.Response(200, json={"errors": [{"message": "rate limited"}], "data": None})

    async with _client(handler) as client:
        result = await client.fetch_author_pr_counts("o", "r", "a", True)
    assert not result.ok
    assert "rate limited" in result.error
    assert result.step == "count_query"

@pytest.mark.asyncio
async def test_fetch_counts_unexpected_shape_is_failure():
    def handler(request):
        return httpx.Response(200, json={"data": {"open": None}})

    async with _client(handler) as client:
        result = await client.fetch_author_pr_counts("o", "r", "a", True)
    assert not result.ok

@pytest.mark.asyncio
@pytest.mark.parametrize("state,active", [("active", True), ("pending", False)])
async def test_team_membership_states(state, active):
    def handler(request):
        assert request.url.path == "/orgs/octo/teams/core/memberships/alice"
        return httpx.Response(200, json={"state": state, "role": "member"})

    async with _client(handler) as client:
        result = await client.get_team_membership("octo", "core", "alice")
    assert result.ok
    assert result.data["active"] is active

@pytest.mark.asyncio
async def test_team_membership_404_is_not_member():
    def handler(request):
        return httpx.Response(404, json={"message": "Not Found"})

    async with _client(handler) as client:
        result = await client.get_team_membership("octo", "core", "alice")
    assert result.ok
    assert result.data["active"] is False

@pytest.mark.asyncio
async def test_team_membership_403_is_failure_with_status():
    def handler(request):
        return httpx.Response(403, json={"message": "Resource not accessible by integration"})

    async with _client(handler) as client:
        result = await client.get_team_membership("octo", "core", "alice")
    assert not result.ok
    assert result.status == 403
    assert result.error == "Resource not accessible by integration"

@pytest.mark.asyncio
async def test_transport_error_is_failure():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    async with _client(handler) as client:
        result = await client.close_pull_request("o", "r", 1)
    assert not result.ok
    assert result.status is None
    assert "ConnectError" in result.error

@pytest.mark.asyncio
async def test_rest_side_effects_hit_expected_endpoints():
    seen = []

    def handler(request):
        seen.append((request.method, request.url.path, json.loads(request.content)))
        return httpx.Response(201 if request.method == "POST" else 200, json={})

    async with _client(handler) as client:
        assert (await client.create_comment("o", "r", 5, "hello")).ok
        assert (await client.close_pull_request("o", "r", 5)).ok
        assert (await client.add_labels("o", "r", 5, ["throttled"])).ok

    assert seen == [
        ("POST", "/repos/o/r/issues/5/comments", {"body": "hello"}),
        ("PATCH", "/repos/o/r/pulls/5", {"state": "closed"}),
        ("POST", "/repos/o/r/issues/5/labels", {"labels": ["throttled"]}),
    ]

@pytest.mark.asyncio
async def test_convert_to_draft_with_node_id_is_one_mutation():
    bodies = []

    def handler(request):
        bodies.append(json.loads(request.content))
        return httpx.Response(200, json={"data": {"convertPullRequestToDraft": {"pullRequest": {"number": 5, "isDraft": True}}}})

    async with _client(handler) as client:
        result = await client.convert_to_draft("o", "r", 5, "PR_node")
    assert result.ok
    assert len(bodies) == 1
    assert bodies[0]["variables"] == {"pullRequestId": "PR_node"}

@pytest.mark.asyncio
async def test_convert_to_draft_looks_up_node_id_when_missing():
    bodies = []

    def handler(request):
        body = json.loads(request.content)
        bodies.append(body)
        if "pullRequestId" in body["variables"]:
            return httpx.Response(200, json={"data": {"convertPullRequestToDraft": {"pullRequest": {"isDraft": True}}}})
        return httpx.Response(200, json={"data": {"repository": {"pullRequest": {"id": "PR_looked_up"}}}})

    async with _client(handler) as client:
        result = await client.convert_to_draft("o", "r", 5)
    assert result.ok
    assert bodies[0]["variables"] == {"owner": "o", "name": "r", "number": 5}
    assert bodies[1]["variables"] == {"pullRequestId": "PR_looked_up"}

@pytest.mark.asyncio
async def test_convert_to_draft_missing_pr_is_failure():
    def handler(request):
        return httpx.Response(200, json={"data": {"repository": {"pullRequest": None}}})

    async with _client(handler) as client:
        result = await client.convert_to_draft("o", "r", 99)
    assert not result.ok
    assert result.step == "revert_to_draft"
