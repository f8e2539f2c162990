"""
Author exclusion checks.

Checks run in a fixed order and stop at the first exclusion:
bot identity, explicit user list, then team membership. Only the team check
talks to GitHub, and only it has a failure policy (skip_on_failure).
"""
import logging
import re
from typing import Optional, TYPE_CHECKING
from .models import AuthorContext, EnforcementConfig, ExclusionReason, ExclusionResult, TeamSlug

if TYPE_CHECKING:
    from ..github.client import GitHubGateway

logger = logging.getLogger(__name__)

_BOT_SUFFIX = re.compile(r"\[bot\]$", re.IGNORECASE)

NOT_EXCLUDED = ExclusionResult(excluded=False)

def parse_team_slug(slug: str) -> Optional[TeamSlug]:
    parts = [p.strip() for p in slug.split("/") if p.strip()]
    if len(parts) != 2:
        return None
    return TeamSlug(org=parts[0], team=parts[1])

def is_bot(author: AuthorContext) -> bool:
    return author.is_bot or bool(_BOT_SUFFIX.search(author.login))

def is_excluded_by_list(exclude_users, login: str) -> bool:
    return login.lower() in {u.lower() for u in exclude_users}

async def is_excluded_by_teams(
    gateway: "GitHubGateway",
    team_slugs,
    username: str,
    skip_on_failure: bool,
) -> ExclusionResult:
    for slug in team_slugs:
        team = parse_team_slug(slug)
        if team is None:
            logger.warning("Invalid team slug '%s'. Expected 'org/team'.", slug)
            continue

        result = await gateway.get_team_membership(team.org, team.team, username)
        if result.ok:
            # 'pending' invitations do not count
            if result.data.get("active"):
                logger.info("User %s excluded by team %s.", username, team)
                return ExclusionResult(excluded=True, reason=ExclusionReason.TEAM, detail=str(team))
            continue

        if skip_on_failure:
            logger.warning(
                "Failed to check membership for %s and user %s (status %s): %s. "
                "Skipping enforcement per configuration.",
                team, username, result.status, result.error,
            )
            return ExclusionResult(
                excluded=True, reason=ExclusionReason.TEAM_CHECK_FAILED, detail=str(team)
            )
        logger.warning(
            "Failed to check membership for %s and user %s (status %s): %s. "
            "Continuing without team exclusion.",
            team, username, result.status, result.error,
        )
    return NOT_EXCLUDED

class ExclusionFilter:
    def __init__(self, gateway: Optional["GitHubGateway"]):
        self.gateway = gateway

    async def is_excluded(self, author: AuthorContext, config: EnforcementConfig) -> ExclusionResult:
        if is_bot(author):
            return ExclusionResult(excluded=True, reason=ExclusionReason.BOT, detail=author.user_type)

        if is_excluded_by_list(config.exclude_users, author.login):
            return ExclusionResult(excluded=True, reason=ExclusionReason.USER_LIST)

        if config.exclude_teams and self.gateway is not None:
            return await is_excluded_by_teams(
                self.gateway, config.exclude_teams, author.login, config.skip_on_failure
            )
        return NOT_EXCLUDED
