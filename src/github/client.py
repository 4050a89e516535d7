"""GitHub API client backed by aiohttp.

Requests rotate through the configured personal access tokens. Bad
credentials, rate limiting, 5xx responses and connection errors move on to
the next token after an exponential backoff; anything else fails at once.
"""

import asyncio
import logging
import os
import re
from collections.abc import Awaitable, Callable, Mapping
from datetime import datetime
from typing import Any, TypeVar

import aiohttp

from src.core.config import GitHubConfig
from src.core.errors import GitHubError, GitHubTransientError
from src.core.schemas import GitHubProfile, GitHubStatistics, TopRepository
from src.github.base import GitHubDataSource
from src.github.queries import LANGUAGES_QUERY, PROFILE_QUERY, STATS_QUERY

logger = logging.getLogger(__name__)

T = TypeVar("T")

_PAT_RE = re.compile(r"^PAT_(\d+)$")


class RetryableGitHubError(Exception):
    """A failure that the next token or a later attempt may not hit."""


def load_tokens(environ: Mapping[str, str] | None = None) -> list[str]:
    """Collect PAT_1..PAT_n (numeric order), falling back to GITHUB_TOKEN."""
    env = os.environ if environ is None else environ
    numbered: list[tuple[int, str]] = []
    for key, value in env.items():
        match = _PAT_RE.match(key)
        if match and value:
            numbered.append((int(match.group(1)), value))
    tokens = [value for _, value in sorted(numbered)]
    if not tokens and env.get("GITHUB_TOKEN"):
        tokens = [env["GITHUB_TOKEN"]]
    return tokens


async def retryer(
    fetcher: Callable[[str | None], Awaitable[T]],
    tokens: list[str],
    *,
    max_retries: int = 3,
    backoff_seconds: float = 0.5,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> T:
    """Call ``fetcher`` with successive tokens until it stops failing transiently.

    Raises:
        GitHubTransientError: When every attempt hit a retryable failure.
        GitHubError: Propagated unchanged from ``fetcher`` (not retried).
    """
    last_error: RetryableGitHubError | None = None
    for attempt in range(max_retries):
        token = tokens[attempt % len(tokens)] if tokens else None
        try:
            return await fetcher(token)
        except RetryableGitHubError as e:
            last_error = e
            logger.debug("GitHub attempt %d/%d failed: %s", attempt + 1, max_retries, e)
            if attempt < max_retries - 1:
                await sleep(backoff_seconds * (2**attempt))

    msg = f"GitHub API unavailable after {max_retries} attempts: {last_error}"
    raise GitHubTransientError(msg) from last_error


class GitHubClient(GitHubDataSource):
    """Fetches statistics, languages and profile data for one user."""

    def __init__(
        self,
        config: GitHubConfig | None = None,
        tokens: list[str] | None = None,
    ) -> None:
        self._config = config or GitHubConfig()
        self._tokens = tokens if tokens is not None else load_tokens()
        if not self._tokens:
            logger.warning("No GitHub tokens configured - using unauthenticated requests")

    def _headers(self, token: str | None, accept: str = "application/vnd.github+json") -> dict:
        headers = {
            "Accept": accept,
            "X-GitHub-Api-Version": "2022-11-28",
        }
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    async def _request(
        self,
        method: str,
        path: str,
        token: str | None,
        *,
        json: dict | None = None,
        params: dict | None = None,
        accept: str = "application/vnd.github+json",
    ) -> dict:
        url = f"{self._config.api_base}{path}"
        timeout = aiohttp.ClientTimeout(total=self._config.timeout_seconds)
        try:
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.request(
                    method, url, headers=self._headers(token, accept), json=json, params=params,
                ) as resp:
                    if resp.status == 401:
                        msg = "bad credentials"
                        raise RetryableGitHubError(msg)
                    if resp.status == 429 or (
                        resp.status == 403 and resp.headers.get("x-ratelimit-remaining") == "0"
                    ):
                        msg = f"rate limited (HTTP {resp.status})"
                        raise RetryableGitHubError(msg)
                    if resp.status >= 500:
                        msg = f"server error (HTTP {resp.status})"
                        raise RetryableGitHubError(msg)
                    if resp.status != 200:
                        error_text = await resp.text()
                        logger.error("GitHub API error: %s - %s", resp.status, error_text)
                        msg = f"GitHub API error (HTTP {resp.status})"
                        raise GitHubError(msg)
                    return await resp.json()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            msg = f"connection error: {e!r}"
            raise RetryableGitHubError(msg) from e

    async def _graphql(self, query: str, login: str) -> dict:
        """Run a GraphQL query for ``login`` and return its ``data`` object."""

        async def fetch(token: str | None) -> dict:
            body = await self._request(
                "POST", "/graphql", token, json={"query": query, "variables": {"login": login}},
            )
            return _graphql_data(body, login)

        return await retryer(
            fetch,
            self._tokens,
            max_retries=self._config.max_retries,
            backoff_seconds=self._config.backoff_seconds,
        )

    async def _search_commit_count(self, username: str) -> int:
        async def fetch(token: str | None) -> dict:
            return await self._request(
                "GET",
                "/search/commits",
                token,
                params={"q": f"author:{username}", "per_page": 1},
                accept="application/vnd.github.cloak-preview+json",
            )

        body = await retryer(
            fetch,
            self._tokens,
            max_retries=self._config.max_retries,
            backoff_seconds=self._config.backoff_seconds,
        )
        return int(body.get("total_count", 0))

    async def fetch_statistics(
        self, username: str, *, include_all_commits: bool = False,
    ) -> GitHubStatistics:
        data = await self._graphql(STATS_QUERY, username)
        stats = parse_statistics(data)
        if include_all_commits:
            total = await self._search_commit_count(username)
            stats = stats.model_copy(update={"total_commits": total})
        return stats

    async def fetch_languages(self, username: str) -> dict[str, int]:
        data = await self._graphql(LANGUAGES_QUERY, username)
        return parse_languages(data)

    async def fetch_profile(self, username: str) -> GitHubProfile:
        data = await self._graphql(PROFILE_QUERY, username)
        return parse_profile(data)


# ---------------------------------------------------------------------------
# Response parsing
# ---------------------------------------------------------------------------


def _graphql_data(body: dict, login: str) -> dict:
    errors = body.get("errors")
    if errors:
        types = {e.get("type") for e in errors}
        if "RATE_LIMITED" in types:
            msg = "GraphQL rate limit exceeded"
            raise RetryableGitHubError(msg)
        if "NOT_FOUND" in types:
            msg = f"Could not find GitHub user '{login}'"
            raise GitHubError(msg)
        logger.error("GitHub GraphQL errors for '%s': %s", login, errors)
        msg = "GitHub API returned an error"
        raise GitHubError(msg)

    data = body.get("data") or {}
    if not data.get("user"):
        msg = f"Could not find GitHub user '{login}'"
        raise GitHubError(msg)
    return data


def parse_statistics(data: dict) -> GitHubStatistics:
    user = data["user"]
    contributions = user["contributionsCollection"]
    open_issues = user["openIssues"]["totalCount"]
    closed_issues = user["closedIssues"]["totalCount"]
    return GitHubStatistics(
        total_commits=contributions["totalCommitContributions"],
        total_reviews=contributions["totalPullRequestReviewContributions"],
        total_prs=user["pullRequests"]["totalCount"],
        total_prs_merged=user["mergedPullRequests"]["totalCount"],
        total_issues=open_issues + closed_issues,
        open_issues=open_issues,
        closed_issues=closed_issues,
        contributed_to=user["repositoriesContributedTo"]["totalCount"],
    )


def parse_languages(data: dict) -> dict[str, int]:
    """Sum language byte counts across all owned, non-fork repositories."""
    sizes: dict[str, int] = {}
    for repo in data["user"]["repositories"]["nodes"] or []:
        for edge in (repo.get("languages") or {}).get("edges") or []:
            name = edge["node"]["name"]
            sizes[name] = sizes.get(name, 0) + int(edge["size"])
    return sizes


def parse_profile(data: dict) -> GitHubProfile:
    user = data["user"]
    created_at = user.get("createdAt")
    return GitHubProfile(
        repo_count=user["repositories"]["totalCount"],
        follower_count=user["followers"]["totalCount"],
        created_at=datetime.fromisoformat(created_at.replace("Z", "+00:00")) if created_at else None,
        top_repositories=[
            TopRepository(
                name=node["name"],
                stars=node.get("stargazerCount", 0),
                forks=node.get("forkCount", 0),
                is_original_work=not node.get("isFork", False),
                description=node.get("description") or "",
            )
            for node in (user.get("topRepositories") or {}).get("nodes") or []
        ],
    )
