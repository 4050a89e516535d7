"""GitHub data aggregation and derived-signal computation.

Three upstream views (statistics, languages, profile) are fetched
concurrently. Statistics and languages are mandatory; a profile failure
degrades to default values. Every derived signal below is a pure function of
the fetched numbers, so fixed fixtures always give the same payload.
"""

import asyncio
import logging
from datetime import datetime, timezone

from src.core.errors import AggregationError
from src.core.schemas import (
    AnalyzerInput,
    CandidateProfile,
    CollaborationSignals,
    GitHubProfile,
    GitHubStats,
    IssueStats,
    PrimaryLanguage,
    ProfileSummary,
    PullRequestStats,
    TopRepository,
)
from src.github.base import GitHubDataSource

logger = logging.getLogger(__name__)

SECONDS_PER_YEAR = 60 * 60 * 24 * 365
TOP_LANGUAGES = 5

# Repos whose description is longer than these count as documented.
README_DESCRIPTION_MIN = 20
DOCUMENTATION_DESCRIPTION_MIN = 30


def commit_frequency(total_commits: int, account_age_years: int) -> str:
    """low < 50/yr <= medium < 200/yr <= high."""
    if account_age_years == 0:
        return "low"
    per_year = total_commits / account_age_years
    if per_year < 50:
        return "low"
    if per_year < 200:
        return "medium"
    return "high"


def commit_consistency(total_commits: int, account_age_years: int) -> str:
    """sporadic < 2/mo <= consistent < 10/mo <= very_consistent."""
    if account_age_years == 0:
        return "sporadic"
    per_month = total_commits / account_age_years / 12
    if per_month < 2:
        return "sporadic"
    if per_month < 10:
        return "consistent"
    return "very_consistent"


def _described_ratio(repositories: list[TopRepository], min_length: int) -> float:
    described = sum(1 for repo in repositories if len(repo.description) > min_length)
    return described / len(repositories)


def readme_quality(repositories: list[TopRepository]) -> str:
    if not repositories:
        return "poor"
    ratio = _described_ratio(repositories, README_DESCRIPTION_MIN)
    if ratio < 0.3:
        return "poor"
    if ratio < 0.7:
        return "average"
    return "strong"


def documentation_signal(repositories: list[TopRepository]) -> str:
    if not repositories:
        return "low"
    ratio = _described_ratio(repositories, DOCUMENTATION_DESCRIPTION_MIN)
    if ratio < 0.4:
        return "low"
    if ratio < 0.7:
        return "medium"
    return "high"


def collaboration_signals(repo_count: int, contributed_to: int) -> CollaborationSignals:
    """Team ratio = contributed-to repos over owned + contributed-to repos."""
    total = repo_count + contributed_to
    if repo_count == 0 or total == 0:
        return CollaborationSignals(solo_projects_ratio=1.0, team_projects_ratio=0.0)
    team = min(contributed_to / total, 1.0)
    return CollaborationSignals(solo_projects_ratio=1.0 - team, team_projects_ratio=team)


def primary_languages(sizes: dict[str, int], limit: int = TOP_LANGUAGES) -> list[PrimaryLanguage]:
    """Language share of total bytes, largest first, ties broken by name."""
    total = sum(sizes.values())
    languages = [
        PrimaryLanguage(
            language=name,
            percentage=size * 100 / total if total > 0 else 0.0,
        )
        for name, size in sizes.items()
    ]
    languages.sort(key=lambda lang: (-lang.percentage, lang.language))
    return languages[:limit]


def account_age_years(created_at: datetime | None, now: datetime | None = None) -> int:
    """Whole years since account creation, never less than 1."""
    if created_at is None:
        return 1
    now = now or datetime.now(timezone.utc)
    if created_at.tzinfo is None:
        created_at = created_at.replace(tzinfo=timezone.utc)
    elapsed = (now - created_at).total_seconds()
    return max(1, int(elapsed // SECONDS_PER_YEAR))


async def _profile_or_default(source: GitHubDataSource, username: str) -> GitHubProfile:
    try:
        return await source.fetch_profile(username)
    except Exception:
        logger.warning(
            "Profile fetch failed for '%s' - using defaults", username, exc_info=True,
        )
        return GitHubProfile()


async def _settle(tasks: tuple[asyncio.Task, ...]) -> None:
    """Cancel fetches still running after a sibling failed and collect their outcomes."""
    for task in tasks:
        if not task.done():
            task.cancel()
    await asyncio.gather(*tasks, return_exceptions=True)


async def aggregate(
    source: GitHubDataSource,
    username: str,
    *,
    include_all_commits: bool = False,
    now: datetime | None = None,
) -> AnalyzerInput:
    """Fetch and merge GitHub data for ``username`` into a scoring payload.

    The returned payload has no job role; the caller attaches it.

    Raises:
        AggregationError: If statistics or languages could not be fetched.
    """
    logger.info("Aggregating GitHub data for '%s'", username)
    stats_task = asyncio.create_task(
        source.fetch_statistics(username, include_all_commits=include_all_commits),
    )
    languages_task = asyncio.create_task(source.fetch_languages(username))
    profile_task = asyncio.create_task(_profile_or_default(source, username))
    tasks = (stats_task, languages_task, profile_task)
    try:
        stats, languages, profile = await asyncio.gather(stats_task, languages_task, profile_task)
    except AggregationError:
        raise
    except Exception as e:
        logger.exception("Unexpected error aggregating GitHub data for '%s'", username)
        msg = f"Failed to collect GitHub data for '{username}'"
        raise AggregationError(msg) from e
    finally:
        await _settle(tasks)

    age = account_age_years(profile.created_at, now)
    repos = profile.top_repositories

    github_stats = GitHubStats(
        total_commits_estimate=stats.total_commits,
        commit_frequency=commit_frequency(stats.total_commits, age),
        commit_consistency=commit_consistency(stats.total_commits, age),
        primary_languages=primary_languages(languages),
        top_repositories=repos,
        pull_requests=PullRequestStats(
            opened=stats.total_prs,
            merged=stats.total_prs_merged,
            reviewed=stats.total_reviews,
        ),
        issues=IssueStats(opened=stats.open_issues, closed=stats.closed_issues),
        collaboration_signals=collaboration_signals(profile.repo_count, stats.contributed_to),
        readme_quality=readme_quality(repos),
        documentation_signal=documentation_signal(repos),
    )

    return AnalyzerInput(
        candidate=CandidateProfile(
            username=username,
            profile=ProfileSummary(
                public_repos=profile.repo_count,
                followers=profile.follower_count,
                account_age_years=age,
            ),
        ),
        github_stats=github_stats,
    )
