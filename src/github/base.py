"""Abstract base class for GitHub data sources."""

from abc import ABC, abstractmethod

from src.core.schemas import GitHubProfile, GitHubStatistics


class GitHubDataSource(ABC):
    """Read-only view of a user's public GitHub activity."""

    @abstractmethod
    async def fetch_statistics(
        self, username: str, *, include_all_commits: bool = False,
    ) -> GitHubStatistics:
        """Return commit/PR/issue/review counters for ``username``."""

    @abstractmethod
    async def fetch_languages(self, username: str) -> dict[str, int]:
        """Return a mapping of language name to total bytes across owned repos."""

    @abstractmethod
    async def fetch_profile(self, username: str) -> GitHubProfile:
        """Return repo/follower counts, creation date and top repositories."""
