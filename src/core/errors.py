"""Error taxonomy shared by the validator, limiter, aggregator and scorer.

Each class maps to exactly one HTTP outcome in the orchestrator:
BadInputError -> 400, RateLimitedError -> 429, UpstreamError -> 500.
"""


class AnalyzerError(Exception):
    """Base class for every classified failure."""


class BadInputError(AnalyzerError):
    """A request parameter is missing, malformed or out of range."""

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field


class RateLimitedError(AnalyzerError):
    """The client's request budget for the current window is exhausted."""

    def __init__(self, message: str, retry_after: int) -> None:
        super().__init__(message)
        self.retry_after = retry_after


class UpstreamError(AnalyzerError):
    """GitHub or the scoring engine failed after any internal retry."""


class ConfigurationError(UpstreamError):
    """The deployment is missing a required secret."""


class UpstreamAuthenticationError(UpstreamError):
    """The scoring engine rejected the API key."""


class UpstreamThrottledError(UpstreamError):
    """The scoring engine applied its own rate limit."""


class MalformedResponseError(UpstreamError):
    """The scoring engine returned an unparseable or incomplete body."""


class ScoringError(UpstreamError):
    """Any other scoring-engine transport or API failure."""


class AggregationError(UpstreamError):
    """Collecting GitHub data for the candidate failed."""


class GitHubError(AggregationError):
    """Permanent GitHub failure, e.g. the user does not exist."""


class GitHubTransientError(AggregationError):
    """GitHub kept failing with retryable errors until retries ran out."""
