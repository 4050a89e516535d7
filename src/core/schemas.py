"""Core data models for the candidate analyzer."""

from datetime import datetime
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field

Seniority = Literal["junior", "mid", "senior"]
Focus = Literal["frontend", "backend", "fullstack", "data", "infra"]
Skill = Annotated[str, Field(min_length=1, max_length=50)]


# ---------------------------------------------------------------------------
# Request side
# ---------------------------------------------------------------------------


class JobRole(BaseModel):
    """Requirements of the role the candidate is evaluated against."""

    model_config = ConfigDict(frozen=True)

    title: str = Field(min_length=1, max_length=100)
    required_skills: list[Skill] = Field(min_length=1, max_length=50)
    nice_to_have_skills: list[Skill] = Field(default_factory=list, max_length=50)
    seniority: Seniority
    focus: Focus


class AnalysisRequest(BaseModel):
    """A validated /api/analyze request. Owned by one request lifecycle."""

    model_config = ConfigDict(frozen=True)

    username: str = Field(min_length=1, max_length=39)
    job_role: JobRole
    include_all_commits: bool = False
    model: str
    cache_seconds: int = Field(ge=0)


class RateLimitResult(BaseModel):
    """Outcome of a single limiter check."""

    model_config = ConfigDict(frozen=True)

    allowed: bool
    limit: int
    remaining: int = Field(ge=0)
    reset_at: float


# ---------------------------------------------------------------------------
# GitHub collaborator outputs
# ---------------------------------------------------------------------------


class GitHubStatistics(BaseModel):
    """Contribution counters for one user."""

    model_config = ConfigDict(frozen=True)

    total_commits: int = 0
    total_prs: int = 0
    total_prs_merged: int = 0
    total_reviews: int = 0
    total_issues: int = 0
    open_issues: int = 0
    closed_issues: int = 0
    contributed_to: int = 0


class TopRepository(BaseModel):
    """One of the user's most-starred owned repositories."""

    model_config = ConfigDict(frozen=True)

    name: str
    stars: int = 0
    forks: int = 0
    is_original_work: bool = True
    description: str = ""


class GitHubProfile(BaseModel):
    """Profile metadata. Defaults are the degraded values used on fetch failure."""

    model_config = ConfigDict(frozen=True)

    repo_count: int = 0
    follower_count: int = 0
    created_at: datetime | None = None
    top_repositories: list[TopRepository] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Aggregated scoring payload
# ---------------------------------------------------------------------------


class PrimaryLanguage(BaseModel):
    language: str
    percentage: float


class PullRequestStats(BaseModel):
    opened: int
    merged: int
    reviewed: int


class IssueStats(BaseModel):
    opened: int
    closed: int


class CollaborationSignals(BaseModel):
    solo_projects_ratio: float = Field(ge=0.0, le=1.0)
    team_projects_ratio: float = Field(ge=0.0, le=1.0)


class GitHubStats(BaseModel):
    """Derived statistics. Every field is a pure function of fetched inputs."""

    total_commits_estimate: int
    commit_frequency: Literal["low", "medium", "high"]
    commit_consistency: Literal["sporadic", "consistent", "very_consistent"]
    primary_languages: list[PrimaryLanguage]
    top_repositories: list[TopRepository]
    pull_requests: PullRequestStats
    issues: IssueStats
    collaboration_signals: CollaborationSignals
    readme_quality: Literal["poor", "average", "strong"]
    documentation_signal: Literal["low", "medium", "high"]


class ProfileSummary(BaseModel):
    public_repos: int
    followers: int
    account_age_years: int = Field(ge=1)


class CandidateProfile(BaseModel):
    username: str
    profile: ProfileSummary


class AnalyzerInput(BaseModel):
    """Payload sent to the scoring engine."""

    candidate: CandidateProfile
    github_stats: GitHubStats
    job_role: JobRole | None = None


# ---------------------------------------------------------------------------
# Scoring engine verdict
# ---------------------------------------------------------------------------


# Documented keys only. Values pass through as the engine wrote them; the
# prompt asks for the enumerations but they are not enforced here.


class EngineerSummary(BaseModel):
    model_config = ConfigDict(extra="allow")

    inferred_seniority: Any = None
    core_strengths: Any = None
    working_style: Any = None
    collaboration_style: Any = None


class JobFitAnalysis(BaseModel):
    model_config = ConfigDict(extra="allow")

    overall_fit: Any = None
    matched_requirements: Any = None
    missing_or_weak_areas: Any = None
    risk_factors: Any = None


class HiringRecommendation(BaseModel):
    """``confidence_percentage`` is the one value checked: clamped before validation."""

    model_config = ConfigDict(extra="allow")

    decision: Any = None
    confidence_level: Any = None
    confidence_percentage: int | None = Field(default=None, ge=0, le=100)
    justification: Any = None


class Recommendations(BaseModel):
    model_config = ConfigDict(extra="allow")

    github_improvements: Any = None
    skill_development: Any = None
    project_suggestions: Any = None


class AnalyzerOutput(BaseModel):
    """Structured hiring verdict. Unknown keys are preserved verbatim."""

    model_config = ConfigDict(extra="allow")

    engineer_summary: EngineerSummary
    job_fit_analysis: JobFitAnalysis
    hiring_recommendation: HiringRecommendation
    recommendations: Recommendations

    def to_response(self) -> dict:
        """Serialize exactly the keys the engine sent, after clamping."""
        return self.model_dump(mode="json", exclude_unset=True)
