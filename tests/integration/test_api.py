"""Integration test: HTTP surface with a fake GitHub source and scoring engine."""

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from src.api.app import create_app
from src.core.config import Settings
from src.core.schemas import GitHubProfile, GitHubStatistics, TopRepository
from src.github.base import GitHubDataSource
from src.llm.base import LLMProvider

FIXTURES_DIR = Path(__file__).parent.parent / "fixtures"

VALID_QUERY = {
    "username": "octocat",
    "job_title": "Engineer",
    "required_skills": "JavaScript,TypeScript",
    "nice_to_have_skills": "GraphQL",
    "seniority": "mid",
    "focus": "frontend",
}

# ---------------------------------------------------------------------------
# Fake collaborators
# ---------------------------------------------------------------------------


class FakeGitHub(GitHubDataSource):
    """Fixed octocat-like data; records how often it was hit."""

    def __init__(self) -> None:
        self.calls = 0

    async def fetch_statistics(
        self, username: str, *, include_all_commits: bool = False,
    ) -> GitHubStatistics:
        self.calls += 1
        return GitHubStatistics(total_commits=240, total_prs=4, total_prs_merged=3, contributed_to=2)

    async def fetch_languages(self, username: str) -> dict[str, int]:
        return {"JavaScript": 7000, "CSS": 2000, "HTML": 1000}

    async def fetch_profile(self, username: str) -> GitHubProfile:
        return GitHubProfile(
            repo_count=8,
            follower_count=9000,
            top_repositories=[TopRepository(name="Spoon-Knife", stars=12000, description="")],
        )


class FakeEngine(LLMProvider):
    """Answers every request with the sample verdict."""

    def __init__(self) -> None:
        self.prompts: list[str] = []

    @property
    def provider_id(self) -> str:
        return "openai"

    @property
    def default_model(self) -> str:
        return "gpt-4o"

    @property
    def env_var(self) -> str:
        return "OPENAI_API_KEY"

    def complete(
        self,
        user_text: str,
        model: str | None = None,
        *,
        system: str,
        api_key: str,
        timeout: float = 60.0,
        temperature: float = 0.3,
    ) -> str:
        self.prompts.append(user_text)
        return (FIXTURES_DIR / "sample_analysis.json").read_text()


@pytest.fixture
def github() -> FakeGitHub:
    return FakeGitHub()


@pytest.fixture
def engine() -> FakeEngine:
    return FakeEngine()


@pytest.fixture
def client(github: FakeGitHub, engine: FakeEngine) -> TestClient:
    app = create_app(Settings(), data_source=github, provider=engine, api_key="sk-test")
    return TestClient(app)


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------


class TestAnalyzeEndpoint:
    def test_valid_request(self, client: TestClient, engine: FakeEngine) -> None:
        resp = client.get("/api/analyze", params=VALID_QUERY)

        assert resp.status_code == 200
        body = resp.json()
        assert body["hiring_recommendation"]["decision"] == "Borderline"
        assert 0 <= body["hiring_recommendation"]["confidence_percentage"] <= 100
        assert resp.headers["content-type"].startswith("application/json")
        assert resp.headers["cache-control"] == (
            "max-age=43200, s-maxage=86400, stale-while-revalidate=86400"
        )
        assert resp.headers["x-ratelimit-limit"] == "10"
        assert resp.headers["x-ratelimit-remaining"] == "9"
        assert resp.headers["x-ratelimit-reset"].endswith("Z")
        assert len(engine.prompts) == 1
        assert '"required_skills"' in engine.prompts[0]

    def test_missing_seniority(self, client: TestClient, github: FakeGitHub) -> None:
        params = {k: v for k, v in VALID_QUERY.items() if k != "seniority"}
        resp = client.get("/api/analyze", params=params)

        assert resp.status_code == 400
        assert "seniority" in resp.json()["error"]
        assert resp.headers["cache-control"] == "no-cache, no-store, must-revalidate"
        assert github.calls == 0

    def test_invalid_focus(self, client: TestClient) -> None:
        resp = client.get("/api/analyze", params={**VALID_QUERY, "focus": "mobile"})
        assert resp.status_code == 400
        assert resp.json()["error"].startswith("Invalid focus. Must be one of:")

    def test_unknown_model_rejected(self, client: TestClient) -> None:
        resp = client.get("/api/analyze", params={**VALID_QUERY, "openai_model": "gpt-99"})
        assert resp.status_code == 400
        assert "openai_model" in resp.json()["error"]

    def test_eleventh_request_rate_limited(self, client: TestClient, github: FakeGitHub) -> None:
        headers = {"x-forwarded-for": "198.51.100.7"}
        statuses = [
            client.get("/api/analyze", params=VALID_QUERY, headers=headers).status_code
            for _ in range(10)
        ]
        assert statuses == [200] * 10

        resp = client.get("/api/analyze", params=VALID_QUERY, headers=headers)
        assert resp.status_code == 429
        body = resp.json()
        assert body["error"] == "Rate limit exceeded. Please try again later."
        assert 0 < body["retryAfter"] <= 60
        assert resp.headers["x-ratelimit-remaining"] == "0"
        assert github.calls == 10

    def test_other_client_unaffected(self, client: TestClient) -> None:
        for _ in range(11):
            client.get("/api/analyze", params=VALID_QUERY, headers={"x-forwarded-for": "198.51.100.7"})
        resp = client.get("/api/analyze", params=VALID_QUERY, headers={"x-forwarded-for": "198.51.100.8"})
        assert resp.status_code == 200

    def test_missing_api_key(self, github: FakeGitHub, engine: FakeEngine) -> None:
        app = create_app(Settings(), data_source=github, provider=engine, api_key="")
        resp = TestClient(app).get("/api/analyze", params=VALID_QUERY)
        assert resp.status_code == 500
        assert "OPENAI_API_KEY" in resp.json()["error"]
        assert engine.prompts == []


class TestHealth:
    def test_healthz(self, client: TestClient) -> None:
        resp = client.get("/healthz")
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok"}
