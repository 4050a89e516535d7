"""FastAPI application exposing GET /api/analyze."""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from src.api.rate_limiter import InMemoryRateLimiter, RateLimiter
from src.core.config import Settings
from src.github.base import GitHubDataSource
from src.github.client import GitHubClient
from src.llm import get_provider
from src.llm.base import LLMProvider
from src.pipeline.orchestrator import AnalysisOrchestrator

logger = logging.getLogger(__name__)


def create_app(
    settings: Settings | None = None,
    *,
    limiter: RateLimiter | None = None,
    data_source: GitHubDataSource | None = None,
    provider: LLMProvider | None = None,
    api_key: str | None = None,
) -> FastAPI:
    """Build the app. Collaborators live as long as the app does.

    Every collaborator can be injected; defaults come from ``settings`` and
    the environment.
    """
    settings = settings or Settings()
    limiter = limiter or InMemoryRateLimiter(
        max_requests=settings.rate_limit.max_requests,
        window_seconds=settings.rate_limit.window_seconds,
        max_entries=settings.rate_limit.max_entries,
    )
    orchestrator = AnalysisOrchestrator(
        settings,
        limiter,
        data_source or GitHubClient(settings.github),
        provider or get_provider(settings.scoring.provider),
        api_key,
    )

    app = FastAPI(title="GitHub Candidate Analyzer")
    app.state.settings = settings
    app.state.orchestrator = orchestrator

    @app.get("/api/analyze")
    async def analyze(request: Request) -> JSONResponse:
        peer = request.client.host if request.client else None
        result = await orchestrator.handle(request.query_params, request.headers, peer)
        return JSONResponse(status_code=result.status, content=result.body, headers=result.headers)

    @app.get("/healthz")
    async def healthz() -> dict[str, str]:
        return {"status": "ok"}

    logger.debug(
        "App created: %d req / %.0fs per client",
        settings.rate_limit.max_requests, settings.rate_limit.window_seconds,
    )
    return app
