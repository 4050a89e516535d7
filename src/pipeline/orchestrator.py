"""Orchestrator: wires rate limiter, validator, aggregator and scoring client.

Data flow:
  1. Rate-limit gate (before any parsing)
  2. Validate query -> AnalysisRequest
  3. Aggregate GitHub data (three concurrent fetches)
  4. Score with the LLM (single round trip, off the event loop)
  5. Respond with cache + rate-limit headers

Any stage can fail into exactly one of 400, 429 or 500.
"""

import asyncio
import logging
import math
import time
from collections.abc import Callable, Mapping
from datetime import datetime, timezone
from typing import Any

from src.api.cache import error_cache_headers, success_cache_headers
from src.api.rate_limiter import RateLimiter, client_identifier
from src.api.validator import validate_query
from src.core.config import Settings
from src.core.errors import BadInputError, RateLimitedError, UpstreamError
from src.core.schemas import RateLimitResult
from src.github.base import GitHubDataSource
from src.llm import load_api_key
from src.llm.base import LLMProvider
from src.pipeline.aggregator import aggregate
from src.pipeline.llm_scorer import SYSTEM_PROMPT, score_analysis

logger = logging.getLogger(__name__)

RATE_LIMIT_MESSAGE = "Rate limit exceeded. Please try again later."
GENERIC_ERROR_MESSAGE = "An unexpected error occurred while analyzing the candidate"


class ApiResponse:
    """Transport-neutral response: status code, JSON body and headers."""

    def __init__(self, status: int, body: dict[str, Any], headers: dict[str, str]) -> None:
        self.status = status
        self.body = body
        self.headers = headers

    def __repr__(self) -> str:
        return f"ApiResponse(status={self.status}, body={self.body!r})"


def rate_limit_headers(result: RateLimitResult) -> dict[str, str]:
    reset = datetime.fromtimestamp(result.reset_at, tz=timezone.utc)
    return {
        "X-RateLimit-Limit": str(result.limit),
        "X-RateLimit-Remaining": str(result.remaining),
        "X-RateLimit-Reset": reset.isoformat(timespec="milliseconds").replace("+00:00", "Z"),
    }


class AnalysisOrchestrator:
    """Runs one /api/analyze request through the full pipeline.

    Usage::

        orchestrator = AnalysisOrchestrator(settings, limiter, GitHubClient(), provider)
        response = await orchestrator.handle(query, headers, peer="203.0.113.9")
    """

    def __init__(
        self,
        settings: Settings,
        limiter: RateLimiter,
        data_source: GitHubDataSource,
        provider: LLMProvider,
        api_key: str | None = None,
        *,
        instruction_text: str = SYSTEM_PROMPT,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._settings = settings
        self._limiter = limiter
        self._data_source = data_source
        self._provider = provider
        self._api_key = api_key if api_key is not None else load_api_key(provider)
        self._instruction_text = instruction_text
        self._clock = clock

    async def handle(
        self,
        query: Mapping[str, str],
        headers: Mapping[str, str],
        peer: str | None = None,
    ) -> ApiResponse:
        identifier = client_identifier(headers, peer)

        # Step 1: Rate-limit gate
        limit = self._limiter.check(identifier)
        base_headers = {"Content-Type": "application/json", **rate_limit_headers(limit)}

        username = query.get("username", "")
        try:
            self._gate(limit)

            # Step 2: Validate
            request = validate_query(query, self._settings.validation, self._settings.cache)
            username = request.username

            # Step 3: Aggregate
            payload = await aggregate(
                self._data_source,
                request.username,
                include_all_commits=request.include_all_commits,
            )
            payload = payload.model_copy(update={"job_role": request.job_role})

            # Step 4: Score (sync SDK call, kept off the event loop)
            output = await asyncio.to_thread(
                score_analysis,
                self._instruction_text,
                payload,
                self._api_key,
                request.model,
                self._provider,
                timeout=self._settings.scoring.timeout_seconds,
                temperature=self._settings.scoring.temperature,
            )
        except RateLimitedError as e:
            return self._error(
                429, {"error": str(e), "retryAfter": e.retry_after}, base_headers,
            )
        except BadInputError as e:
            logger.info("Rejected request from '%s': %s", identifier, e)
            return self._error(400, {"error": str(e)}, base_headers)
        except UpstreamError as e:
            logger.error("Analysis failed for '%s' (%s): %s", username, type(e).__name__, e)
            return self._error(500, {"error": str(e)}, base_headers)
        except Exception:
            logger.exception("Unexpected error analyzing '%s'", username)
            return self._error(500, {"error": GENERIC_ERROR_MESSAGE}, base_headers)

        # Step 5: Respond
        logger.info(
            "Analysis complete for '%s': %s",
            request.username, output.hiring_recommendation.decision,
        )
        return ApiResponse(
            status=200,
            body=output.to_response(),
            headers={**base_headers, **success_cache_headers(request.cache_seconds)},
        )

    def _gate(self, limit: RateLimitResult) -> None:
        if not limit.allowed:
            retry_after = max(1, math.ceil(limit.reset_at - self._clock()))
            raise RateLimitedError(RATE_LIMIT_MESSAGE, retry_after)

    def _error(
        self, status: int, body: dict[str, Any], base_headers: dict[str, str],
    ) -> ApiResponse:
        return ApiResponse(status=status, body=body, headers={**base_headers, **error_cache_headers()})
