"""Scoring client: one round trip to the scoring engine, then validation."""

import json
import logging
import math
import re
from typing import Any

from pydantic import ValidationError

from src.core.errors import ConfigurationError, MalformedResponseError
from src.core.schemas import AnalyzerInput, AnalyzerOutput
from src.llm.base import LLMProvider

logger = logging.getLogger(__name__)

REQUIRED_SECTIONS = (
    "engineer_summary",
    "job_fit_analysis",
    "hiring_recommendation",
    "recommendations",
)
DEFAULT_CONFIDENCE = 50

SYSTEM_PROMPT = (
    "You are a senior technical recruiter and engineering manager evaluating a "
    "software engineer from their public GitHub activity.\n\n"
    "You receive a JSON document with three parts:\n"
    "  candidate     - username, public repository count, followers, account age\n"
    "  github_stats  - commit volume/frequency/consistency, primary languages, "
    "top repositories, pull request and issue activity, collaboration ratios, "
    "README and documentation signals\n"
    "  job_role      - title, required skills, nice-to-have skills, seniority, focus\n\n"
    "Evaluation guidelines:\n"
    "  1. Base every claim on the supplied numbers. Do not invent projects or employers.\n"
    "  2. Public GitHub activity is a partial signal; private work is invisible. "
    "Say so in risk_factors when activity is low rather than penalising silently.\n"
    "  3. Compare primary languages and repositories against required_skills first, "
    "nice_to_have_skills second.\n"
    "  4. Infer seniority from account age, PR review activity, collaboration ratio "
    "and project scope, then compare it with the role's seniority.\n"
    "  5. Recommendations must be concrete and tailored to the role's focus area.\n\n"
    "Return ONLY a JSON object (no markdown, no explanation) with exactly this shape:\n"
    "{\n"
    '  "engineer_summary": {"inferred_seniority": str, "core_strengths": [str], '
    '"working_style": str, "collaboration_style": str},\n'
    '  "job_fit_analysis": {"overall_fit": "strong" | "medium" | "weak", '
    '"matched_requirements": [str], "missing_or_weak_areas": [str], "risk_factors": [str]},\n'
    '  "hiring_recommendation": {"decision": "Strong Hire" | "Hire" | "Borderline" | '
    '"Do Not Hire Yet", "confidence_level": "low" | "medium" | "high", '
    '"confidence_percentage": <integer 0-100>, "justification": str},\n'
    '  "recommendations": {"github_improvements": [str], "skill_development": [str], '
    '"project_suggestions": [str]}\n'
    "}"
)


def build_user_prompt(payload: AnalyzerInput) -> str:
    """Serialize the analysis payload into the user message."""
    data = payload.model_dump(mode="json")
    return f"Analyze this GitHub profile data:\n\n{json.dumps(data, indent=2)}"


def _clamp_confidence(value: Any) -> int:
    """Coerce to an integer in [0, 100]; non-numeric values become 50."""
    if isinstance(value, bool):
        return DEFAULT_CONFIDENCE
    try:
        number = float(value)
    except (TypeError, ValueError):
        return DEFAULT_CONFIDENCE
    if math.isnan(number):
        return DEFAULT_CONFIDENCE
    return int(round(max(0.0, min(100.0, number))))


def parse_analysis(raw_text: str) -> AnalyzerOutput:
    """Parse the engine's JSON into an AnalyzerOutput.

    Handles markdown-wrapped JSON. Clamps confidence_percentage to 0-100.

    Raises:
        MalformedResponseError: Non-JSON body, a missing section, or a
            section that doesn't match the output schema.
    """
    cleaned = re.sub(r"^```(?:json)?\s*\n?", "", raw_text.strip())
    cleaned = re.sub(r"\n?```\s*$", "", cleaned)

    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as e:
        logger.error("Failed to parse scoring response: %.500s", raw_text)
        msg = "Invalid JSON response from OpenAI"
        raise MalformedResponseError(msg) from e

    if not isinstance(data, dict):
        msg = "Invalid analysis response structure from OpenAI"
        raise MalformedResponseError(msg)

    missing = [s for s in REQUIRED_SECTIONS if not isinstance(data.get(s), dict) or not data[s]]
    if missing:
        logger.error("Scoring response missing sections: %s", ", ".join(missing))
        msg = "Invalid analysis response structure from OpenAI"
        raise MalformedResponseError(msg)

    recommendation = data["hiring_recommendation"]
    if "confidence_percentage" in recommendation:
        raw_confidence = recommendation["confidence_percentage"]
        clamped = _clamp_confidence(raw_confidence)
        if clamped != raw_confidence:
            logger.warning(
                "Invalid confidence_percentage %r - clamped to %d", raw_confidence, clamped,
            )
        recommendation["confidence_percentage"] = clamped

    try:
        return AnalyzerOutput.model_validate(data)
    except ValidationError as e:
        logger.error("Scoring response failed schema validation: %s", e)
        msg = "Invalid analysis response structure from OpenAI"
        raise MalformedResponseError(msg) from e


def score_analysis(
    instruction_text: str,
    payload: AnalyzerInput,
    api_key: str | None,
    model: str,
    provider: LLMProvider,
    *,
    timeout: float = 60.0,
    temperature: float = 0.3,
) -> AnalyzerOutput:
    """Send the payload to the scoring engine and return its validated verdict.

    Raises:
        ConfigurationError: No API key; raised before any network call.
        UpstreamError: Any provider failure or malformed response.
    """
    if not api_key:
        msg = f"{provider.env_var} is not configured on the server"
        raise ConfigurationError(msg)

    logger.info("Scoring '%s' with %s (%s)", payload.candidate.username, provider.provider_id, model)
    raw = provider.complete(
        build_user_prompt(payload),
        model,
        system=instruction_text,
        api_key=api_key,
        timeout=timeout,
        temperature=temperature,
    )
    return parse_analysis(raw)
