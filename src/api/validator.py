"""Input validation: raw query parameters -> AnalysisRequest.

Checks run field-group first, then per field:
  1. username present
  2. job-role group present (job_title, required_skills, seniority, focus)
  3. username grammar, job title, skill lists, enums, flags, model, cache TTL

Every failure raises BadInputError naming the offending field. No network
I/O happens here, so a rejected request never reaches GitHub.
"""

import logging
import re
from collections.abc import Mapping

from src.api.cache import resolve_cache_seconds
from src.core.config import CacheConfig, ValidationConfig
from src.core.errors import BadInputError
from src.core.schemas import AnalysisRequest, JobRole

logger = logging.getLogger(__name__)

USERNAME_MAX_LENGTH = 39
JOB_TITLE_MAX_LENGTH = 100
MAX_SKILLS = 50
SKILL_MAX_LENGTH = 50

VALID_SENIORITY = ("junior", "mid", "senior")
VALID_FOCUS = ("frontend", "backend", "fullstack", "data", "infra")
JOB_ROLE_FIELDS = ("job_title", "required_skills", "seniority", "focus")

# Alphanumeric segments separated by single hyphens.
_USERNAME_RE = re.compile(r"^[A-Za-z0-9]+(?:-[A-Za-z0-9]+)*$")
_TRUE_VALUES = frozenset({"true", "1"})


def _get(params: Mapping[str, str], name: str) -> str:
    value = params.get(name)
    return value.strip() if value else ""


def validate_username(raw: str) -> str:
    username = raw.strip()
    if not username:
        msg = "Missing required parameter: username"
        raise BadInputError(msg, field="username")
    if len(username) > USERNAME_MAX_LENGTH:
        msg = f"Invalid username: must be at most {USERNAME_MAX_LENGTH} characters"
        raise BadInputError(msg, field="username")
    if not _USERNAME_RE.match(username):
        msg = (
            "Invalid username: only alphanumeric characters and single hyphens "
            "are allowed, and it cannot start or end with a hyphen"
        )
        raise BadInputError(msg, field="username")
    return username


def validate_job_title(raw: str) -> str:
    title = raw.strip()
    if not title:
        msg = "Invalid job_title: must not be empty"
        raise BadInputError(msg, field="job_title")
    if len(title) > JOB_TITLE_MAX_LENGTH:
        msg = f"Invalid job_title: must be at most {JOB_TITLE_MAX_LENGTH} characters"
        raise BadInputError(msg, field="job_title")
    return title


def parse_skill_list(raw: str | None, field: str, *, required: bool) -> list[str]:
    """Split a comma list, trim entries, drop blanks and enforce bounds."""
    skills = [s.strip() for s in (raw or "").split(",")]
    skills = [s for s in skills if s]

    if required and not skills:
        msg = f"Invalid {field}: at least one skill is required"
        raise BadInputError(msg, field=field)
    if len(skills) > MAX_SKILLS:
        msg = f"Invalid {field}: at most {MAX_SKILLS} skills allowed, got {len(skills)}"
        raise BadInputError(msg, field=field)
    for skill in skills:
        if len(skill) > SKILL_MAX_LENGTH:
            msg = (
                f"Invalid {field}: each skill must be at most "
                f"{SKILL_MAX_LENGTH} characters ('{skill[:20]}...')"
            )
            raise BadInputError(msg, field=field)
    return skills


def parse_choice(raw: str, field: str, valid: tuple[str, ...]) -> str:
    value = raw.strip().lower()
    if value not in valid:
        msg = f"Invalid {field}. Must be one of: {', '.join(valid)}"
        raise BadInputError(msg, field=field)
    return value


def parse_boolean(raw: str | None) -> bool:
    """Only true/1 (any case) are True; unrecognized values are False."""
    if raw is None:
        return False
    return raw.strip().lower() in _TRUE_VALUES


def resolve_model(raw: str | None, config: ValidationConfig) -> str:
    model = (raw or "").strip()
    if not model:
        return config.default_model
    if model in config.allowed_models:
        return model
    if config.strict_model:
        msg = f"Invalid openai_model. Must be one of: {', '.join(config.allowed_models)}"
        raise BadInputError(msg, field="openai_model")
    logger.info("Unknown model '%s' - falling back to '%s'", model, config.default_model)
    return config.default_model


def validate_query(
    params: Mapping[str, str],
    validation: ValidationConfig,
    cache: CacheConfig,
) -> AnalysisRequest:
    """Validate raw query parameters into an AnalysisRequest.

    Raises:
        BadInputError: On the first missing or invalid field.
    """
    if not _get(params, "username"):
        msg = "Missing required parameter: username"
        raise BadInputError(msg, field="username")

    if any(not _get(params, name) for name in JOB_ROLE_FIELDS):
        msg = f"Missing required parameters: {', '.join(JOB_ROLE_FIELDS)}"
        raise BadInputError(msg, field="job_role")

    username = validate_username(params["username"])
    job_role = JobRole(
        title=validate_job_title(params["job_title"]),
        required_skills=parse_skill_list(
            params.get("required_skills"), "required_skills", required=True,
        ),
        nice_to_have_skills=parse_skill_list(
            params.get("nice_to_have_skills"), "nice_to_have_skills", required=False,
        ),
        seniority=parse_choice(params["seniority"], "seniority", VALID_SENIORITY),
        focus=parse_choice(params["focus"], "focus", VALID_FOCUS),
    )

    return AnalysisRequest(
        username=username,
        job_role=job_role,
        include_all_commits=parse_boolean(params.get("include_all_commits")),
        model=resolve_model(params.get("openai_model"), validation),
        cache_seconds=resolve_cache_seconds(
            params.get("cache_seconds"),
            default=cache.default_seconds,
            min_seconds=cache.min_seconds,
            max_seconds=cache.max_seconds,
        ),
    )
