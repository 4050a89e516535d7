"""Configuration models and YAML loader for the candidate analyzer."""

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

ONE_DAY = 86400
TWELVE_HOURS = 43200

DEFAULT_MODELS = [
    "gpt-4o",
    "gpt-4o-mini",
    "gpt-4-turbo",
    "gpt-4.1",
    "gpt-4.1-mini",
]


class ServerConfig(BaseModel):
    """HTTP server bind settings."""

    host: str = "0.0.0.0"
    port: int = Field(default=9000, ge=1, le=65535)


class RateLimitConfig(BaseModel):
    """Fixed-window request budget per client identifier."""

    max_requests: int = Field(default=10, ge=1)
    window_seconds: float = Field(default=60.0, gt=0)
    max_entries: int = Field(default=10_000, ge=1)


class CacheConfig(BaseModel):
    """Bounds for the client-requested cache TTL."""

    default_seconds: int = Field(default=ONE_DAY, ge=0)
    min_seconds: int = Field(default=TWELVE_HOURS, ge=0)
    max_seconds: int = Field(default=ONE_DAY, ge=0)

    @model_validator(mode="after")
    def bounds_ordered(self) -> "CacheConfig":
        if self.min_seconds > self.max_seconds:
            msg = "cache.min_seconds must not exceed cache.max_seconds"
            raise ValueError(msg)
        return self


class ValidationConfig(BaseModel):
    """Allowed scoring models and model-selection policy."""

    allowed_models: list[str] = Field(default_factory=lambda: list(DEFAULT_MODELS))
    default_model: str = "gpt-4o"
    # False restores the lenient behaviour: unknown models fall back to default.
    strict_model: bool = True

    @field_validator("allowed_models")
    @classmethod
    def models_not_empty(cls, v: list[str]) -> list[str]:
        if not v:
            msg = "at least one allowed model must be configured"
            raise ValueError(msg)
        return v

    @model_validator(mode="after")
    def default_is_allowed(self) -> "ValidationConfig":
        if self.default_model not in self.allowed_models:
            msg = f"default_model '{self.default_model}' is not in allowed_models"
            raise ValueError(msg)
        return self


class GitHubConfig(BaseModel):
    """GitHub API access settings. Tokens come from the environment."""

    api_base: str = "https://api.github.com"
    timeout_seconds: float = Field(default=15.0, gt=0)
    max_retries: int = Field(default=3, ge=1)
    backoff_seconds: float = Field(default=0.5, ge=0.0)


class ScoringConfig(BaseModel):
    """Scoring engine call settings."""

    provider: str = "openai"
    timeout_seconds: float = Field(default=60.0, gt=0)
    temperature: float = Field(default=0.3, ge=0.0, le=2.0)


class Settings(BaseModel):
    """Top-level settings loaded from YAML."""

    server: ServerConfig = Field(default_factory=ServerConfig)
    rate_limit: RateLimitConfig = Field(default_factory=RateLimitConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    validation: ValidationConfig = Field(default_factory=ValidationConfig)
    github: GitHubConfig = Field(default_factory=GitHubConfig)
    scoring: ScoringConfig = Field(default_factory=ScoringConfig)

    @classmethod
    def from_yaml(cls, path: str | Path) -> "Settings":
        """Load settings from a YAML file."""
        path = Path(path)
        if not path.exists():
            msg = f"Config file not found: {path}"
            raise FileNotFoundError(msg)
        raw: dict[str, Any] = yaml.safe_load(path.read_text()) or {}
        return cls.model_validate(raw)

    @classmethod
    def load(cls, path: str | Path | None) -> "Settings":
        """Load from YAML when the file exists, otherwise use defaults."""
        if path is not None and Path(path).exists():
            return cls.from_yaml(path)
        return cls()
