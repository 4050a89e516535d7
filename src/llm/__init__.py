"""Scoring engines, looked up by name from ``scoring.provider`` in settings.

Usage:
    from src.llm import get_provider, load_api_key

    engine = get_provider(settings.scoring.provider)
    raw = engine.complete(payload_json, model, system=PROMPT, api_key=load_api_key(engine))
"""

from __future__ import annotations

import importlib
import os
from collections.abc import Mapping

from src.llm.base import LLMProvider

__all__ = ["LLMProvider", "available_providers", "get_provider", "load_api_key"]

# Engine id -> (module, class). Modules import their SDK only when selected.
_ENGINES: dict[str, tuple[str, str]] = {
    "openai": ("src.llm.openai", "OpenAIProvider"),
}


def get_provider(name: str) -> LLMProvider:
    """Build the scoring engine registered under ``name``.

    Raises:
        ValueError: If no engine is registered under that name.
    """
    try:
        module_name, class_name = _ENGINES[name]
    except KeyError:
        msg = f"Unknown LLM provider '{name}'. Available: {', '.join(available_providers())}"
        raise ValueError(msg) from None

    engine_cls = getattr(importlib.import_module(module_name), class_name)
    return engine_cls()  # type: ignore[no-any-return]


def available_providers() -> list[str]:
    return sorted(_ENGINES)


def load_api_key(provider: LLMProvider, environ: Mapping[str, str] | None = None) -> str | None:
    """Read the engine credential from the server environment, never the request."""
    env = os.environ if environ is None else environ
    return env.get(provider.env_var) or None
