"""Cache-Control policy for analysis responses."""

import re

from src.core.config import ONE_DAY

NO_STORE = "no-cache, no-store, must-revalidate"

_PLAIN_INT_RE = re.compile(r"[0-9]+")


def resolve_cache_seconds(
    raw: str | None,
    default: int,
    min_seconds: int,
    max_seconds: int,
) -> int:
    """Resolve a client-requested TTL.

    Anything but a plain run of ASCII digits (missing, signed, fractional,
    underscored) yields ``default``; digits are clamped into
    ``[min_seconds, max_seconds]``.
    """
    value = (raw or "").strip()
    if not _PLAIN_INT_RE.fullmatch(value):
        return default
    requested = int(value)
    return max(min_seconds, min(max_seconds, requested))


def success_cache_headers(cache_seconds: int) -> dict[str, str]:
    if cache_seconds < 1:
        return {"Cache-Control": NO_STORE}
    return {
        "Cache-Control": (
            f"max-age={cache_seconds // 2}, "
            f"s-maxage={cache_seconds}, "
            f"stale-while-revalidate={ONE_DAY}"
        ),
    }


def error_cache_headers() -> dict[str, str]:
    return {"Cache-Control": NO_STORE}
