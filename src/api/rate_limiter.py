"""Rate limiter: fixed-window request budget per client identifier.

State lives inside the limiter instance, owned by the app for the lifetime of
the process. The RateLimiter base class is the seam for a shared store.
"""

import logging
import threading
import time
from abc import ABC, abstractmethod
from collections import OrderedDict
from collections.abc import Callable, Mapping
from dataclasses import dataclass

from src.core.schemas import RateLimitResult

logger = logging.getLogger(__name__)

UNKNOWN_CLIENT = "unknown"


@dataclass
class RateLimitRecord:
    count: int
    reset_at: float


class RateLimiter(ABC):
    """Base class for request-budget backends."""

    @property
    @abstractmethod
    def max_requests(self) -> int:
        """Requests allowed per window."""

    @abstractmethod
    def check(self, identifier: str) -> RateLimitResult:
        """Count one request for ``identifier`` and decide allow/deny."""


class InMemoryRateLimiter(RateLimiter):
    """Single-process fixed-window limiter.

    Usage::

        limiter = InMemoryRateLimiter(max_requests=10, window_seconds=60)
        result = limiter.check(client_identifier(headers, peer))
        if not result.allowed:
            ...  # respond 429

    Check-and-increment runs under one lock, so concurrent callers for the
    same identifier can never be admitted past ``max_requests``.
    """

    def __init__(
        self,
        max_requests: int = 10,
        window_seconds: float = 60.0,
        *,
        max_entries: int = 10_000,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._max_requests = max_requests
        self._window = window_seconds
        self._max_entries = max_entries
        self._clock = clock
        # Ordered by window start, so expired records sit at the front.
        self._records: OrderedDict[str, RateLimitRecord] = OrderedDict()
        self._lock = threading.Lock()

    @property
    def max_requests(self) -> int:
        return self._max_requests

    def __len__(self) -> int:
        return len(self._records)

    def check(self, identifier: str) -> RateLimitResult:
        with self._lock:
            now = self._clock()
            record = self._records.get(identifier)

            if record is None:
                if len(self._records) >= self._max_entries:
                    self._evict_expired(now)
                record = RateLimitRecord(count=1, reset_at=now + self._window)
                self._records[identifier] = record
            elif now > record.reset_at:
                record.count = 1
                record.reset_at = now + self._window
                self._records.move_to_end(identifier)
            elif record.count >= self._max_requests:
                logger.info(
                    "Rate limit reached for '%s': %d/%d",
                    identifier, record.count, self._max_requests,
                )
                return RateLimitResult(
                    allowed=False,
                    limit=self._max_requests,
                    remaining=0,
                    reset_at=record.reset_at,
                )
            else:
                record.count += 1

            return RateLimitResult(
                allowed=True,
                limit=self._max_requests,
                remaining=max(0, self._max_requests - record.count),
                reset_at=record.reset_at,
            )

    def _evict_expired(self, now: float) -> None:
        """Drop expired records from the front. Caller holds the lock.

        Stops at the first live record, so a map full of live clients costs
        one comparison rather than a scan. Live records are never dropped.
        """
        evicted = 0
        while self._records:
            oldest = next(iter(self._records.values()))
            if now <= oldest.reset_at:
                break
            self._records.popitem(last=False)
            evicted += 1
        logger.debug("Evicted %d stale rate-limit records", evicted)


def client_identifier(headers: Mapping[str, str], peer: str | None) -> str:
    """Derive the rate-limit partition key from proxy headers or the peer."""
    forwarded = headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    real_ip = (headers.get("x-real-ip") or "").strip()
    if real_ip:
        return real_ip
    if peer:
        return peer
    return UNKNOWN_CLIENT
