"""Rate-limit bookkeeping for the GitHub REST contributors endpoint."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from datetime import datetime, timezone

logger = logging.getLogger(__name__)

Clock = Callable[[], float]
Sleep = Callable[[float], Awaitable[None]]

RESET_BUFFER = 1.0
FALLBACK_WAIT = 60.0
UNAUTHENTICATED_LIMIT = 60


def _int_header(headers: Mapping[str, str], name: str) -> int | None:
    value = headers.get(name)
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return None


@dataclass(frozen=True)
class RateLimitSnapshot:
    """The rate-limit headers of a single response."""

    limit: int | None = None
    remaining: int | None = None
    reset: int | None = None
    retry_after: int | None = None

    @classmethod
    def from_headers(cls, headers: Mapping[str, str]) -> RateLimitSnapshot:
        return cls(
            limit=_int_header(headers, "X-RateLimit-Limit"),
            remaining=_int_header(headers, "X-RateLimit-Remaining"),
            reset=_int_header(headers, "X-RateLimit-Reset"),
            retry_after=_int_header(headers, "Retry-After"),
        )

    @property
    def reset_iso(self) -> str | None:
        if self.reset is None:
            return None
        return datetime.fromtimestamp(self.reset, tz=timezone.utc).isoformat()


@dataclass
class RateLimitState:
    """Counters shared by every contributor request of one process."""

    request_count: int = 0
    last_request_time: float = 0.0


def backoff_delay(snapshot: RateLimitSnapshot, now: float) -> float:
    """Seconds to wait after a 403/429 response."""
    if snapshot.retry_after is not None:
        return snapshot.retry_after + RESET_BUFFER
    if snapshot.reset is not None:
        return max(0.0, snapshot.reset - now) + RESET_BUFFER
    return FALLBACK_WAIT


class RateLimitMonitor:
    """Tracks the primary quota and waits for its reset when nearly exhausted."""

    def __init__(
        self,
        threshold: int = 1,
        clock: Clock = time.time,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._threshold = threshold
        self._clock = clock
        self._sleep = sleep
        self._remaining: int | None = None
        self._reset_at: float | None = None

    def update(self, snapshot: RateLimitSnapshot) -> None:
        self._remaining = snapshot.remaining
        self._reset_at = float(snapshot.reset) if snapshot.reset is not None else None

    async def wait_if_needed(self) -> None:
        if self._remaining is None or self._reset_at is None:
            return
        if self._remaining > self._threshold:
            return
        wait = max(0.0, self._reset_at - self._clock()) + RESET_BUFFER
        logger.info(
            "Primary rate limit almost exhausted (%d remaining). Waiting %ds until reset...",
            self._remaining,
            round(wait),
        )
        await self._sleep(wait)
