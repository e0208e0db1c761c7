"""Throttled, rate-limit aware contributor-list fetching."""

from __future__ import annotations

import asyncio
import logging
import time

from ..errors import FetchError, RateLimitExceeded, TransportError
from ..models import ContributorRecord
from .client import GitHubClient
from .rate_limit import (
    UNAUTHENTICATED_LIMIT,
    Clock,
    RateLimitMonitor,
    RateLimitSnapshot,
    RateLimitState,
    Sleep,
    backoff_delay,
)

logger = logging.getLogger(__name__)

# Secondary rate limit: roughly 900 REST points per minute.
MIN_REQUEST_INTERVAL = 0.1

PROGRESS_EVERY = 10


class ContributorFetcher:
    """Fetches ``/repos/{owner}/{repo}/contributors`` one request at a time.

    Requests are spaced at least ``min_interval`` seconds apart. A 403 or 429
    response is waited out (``Retry-After``, then ``X-RateLimit-Reset``, then
    60 seconds) and the request is re-issued; with ``max_retries=None`` this
    repeats until GitHub answers. Any other failure raises :class:`FetchError`.
    """

    def __init__(
        self,
        client: GitHubClient,
        state: RateLimitState | None = None,
        min_interval: float = MIN_REQUEST_INTERVAL,
        max_retries: int | None = None,
        clock: Clock = time.time,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._client = client
        self.state = state if state is not None else RateLimitState()
        self._min_interval = min_interval
        self._max_retries = max_retries
        self._clock = clock
        self._sleep = sleep
        self._monitor = RateLimitMonitor(threshold=1, clock=clock, sleep=sleep)
        self._lock = asyncio.Lock()

    async def _throttle(self) -> None:
        elapsed = self._clock() - self.state.last_request_time
        if elapsed < self._min_interval:
            await self._sleep(self._min_interval - elapsed)
        self.state.last_request_time = self._clock()
        self.state.request_count += 1
        if self.state.request_count % PROGRESS_EVERY == 0:
            logger.info(
                "Fetched contributors for %d repositories...", self.state.request_count
            )

    def _log_quota_window(self, snapshot: RateLimitSnapshot) -> None:
        logger.info(
            "Rate limit info: %s/%s remaining (resets at %s)",
            snapshot.remaining,
            snapshot.limit,
            snapshot.reset_iso or "N/A",
        )
        if snapshot.limit == UNAUTHENTICATED_LIMIT:
            logger.warning(
                "Rate limit is 60/hour, the unauthenticated tier. Expected 1000/hr "
                "for GITHUB_TOKEN or 5000/hr for a personal access token. The token "
                "may be missing, invalid, or not accepted for other owners' "
                "repositories; use a PAT with the 'public_repo' scope."
            )

    async def fetch(self, username: str, name_with_owner: str) -> list[ContributorRecord]:
        async with self._lock:
            return await self._fetch(name_with_owner)

    async def _fetch(self, name_with_owner: str) -> list[ContributorRecord]:
        retries = 0
        while True:
            await self._throttle()
            resp = await self._client.get_contributors(name_with_owner)
            snapshot = RateLimitSnapshot.from_headers(resp.headers)

            if resp.status_code in (403, 429):
                if self._max_retries is not None and retries >= self._max_retries:
                    raise RateLimitExceeded(
                        f"Rate limited fetching contributors for {name_with_owner} "
                        f"after {retries} retries"
                    )
                if (
                    resp.status_code == 403
                    and snapshot.retry_after is None
                    and (snapshot.remaining or 0) > 0
                ):
                    logger.warning(
                        "403 for %s with %s requests remaining and no Retry-After; "
                        "this may not be a rate limit (body: %s)",
                        name_with_owner,
                        snapshot.remaining,
                        resp.text[:200],
                    )
                wait = backoff_delay(snapshot, self._clock())
                logger.info(
                    "Rate limit hit for %s (status %d, retry-after=%s, reset=%s). "
                    "Waiting %ds...",
                    name_with_owner,
                    resp.status_code,
                    snapshot.retry_after,
                    snapshot.reset_iso or "N/A",
                    round(wait),
                )
                await self._sleep(wait)
                retries += 1
                self.state.request_count -= 1
                self.state.last_request_time = 0.0
                continue

            if self.state.request_count == 1:
                self._log_quota_window(snapshot)

            self._monitor.update(snapshot)
            await self._monitor.wait_if_needed()

            if resp.status_code == 204:
                return []
            if not resp.is_success:
                raise FetchError(
                    name_with_owner,
                    resp.status_code,
                    self._client.contributors_url(name_with_owner),
                    snapshot,
                    body=resp.text,
                )
            try:
                return [ContributorRecord.from_api(item) for item in resp.json()]
            except (ValueError, TypeError, AttributeError) as exc:
                raise TransportError(
                    f"Malformed contributors response for {name_with_owner}: {exc!r}",
                    status_code=resp.status_code,
                    url=self._client.contributors_url(name_with_owner),
                    body=resp.text,
                ) from exc
