"""Tests for the rate limit monitor."""

from __future__ import annotations

import time

import pytest

from contributor_stats.github.rate_limit import (
    FALLBACK_WAIT,
    RateLimitMonitor,
    RateLimitSnapshot,
    backoff_delay,
)


def _make_snapshot(remaining: str | None = None, reset: str | None = None) -> RateLimitSnapshot:
    headers = {}
    if remaining is not None:
        headers["X-RateLimit-Remaining"] = remaining
    if reset is not None:
        headers["X-RateLimit-Reset"] = reset
    return RateLimitSnapshot.from_headers(headers)


class RecordingSleep:
    def __init__(self):
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


def test_snapshot_reads_all_headers():
    snapshot = RateLimitSnapshot.from_headers(
        {
            "X-RateLimit-Limit": "5000",
            "X-RateLimit-Remaining": "4999",
            "X-RateLimit-Reset": "1700000000",
            "Retry-After": "30",
        }
    )
    assert snapshot == RateLimitSnapshot(limit=5000, remaining=4999, reset=1700000000, retry_after=30)
    assert snapshot.reset_iso == "2023-11-14T22:13:20+00:00"


def test_snapshot_ignores_malformed_headers():
    snapshot = RateLimitSnapshot.from_headers({"X-RateLimit-Remaining": "lots"})
    assert snapshot.remaining is None
    assert snapshot.reset_iso is None


def test_monitor_tracks_latest_snapshot():
    monitor = RateLimitMonitor()
    monitor.update(_make_snapshot(remaining="100", reset=str(int(time.time()) + 3600)))
    assert monitor._remaining == 100
    assert monitor._reset_at is not None


def test_monitor_ignores_snapshot_without_quota():
    monitor = RateLimitMonitor()
    monitor.update(_make_snapshot())
    assert monitor._remaining is None
    assert monitor._reset_at is None


@pytest.mark.asyncio
async def test_plenty_of_quota_does_not_pause():
    """Fifty calls left against a threshold of ten: the next call goes out immediately."""
    sleep = RecordingSleep()
    monitor = RateLimitMonitor(threshold=10, sleep=sleep)
    monitor.update(_make_snapshot(remaining="50", reset=str(int(time.time()) + 3600)))
    await monitor.wait_if_needed()
    assert sleep.calls == []


@pytest.mark.asyncio
async def test_fresh_monitor_does_not_pause():
    """Before any contributors response arrives there is nothing to wait for."""
    sleep = RecordingSleep()
    monitor = RateLimitMonitor(sleep=sleep)
    await monitor.wait_if_needed()
    assert sleep.calls == []


@pytest.mark.asyncio
async def test_low_quota_pauses_until_reset():
    sleep = RecordingSleep()
    monitor = RateLimitMonitor(threshold=1, clock=lambda: 1000.0, sleep=sleep)
    monitor.update(_make_snapshot(remaining="1", reset="1005"))
    await monitor.wait_if_needed()
    assert sleep.calls == [6.0]


@pytest.mark.asyncio
async def test_stale_reset_pauses_only_for_the_buffer():
    sleep = RecordingSleep()
    monitor = RateLimitMonitor(clock=lambda: 1000.0, sleep=sleep)
    monitor.update(_make_snapshot(remaining="0", reset="990"))
    await monitor.wait_if_needed()
    assert sleep.calls == [1.0]


def test_backoff_prefers_retry_after():
    snapshot = RateLimitSnapshot(retry_after=2, reset=5000)
    assert backoff_delay(snapshot, now=1000.0) == 3.0


def test_backoff_uses_reset_without_retry_after():
    assert backoff_delay(RateLimitSnapshot(reset=1010), now=1000.0) == 11.0


def test_backoff_falls_back_to_a_minute():
    assert backoff_delay(RateLimitSnapshot(), now=1000.0) == FALLBACK_WAIT == 60.0
