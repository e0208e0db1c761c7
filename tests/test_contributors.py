"""Tests for the throttled contributor fetcher."""

from __future__ import annotations

import asyncio
import logging

import httpx
import pytest

from contributor_stats.errors import FetchError, RateLimitExceeded, TransportError
from contributor_stats.github.contributors import ContributorFetcher
from contributor_stats.github.rate_limit import RateLimitState
from contributor_stats.models import ContributorRecord

CONTRIBUTORS = [
    {"login": "alice", "contributions": 40, "type": "User"},
    {"login": "dependabot[bot]", "contributions": 12, "type": "Bot"},
]


class FakeClock:
    def __init__(self, now: float = 1_000_000.0):
        self.now = now
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


class ScriptedClient:
    """Returns scripted responses and records when each request was issued."""

    def __init__(self, clock: FakeClock, responses: list[httpx.Response]):
        self.clock = clock
        self.responses = list(responses)
        self.calls: list[tuple[str, float]] = []
        self.in_flight = 0
        self.max_in_flight = 0

    def contributors_url(self, name_with_owner: str) -> str:
        return f"https://api.github.com/repos/{name_with_owner}/contributors?per_page=100"

    async def get_contributors(self, name_with_owner: str) -> httpx.Response:
        self.calls.append((name_with_owner, self.clock.now))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        await asyncio.sleep(0)
        self.in_flight -= 1
        return self.responses.pop(0)


def _ok(headers: dict | None = None, json=CONTRIBUTORS) -> httpx.Response:
    base = {"X-RateLimit-Limit": "5000", "X-RateLimit-Remaining": "4000", "X-RateLimit-Reset": "0"}
    base.update(headers or {})
    return httpx.Response(200, json=json, headers=base)


def _make_fetcher(clock: FakeClock, responses, **kwargs) -> tuple[ContributorFetcher, ScriptedClient]:
    client = ScriptedClient(clock, responses)
    fetcher = ContributorFetcher(client, clock=clock, sleep=clock.sleep, **kwargs)
    return fetcher, client


@pytest.mark.asyncio
async def test_fetch_parses_contributor_records():
    clock = FakeClock()
    fetcher, client = _make_fetcher(clock, [_ok()])

    records = await fetcher.fetch("alice", "org/repo")

    assert records == [
        ContributorRecord("alice", 40, "User"),
        ContributorRecord("dependabot[bot]", 12, "Bot"),
    ]
    assert client.calls == [("org/repo", clock.now)]
    assert fetcher.state.request_count == 1


@pytest.mark.asyncio
async def test_retry_after_is_honoured_once():
    clock = FakeClock()
    limited = httpx.Response(429, headers={"Retry-After": "2"})
    fetcher, client = _make_fetcher(clock, [limited, _ok()])

    records = await fetcher.fetch("alice", "org/repo")

    assert len(records) == 2
    assert len(client.calls) == 2
    first_at, second_at = client.calls[0][1], client.calls[1][1]
    assert second_at - first_at >= 2
    assert 3.0 in clock.sleeps
    # the retried request is not counted twice
    assert fetcher.state.request_count == 1


@pytest.mark.asyncio
async def test_forbidden_waits_for_reset_header():
    clock = FakeClock()
    reset = int(clock.now) + 10
    limited = httpx.Response(403, headers={"X-RateLimit-Remaining": "0", "X-RateLimit-Reset": str(reset)})
    fetcher, client = _make_fetcher(clock, [limited, _ok()])

    await fetcher.fetch("alice", "org/repo")

    assert clock.sleeps[0] == 11.0
    assert client.calls[1][1] >= reset


@pytest.mark.asyncio
async def test_rate_limit_without_headers_waits_a_minute():
    clock = FakeClock()
    fetcher, client = _make_fetcher(clock, [httpx.Response(429), _ok()])

    await fetcher.fetch("alice", "org/repo")

    assert clock.sleeps[0] == 60.0
    assert len(client.calls) == 2


@pytest.mark.asyncio
async def test_repeated_rate_limits_keep_retrying():
    clock = FakeClock()
    limited = [httpx.Response(429, headers={"Retry-After": "1"}) for _ in range(5)]
    fetcher, client = _make_fetcher(clock, [*limited, _ok()])

    await fetcher.fetch("alice", "org/repo")

    assert len(client.calls) == 6


@pytest.mark.asyncio
async def test_max_retries_raises_rate_limit_exceeded():
    clock = FakeClock()
    limited = [httpx.Response(429, headers={"Retry-After": "1"}) for _ in range(3)]
    fetcher, client = _make_fetcher(clock, limited, max_retries=2)

    with pytest.raises(RateLimitExceeded):
        await fetcher.fetch("alice", "org/repo")
    assert len(client.calls) == 3


@pytest.mark.asyncio
async def test_exhausted_quota_delays_next_call_until_reset():
    clock = FakeClock()
    reset = int(clock.now) + 5
    nearly_out = _ok({"X-RateLimit-Remaining": "0", "X-RateLimit-Reset": str(reset)})
    fetcher, client = _make_fetcher(clock, [nearly_out, _ok()])

    await fetcher.fetch("alice", "org/one")
    await fetcher.fetch("alice", "org/two")

    assert client.calls[1][1] >= reset


@pytest.mark.asyncio
async def test_consecutive_requests_are_spaced():
    clock = FakeClock()
    fetcher, client = _make_fetcher(clock, [_ok(), _ok()])

    await fetcher.fetch("alice", "org/one")
    await fetcher.fetch("alice", "org/two")

    assert clock.sleeps == [pytest.approx(0.1)]
    assert client.calls[1][1] - client.calls[0][1] == pytest.approx(0.1)


@pytest.mark.asyncio
async def test_concurrent_callers_are_serialized():
    clock = FakeClock()
    fetcher, client = _make_fetcher(clock, [_ok(), _ok(), _ok()])

    await asyncio.gather(*(fetcher.fetch("alice", f"org/r{i}") for i in range(3)))

    assert client.max_in_flight == 1
    assert fetcher.state.request_count == 3


@pytest.mark.asyncio
async def test_other_failures_raise_fetch_error_without_retry():
    clock = FakeClock()
    failure = httpx.Response(
        404,
        text='{"message": "Not Found"}',
        headers={"X-RateLimit-Limit": "5000", "X-RateLimit-Remaining": "4999"},
    )
    fetcher, client = _make_fetcher(clock, [failure])

    with pytest.raises(FetchError) as exc_info:
        await fetcher.fetch("alice", "org/gone")

    err = exc_info.value
    assert err.status_code == 404
    assert err.url == "https://api.github.com/repos/org/gone/contributors?per_page=100"
    assert err.rate_limit.limit == 5000
    assert "Not Found" in err.body
    assert "org/gone" in str(err)
    assert len(client.calls) == 1


@pytest.mark.asyncio
async def test_empty_repository_has_no_contributors():
    clock = FakeClock()
    fetcher, _ = _make_fetcher(clock, [httpx.Response(204)])
    assert await fetcher.fetch("alice", "org/empty") == []


@pytest.mark.asyncio
async def test_unauthenticated_quota_is_reported(caplog):
    clock = FakeClock()
    fetcher, _ = _make_fetcher(clock, [_ok({"X-RateLimit-Limit": "60", "X-RateLimit-Remaining": "59"})])

    with caplog.at_level(logging.INFO, logger="contributor_stats.github.contributors"):
        await fetcher.fetch("alice", "org/repo")

    warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
    assert len(warnings) == 1
    assert "60/hour" in warnings[0].getMessage()


@pytest.mark.asyncio
async def test_shared_state_continues_counting():
    clock = FakeClock()
    state = RateLimitState(request_count=9)
    fetcher, _ = _make_fetcher(clock, [_ok()], state=state)

    await fetcher.fetch("alice", "org/repo")

    assert state.request_count == 10
    assert state.last_request_time == clock.now


@pytest.mark.asyncio
async def test_malformed_body_raises_transport_error():
    clock = FakeClock()
    garbled = httpx.Response(200, text="<html>oops</html>", headers={"X-RateLimit-Remaining": "4000"})
    fetcher, _ = _make_fetcher(clock, [garbled])

    with pytest.raises(TransportError) as exc_info:
        await fetcher.fetch("alice", "org/repo")

    assert exc_info.value.status_code == 200
    assert exc_info.value.body == "<html>oops</html>"
    assert exc_info.value.url.endswith("/repos/org/repo/contributors?per_page=100")


@pytest.mark.asyncio
async def test_forbidden_with_quota_left_is_flagged(caplog):
    clock = FakeClock()
    forbidden = httpx.Response(
        403,
        text='{"message": "contributor list is too large"}',
        headers={"X-RateLimit-Remaining": "4000"},
    )
    fetcher, client = _make_fetcher(clock, [forbidden, _ok()])

    with caplog.at_level(logging.INFO, logger="contributor_stats.github.contributors"):
        await fetcher.fetch("alice", "org/huge")

    warnings = [r.getMessage() for r in caplog.records if r.levelno == logging.WARNING]
    assert len(warnings) == 1
    assert "may not be a rate limit" in warnings[0]
    assert "too large" in warnings[0]
    assert len(client.calls) == 2


@pytest.mark.asyncio
async def test_exhausted_forbidden_is_not_flagged(caplog):
    clock = FakeClock()
    limited = httpx.Response(
        403, headers={"X-RateLimit-Remaining": "0", "X-RateLimit-Reset": str(int(clock.now) + 5)}
    )
    fetcher, _ = _make_fetcher(clock, [limited, _ok()])

    with caplog.at_level(logging.WARNING, logger="contributor_stats.github.contributors"):
        await fetcher.fetch("alice", "org/repo")

    assert not [r for r in caplog.records if r.levelno == logging.WARNING]
