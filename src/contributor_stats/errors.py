"""Error taxonomy surfaced to the card boundary."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .github.rate_limit import RateLimitSnapshot

SECONDARY_ERROR_MESSAGES = {
    "USER_NOT_FOUND": "Make sure the provided username is not an organization",
    "RATE_LIMITED": "Please provide a GitHub token with a higher rate limit",
    "TRANSPORT": "GitHub could not be reached, please try again later",
    "UNKNOWN_LOCALE": "Language not found",
}


class ContributorStatsError(Exception):
    """Base class for failures rendered as an error card."""

    kind = "TRANSPORT"

    @property
    def secondary_message(self) -> str:
        return SECONDARY_ERROR_MESSAGES.get(self.kind, self.kind)


class NotFoundError(ContributorStatsError):
    kind = "USER_NOT_FOUND"

    def __init__(self, username: str) -> None:
        super().__init__(f"Could not resolve to a User with the login of '{username}'.")
        self.username = username


class TransportError(ContributorStatsError):
    """Non-2xx, non rate-limit response, or a transport-level failure."""

    kind = "TRANSPORT"

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        url: str | None = None,
        body: str = "",
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.url = url
        self.body = body


class FetchError(TransportError):
    """Failed contributor-list request, with the rate-limit headers seen."""

    def __init__(
        self,
        name_with_owner: str,
        status_code: int,
        url: str,
        rate_limit: RateLimitSnapshot,
        body: str = "",
    ) -> None:
        message = (
            f"Failed to fetch contributors for {name_with_owner}\n"
            f"  Status: {status_code}\n"
            f"  URL: {url}\n"
            f"  Rate-Limit-Limit: {rate_limit.limit}\n"
            f"  Rate-Limit-Remaining: {rate_limit.remaining}\n"
            f"  Rate-Limit-Reset: {rate_limit.reset} ({rate_limit.reset_iso or 'N/A'})\n"
            f"  Retry-After: {rate_limit.retry_after}\n"
            f"  Response body: {body}"
        )
        super().__init__(message, status_code=status_code, url=url, body=body)
        self.name_with_owner = name_with_owner
        self.rate_limit = rate_limit


class RateLimitExceeded(ContributorStatsError):
    kind = "RATE_LIMITED"


class UnknownLocaleError(ContributorStatsError):
    kind = "UNKNOWN_LOCALE"

    def __init__(self, locale: str) -> None:
        super().__init__("Something went wrong")
        self.locale = locale
