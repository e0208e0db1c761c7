"""Async GitHub client for the GraphQL and REST endpoints the stats need."""

from __future__ import annotations

import base64
import logging
from typing import Any

import httpx

from ..errors import NotFoundError, RateLimitExceeded, TransportError
from ..models import (
    AggregatedRepository,
    Repository,
    RepositoryContribution,
    UserContributions,
    UserIdentity,
)
from ..ranges import DateRange

logger = logging.getLogger(__name__)

API_URL = "https://api.github.com"
PAGE_SIZE = 100

_REPOSITORY_FIELDS = """
    owner { id avatarUrl }
    isInOrganization
    url
    homepageUrl
    name
    nameWithOwner
    stargazerCount
    openGraphImageUrl
    defaultBranchRef {
      target {
        ... on Commit { history { totalCount } }
      }
    }
"""

USER_IDENTITY_QUERY = """
query($login: String!) {
  user(login: $login) {
    id
    name
    contributionsCollection { contributionYears }
  }
}
"""

CONTRIBUTIONS_BY_REPOSITORY_QUERY = (
    """
query($login: String!, $from: DateTime!, $to: DateTime!) {
  user(login: $login) {
    contributionsCollection(from: $from, to: $to) {
      commitContributionsByRepository(maxRepositories: %d) {
        contributions { totalCount }
        repository { %s }
      }
    }
  }
}
"""
    % (PAGE_SIZE, _REPOSITORY_FIELDS)
)

REPOSITORIES_CONTRIBUTED_TO_QUERY = (
    """
query($login: String!) {
  user(login: $login) {
    id
    name
    repositoriesContributedTo(first: %d, contributionTypes: COMMIT) {
      totalCount
      nodes { %s }
    }
  }
}
"""
    % (PAGE_SIZE, _REPOSITORY_FIELDS)
)


def _parse_repository(node: dict[str, Any]) -> Repository:
    owner = node.get("owner") or {}
    target = (node.get("defaultBranchRef") or {}).get("target") or {}
    history = target.get("history") or {}
    return Repository(
        name_with_owner=node["nameWithOwner"],
        name=node["name"],
        url=node["url"],
        stargazer_count=node.get("stargazerCount") or 0,
        owner_id=owner.get("id", ""),
        owner_avatar_url=owner.get("avatarUrl", ""),
        is_in_organization=bool(node.get("isInOrganization")),
        homepage_url=node.get("homepageUrl") or None,
        open_graph_image_url=node.get("openGraphImageUrl"),
        commit_count=history.get("totalCount"),
    )


class GitHubClient:
    """Thin async wrapper over ``httpx.AsyncClient``.

    Use as ``async with GitHubClient(token) as client:``.
    """

    def __init__(
        self,
        token: str | None = None,
        base_url: str = API_URL,
        timeout: float = 30.0,
        user_agent: str = "contributor-stats",
    ) -> None:
        headers = {
            "Accept": "application/vnd.github+json",
            "User-Agent": user_agent,
        }
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(headers=headers, timeout=timeout)

    async def __aenter__(self) -> GitHubClient:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _send(self, method: str, url: str, **kwargs) -> httpx.Response:
        try:
            return await self._client.request(method, url, **kwargs)
        except httpx.HTTPError as exc:
            raise TransportError(f"Request to {url} failed: {exc}", url=url) from exc

    async def graphql(self, query: str, variables: dict[str, Any]) -> dict[str, Any]:
        url = f"{self._base_url}/graphql"
        resp = await self._send("POST", url, json={"query": query, "variables": variables})
        if resp.status_code != 200:
            raise TransportError(
                f"GitHub GraphQL request failed with status {resp.status_code}",
                status_code=resp.status_code,
                url=url,
                body=resp.text,
            )
        try:
            payload = resp.json()
        except ValueError as exc:
            raise TransportError(
                "GitHub GraphQL response is not valid JSON",
                status_code=resp.status_code,
                url=url,
                body=resp.text,
            ) from exc
        if not isinstance(payload, dict):
            raise TransportError(
                "Unexpected GitHub GraphQL response",
                status_code=resp.status_code,
                url=url,
                body=resp.text,
            )
        errors = payload.get("errors") or []
        for error in errors:
            if error.get("type") == "NOT_FOUND":
                raise NotFoundError(variables.get("login", ""))
            if error.get("type") == "RATE_LIMITED":
                raise RateLimitExceeded(error.get("message", "GraphQL rate limit exceeded"))
        if errors and not payload.get("data"):
            messages = " | ".join(e.get("message", "") for e in errors)
            raise TransportError(f"GitHub GraphQL errors: {messages}", status_code=200, url=url)
        return payload.get("data") or {}

    async def _user(self, query: str, username: str, **variables) -> dict[str, Any]:
        data = await self.graphql(query, {"login": username, **variables})
        user = data.get("user")
        if user is None:
            raise NotFoundError(username)
        return user

    def _malformed(self, what: str, exc: Exception) -> TransportError:
        return TransportError(
            f"Malformed GitHub response for {what}: {exc!r}",
            status_code=200,
            url=f"{self._base_url}/graphql",
        )

    async def fetch_user_identity(self, username: str) -> UserIdentity:
        user = await self._user(USER_IDENTITY_QUERY, username)
        try:
            years = user["contributionsCollection"]["contributionYears"]
            return UserIdentity(
                id=user["id"], name=user.get("name"), contribution_years=list(years)
            )
        except (KeyError, TypeError) as exc:
            raise self._malformed(f"user {username}", exc) from exc

    async def fetch_contributions_by_repository(
        self, username: str, date_range: DateRange
    ) -> list[RepositoryContribution]:
        """Commit contributions per repository in *date_range*, at most ``PAGE_SIZE``."""
        user = await self._user(
            CONTRIBUTIONS_BY_REPOSITORY_QUERY, username, **date_range.to_graphql()
        )
        try:
            items = user["contributionsCollection"]["commitContributionsByRepository"]
            return [
                RepositoryContribution(
                    repository=_parse_repository(item["repository"]),
                    contribution_count=item["contributions"]["totalCount"],
                )
                for item in items
            ]
        except (KeyError, TypeError) as exc:
            raise self._malformed(f"contributions of {username} in {date_range}", exc) from exc

    async def fetch_repositories_contributed_to(self, username: str) -> UserContributions:
        user = await self._user(REPOSITORIES_CONTRIBUTED_TO_QUERY, username)
        try:
            nodes = user["repositoriesContributedTo"]["nodes"]
            return UserContributions(
                id=user["id"],
                name=user.get("name"),
                repositories=[AggregatedRepository(_parse_repository(node)) for node in nodes],
            )
        except (KeyError, TypeError) as exc:
            raise self._malformed(f"repositories of {username}", exc) from exc

    def contributors_url(self, name_with_owner: str) -> str:
        return f"{self._base_url}/repos/{name_with_owner}/contributors?per_page={PAGE_SIZE}"

    async def get_contributors(self, name_with_owner: str) -> httpx.Response:
        """Raw contributors response; status and rate-limit handling is the caller's."""
        return await self._send("GET", self.contributors_url(name_with_owner))

    async def fetch_image_base64(self, url: str) -> str:
        resp = await self._send("GET", url, follow_redirects=True)
        if not resp.is_success:
            raise TransportError(
                f"Failed to fetch image {url}",
                status_code=resp.status_code,
                url=url,
                body=resp.text,
            )
        content_type = resp.headers.get("content-type", "image/png")
        subtype = content_type.split(";")[0].split("/")[-1] or "png"
        encoded = base64.b64encode(resp.content).decode("ascii")
        return f"data:image/{subtype};base64,{encoded}"
