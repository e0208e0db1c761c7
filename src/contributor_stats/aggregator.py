"""Aggregate a user's commit contributions per repository across all years."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable
from dataclasses import replace

from .github.client import PAGE_SIZE, GitHubClient
from .models import AggregatedRepository, RepositoryContribution, UserContributions
from .ranges import DateRange, split_range

logger = logging.getLogger(__name__)

MAX_SPLIT_DEPTH = 4


def merge_contributions(
    contributions: Iterable[RepositoryContribution],
) -> list[RepositoryContribution]:
    """Sum contribution counts per ``nameWithOwner``.

    The first record seen for a repository supplies its metadata; output
    keeps first-seen order.
    """
    merged: dict[str, RepositoryContribution] = {}
    for contribution in contributions:
        key = contribution.name_with_owner
        existing = merged.get(key)
        if existing is None:
            merged[key] = contribution
        else:
            merged[key] = replace(
                existing,
                contribution_count=existing.contribution_count + contribution.contribution_count,
            )
    return list(merged.values())


class ContributionAggregator:
    def __init__(self, client: GitHubClient, max_depth: int = MAX_SPLIT_DEPTH) -> None:
        self._client = client
        self._max_depth = max_depth

    async def fetch_range(
        self, username: str, date_range: DateRange, depth: int = 0
    ) -> list[RepositoryContribution]:
        """Fetch one window, refining it while the page cap is hit.

        A window that still overflows once the depth budget is spent, or that
        cannot be split any further, is returned truncated.
        """
        contributions = await self._client.fetch_contributions_by_repository(username, date_range)
        if len(contributions) < PAGE_SIZE:
            return contributions

        if depth >= self._max_depth:
            logger.warning(
                "Split budget exhausted for %s in %s; keeping %d repositories (partial data)",
                username,
                date_range,
                len(contributions),
            )
            return contributions

        sub_ranges = split_range(date_range)
        if len(sub_ranges) == 1:
            logger.warning(
                "Window %s cannot be split further for %s; keeping %d repositories (partial data)",
                date_range,
                username,
                len(contributions),
            )
            return contributions

        logger.debug("Splitting %s into %d windows (depth %d)", date_range, len(sub_ranges), depth + 1)
        results = await asyncio.gather(
            *(self.fetch_range(username, sub_range, depth + 1) for sub_range in sub_ranges)
        )
        return [contribution for chunk in results for contribution in chunk]

    async def fetch_year(self, username: str, year: int) -> list[RepositoryContribution]:
        return merge_contributions(await self.fetch_range(username, DateRange.for_year(year)))

    async def fetch_all(self, username: str) -> UserContributions:
        identity = await self._client.fetch_user_identity(username)
        yearly = await asyncio.gather(
            *(self.fetch_year(username, year) for year in identity.contribution_years)
        )
        merged = merge_contributions(c for year in yearly for c in year)
        logger.info(
            "Found %d repositories across %d contribution years",
            len(merged),
            len(identity.contribution_years),
        )
        return UserContributions(
            id=identity.id,
            name=identity.name,
            repositories=[
                AggregatedRepository(c.repository, c.contribution_count) for c in merged
            ],
        )

    async def fetch_recent(self, username: str) -> UserContributions:
        """Single-query variant: repositories only, without commit counts."""
        user = await self._client.fetch_repositories_contributed_to(username)
        logger.info("Found %d repositories", len(user.repositories))
        return user
