"""Score, filter, sort and limit the repositories a user contributed to."""

from __future__ import annotations

import logging
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from .aggregator import ContributionAggregator
from .github.client import GitHubClient
from .github.contributors import ContributorFetcher
from .models import (
    AggregatedRepository,
    ContributorRecord,
    OrderBy,
    ScoredRepositoryEntry,
    StatsOptions,
    StatsReport,
)
from .rank import contribution_rank, star_rank

logger = logging.getLogger(__name__)

AVATAR_SIZE = 50


def avatar_url(url: str, size: int = AVATAR_SIZE) -> str:
    parts = urlsplit(url)
    query = parse_qsl(parts.query)
    query.append(("s", str(size)))
    return urlunsplit(parts._replace(query=urlencode(query)))


def _rank_sort_key(entry: ScoredRepositoryEntry) -> tuple[int, int]:
    contribution = entry.contribution_rank.ordinal if entry.contribution_rank is not None else -1
    return contribution, entry.rank.ordinal


def sort_entries(
    entries: list[ScoredRepositoryEntry], order_by: OrderBy
) -> list[ScoredRepositoryEntry]:
    """Descending sort; ties keep their fetch order."""
    if order_by == OrderBy.RANK:
        return sorted(entries, key=_rank_sort_key, reverse=True)
    return sorted(entries, key=lambda e: e.star_count, reverse=True)


def _score(
    repository: AggregatedRepository, contributors: list[ContributorRecord] | None
) -> ScoredRepositoryEntry:
    repo = repository.repository
    rank_of_contribution = None
    if contributors is not None and repository.num_of_my_contributions is not None:
        rank_of_contribution = contribution_rank(repository.num_of_my_contributions, contributors)
    return ScoredRepositoryEntry(
        name=repo.name,
        name_with_owner=repo.name_with_owner,
        image_reference=avatar_url(repo.owner_avatar_url),
        url=repo.url,
        star_count=repo.stargazer_count,
        rank=star_rank(repo.stargazer_count),
        contribution_rank=rank_of_contribution,
    )


class StatsPipeline:
    def __init__(
        self,
        client: GitHubClient,
        contributor_fetcher: ContributorFetcher | None = None,
        aggregator: ContributionAggregator | None = None,
    ) -> None:
        self._client = client
        self._contributor_fetcher = contributor_fetcher
        self._aggregator = aggregator or ContributionAggregator(client)

    @property
    def contributor_fetcher(self) -> ContributorFetcher:
        if self._contributor_fetcher is None:
            self._contributor_fetcher = ContributorFetcher(self._client)
        return self._contributor_fetcher

    async def _fetch_contributors(
        self, username: str, repositories: list[AggregatedRepository]
    ) -> dict[str, list[ContributorRecord]]:
        # One at a time: every request draws on a single shared rate budget.
        pending = [r for r in repositories if r.num_of_my_contributions is not None]
        logger.info("Fetching contributors for %d repositories with rate limiting", len(pending))
        contributors = {}
        for repository in pending:
            contributors[repository.name_with_owner] = await self.contributor_fetcher.fetch(
                username, repository.name_with_owner
            )
        return contributors

    async def collect(self, username: str, options: StatsOptions) -> StatsReport:
        if options.combine_all_yearly_contributions:
            user = await self._aggregator.fetch_all(username)
        else:
            user = await self._aggregator.fetch_recent(username)

        # Star rank decides visibility, so hidden repositories are never looked up.
        repositories = [
            r for r in user.repositories if star_rank(r.repository.stargazer_count) not in options.hide
        ]
        if options.order_by == OrderBy.STARS:
            repositories.sort(key=lambda r: r.repository.stargazer_count, reverse=True)
            if options.limit > 0:
                repositories = repositories[: options.limit]

        contributors: dict[str, list[ContributorRecord]] = {}
        if not options.hide_contributor_rank:
            contributors = await self._fetch_contributors(username, repositories)

        entries = [_score(r, contributors.get(r.name_with_owner)) for r in repositories]
        entries = sort_entries(entries, options.order_by)
        if options.limit > 0:
            entries = entries[: options.limit]
        return StatsReport(username=username, name=user.name, entries=entries)

    async def run(self, username: str, options: StatsOptions) -> list[ScoredRepositoryEntry]:
        return (await self.collect(username, options)).entries
