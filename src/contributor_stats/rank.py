"""Star-count and contribution-percentile ranks."""

from __future__ import annotations

from collections.abc import Iterable

from .models import ContributorRecord, Rank

STAR_THRESHOLDS = (
    (10000, Rank.S_PLUS),
    (1000, Rank.S),
    (500, Rank.A_PLUS),
    (100, Rank.A),
    (50, Rank.B_PLUS),
)

PERCENTILE_THRESHOLDS = (
    (90, Rank.S_PLUS),
    (80, Rank.S),
    (70, Rank.A_PLUS),
    (60, Rank.A),
    (50, Rank.B_PLUS),
)


def _rank_for(value: float, thresholds) -> Rank:
    for minimum, rank in thresholds:
        if value >= minimum:
            return rank
    return Rank.B


def star_rank(star_count: int) -> Rank:
    return _rank_for(star_count, STAR_THRESHOLDS)


def contribution_percentile(
    commit_count: int, contributors: Iterable[ContributorRecord]
) -> float | None:
    """Share of human contributors the user does not trail, in percent.

    Returns ``None`` when the repository has no human contributors.
    """
    humans = [c for c in contributors if c.is_human]
    if not humans:
        return None
    ahead = sum(1 for c in humans if c.contributions > commit_count)
    return (len(humans) - ahead) * 100 / len(humans)


def contribution_rank(
    commit_count: int, contributors: Iterable[ContributorRecord]
) -> Rank | None:
    percentile = contribution_percentile(commit_count, contributors)
    if percentile is None:
        return None
    return _rank_for(percentile, PERCENTILE_THRESHOLDS)
