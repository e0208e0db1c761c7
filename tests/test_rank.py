"""Tests for star and contribution ranks."""

from __future__ import annotations

import pytest

from contributor_stats.models import ContributorRecord, Rank
from contributor_stats.rank import contribution_percentile, contribution_rank, star_rank


def _humans(*counts: int) -> list[ContributorRecord]:
    return [ContributorRecord(login=f"user{i}", contributions=c) for i, c in enumerate(counts)]


@pytest.mark.parametrize(
    ("stars", "expected"),
    [
        (0, Rank.B),
        (49, Rank.B),
        (50, Rank.B_PLUS),
        (99, Rank.B_PLUS),
        (100, Rank.A),
        (499, Rank.A),
        (500, Rank.A_PLUS),
        (999, Rank.A_PLUS),
        (1000, Rank.S),
        (9999, Rank.S),
        (10000, Rank.S_PLUS),
    ],
)
def test_star_rank_thresholds(stars, expected):
    assert star_rank(stars) == expected


def test_user_trailing_one_of_ten_is_s_plus():
    contributors = _humans(1, 2, 3, 4, 5, 6, 7, 8, 9, 500)
    assert contribution_percentile(50, contributors) == 90
    assert contribution_rank(50, contributors) == Rank.S_PLUS


def test_user_trailing_everyone_is_b():
    contributors = _humans(*range(10, 20))
    assert contribution_percentile(1, contributors) == 0
    assert contribution_rank(1, contributors) == Rank.B


def test_ties_do_not_count_as_ahead():
    assert contribution_percentile(5, _humans(5, 5, 5, 5)) == 100


@pytest.mark.parametrize(
    ("ahead", "expected"),
    [(1, Rank.S_PLUS), (2, Rank.S), (3, Rank.A_PLUS), (4, Rank.A), (5, Rank.B_PLUS), (6, Rank.B)],
)
def test_contribution_rank_thresholds(ahead, expected):
    contributors = _humans(*([100] * ahead + [1] * (10 - ahead)))
    assert contribution_rank(50, contributors) == expected


def test_bots_are_excluded():
    contributors = [
        ContributorRecord("dependabot[bot]", 900, "Bot"),
        ContributorRecord("some-org", 800, "Organization"),
        ContributorRecord("alice", 10, "User"),
    ]
    assert contribution_percentile(20, contributors) == 100


def test_no_human_contributors_is_unavailable():
    bots = [ContributorRecord("renovate[bot]", 10, "Bot")]
    assert contribution_percentile(3, bots) is None
    assert contribution_rank(3, bots) is None
    assert contribution_rank(3, []) is None


def test_rank_order_is_total():
    assert Rank.B < Rank.B_PLUS < Rank.A < Rank.A_PLUS < Rank.S < Rank.S_PLUS
    assert max(Rank) == Rank.S_PLUS
    assert sorted([Rank.S, Rank.B, Rank.A_PLUS]) == [Rank.B, Rank.A_PLUS, Rank.S]


def test_rank_matches_its_label():
    assert Rank("S+") is Rank.S_PLUS
    assert str(Rank.A_PLUS) == "A+"
    assert "B+" in {Rank.B_PLUS}
