"""Data models for contributor-stats."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class Rank(str, Enum):
    """Tier label, declared lowest first so declaration order is rank order."""

    B = "B"
    B_PLUS = "B+"
    A = "A"
    A_PLUS = "A+"
    S = "S"
    S_PLUS = "S+"

    @property
    def ordinal(self) -> int:
        return list(type(self)).index(self)

    def __str__(self) -> str:
        return self.value

    def __lt__(self, other):
        if isinstance(other, Rank):
            return self.ordinal < other.ordinal
        return NotImplemented

    def __le__(self, other):
        if isinstance(other, Rank):
            return self.ordinal <= other.ordinal
        return NotImplemented

    def __gt__(self, other):
        if isinstance(other, Rank):
            return self.ordinal > other.ordinal
        return NotImplemented

    def __ge__(self, other):
        if isinstance(other, Rank):
            return self.ordinal >= other.ordinal
        return NotImplemented

    __hash__ = str.__hash__


class OrderBy(str, Enum):
    STARS = "stars"
    RANK = "rank"


@dataclass(frozen=True)
class Repository:
    name_with_owner: str
    name: str
    url: str
    stargazer_count: int
    owner_id: str
    owner_avatar_url: str
    is_in_organization: bool = False
    homepage_url: str | None = None
    open_graph_image_url: str | None = None
    commit_count: int | None = None


@dataclass(frozen=True)
class RepositoryContribution:
    """The user's commits to one repository within one contribution window."""

    repository: Repository
    contribution_count: int

    @property
    def name_with_owner(self) -> str:
        return self.repository.name_with_owner


@dataclass(frozen=True)
class AggregatedRepository:
    repository: Repository
    num_of_my_contributions: int | None = None

    @property
    def name_with_owner(self) -> str:
        return self.repository.name_with_owner


@dataclass(frozen=True)
class UserIdentity:
    id: str
    name: str | None
    contribution_years: list[int] = field(default_factory=list)


@dataclass(frozen=True)
class UserContributions:
    id: str
    name: str | None
    repositories: list[AggregatedRepository] = field(default_factory=list)


@dataclass(frozen=True)
class ContributorRecord:
    login: str
    contributions: int
    type: str = "User"

    @property
    def is_human(self) -> bool:
        return self.type == "User"

    @classmethod
    def from_api(cls, data: dict) -> ContributorRecord:
        return cls(
            login=data.get("login") or "",
            contributions=int(data.get("contributions") or 0),
            type=data.get("type") or "",
        )


@dataclass(frozen=True)
class ScoredRepositoryEntry:
    name: str
    name_with_owner: str
    image_reference: str
    url: str
    star_count: int
    rank: Rank
    contribution_rank: Rank | None = None


@dataclass(frozen=True)
class StatsReport:
    username: str
    name: str | None
    entries: list[ScoredRepositoryEntry] = field(default_factory=list)

    @property
    def display_name(self) -> str:
        return self.name or self.username


@dataclass
class StatsOptions:
    """Options consumed by the stats pipeline.

    ``limit`` <= 0 keeps every entry. ``hide`` holds star ranks to drop.
    ``combine_all_yearly_contributions`` selects the per-year aggregating
    fetch (with commit counts) over the single recent-repositories query.
    """

    hide_contributor_rank: bool = True
    order_by: OrderBy = OrderBy.STARS
    limit: int = -1
    hide: frozenset[Rank] = frozenset()
    combine_all_yearly_contributions: bool = True


@dataclass
class CardOptions:
    hide_title: bool = False
    hide_border: bool = False
    line_height: int = 25
    title_color: str | None = None
    icon_color: str | None = None
    text_color: str | None = None
    bg_color: str | None = None
    border_color: str | None = None
    border_radius: float = 4.5
    custom_title: str | None = None
    theme: str = "default"
    locale: str | None = None
    disable_animations: bool = False
