"""Contribution windows and how to split them under the 100-repository cap."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from dateutil.relativedelta import relativedelta

# Smallest time unit between adjacent windows; GitHub DateTime has ms precision.
EPSILON = timedelta(milliseconds=1)

HALVING_MONTHS = 6


def _month_start(moment: datetime) -> datetime:
    return moment.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


def _format(moment: datetime) -> str:
    moment = moment.astimezone(timezone.utc)
    return moment.strftime("%Y-%m-%dT%H:%M:%S") + f".{moment.microsecond // 1000:03d}Z"


@dataclass(frozen=True)
class DateRange:
    """Closed interval ``[start, end]`` at millisecond precision."""

    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        if self.end < self.start:
            raise ValueError(f"range ends before it starts: {self.start} > {self.end}")

    @classmethod
    def for_year(cls, year: int) -> DateRange:
        start = datetime(year, 1, 1, tzinfo=timezone.utc)
        return cls(start, datetime(year + 1, 1, 1, tzinfo=timezone.utc) - EPSILON)

    @property
    def month_span(self) -> int:
        """Number of calendar months the range touches."""
        return (self.end.year - self.start.year) * 12 + self.end.month - self.start.month + 1

    @property
    def midpoint(self) -> datetime:
        return self.start + (self.end - self.start) / 2

    def to_graphql(self) -> dict[str, str]:
        return {"from": _format(self.start), "to": _format(self.end)}

    def __str__(self) -> str:
        return f"{_format(self.start)}..{_format(self.end)}"


def _nearest_month_start(moment: datetime) -> datetime:
    lower = _month_start(moment)
    upper = lower + relativedelta(months=1)
    return lower if moment - lower <= upper - moment else upper


def split_range(date_range: DateRange) -> list[DateRange]:
    """Partition *date_range* into contiguous, non-overlapping windows.

    Six or more months are halved at the month boundary nearest the midpoint,
    two to five months are cut into calendar months, and anything shorter is
    returned unchanged. Each window ends ``EPSILON`` before the next begins.
    """
    months = date_range.month_span

    if months >= HALVING_MONTHS:
        cut = _nearest_month_start(date_range.midpoint)
        return [
            DateRange(date_range.start, cut - EPSILON),
            DateRange(cut, date_range.end),
        ]

    if months >= 2:
        ranges = []
        start = date_range.start
        while True:
            next_start = _month_start(start) + relativedelta(months=1)
            if next_start > date_range.end:
                ranges.append(DateRange(start, date_range.end))
                return ranges
            ranges.append(DateRange(start, next_start - EPSILON))
            start = next_start

    return [date_range]
