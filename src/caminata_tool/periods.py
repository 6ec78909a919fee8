"""Resolución de períodos (todo / últimos N días / personalizado) y estadísticas."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import date, timedelta
from enum import Enum

from caminata_tool.errors import InvalidRangeError
from caminata_tool.model import DateRange, WalkEntry


class PeriodMode(str, Enum):
    """Date-range selector modes."""

    ALL = "all"
    LAST = "last"
    CUSTOM = "custom"


@dataclass(frozen=True)
class PeriodSelection:
    """A user's period choice before it is resolved to concrete dates."""

    mode: PeriodMode
    days: int | None = None
    start: date | None = None
    end: date | None = None


@dataclass(frozen=True)
class PeriodStats:
    """Totals for the walks inside a period."""

    total_km: float
    walk_count: int
    avg_km: float


def resolve_period(
    selection: PeriodSelection, *, today: date, walk_dates: Sequence[date] = ()
) -> DateRange:
    """Resolve a selection to an inclusive date range.

    Args:
        selection: Mode plus ``days`` (last) or ``start``/``end`` (custom).
        today: Current local date.
        walk_dates: Dates of every logged walk (used by ``all``).

    Returns:
        Inclusive date range.

    Raises:
        InvalidRangeError: If the custom range is incomplete or reversed, or
            ``days`` is missing or negative.
    """
    if selection.mode is PeriodMode.ALL:
        start = min(walk_dates) if walk_dates else today
        # future-dated walks can make min() exceed today
        return DateRange(start=min(start, today), end=today)

    if selection.mode is PeriodMode.LAST:
        if selection.days is None or selection.days < 0:
            raise InvalidRangeError(f"Number of days must be >= 0, got {selection.days}")
        return DateRange(start=today - timedelta(days=selection.days), end=today)

    if selection.start is None or selection.end is None:
        raise InvalidRangeError("Custom range needs both start and end dates")
    if selection.start > selection.end:
        raise InvalidRangeError(
            f"Start date {selection.start} must not be after end date {selection.end}"
        )
    return DateRange(start=selection.start, end=selection.end)


def period_stats(walks: Iterable[WalkEntry]) -> PeriodStats:
    """Total, count and per-walk average for a set of walks."""
    items = list(walks)
    total = sum(w.distance_km for w in items)
    count = len(items)
    return PeriodStats(total_km=total, walk_count=count, avg_km=total / count if count else 0.0)
