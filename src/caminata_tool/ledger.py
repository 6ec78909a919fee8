"""Registro de caminatas: altas, bajas, totales por rango e importación masiva."""

from __future__ import annotations

import logging
import math
import re
from collections.abc import Iterable, Iterator
from datetime import date, datetime
from typing import cast

import pandas as pd

from caminata_tool.errors import DuplicateIdError, InvalidWalkError, MalformedImportLineError
from caminata_tool.model import DateRange, ImportResult, WalkEntry

logger = logging.getLogger(__name__)

UNREALISTIC_DISTANCE_KM = 200.0

LEDGER_COLUMNS = ["id", "date", "distance_km", "notes", "logged_at"]

_DAY_RX = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_DISTANCE_RX = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?$")


class WalkLedger:
    """Insertion-ordered walk entries keyed by id.

    Not safe for concurrent writers; callers serialize mutations.
    """

    def __init__(self, entries: Iterable[WalkEntry] = ()) -> None:
        self._entries: dict[str, WalkEntry] = {}
        for entry in entries:
            self.add(entry)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[WalkEntry]:
        return iter(list(self._entries.values()))

    def __contains__(self, walk_id: object) -> bool:
        return walk_id in self._entries

    def get(self, walk_id: str) -> WalkEntry | None:
        return self._entries.get(walk_id)

    def entries(self) -> list[WalkEntry]:
        return list(self._entries.values())

    def add(self, entry: WalkEntry) -> None:
        """Append an entry.

        Raises:
            DuplicateIdError: If ``entry.id`` is already present.
        """
        if entry.id in self._entries:
            raise DuplicateIdError(entry.id)
        self._entries[entry.id] = entry
        logger.debug("Walk added id=%s date=%s km=%.2f", entry.id, entry.date, entry.distance_km)

    def upsert(self, entry: WalkEntry) -> bool:
        """Replace the entry with the same id, or append it. Returns True if replaced."""
        replaced = entry.id in self._entries
        self._entries[entry.id] = entry
        return replaced

    def remove(self, walk_id: str) -> bool:
        """Remove by id; a missing id is not an error. Returns True if removed."""
        removed = self._entries.pop(walk_id, None)
        if removed is not None:
            logger.debug("Walk removed id=%s", walk_id)
        return removed is not None

    def clear(self) -> None:
        self._entries.clear()

    def total_distance(self, date_range: DateRange | None = None) -> float:
        """Sum of distances, optionally restricted to an inclusive date range."""
        if date_range is None:
            return sum(e.distance_km for e in self._entries.values())
        return sum(e.distance_km for e in self.entries_in_range(date_range))

    def entries_in_range(self, date_range: DateRange) -> list[WalkEntry]:
        """Entries dated inside ``date_range`` (inclusive), in insertion order."""
        return [e for e in self._entries.values() if e.date in date_range]

    def distance_before(self, day: date) -> float:
        """Sum of distances for walks dated strictly before ``day``."""
        return sum(e.distance_km for e in self._entries.values() if e.date < day)

    def walk_dates(self) -> list[date]:
        return [e.date for e in self._entries.values()]

    def sorted_history(self) -> list[WalkEntry]:
        """Entries newest first, as shown in the history list."""
        return sorted(self._entries.values(), key=lambda e: e.date, reverse=True)

    def to_frame(self) -> pd.DataFrame:
        """Ledger as a DataFrame ordered by date."""
        return walks_to_frame(self._entries.values())

    def bulk_import(self, text: str, now: datetime) -> ImportResult:
        """Import ``date, distance[, notes]`` lines.

        Bad lines are collected as errors and skipped; the rest are added with
        synthesized ids.
        """
        entries, errors = parse_bulk_lines(text, now, taken_ids=set(self._entries))
        for entry in entries:
            self.add(entry)
        if errors:
            logger.warning("Bulk import skipped %s line(s)", len(errors))
        logger.info("Bulk import added %s walk(s)", len(entries))
        return ImportResult(imported_count=len(entries), errors=errors)


def walks_to_frame(entries: Iterable[WalkEntry]) -> pd.DataFrame:
    """Convert walk entries to a DataFrame sorted by date."""
    rows = [
        {
            "id": e.id,
            "date": e.date,
            "distance_km": e.distance_km,
            "notes": e.notes,
            "logged_at": e.logged_at,
        }
        for e in entries
    ]
    df = pd.DataFrame(rows, columns=LEDGER_COLUMNS)
    if df.empty:
        return df
    return df.sort_values("date", kind="stable").reset_index(drop=True)


def parse_day(value: object) -> date | None:
    """Parse a ``YYYY-MM-DD`` string into a date; None if invalid."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None
    text = value.strip()
    if not _DAY_RX.match(text):
        return None
    parsed = pd.to_datetime(text, errors="coerce")
    if pd.isna(parsed):
        return None
    return cast(date, parsed.date())


def parse_distance(value: object) -> float | None:
    """Parse a non-negative finite distance; None if invalid.

    Strings must be plain decimals (``1_000`` and ``0x10`` are rejected).
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, str) and not _DISTANCE_RX.match(value.strip()):
        return None
    try:
        distance = float(cast(str, value))
    except (TypeError, ValueError):
        return None
    if not math.isfinite(distance) or distance < 0:
        return None
    return distance


def parse_bulk_lines(
    text: str, now: datetime, *, taken_ids: set[str] | None = None
) -> tuple[list[WalkEntry], list[MalformedImportLineError]]:
    """Parse bulk import text into entries and per-line errors.

    Line numbers are 1-based and count blank lines, which are skipped.
    """
    taken = set(taken_ids or ())
    base_id = str(int(now.timestamp() * 1000))
    entries: list[WalkEntry] = []
    errors: list[MalformedImportLineError] = []

    for index, raw_line in enumerate(text.splitlines()):
        line = raw_line.strip()
        if not line:
            continue
        line_number = index + 1
        parts = [p.strip() for p in line.split(",")]
        if len(parts) < 2:
            errors.append(MalformedImportLineError(line_number, "Invalid format"))
            continue

        day = parse_day(parts[0])
        distance = parse_distance(parts[1])
        if day is None or distance is None:
            errors.append(MalformedImportLineError(line_number, "Invalid date or distance"))
            continue

        walk_id = _unique_id(f"{base_id}_{index}", taken)
        taken.add(walk_id)
        notes = ", ".join(parts[2:]) if len(parts) > 2 else ""
        try:
            entries.append(
                WalkEntry(
                    id=walk_id,
                    date=day,
                    distance_km=distance,
                    notes=notes,
                    logged_at=now,
                )
            )
        except InvalidWalkError as exc:
            errors.append(MalformedImportLineError(line_number, str(exc)))
    return entries, errors


def _unique_id(candidate: str, taken: set[str]) -> str:
    if candidate not in taken:
        return candidate
    suffix = 1
    while f"{candidate}-{suffix}" in taken:
        suffix += 1
    return f"{candidate}-{suffix}"


def walk_warnings(entry: WalkEntry, today: date) -> list[str]:
    """Soft warnings shown to the user; never enforced by the ledger."""
    warnings: list[str] = []
    if entry.distance_km > UNREALISTIC_DISTANCE_KM:
        warnings.append(f"Distance seems unrealistic (>{UNREALISTIC_DISTANCE_KM:.0f} km)")
    if entry.date > today:
        warnings.append("Date is in the future")
    return warnings
