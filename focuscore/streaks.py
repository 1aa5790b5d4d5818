"""Consecutive-day streaks over habit entries.

All arithmetic is on calendar dates, never on timestamps, so an entry logged
near midnight cannot drift a day when read back in another timezone.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta
from typing import Any, Iterable

from focuscore.models import HabitEntry, parse_date

logger = logging.getLogger(__name__)


def is_truthy(entry: HabitEntry) -> bool:
    """A day counts when its value is True or a number greater than zero."""
    if entry.value_boolean is not None:
        return entry.value_boolean is True
    return entry.value_numeric is not None and entry.value_numeric > 0


def dated_entries(entries: Iterable[HabitEntry]) -> list[tuple[date, HabitEntry]]:
    """Pair entries with their calendar date, skipping rows that can't be used."""
    out = []
    for entry in entries:
        try:
            day = parse_date(entry.entry_date)
        except ValueError:
            logger.warning("Skipping entry %s with unparseable date %r", entry.id, entry.entry_date)
            continue
        if not entry.has_value:
            logger.warning("Skipping entry %s on %s with no value", entry.id, day)
            continue
        out.append((day, entry))
    return out


def calculate_streak(entries: Iterable[HabitEntry], today: date | datetime | str) -> int:
    """Count consecutive truthy days walking back from *today*.

    Entries are walked newest first. An entry whose distance from today
    equals the current streak extends it when truthy and ends it when falsy;
    a distance beyond the streak means a day has no entry, which also ends
    it. Today itself counts as day 0.
    """
    today = parse_date(today)
    ordered = sorted(dated_entries(entries), key=lambda pair: pair[0], reverse=True)

    streak = 0
    for day, entry in ordered:
        days_diff = (today - day).days
        if days_diff == streak:
            if is_truthy(entry):
                streak += 1
            else:
                break
        elif days_diff > streak:
            break
    return streak


def streak_runs(entries: Iterable[HabitEntry]) -> list[dict[str, Any]]:
    """History of runs of consecutive truthy days, oldest first."""
    runs: list[dict[str, Any]] = []
    start: date | None = None
    prev: date | None = None
    length = 0

    for day, entry in sorted(dated_entries(entries), key=lambda pair: pair[0]):
        contiguous = prev is not None and day - prev == timedelta(days=1)
        if is_truthy(entry):
            if start is None or not contiguous:
                if length > 0:
                    runs.append({"start": start, "end": prev, "length": length})
                start, length = day, 0
            length += 1
            prev = day
        else:
            if length > 0:
                runs.append({"start": start, "end": prev, "length": length})
            start, prev, length = None, None, 0

    if length > 0:
        runs.append({"start": start, "end": prev, "length": length})
    return runs


def longest_streak(entries: Iterable[HabitEntry]) -> int:
    return max((run["length"] for run in streak_runs(entries)), default=0)
