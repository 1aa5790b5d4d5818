"""In-memory habit entry store: one entry per (challenge, date)."""

from __future__ import annotations

from datetime import date
from typing import Iterable

from focuscore.models import HabitEntry, parse_date


class HabitEntryStore:
    def __init__(self) -> None:
        self._by_challenge: dict[str, dict[date, HabitEntry]] = {}

    def upsert(self, entry: HabitEntry) -> HabitEntry | None:
        """Insert or replace the entry for its date. Returns what it replaced."""
        day = parse_date(entry.entry_date)
        days = self._by_challenge.setdefault(entry.challenge_id, {})
        previous = days.get(day)
        days[day] = entry
        return previous

    def get(self, challenge_id: str, day: date | str) -> HabitEntry | None:
        return self._by_challenge.get(challenge_id, {}).get(parse_date(day))

    def remove(self, challenge_id: str, day: date | str) -> HabitEntry | None:
        return self._by_challenge.get(challenge_id, {}).pop(parse_date(day), None)

    def restore(self, challenge_id: str, day: date, previous: HabitEntry | None) -> None:
        """Undo an upsert: put back *previous*, or drop the date if there was none."""
        if previous is None:
            self.remove(challenge_id, day)
        else:
            self.upsert(previous)

    def entries_for(self, challenge_id: str) -> list[HabitEntry]:
        days = self._by_challenge.get(challenge_id, {})
        return [days[d] for d in sorted(days)]

    def replace_all(self, challenge_id: str, entries: Iterable[HabitEntry]) -> None:
        """Swap in a freshly loaded set of entries. Later rows win on duplicate dates."""
        self._by_challenge[challenge_id] = {}
        for entry in entries:
            if entry.challenge_id == challenge_id:
                self.upsert(entry)
