"""Persistence collaborators for the engine.

``Backend`` is the contract the engine talks to. ``FileBackend`` keeps
everything in the workspace (JSON for logs, YAML for challenge records);
``InMemoryBackend`` is for tests and throwaway sessions.

Habit entries are upserted on (challengeId, entryDate): the last write wins.
Stored rows that fail to parse are skipped with a warning on load.
"""

from __future__ import annotations

import copy
import json
import logging
import uuid
from contextlib import contextmanager
from datetime import date, datetime
from pathlib import Path
from typing import Any, Iterator, Protocol

import yaml

from focuscore.errors import ChallengeNotFoundError, PersistenceError
from focuscore.fileio import locked, read_json, read_yaml, write_json_atomic, write_yaml_atomic
from focuscore.models import Challenge, FocusSession, HabitEntry, TimerState, parse_date
from focuscore.sessions import DateRange, SessionPredicate, SessionQuery
from focuscore.workspace import (
    challenges_path,
    entries_path,
    sessions_path,
    timer_state_path,
    workspace_root,
)

logger = logging.getLogger(__name__)


class Backend(Protocol):
    def submit_focus_session(self, session: FocusSession) -> None: ...

    def submit_habit_entry(
        self,
        challenge_id: str,
        entry_date: date,
        value: bool | float,
        note: str | None = None,
        logged_at: datetime | None = None,
    ) -> HabitEntry: ...

    def load_entries(self, challenge_id: str) -> list[HabitEntry]: ...

    def load_sessions(
        self,
        date_range: DateRange | None = None,
        predicate: SessionPredicate | None = None,
    ) -> list[FocusSession]: ...

    def load_challenge(self, challenge_id: str) -> Challenge: ...

    def save_challenge_streak(self, challenge_id: str, streak: int) -> None: ...

    def save_challenge(self, challenge: Challenge) -> None: ...

    def load_timer_state(self) -> TimerState: ...

    def save_timer_state(self, state: TimerState) -> None: ...


def _new_entry_id() -> str:
    return uuid.uuid4().hex


def _apply_streak(challenge: Challenge, streak: int) -> None:
    challenge.current_streak = streak
    challenge.best_streak = max(challenge.best_streak, streak)


# ── In-memory ─────────────────────────────────────────────────


class InMemoryBackend:
    def __init__(self, challenges: list[Challenge] | None = None) -> None:
        self.sessions: list[FocusSession] = []
        self.entries: dict[tuple[str, date], HabitEntry] = {}
        self.challenges: dict[str, Challenge] = {c.id: copy.deepcopy(c) for c in challenges or []}
        self.timer_state = TimerState()

    def submit_focus_session(self, session: FocusSession) -> None:
        self.sessions.append(copy.deepcopy(session))

    def submit_habit_entry(self, challenge_id, entry_date, value, note=None, logged_at=None) -> HabitEntry:
        day = parse_date(entry_date)
        existing = self.entries.get((challenge_id, day))
        entry = HabitEntry.from_value(
            id=existing.id if existing else _new_entry_id(),
            challenge_id=challenge_id,
            entry_date=day,
            value=value,
            note=note,
            logged_at=logged_at,
        )
        self.entries[(challenge_id, day)] = entry
        return copy.deepcopy(entry)

    def load_entries(self, challenge_id: str) -> list[HabitEntry]:
        rows = [e for (cid, _d), e in self.entries.items() if cid == challenge_id]
        return [copy.deepcopy(e) for e in sorted(rows, key=lambda e: e.entry_date)]

    def load_sessions(self, date_range=None, predicate=None) -> list[FocusSession]:
        return [copy.deepcopy(s) for s in SessionQuery(self.sessions, date_range, predicate)]

    def load_challenge(self, challenge_id: str) -> Challenge:
        if challenge_id not in self.challenges:
            raise ChallengeNotFoundError(challenge_id)
        return copy.deepcopy(self.challenges[challenge_id])

    def save_challenge_streak(self, challenge_id: str, streak: int) -> None:
        if challenge_id not in self.challenges:
            raise ChallengeNotFoundError(challenge_id)
        _apply_streak(self.challenges[challenge_id], streak)

    def save_challenge(self, challenge: Challenge) -> None:
        self.challenges[challenge.id] = copy.deepcopy(challenge)

    def load_timer_state(self) -> TimerState:
        return copy.deepcopy(self.timer_state)

    def save_timer_state(self, state: TimerState) -> None:
        self.timer_state = copy.deepcopy(state)


# ── Files ─────────────────────────────────────────────────────


@contextmanager
def _storage_errors(action: str) -> Iterator[None]:
    try:
        yield
    except (OSError, UnicodeDecodeError, json.JSONDecodeError, yaml.YAMLError) as e:
        raise PersistenceError(f"Failed to {action}: {e}") from e


def _read_rows(path: Path, key: str) -> list[dict[str, Any]]:
    """Rows stored under *key* in a JSON document. Non-mapping rows are skipped."""
    with _storage_errors(f"read {path.name}"):
        data = read_json(path)
    if not isinstance(data, dict):
        raise PersistenceError(f"Failed to read {path.name}: expected an object, got {type(data).__name__}")
    rows = data.get(key) or []
    if not isinstance(rows, list):
        raise PersistenceError(f"Failed to read {path.name}: {key!r} is not a list")
    kept = []
    for row in rows:
        if isinstance(row, dict):
            kept.append(row)
        else:
            logger.warning("Skipping malformed %s row in %s: %r", key, path.name, row)
    return kept


class FileBackend:
    """Workspace-backed persistence. Every write replaces its file atomically."""

    def __init__(self, root: Path | None = None) -> None:
        self.root = root if root is not None else workspace_root()

    # sessions

    def _read_session_rows(self) -> list[dict[str, Any]]:
        return _read_rows(sessions_path(self.root), "sessions")

    def submit_focus_session(self, session: FocusSession) -> None:
        path = sessions_path(self.root)
        with _storage_errors(f"write session {session.id}"), locked(path):
            rows = self._read_session_rows()
            rows.append(session.to_dict())
            write_json_atomic(path, {"sessions": rows})

    def load_sessions(self, date_range=None, predicate=None) -> list[FocusSession]:
        sessions = []
        for row in self._read_session_rows():
            try:
                sessions.append(FocusSession.from_dict(row))
            except (ValueError, TypeError) as e:
                logger.warning("Skipping malformed session row %r: %s", row.get("id"), e)
        return list(SessionQuery(sessions, date_range, predicate))

    # habit entries

    def _read_entry_rows(self) -> list[dict[str, Any]]:
        return _read_rows(entries_path(self.root), "entries")

    def submit_habit_entry(self, challenge_id, entry_date, value, note=None, logged_at=None) -> HabitEntry:
        day = parse_date(entry_date)
        path = entries_path(self.root)
        with _storage_errors(f"write entry for {challenge_id} on {day}"), locked(path):
            existing_id = None
            kept = []
            for row in self._read_entry_rows():
                same_key = (
                    row.get("challengeId", row.get("challenge_id")) == challenge_id
                    and str(row.get("entryDate", row.get("entry_date", "")))[:10] == day.isoformat()
                )
                if same_key:
                    existing_id = existing_id or row.get("id")
                else:
                    kept.append(row)
            entry = HabitEntry.from_value(
                id=existing_id or _new_entry_id(),
                challenge_id=challenge_id,
                entry_date=day,
                value=value,
                note=note,
                logged_at=logged_at,
            )
            kept.append(entry.to_dict())
            write_json_atomic(path, {"entries": kept})
        return entry

    def load_entries(self, challenge_id: str) -> list[HabitEntry]:
        entries = []
        for row in self._read_entry_rows():
            if row.get("challengeId", row.get("challenge_id")) != challenge_id:
                continue
            try:
                entries.append(HabitEntry.from_dict(row))
            except (ValueError, TypeError) as e:
                logger.warning("Skipping malformed entry row %r: %s", row.get("id"), e)
        return sorted(entries, key=lambda e: e.entry_date)

    # challenges

    def _read_challenge_rows(self) -> list[dict[str, Any]]:
        with _storage_errors("read challenges"):
            data = read_yaml(challenges_path(self.root))
        return [row for row in (data.get("challenges") or []) if isinstance(row, dict)]

    def _merge_challenge(self, challenge: Challenge) -> None:
        # caller holds the challenges.yaml lock
        rows = self._read_challenge_rows()
        for i, row in enumerate(rows):
            if str(row.get("id")) == challenge.id:
                # keep fields the engine doesn't model (description, reminders, ...)
                rows[i] = {**row, **challenge.to_dict()}
                break
        else:
            rows.append(challenge.to_dict())
        with _storage_errors("write challenges"):
            write_yaml_atomic(challenges_path(self.root), {"challenges": rows})

    def load_challenge(self, challenge_id: str) -> Challenge:
        for row in self._read_challenge_rows():
            if str(row.get("id")) == challenge_id:
                return Challenge.from_dict(row)
        raise ChallengeNotFoundError(challenge_id)

    def save_challenge_streak(self, challenge_id: str, streak: int) -> None:
        with _storage_errors("lock challenges"), locked(challenges_path(self.root)):
            challenge = self.load_challenge(challenge_id)
            _apply_streak(challenge, streak)
            self._merge_challenge(challenge)

    def save_challenge(self, challenge: Challenge) -> None:
        with _storage_errors("lock challenges"), locked(challenges_path(self.root)):
            self._merge_challenge(challenge)

    # timer

    def load_timer_state(self) -> TimerState:
        with _storage_errors("read timer state"):
            data = read_json(timer_state_path(self.root))
        try:
            return TimerState.from_dict(data)
        except (ValueError, TypeError) as e:
            logger.warning("Discarding unreadable timer state: %s", e)
            return TimerState()

    def save_timer_state(self, state: TimerState) -> None:
        with _storage_errors("write timer state"):
            write_json_atomic(timer_state_path(self.root), state.to_dict())
