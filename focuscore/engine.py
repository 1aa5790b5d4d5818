"""Engine handle tying the timer, logs and projections to one backend.

A FocusEngine is created at application start (``open_engine``) and closed
on logout. Nothing is kept in module globals, so independent engines can
coexist (one per test, one per user).
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from dataclasses import replace
from datetime import date
from pathlib import Path
from typing import Any

from focuscore.analytics import compute_challenge_analytics
from focuscore.clock import Clock, SystemClock
from focuscore.errors import PersistenceError
from focuscore.habits import HabitEntryStore
from focuscore.models import (
    MODE_FOCUS,
    Challenge,
    ChallengeAnalytics,
    FocusSession,
    FocusStats,
    HabitEntry,
    Settings,
    TimerState,
    parse_date,
)
from focuscore.sessions import SessionLog, compute_focus_stats
from focuscore.storage import Backend, FileBackend
from focuscore.streaks import calculate_streak, dated_entries, is_truthy, longest_streak
from focuscore.ticker import Ticker
from focuscore.timer import SessionTimer
from focuscore.workspace import get_user_timezone, load_settings, workspace_root

logger = logging.getLogger(__name__)


class FocusEngine:
    def __init__(
        self,
        backend: Backend,
        settings: Settings | None = None,
        clock: Clock | None = None,
        tick_interval: float = 1.0,
    ) -> None:
        self.backend = backend
        self.settings = settings or Settings()
        self.clock = clock or SystemClock()
        self.tick_interval = tick_interval
        self.sessions = SessionLog(backend.load_sessions())
        self.habits = HabitEntryStore()
        self.timer = SessionTimer(
            self.settings.timer,
            self.clock,
            log=self.sessions,
            submit=backend.submit_focus_session,
            state=backend.load_timer_state(),
            on_transition=self._save_timer_state,
        )
        self._ticker: Ticker | None = None
        self._loaded_challenges: set[str] = set()
        self.closed = False

    def __enter__(self) -> FocusEngine:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    # ── Focus sessions ────────────────────────────────────────

    def start_session(
        self,
        task_id: str | None = None,
        task_title: str | None = None,
        mode: str = MODE_FOCUS,
    ) -> None:
        """Start a timer session; begins ticking if an event loop is running."""
        try:
            self.timer.start(task_id, task_title, mode)
        finally:
            if self.timer.is_active:
                self._ensure_ticker()

    def stop_session(self) -> FocusSession | None:
        self.stop_ticker()
        return self.timer.stop()

    def _ensure_ticker(self) -> None:
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            return  # no loop: the caller drives timer.tick() itself
        if self._ticker is None:
            self._ticker = Ticker(self.timer, self.tick_interval)
        self._ticker.start()

    def stop_ticker(self) -> None:
        if self._ticker is not None:
            self._ticker.cancel()
            self._ticker = None

    @property
    def ticking(self) -> bool:
        return self._ticker is not None and self._ticker.running

    def focus_stats(self, period: str = "week") -> FocusStats:
        return compute_focus_stats(self.sessions, self.clock.today(), period)

    def sync(self) -> int:
        """Retry sessions that were kept locally after a failed submit."""
        return self.timer.retry_pending()

    def _save_timer_state(self, state: TimerState) -> None:
        try:
            self.backend.save_timer_state(state)
        except PersistenceError as e:
            logger.warning("Timer state not saved: %s", e)

    # ── Habits ────────────────────────────────────────────────

    def _ensure_loaded(self, challenge_id: str) -> None:
        if challenge_id not in self._loaded_challenges:
            self.habits.replace_all(challenge_id, self.backend.load_entries(challenge_id))
            self._loaded_challenges.add(challenge_id)

    def entries(self, challenge_id: str) -> list[HabitEntry]:
        self._ensure_loaded(challenge_id)
        return self.habits.entries_for(challenge_id)

    def log_entry(
        self,
        challenge_id: str,
        value: bool | int | float,
        note: str | None = None,
        entry_date: date | str | None = None,
    ) -> HabitEntry:
        """Upsert today's (or *entry_date*'s) entry and refresh the challenge.

        The local store is updated optimistically and rolled back if the
        backend rejects the write; the PersistenceError is re-raised.
        """
        challenge = self.backend.load_challenge(challenge_id)
        day = parse_date(entry_date) if entry_date is not None else self.clock.today()
        now = self.clock.now()
        optimistic = HabitEntry.from_value(
            id=f"local-{uuid.uuid4().hex}",
            challenge_id=challenge_id,
            entry_date=day,
            value=value,
            note=note,
            logged_at=now,
        )

        self._ensure_loaded(challenge_id)
        previous = self.habits.upsert(optimistic)
        try:
            saved = self.backend.submit_habit_entry(challenge_id, day, value, note=note, logged_at=now)
        except PersistenceError:
            self.habits.restore(challenge_id, day, previous)
            logger.warning("Entry for %s on %s rejected, rolled back", challenge_id, day)
            raise
        self.habits.upsert(saved)
        logger.info("Logged %r for %s on %s", value, challenge_id, day)

        self._write_progress(challenge)
        return saved

    def _progress(self, challenge: Challenge) -> Challenge:
        """Copy of *challenge* with streak and totals recomputed from the store."""
        entries = self.habits.entries_for(challenge.id)
        usable = [e for _day, e in dated_entries(entries)]
        streak = calculate_streak(entries, self.clock.today())
        completions = sum(1 for e in usable if is_truthy(e))
        return replace(
            challenge,
            current_streak=streak,
            best_streak=max(challenge.best_streak, streak, longest_streak(entries)),
            total_completions=completions,
            total_missed=len(usable) - completions,
        )

    def _write_progress(self, challenge: Challenge) -> Challenge:
        updated = self._progress(challenge)
        self.backend.save_challenge_streak(challenge.id, updated.current_streak)
        self.backend.save_challenge(updated)
        return updated

    def refresh_streak(self, challenge_id: str) -> int:
        """Reload entries from the backend and write back the recomputed streak."""
        challenge = self.backend.load_challenge(challenge_id)
        self.habits.replace_all(challenge_id, self.backend.load_entries(challenge_id))
        self._loaded_challenges.add(challenge_id)
        return self._write_progress(challenge).current_streak

    def current_streak(self, challenge_id: str) -> int:
        return calculate_streak(self.entries(challenge_id), self.clock.today())

    def challenge_analytics(self, challenge_id: str) -> ChallengeAnalytics:
        """Analytics as of now. Reads only; nothing is written back."""
        challenge = self.backend.load_challenge(challenge_id)
        self._ensure_loaded(challenge_id)
        return compute_challenge_analytics(
            self._progress(challenge), self.habits.entries_for(challenge_id)
        )

    # ── Lifecycle ─────────────────────────────────────────────

    def close(self) -> None:
        if self.closed:
            return
        self.stop_ticker()
        self._save_timer_state(self.timer.snapshot())
        self.closed = True


def open_engine(root: Path | None = None, clock: Clock | None = None) -> FocusEngine:
    """Build an engine over the workspace at *root* (default: $FOCUS_ROOT)."""
    if root is None:
        root = workspace_root()
    settings = load_settings(root)
    return FocusEngine(
        FileBackend(root),
        settings=settings,
        clock=clock or SystemClock(get_user_timezone(root)),
    )
