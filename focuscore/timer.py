"""Pomodoro session timer.

One session is active at a time. Modes cycle focus -> short break and,
every ``sessions_until_long_break`` completed focus sessions, focus -> long
break; a finished break returns to idle. Pause is a flag on top of the mode.

pause/resume/tick/stop outside their valid states are silently ignored:
they come from UI races (a stray tick after leaving the screen) and are not
errors. Only start() is valid from every state.

Finished sessions are appended to the SessionLog before they are submitted.
A failed submit keeps the session locally, queues it in ``pending_sync`` and
raises SessionSyncError once the transition is complete.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import replace
from typing import Callable

from focuscore.clock import Clock
from focuscore.errors import PersistenceError, SessionSyncError
from focuscore.models import (
    MODE_FOCUS,
    MODE_IDLE,
    MODE_LONG_BREAK,
    MODE_SHORT_BREAK,
    SESSION_MODES,
    FocusSession,
    TimerSettings,
    TimerState,
)
from focuscore.sessions import SessionLog

logger = logging.getLogger(__name__)


def _new_session_id() -> str:
    return uuid.uuid4().hex


class SessionTimer:
    def __init__(
        self,
        settings: TimerSettings,
        clock: Clock,
        log: SessionLog | None = None,
        submit: Callable[[FocusSession], object] | None = None,
        state: TimerState | None = None,
        on_transition: Callable[[TimerState], None] | None = None,
        id_factory: Callable[[], str] = _new_session_id,
    ) -> None:
        self.settings = settings
        self.clock = clock
        self.log = log if log is not None else SessionLog()
        self.pending_sync: list[FocusSession] = []
        self._submit = submit
        self._on_transition = on_transition
        self._new_id = id_factory
        self._state = replace(state) if state else TimerState()
        if self._state.mode == MODE_IDLE:
            self._clear_active()

    # ── Read side ─────────────────────────────────────────────

    @property
    def mode(self) -> str:
        return self._state.mode

    @property
    def is_active(self) -> bool:
        return self._state.mode != MODE_IDLE

    @property
    def is_paused(self) -> bool:
        return self._state.is_paused

    @property
    def time_remaining(self) -> int:
        return self._state.time_remaining

    @property
    def task_id(self) -> str | None:
        return self._state.task_id

    @property
    def task_title(self) -> str | None:
        return self._state.task_title

    @property
    def sessions_completed(self) -> int:
        return self._state.sessions_completed

    @property
    def cycles_since_long_break(self) -> int:
        return self._state.cycles_since_long_break

    @property
    def progress(self) -> float:
        """0.0 -> 1.0 through the active session."""
        planned = self._state.planned_duration_seconds
        if not self.is_active or planned <= 0:
            return 0.0
        return max(0.0, min(1.0, (planned - self._state.time_remaining) / planned))

    def next_mode(self) -> str:
        """Mode the current session rolls into when it completes."""
        if self._state.mode == MODE_FOCUS:
            if self._state.cycles_since_long_break + 1 >= self.settings.sessions_until_long_break:
                return MODE_LONG_BREAK
            return MODE_SHORT_BREAK
        return MODE_FOCUS if self.is_active else MODE_IDLE

    def snapshot(self) -> TimerState:
        return replace(self._state)

    # ── Transitions ───────────────────────────────────────────

    def start(
        self,
        task_id: str | None = None,
        task_title: str | None = None,
        mode: str = MODE_FOCUS,
    ) -> None:
        """Begin a session in *mode*, force-stopping any active one first."""
        if mode not in SESSION_MODES:
            raise ValueError(f"Invalid session mode: {mode!r}")
        failures: list[PersistenceError] = []
        if self.is_active:
            logger.info("Interrupting %s session %s to start %s", self.mode, self._state.session_id, mode)
            self._terminate(interrupted=True, failures=failures)
        self._begin(mode, task_id, task_title)
        self._notify()
        self._raise_for(failures)

    def pause(self) -> bool:
        if not self.is_active or self._state.is_paused:
            return False
        self._state.is_paused = True
        self._notify()
        return True

    def resume(self) -> bool:
        if not self.is_active or not self._state.is_paused:
            return False
        self._state.is_paused = False
        self._notify()
        return True

    def tick(self) -> FocusSession | None:
        """Advance one second. Returns the session that completed, if any."""
        if not self.is_active or self._state.is_paused:
            return None
        self._state.time_remaining = max(0, self._state.time_remaining - 1)
        if self._state.time_remaining > 0:
            return None

        failures: list[PersistenceError] = []
        finished_mode = self._state.mode
        session = self._terminate(interrupted=False, failures=failures)
        self._state.sessions_completed += 1

        if finished_mode == MODE_FOCUS:
            self._state.cycles_since_long_break += 1
            if self._state.cycles_since_long_break >= self.settings.sessions_until_long_break:
                self._state.cycles_since_long_break = 0
                self._begin(MODE_LONG_BREAK, None, None)
            else:
                self._begin(MODE_SHORT_BREAK, None, None)
        self._notify()
        self._raise_for(failures)
        return session

    def stop(self) -> FocusSession | None:
        """End the active session early. Returns the interrupted session."""
        if not self.is_active:
            return None
        failures: list[PersistenceError] = []
        session = self._terminate(interrupted=True, failures=failures)
        self._notify()
        self._raise_for(failures)
        return session

    def retry_pending(self) -> int:
        """Resubmit sessions whose earlier submit failed. Returns how many went through."""
        if not self.pending_sync or self._submit is None:
            return 0
        remaining: list[FocusSession] = []
        synced = 0
        for session in self.pending_sync:
            try:
                self._submit(session)
                synced += 1
            except PersistenceError as e:
                logger.warning("Session %s still not persisted: %s", session.id, e)
                remaining.append(session)
        self.pending_sync = remaining
        if remaining:
            raise SessionSyncError(f"{len(remaining)} session(s) still pending", remaining)
        return synced

    # ── Internals ─────────────────────────────────────────────

    def _begin(self, mode: str, task_id: str | None, task_title: str | None) -> None:
        planned = self.settings.planned_duration(mode)
        self._state.mode = mode
        self._state.is_paused = False
        self._state.time_remaining = planned
        self._state.planned_duration_seconds = planned
        self._state.session_id = self._new_id()
        self._state.task_id = task_id
        self._state.task_title = task_title
        self._state.started_at = self.clock.now()
        logger.info("Started %s session %s (%ds)", mode, self._state.session_id, planned)

    def _terminate(self, interrupted: bool, failures: list[PersistenceError]) -> FocusSession:
        st = self._state
        session = FocusSession(
            id=st.session_id or self._new_id(),
            mode=st.mode,
            planned_duration_seconds=st.planned_duration_seconds,
            started_at=st.started_at or self.clock.now(),
            task_id=st.task_id,
            task_title=st.task_title,
            completed_at=self.clock.now(),
            interrupted=interrupted,
            elapsed_seconds=max(0, st.planned_duration_seconds - st.time_remaining),
        )
        self._clear_active()
        logger.info(
            "%s %s session %s after %ds",
            "Stopped" if interrupted else "Completed",
            session.mode,
            session.id,
            session.elapsed_seconds,
        )

        self.log.record(session)
        if self._submit is not None:
            try:
                self._submit(session)
            except PersistenceError as e:
                logger.warning("Could not persist session %s, keeping it for retry: %s", session.id, e)
                self.pending_sync.append(session)
                failures.append(e)
        return session

    def _clear_active(self) -> None:
        st = self._state
        st.mode = MODE_IDLE
        st.is_paused = False
        st.time_remaining = 0
        st.planned_duration_seconds = 0
        st.session_id = None
        st.task_id = None
        st.task_title = None
        st.started_at = None

    def _notify(self) -> None:
        if self._on_transition is not None:
            self._on_transition(self.snapshot())

    def _raise_for(self, failures: list[PersistenceError]) -> None:
        if failures:
            raise SessionSyncError(
                f"{len(failures)} session(s) recorded locally but not persisted: {failures[-1]}",
                list(self.pending_sync),
            )
