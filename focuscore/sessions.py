"""Append-only log of finished focus/break sessions, plus focus analytics.

Sessions enter the log only once they are terminal (completedAt set).
Queries filter on the local calendar date of completedAt.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Callable, Iterable, Iterator

from focuscore.models import (
    MODE_FOCUS,
    DailyFocus,
    FocusSession,
    FocusStats,
    TaskFocus,
)

SessionPredicate = Callable[[FocusSession], bool]

PERIOD_DAYS = {"today": 1, "week": 7, "month": 30}
ALL_TIME_CHART_DAYS = 90


@dataclass(frozen=True)
class DateRange:
    """Inclusive range of calendar dates."""

    start: date
    end: date

    def __post_init__(self) -> None:
        if self.start > self.end:
            raise ValueError(f"Empty date range: {self.start} > {self.end}")

    def __contains__(self, day: date) -> bool:
        return self.start <= day <= self.end

    @classmethod
    def last_days(cls, today: date, days: int) -> DateRange:
        return cls(today - timedelta(days=max(1, days) - 1), today)

    @classmethod
    def for_period(cls, period: str, today: date) -> DateRange | None:
        """Range for 'today', 'week', 'month'; None for 'all'."""
        if period == "all":
            return None
        if period not in PERIOD_DAYS:
            raise ValueError(f"Unknown period: {period!r}")
        return cls.last_days(today, PERIOD_DAYS[period])


# ── Predicates ────────────────────────────────────────────────


def completed_focus(session: FocusSession) -> bool:
    return session.mode == MODE_FOCUS and not session.interrupted


def interrupted_focus(session: FocusSession) -> bool:
    return session.mode == MODE_FOCUS and session.interrupted


def for_task(task_id: str) -> SessionPredicate:
    def _match(session: FocusSession) -> bool:
        return session.task_id == task_id
    return _match


# ── Log ───────────────────────────────────────────────────────


class SessionQuery:
    """Lazy view over a session log. Each iteration re-scans the log."""

    def __init__(
        self,
        source: list[FocusSession],
        date_range: DateRange | None = None,
        predicate: SessionPredicate | None = None,
    ) -> None:
        self._source = source
        self._range = date_range
        self._predicate = predicate

    def __iter__(self) -> Iterator[FocusSession]:
        for session in self._source:
            if session.completed_at is None:
                continue
            if self._range is not None and session.completed_at.date() not in self._range:
                continue
            if self._predicate is not None and not self._predicate(session):
                continue
            yield session

    def count(self) -> int:
        return sum(1 for _ in self)


class SessionLog:
    def __init__(self, sessions: Iterable[FocusSession] | None = None) -> None:
        self._sessions: list[FocusSession] = []
        for session in sessions or []:
            self.record(session)

    def __len__(self) -> int:
        return len(self._sessions)

    def __iter__(self) -> Iterator[FocusSession]:
        return iter(list(self._sessions))

    def record(self, session: FocusSession) -> None:
        """Append a terminal session. Overlap is prevented upstream by the timer."""
        if session.completed_at is None:
            raise ValueError(f"Session {session.id} is not finished")
        self._sessions.append(session)

    def query(
        self,
        date_range: DateRange | None = None,
        predicate: SessionPredicate | None = None,
    ) -> SessionQuery:
        return SessionQuery(self._sessions, date_range, predicate)

    def for_task(self, task_id: str) -> SessionQuery:
        return self.query(predicate=for_task(task_id))


# ── Focus analytics ───────────────────────────────────────────


def _session_seconds(session: FocusSession) -> int:
    return session.elapsed_seconds or session.planned_duration_seconds


def _round_half_up(x: float) -> int:
    return int(x + 0.5)


def compute_focus_stats(
    sessions: Iterable[FocusSession],
    today: date,
    period: str = "week",
) -> FocusStats:
    """Summarize focus sessions for a period ending *today*."""
    date_range = DateRange.for_period(period, today)
    in_range = list(SessionQuery(list(sessions), date_range))

    done = [s for s in in_range if completed_focus(s)]
    interrupted = sum(1 for s in in_range if interrupted_focus(s))

    stats = FocusStats()
    stats.total_sessions = len(done)
    stats.total_focus_minutes = sum(_session_seconds(s) for s in done) // 60
    stats.interrupted_sessions = interrupted
    if done:
        stats.average_session_minutes = stats.total_focus_minutes // len(done)
    attempted = len(done) + interrupted
    if attempted:
        stats.completion_rate = _round_half_up(len(done) / attempted * 100)

    chart_days = PERIOD_DAYS.get(period, ALL_TIME_CHART_DAYS)
    by_day = {
        today - timedelta(days=i): DailyFocus(date=today - timedelta(days=i))
        for i in range(chart_days)
    }
    for s in done:
        day = by_day.get(s.completed_at.date())
        if day is not None:
            day.focus_minutes += _session_seconds(s) // 60
            day.sessions_completed += 1
    stats.daily = sorted(by_day.values(), key=lambda d: d.date)

    tasks: dict[str, TaskFocus] = {}
    for s in done:
        if not s.task_id:
            continue
        tf = tasks.setdefault(s.task_id, TaskFocus(task_id=s.task_id, title=s.task_title or "Unknown Task"))
        tf.minutes += _session_seconds(s) // 60
        tf.sessions += 1
    stats.top_tasks = sorted(tasks.values(), key=lambda t: t.minutes, reverse=True)[:5]

    return stats
