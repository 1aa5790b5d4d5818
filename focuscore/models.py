"""Typed dataclasses for the focus & habit engine.

All persisted models use from_dict/to_dict for JSON/YAML serialization.
camelCase in JSON is mapped to snake_case in Python; snake_case keys are
accepted on read as well. Unknown keys are ignored; missing keys use defaults.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any


MODE_IDLE = "idle"
MODE_FOCUS = "focus"
MODE_SHORT_BREAK = "shortBreak"
MODE_LONG_BREAK = "longBreak"

SESSION_MODES = (MODE_FOCUS, MODE_SHORT_BREAK, MODE_LONG_BREAK)


def _get(d: dict[str, Any], snake: str, camel: str, default: Any = None) -> Any:
    if camel in d:
        return d[camel]
    return d.get(snake, default)


# ── Date normalization ────────────────────────────────────────


def parse_date(value: Any) -> date:
    """Normalize *value* to a timezone-free calendar date.

    Accepts a date, a datetime (its wall-clock date is kept, no timezone
    conversion) or an ISO string ('2026-02-10' or '2026-02-10T23:30:00+09:00').
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        s = value.strip()
        try:
            return date.fromisoformat(s[:10])
        except ValueError:
            raise ValueError(f"Invalid date: {value!r}") from None
    raise ValueError(f"Invalid date: {value!r}")


def parse_datetime(value: Any) -> datetime | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    try:
        return datetime.fromisoformat(str(value))
    except ValueError:
        raise ValueError(f"Invalid timestamp: {value!r}") from None


def _iso(value: datetime | None) -> str | None:
    return value.isoformat(timespec="seconds") if value else None


# ── Settings ──────────────────────────────────────────────────


@dataclass
class TimerSettings:
    focus_minutes: int = 25
    short_break_minutes: int = 5
    long_break_minutes: int = 15
    sessions_until_long_break: int = 4

    def __post_init__(self) -> None:
        for name in ("focus_minutes", "short_break_minutes", "long_break_minutes", "sessions_until_long_break"):
            if int(getattr(self, name)) <= 0:
                raise ValueError(f"{name} must be positive")

    def planned_duration(self, mode: str) -> int:
        """Planned length of a session in *mode*, in whole seconds."""
        minutes = {
            MODE_FOCUS: self.focus_minutes,
            MODE_SHORT_BREAK: self.short_break_minutes,
            MODE_LONG_BREAK: self.long_break_minutes,
        }.get(mode)
        if minutes is None:
            raise ValueError(f"Invalid session mode: {mode!r}")
        return int(minutes) * 60

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> TimerSettings:
        if not d or not isinstance(d, dict):
            return cls()
        return cls(
            focus_minutes=int(_get(d, "focus_minutes", "focusMinutes", 25)),
            short_break_minutes=int(_get(d, "short_break_minutes", "shortBreakMinutes", 5)),
            long_break_minutes=int(_get(d, "long_break_minutes", "longBreakMinutes", 15)),
            sessions_until_long_break=int(_get(d, "sessions_until_long_break", "sessionsUntilLongBreak", 4)),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "focus_minutes": self.focus_minutes,
            "short_break_minutes": self.short_break_minutes,
            "long_break_minutes": self.long_break_minutes,
            "sessions_until_long_break": self.sessions_until_long_break,
        }


@dataclass
class Settings:
    timezone: str = "UTC"
    timer: TimerSettings = field(default_factory=TimerSettings)

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Settings:
        if not d or not isinstance(d, dict):
            return cls()
        return cls(
            timezone=str(d.get("timezone") or "UTC"),
            timer=TimerSettings.from_dict(d.get("pomodoro") or {}),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"timezone": self.timezone, "pomodoro": self.timer.to_dict()}


# ── Focus sessions ────────────────────────────────────────────


@dataclass
class FocusSession:
    id: str
    mode: str
    planned_duration_seconds: int
    started_at: datetime
    task_id: str | None = None
    task_title: str | None = None
    completed_at: datetime | None = None
    interrupted: bool = False
    elapsed_seconds: int = 0

    @property
    def is_terminal(self) -> bool:
        return self.completed_at is not None

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> FocusSession:
        mode = str(d.get("mode", ""))
        if mode not in SESSION_MODES:
            raise ValueError(f"Invalid session mode: {mode!r}")
        started_at = parse_datetime(_get(d, "started_at", "startedAt"))
        if started_at is None:
            raise ValueError("Session is missing startedAt")
        return cls(
            id=str(d.get("id", "")),
            mode=mode,
            planned_duration_seconds=int(_get(d, "planned_duration_seconds", "plannedDurationSeconds", 0)),
            started_at=started_at,
            task_id=_get(d, "task_id", "taskId"),
            task_title=_get(d, "task_title", "taskTitle"),
            completed_at=parse_datetime(_get(d, "completed_at", "completedAt")),
            interrupted=bool(d.get("interrupted", False)),
            elapsed_seconds=int(_get(d, "elapsed_seconds", "elapsedSeconds", 0) or 0),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "taskId": self.task_id,
            "taskTitle": self.task_title,
            "mode": self.mode,
            "plannedDurationSeconds": self.planned_duration_seconds,
            "startedAt": _iso(self.started_at),
            "completedAt": _iso(self.completed_at),
            "interrupted": self.interrupted,
            "elapsedSeconds": self.elapsed_seconds,
        }


@dataclass
class TimerState:
    """Everything needed to restore a SessionTimer."""

    mode: str = MODE_IDLE
    is_paused: bool = False
    time_remaining: int = 0
    session_id: str | None = None
    task_id: str | None = None
    task_title: str | None = None
    started_at: datetime | None = None
    planned_duration_seconds: int = 0
    sessions_completed: int = 0
    cycles_since_long_break: int = 0

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> TimerState:
        if not d or not isinstance(d, dict):
            return cls()
        mode = str(d.get("mode", MODE_IDLE))
        if mode not in SESSION_MODES:
            mode = MODE_IDLE
        return cls(
            mode=mode,
            is_paused=bool(_get(d, "is_paused", "isPaused", False)) and mode != MODE_IDLE,
            time_remaining=int(_get(d, "time_remaining", "timeRemaining", 0) or 0),
            session_id=_get(d, "session_id", "sessionId"),
            task_id=_get(d, "task_id", "taskId"),
            task_title=_get(d, "task_title", "taskTitle"),
            started_at=parse_datetime(_get(d, "started_at", "startedAt")),
            planned_duration_seconds=int(_get(d, "planned_duration_seconds", "plannedDurationSeconds", 0) or 0),
            sessions_completed=int(_get(d, "sessions_completed", "sessionsCompleted", 0) or 0),
            cycles_since_long_break=int(_get(d, "cycles_since_long_break", "cyclesSinceLongBreak", 0) or 0),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "mode": self.mode,
            "isPaused": self.is_paused,
            "timeRemaining": self.time_remaining,
            "sessionId": self.session_id,
            "taskId": self.task_id,
            "taskTitle": self.task_title,
            "startedAt": _iso(self.started_at),
            "plannedDurationSeconds": self.planned_duration_seconds,
            "sessionsCompleted": self.sessions_completed,
            "cyclesSinceLongBreak": self.cycles_since_long_break,
        }


# ── Habits ────────────────────────────────────────────────────


def _split_value(value: Any) -> tuple[bool | None, float | None]:
    if value is None:
        return None, None
    if isinstance(value, bool):
        return value, None
    if isinstance(value, (int, float)):
        return None, float(value)
    return None, None


@dataclass
class HabitEntry:
    id: str
    challenge_id: str
    entry_date: date
    value_boolean: bool | None = None
    value_numeric: float | None = None
    note: str | None = None
    logged_at: datetime | None = None

    @property
    def value(self) -> bool | float | None:
        if self.value_boolean is not None:
            return self.value_boolean
        return self.value_numeric

    @property
    def has_value(self) -> bool:
        return self.value_boolean is not None or self.value_numeric is not None

    @classmethod
    def from_value(
        cls,
        id: str,
        challenge_id: str,
        entry_date: Any,
        value: bool | int | float,
        note: str | None = None,
        logged_at: datetime | None = None,
    ) -> HabitEntry:
        """Build an entry from a user-supplied value (bool or number)."""
        value_boolean, value_numeric = _split_value(value)
        if value_boolean is None and value_numeric is None:
            raise ValueError(f"Entry value must be a bool or a number, got {value!r}")
        return cls(
            id=id,
            challenge_id=challenge_id,
            entry_date=parse_date(entry_date),
            value_boolean=value_boolean,
            value_numeric=value_numeric,
            note=note,
            logged_at=logged_at,
        )

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> HabitEntry:
        raw_date = _get(d, "entry_date", "entryDate", d.get("date"))
        value_boolean = _get(d, "value_boolean", "valueBoolean")
        value_numeric = _get(d, "value_numeric", "valueNumeric")
        if value_boolean is None and value_numeric is None:
            value_boolean, value_numeric = _split_value(d.get("value"))
        if value_boolean is not None and value_numeric is not None:
            raise ValueError("Entry has both a boolean and a numeric value")
        if isinstance(value_numeric, bool) or not isinstance(value_numeric, (int, float, type(None))):
            value_numeric = None
        return cls(
            id=str(d.get("id", "")),
            challenge_id=str(_get(d, "challenge_id", "challengeId", "")),
            entry_date=parse_date(raw_date),
            value_boolean=bool(value_boolean) if value_boolean is not None else None,
            value_numeric=float(value_numeric) if value_numeric is not None else None,
            note=d.get("note"),
            logged_at=parse_datetime(_get(d, "logged_at", "loggedAt")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "challengeId": self.challenge_id,
            "entryDate": self.entry_date.isoformat(),
            "valueBoolean": self.value_boolean,
            "valueNumeric": self.value_numeric,
            "note": self.note,
            "loggedAt": _iso(self.logged_at),
        }


@dataclass
class Challenge:
    id: str = ""
    name: str = ""
    metric_type: str = "yesno"  # count, yesno, streak, time, completion
    target_value: float | None = None
    unit: str | None = None
    duration: int = 30  # days
    status: str = "active"  # draft, active, paused, completed, abandoned
    current_streak: int = 0
    best_streak: int = 0
    total_completions: int = 0
    total_missed: int = 0
    point_value: int | None = None

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Challenge:
        if not d or not isinstance(d, dict):
            return cls()
        target = _get(d, "target_value", "targetValue")
        points = _get(d, "point_value", "pointValue")
        return cls(
            id=str(d.get("id", "")),
            name=str(d.get("name", "")),
            metric_type=str(_get(d, "metric_type", "metricType", "yesno")),
            target_value=float(target) if target is not None else None,
            unit=d.get("unit"),
            duration=int(d.get("duration", 30) or 0),
            status=str(d.get("status", "active")),
            current_streak=int(_get(d, "current_streak", "currentStreak", 0) or 0),
            best_streak=int(_get(d, "best_streak", "bestStreak", 0) or 0),
            total_completions=int(_get(d, "total_completions", "totalCompletions", 0) or 0),
            total_missed=int(_get(d, "total_missed", "totalMissed", 0) or 0),
            point_value=int(points) if points is not None else None,
        )

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "metricType": self.metric_type,
            "duration": self.duration,
            "status": self.status,
            "currentStreak": self.current_streak,
            "bestStreak": self.best_streak,
            "totalCompletions": self.total_completions,
            "totalMissed": self.total_missed,
        }
        if self.target_value is not None:
            d["targetValue"] = self.target_value
        if self.unit:
            d["unit"] = self.unit
        if self.point_value is not None:
            d["pointValue"] = self.point_value
        return d


# ── Analytics ─────────────────────────────────────────────────


@dataclass
class ChallengeAnalytics:
    challenge_id: str = ""
    completion_rate: float = 0.0
    average_value: float | None = None
    best_day: date | None = None
    worst_day: date | None = None
    total_impact: int = 0
    consistency_score: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "challengeId": self.challenge_id,
            "completionRate": round(self.completion_rate, 1),
            "averageValue": round(self.average_value, 2) if self.average_value is not None else None,
            "bestDay": self.best_day.isoformat() if self.best_day else None,
            "worstDay": self.worst_day.isoformat() if self.worst_day else None,
            "totalImpact": self.total_impact,
            "consistencyScore": round(self.consistency_score, 1),
        }


@dataclass
class DailyFocus:
    date: date
    focus_minutes: int = 0
    sessions_completed: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.date.isoformat(),
            "focusMinutes": self.focus_minutes,
            "sessionsCompleted": self.sessions_completed,
        }


@dataclass
class TaskFocus:
    task_id: str
    title: str = ""
    minutes: int = 0
    sessions: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {"taskId": self.task_id, "title": self.title, "minutes": self.minutes, "sessions": self.sessions}


@dataclass
class FocusStats:
    total_focus_minutes: int = 0
    total_sessions: int = 0
    average_session_minutes: int = 0
    interrupted_sessions: int = 0
    completion_rate: int = 0
    daily: list[DailyFocus] = field(default_factory=list)
    top_tasks: list[TaskFocus] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalFocusMinutes": self.total_focus_minutes,
            "totalSessions": self.total_sessions,
            "averageSessionMinutes": self.average_session_minutes,
            "interruptedSessions": self.interrupted_sessions,
            "completionRate": self.completion_rate,
            "daily": [d.to_dict() for d in self.daily],
            "topTasks": [t.to_dict() for t in self.top_tasks],
        }
