"""Shared test fixtures for focuscore tests."""

from __future__ import annotations

import os
from datetime import date, datetime, timedelta
from pathlib import Path
from zoneinfo import ZoneInfo

import pytest
import yaml

from focuscore.clock import ManualClock
from focuscore.engine import FocusEngine
from focuscore.models import Challenge, HabitEntry, Settings, TimerSettings
from focuscore.storage import InMemoryBackend

TODAY = date(2026, 2, 11)


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """Create a temporary workspace with settings and two challenges."""
    root = tmp_path / "workspace"
    (root / "data").mkdir(parents=True)

    settings = {
        "timezone": "UTC",
        "pomodoro": {
            "focus_minutes": 25,
            "short_break_minutes": 5,
            "long_break_minutes": 15,
            "sessions_until_long_break": 4,
        },
    }
    (root / "settings.yaml").write_text(yaml.dump(settings, default_flow_style=False), encoding="utf-8")

    challenges = {
        "challenges": [
            {
                "id": "meditate",
                "name": "Meditate daily",
                "description": "10 minutes after waking up",
                "metricType": "yesno",
                "duration": 30,
                "status": "active",
                "currentStreak": 0,
                "bestStreak": 4,
                "totalCompletions": 0,
                "pointValue": 2,
            },
            {
                "id": "pushups",
                "name": "Pushups",
                "metricType": "count",
                "targetValue": 20,
                "unit": "reps",
                "duration": 10,
                "status": "active",
            },
        ]
    }
    (root / "challenges.yaml").write_text(yaml.dump(challenges, default_flow_style=False), encoding="utf-8")

    os.environ["FOCUS_ROOT"] = str(root)
    yield root
    if "FOCUS_ROOT" in os.environ:
        del os.environ["FOCUS_ROOT"]


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock(datetime(2026, 2, 11, 9, 0, tzinfo=ZoneInfo("UTC")))


@pytest.fixture
def fast_settings() -> TimerSettings:
    """One-minute sessions, long break after every second focus session."""
    return TimerSettings(
        focus_minutes=1,
        short_break_minutes=1,
        long_break_minutes=2,
        sessions_until_long_break=2,
    )


@pytest.fixture
def backend() -> InMemoryBackend:
    return InMemoryBackend([
        Challenge(id="meditate", name="Meditate daily", duration=30, point_value=2),
        Challenge(id="pushups", name="Pushups", metric_type="count", target_value=20, duration=10),
    ])


@pytest.fixture
def engine(backend: InMemoryBackend, clock: ManualClock) -> FocusEngine:
    eng = FocusEngine(backend, Settings(), clock)
    yield eng
    eng.close()


@pytest.fixture
def make_entry():
    """Factory: make_entry(days_ago, value) -> HabitEntry dated relative to TODAY."""
    counter = {"n": 0}

    def _make(days_ago: int, value, challenge_id: str = "meditate") -> HabitEntry:
        counter["n"] += 1
        return HabitEntry.from_value(
            id=f"e{counter['n']}",
            challenge_id=challenge_id,
            entry_date=TODAY - timedelta(days=days_ago),
            value=value,
        )

    return _make
