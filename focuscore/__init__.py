"""focuscore: focus timer and habit streak engine.

Public API re-exports for convenient imports:
    from focuscore import open_engine, SessionTimer, calculate_streak, ...
"""

# Models
from focuscore.models import (
    MODE_IDLE,
    MODE_FOCUS,
    MODE_SHORT_BREAK,
    MODE_LONG_BREAK,
    SESSION_MODES,
    parse_date,
    TimerSettings,
    Settings,
    FocusSession,
    TimerState,
    HabitEntry,
    Challenge,
    ChallengeAnalytics,
    DailyFocus,
    TaskFocus,
    FocusStats,
)

# Errors
from focuscore.errors import (
    FocusCoreError,
    PersistenceError,
    SessionSyncError,
    ChallengeNotFoundError,
)

# Clock
from focuscore.clock import Clock, SystemClock, ManualClock

# Workspace & settings
from focuscore.workspace import (
    workspace_root,
    load_settings,
    get_user_timezone,
    settings_path,
    challenges_path,
    sessions_path,
    entries_path,
    timer_state_path,
)

# Timer
from focuscore.timer import SessionTimer
from focuscore.ticker import Ticker

# Session log
from focuscore.sessions import (
    DateRange,
    SessionLog,
    SessionQuery,
    completed_focus,
    interrupted_focus,
    for_task,
    compute_focus_stats,
)

# Habits, streaks, analytics
from focuscore.habits import HabitEntryStore
from focuscore.streaks import (
    is_truthy,
    calculate_streak,
    streak_runs,
    longest_streak,
)
from focuscore.analytics import compute_challenge_analytics, consistency_score

# Persistence & engine
from focuscore.storage import Backend, FileBackend, InMemoryBackend
from focuscore.engine import FocusEngine, open_engine
