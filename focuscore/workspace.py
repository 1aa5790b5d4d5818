"""Workspace root, timezone, settings and path helpers."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from focuscore.fileio import read_yaml
from focuscore.models import Settings

logger = logging.getLogger(__name__)


def workspace_root() -> Path:
    """Directory holding settings.yaml, challenges.yaml and data/."""
    return Path(
        os.environ.get("FOCUS_ROOT", str(Path.home() / "focus"))
    ).expanduser().resolve()


def load_settings(root: Path | None = None) -> Settings:
    """Read settings.yaml, falling back to defaults for anything missing."""
    if root is None:
        root = workspace_root()
    return Settings.from_dict(read_yaml(settings_path(root)))


def get_user_timezone(root: Path | None = None) -> ZoneInfo:
    """User's timezone from settings.yaml, UTC when unset or unknown."""
    name = load_settings(root).timezone
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("Unknown timezone %r in settings, using UTC", name)
        return ZoneInfo("UTC")


# ── Path helpers ──────────────────────────────────────────────

def settings_path(root: Path | None = None) -> Path:
    if root is None:
        root = workspace_root()
    return root / "settings.yaml"


def challenges_path(root: Path | None = None) -> Path:
    if root is None:
        root = workspace_root()
    return root / "challenges.yaml"


def sessions_path(root: Path | None = None) -> Path:
    if root is None:
        root = workspace_root()
    return root / "data" / "sessions.json"


def entries_path(root: Path | None = None) -> Path:
    if root is None:
        root = workspace_root()
    return root / "data" / "entries.json"


def timer_state_path(root: Path | None = None) -> Path:
    if root is None:
        root = workspace_root()
    return root / "data" / "timer.json"
