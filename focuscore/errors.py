"""Exception types raised by focuscore."""

from __future__ import annotations


class FocusCoreError(Exception):
    """Base class for engine errors."""


class PersistenceError(FocusCoreError):
    """A read or write against the persistence collaborator failed.

    Recoverable: callers may retry.
    """


class SessionSyncError(PersistenceError):
    """Sessions were recorded locally but could not be persisted."""

    def __init__(self, message: str, sessions: list | None = None) -> None:
        super().__init__(message)
        self.sessions = list(sessions or [])


class ChallengeNotFoundError(FocusCoreError, LookupError):
    def __init__(self, challenge_id: str) -> None:
        super().__init__(f"Challenge not found: {challenge_id}")
        self.challenge_id = challenge_id
