"""Per-challenge analytics derived from habit entries.

Everything here is a pure projection of (challenge, entries): safe to
recompute on every read, independent of entry order except for tie-breaks,
and neutral (0 / None) rather than failing when there is nothing logged.
"""

from __future__ import annotations

from typing import Iterable

from focuscore.models import Challenge, ChallengeAnalytics, HabitEntry
from focuscore.streaks import dated_entries, is_truthy


def consistency_score(current_streak: int, duration: int) -> float:
    """Current streak as a percentage of the target duration, capped at 100."""
    if duration <= 0:
        return 0.0
    return min(100.0, current_streak / duration * 100)


def compute_challenge_analytics(
    challenge: Challenge,
    entries: Iterable[HabitEntry],
) -> ChallengeAnalytics:
    """Completion rate, averages, best/worst day, impact and consistency."""
    usable = [entry for _day, entry in dated_entries(entries)]
    result = ChallengeAnalytics(challenge_id=challenge.id)
    if not usable:
        return result

    completed = sum(1 for e in usable if is_truthy(e))
    result.completion_rate = completed / len(usable) * 100

    numeric = [e for e in usable if e.value_numeric is not None]
    if numeric:
        result.average_value = sum(e.value_numeric for e in numeric) / len(numeric)
        # sorted() is stable under reverse=True, so ties keep input order.
        by_value = sorted(numeric, key=lambda e: e.value_numeric, reverse=True)
        result.best_day = by_value[0].entry_date
        result.worst_day = by_value[-1].entry_date

    result.total_impact = challenge.total_completions * (challenge.point_value or 1)
    result.consistency_score = consistency_score(challenge.current_streak, challenge.duration)
    return result
