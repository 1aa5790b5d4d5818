"""Tests for focuscore/analytics.py."""

import pytest

from focuscore.analytics import compute_challenge_analytics, consistency_score
from focuscore.models import Challenge


def test_empty_entries_are_neutral():
    result = compute_challenge_analytics(Challenge(id="meditate", current_streak=5), [])
    assert result.completion_rate == 0
    assert result.average_value is None
    assert result.best_day is None
    assert result.worst_day is None
    assert result.total_impact == 0
    assert result.consistency_score == 0


def test_completion_rate(make_entry):
    entries = [make_entry(0, True), make_entry(1, False), make_entry(2, True), make_entry(3, True)]
    result = compute_challenge_analytics(Challenge(id="meditate"), entries)
    assert result.completion_rate == pytest.approx(75.0)
    assert result.average_value is None
    assert result.best_day is None


def test_numeric_average_best_and_worst(make_entry):
    entries = [
        make_entry(0, 20, "pushups"),
        make_entry(1, 35, "pushups"),
        make_entry(2, 0, "pushups"),
        make_entry(3, 25, "pushups"),
    ]
    result = compute_challenge_analytics(Challenge(id="pushups", metric_type="count"), entries)
    assert result.average_value == pytest.approx(20.0)
    assert result.best_day == entries[1].entry_date
    assert result.worst_day == entries[2].entry_date
    assert result.completion_rate == pytest.approx(75.0)


def test_ties_keep_input_order(make_entry):
    entries = [make_entry(0, 10, "pushups"), make_entry(1, 10, "pushups"), make_entry(2, 10, "pushups")]
    result = compute_challenge_analytics(Challenge(id="pushups"), entries)
    assert result.best_day == entries[0].entry_date
    assert result.worst_day == entries[2].entry_date


def test_total_impact_uses_point_value(make_entry):
    challenge = Challenge(id="meditate", total_completions=7, point_value=3)
    result = compute_challenge_analytics(challenge, [make_entry(0, True)])
    assert result.total_impact == 21


def test_total_impact_defaults_to_one_point(make_entry):
    for points in (None, 0):
        challenge = Challenge(id="meditate", total_completions=7, point_value=points)
        assert compute_challenge_analytics(challenge, [make_entry(0, True)]).total_impact == 7


def test_consistency_score(make_entry):
    challenge = Challenge(id="meditate", current_streak=6, duration=30)
    result = compute_challenge_analytics(challenge, [make_entry(0, True)])
    assert result.consistency_score == pytest.approx(20.0)


@pytest.mark.parametrize(
    "streak,duration,expected",
    [(0, 30, 0.0), (15, 30, 50.0), (30, 30, 100.0), (45, 30, 100.0), (5, 0, 0.0), (5, -1, 0.0)],
)
def test_consistency_score_bounds(streak, duration, expected):
    assert consistency_score(streak, duration) == pytest.approx(expected)


def test_to_dict_rounds(make_entry):
    entries = [make_entry(0, True), make_entry(1, True), make_entry(2, False)]
    data = compute_challenge_analytics(Challenge(id="meditate", duration=7, current_streak=2), entries).to_dict()
    assert data["completionRate"] == 66.7
    assert data["consistencyScore"] == 28.6
    assert data["bestDay"] is None
