"""Tests for focuscore/streaks.py."""

from datetime import date, datetime, timezone

from focuscore.models import HabitEntry
from focuscore.streaks import calculate_streak, is_truthy, longest_streak, streak_runs

TODAY = date(2026, 2, 11)


def test_empty_entries_give_zero():
    assert calculate_streak([], TODAY) == 0


def test_three_day_streak_with_gap(make_entry):
    entries = [make_entry(0, True), make_entry(1, True), make_entry(2, True), make_entry(4, True)]
    assert calculate_streak(entries, TODAY) == 3


def test_falsy_today_breaks_streak(make_entry):
    entries = [make_entry(0, False), make_entry(1, True), make_entry(2, True)]
    assert calculate_streak(entries, TODAY) == 0


def test_yesterday_only_gives_zero(make_entry):
    assert calculate_streak([make_entry(1, True)], TODAY) == 0


def test_numeric_values(make_entry):
    entries = [
        make_entry(0, 12, "pushups"),
        make_entry(1, 0.5, "pushups"),
        make_entry(2, 0, "pushups"),
        make_entry(3, 30, "pushups"),
    ]
    assert calculate_streak(entries, TODAY) == 2


def test_input_order_does_not_matter(make_entry):
    entries = [make_entry(2, True), make_entry(0, True), make_entry(1, True)]
    assert calculate_streak(entries, TODAY) == 3
    assert calculate_streak(list(reversed(entries)), TODAY) == 3


def test_future_entries_are_ignored(make_entry):
    entries = [make_entry(-1, True), make_entry(0, True), make_entry(1, True)]
    assert calculate_streak(entries, TODAY) == 2


def test_entries_without_value_are_skipped(make_entry):
    blank = HabitEntry(id="blank", challenge_id="meditate", entry_date=TODAY)
    entries = [blank, make_entry(0, True), make_entry(1, True)]
    assert calculate_streak(entries, TODAY) == 2


def test_unparseable_date_is_skipped(make_entry):
    broken = HabitEntry(id="bad", challenge_id="meditate", entry_date="not-a-date", value_boolean=True)
    entries = [broken, make_entry(0, True)]
    assert calculate_streak(entries, TODAY) == 1


def test_today_accepts_datetime_and_string(make_entry):
    entries = [make_entry(0, True), make_entry(1, True)]
    late_evening = datetime(2026, 2, 11, 23, 59, tzinfo=timezone.utc)
    assert calculate_streak(entries, late_evening) == 2
    assert calculate_streak(entries, "2026-02-11") == 2
    assert calculate_streak(entries, "2026-02-12") == 0


def test_is_truthy():
    def entry(**kw):
        return HabitEntry(id="x", challenge_id="c", entry_date=TODAY, **kw)

    assert is_truthy(entry(value_boolean=True))
    assert not is_truthy(entry(value_boolean=False))
    assert is_truthy(entry(value_numeric=1.0))
    assert not is_truthy(entry(value_numeric=0.0))
    assert not is_truthy(entry(value_numeric=-3.0))
    assert not is_truthy(entry())


def test_streak_runs_history(make_entry):
    entries = [
        make_entry(9, True),
        make_entry(8, True),
        make_entry(7, False),
        make_entry(6, True),
        make_entry(4, True),
        make_entry(3, True),
        make_entry(2, True),
    ]
    runs = streak_runs(entries)
    assert [r["length"] for r in runs] == [2, 1, 3]
    assert runs[0]["start"] == date(2026, 2, 2)
    assert runs[0]["end"] == date(2026, 2, 3)
    assert runs[2]["start"] == date(2026, 2, 7)
    assert runs[2]["end"] == date(2026, 2, 9)
    assert longest_streak(entries) == 3


def test_longest_streak_empty():
    assert longest_streak([]) == 0
    assert streak_runs([]) == []
