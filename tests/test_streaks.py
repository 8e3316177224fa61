"""Tests for the pure streak functions.

Covers the grace-day rule for current streaks, run detection for the longest
streak, calendar-aware day adjacency and completion percentages.
"""

from __future__ import annotations

import random
from datetime import date, timedelta

import pytest

from habitflow.services.streaks import (
    completed_days,
    completion_rate,
    current_streak,
    is_consecutive_day,
    longest_streak,
    percent,
    streak_message,
    streak_stats,
    streak_status,
)
from tests.conftest import TODAY, DayLog


def _days_ago(n: int) -> date:
    return TODAY - timedelta(days=n)


def _run(end: date, length: int) -> list[DayLog]:
    return [DayLog(end - timedelta(days=i)) for i in range(length)]


class TestCurrentStreak:
    def test_empty_logs_is_zero(self):
        assert current_streak([], TODAY) == 0
        assert current_streak([], "1999-12-31") == 0

    def test_only_uncompleted_logs_is_zero(self):
        logs = [DayLog(TODAY, completed=False), DayLog(_days_ago(1), completed=False)]
        assert current_streak(logs, TODAY) == 0

    def test_completed_today_counts_one(self):
        assert current_streak([DayLog(TODAY)], TODAY) == 1

    def test_yesterday_only_survives_through_grace_day(self):
        assert current_streak([DayLog(_days_ago(1))], TODAY) == 1

    def test_two_days_back_breaks_grace(self):
        assert current_streak([DayLog(_days_ago(2))], TODAY) == 0

    def test_accepts_string_dates(self):
        logs = [DayLog("2024-03-10"), DayLog("2024-03-09"), DayLog("2024-03-08")]
        assert current_streak(logs, "2024-03-10") == 3

    @pytest.mark.parametrize("length", [1, 2, 7, 45])
    def test_run_ending_today_counts_every_day(self, length):
        assert current_streak(_run(TODAY, length), TODAY) == length

    def test_gap_caps_streak_at_run_next_to_today(self):
        logs = _run(TODAY, 10)
        del logs[4]  # drop TODAY - 4
        assert current_streak(logs, TODAY) == 4

    def test_incomplete_day_in_middle_caps_streak(self):
        logs = _run(TODAY, 6)
        logs[2] = DayLog(_days_ago(2), completed=False)
        assert current_streak(logs, TODAY) == 2

    def test_older_runs_are_ignored(self):
        logs = _run(TODAY, 2) + _run(_days_ago(5), 20)
        assert current_streak(logs, TODAY) == 2

    def test_grace_is_a_single_day_only(self):
        # Mon-Fri done, Saturday skipped, now Sunday with nothing logged yet.
        sunday = date(2024, 3, 10)
        logs = _run(date(2024, 3, 8), 5)
        assert current_streak(logs, sunday) == 0

    def test_unchecked_today_with_run_through_yesterday(self):
        logs = [DayLog(TODAY, completed=False)] + _run(_days_ago(1), 3)
        assert current_streak(logs, TODAY) == 3

    def test_crosses_year_boundary(self):
        logs = [DayLog("2023-12-30"), DayLog("2023-12-31"), DayLog("2024-01-01")]
        assert current_streak(logs, "2024-01-01") == 3

    def test_duplicate_day_last_log_wins(self):
        logs = [DayLog(TODAY, completed=True), DayLog(TODAY, completed=False)]
        assert current_streak(logs, TODAY) == 0
        logs.reverse()
        assert current_streak(logs, TODAY) == 1

    def test_malformed_today_raises(self):
        with pytest.raises(ValueError):
            current_streak([DayLog(TODAY)], "10/03/2024")


class TestLongestStreak:
    def test_empty_is_zero(self):
        assert longest_streak([]) == 0

    def test_single_completed_day_is_one(self):
        assert longest_streak([DayLog("2024-01-01")]) == 1

    def test_uncompleted_only_is_zero(self):
        assert longest_streak([DayLog("2024-01-01", completed=False)]) == 0

    def test_picks_longest_of_several_runs(self):
        logs = _run(date(2024, 1, 3), 3) + _run(date(2024, 1, 16), 7) + _run(date(2024, 1, 23), 4)
        assert longest_streak(logs) == 7

    def test_does_not_depend_on_today(self):
        logs = _run(date(2020, 6, 30), 12)
        assert longest_streak(logs) == 12

    def test_order_independent(self):
        logs = _run(date(2024, 1, 10), 5) + _run(date(2024, 2, 20), 8) + [DayLog("2024-03-01")]
        expected = longest_streak(logs)
        rng = random.Random(7)
        for _ in range(5):
            shuffled = logs[:]
            rng.shuffle(shuffled)
            assert longest_streak(shuffled) == expected == 8

    def test_grows_as_consecutive_days_are_added(self):
        logs: list[DayLog] = []
        previous = 0
        for i in range(10):
            logs.append(DayLog(date(2024, 2, 1) + timedelta(days=i)))
            value = longest_streak(logs)
            assert value >= previous
            previous = value
        assert previous == 10

    def test_spans_leap_day(self):
        logs = [DayLog("2024-02-28"), DayLog("2024-02-29"), DayLog("2024-03-01")]
        assert longest_streak(logs) == 3

    def test_missing_leap_day_breaks_run(self):
        logs = [DayLog("2024-02-28"), DayLog("2024-03-01")]
        assert longest_streak(logs) == 1

    def test_equal_runs_resolve_to_max_not_sum(self):
        d = TODAY
        logs = [
            DayLog(d - timedelta(days=6)),
            DayLog(d - timedelta(days=5)),
            DayLog(d - timedelta(days=4)),
            DayLog(d - timedelta(days=2)),
            DayLog(d - timedelta(days=1)),
            DayLog(d),
        ]
        assert current_streak(logs, d) == 3
        assert longest_streak(logs) == 3


class TestConsecutiveDay:
    @pytest.mark.parametrize(
        ("first", "second"),
        [
            ("2024-01-31", "2024-02-01"),
            ("2023-12-31", "2024-01-01"),
            ("2024-02-28", "2024-02-29"),
            ("2023-02-28", "2023-03-01"),
            ("2024-04-30", "2024-05-01"),
        ],
    )
    def test_next_calendar_day(self, first, second):
        assert is_consecutive_day(first, second)

    @pytest.mark.parametrize(
        ("first", "second"),
        [
            ("2024-01-01", "2024-01-01"),
            ("2024-01-02", "2024-01-01"),
            ("2024-01-01", "2024-01-03"),
            ("2024-02-28", "2024-03-01"),
        ],
    )
    def test_not_next_day(self, first, second):
        assert not is_consecutive_day(first, second)

    def test_mixed_types(self):
        assert is_consecutive_day(date(2024, 1, 1), "2024-01-02")

    def test_rejects_unparseable_input(self):
        with pytest.raises(ValueError):
            is_consecutive_day("2024-13-01", "2024-01-02")


class TestCompletionRate:
    def test_empty_is_zero(self):
        assert completion_rate([]) == 0

    def test_all_completed_is_hundred(self):
        assert completion_rate(_run(TODAY, 4)) == 100

    def test_none_completed_is_zero(self):
        assert completion_rate([DayLog(TODAY, completed=False)]) == 0

    def test_rounds_to_integer(self):
        logs = [DayLog(TODAY), DayLog(_days_ago(1), False), DayLog(_days_ago(2), False)]
        assert completion_rate(logs) == 33

    def test_half_rounds_up(self):
        logs = [DayLog(_days_ago(i), completed=(i == 0)) for i in range(8)]
        assert completion_rate(logs) == 13  # 12.5%

    def test_percent_guards_zero_denominator(self):
        assert percent(3, 0) == 0


def test_completed_days_filters_incomplete():
    logs = [DayLog("2024-01-01"), DayLog("2024-01-02", completed=False)]
    assert completed_days(logs) == {date(2024, 1, 1)}


def test_streak_stats_bundles_everything():
    logs = _run(TODAY, 3) + [DayLog(_days_ago(3), completed=False)] + _run(_days_ago(5), 5)
    stats = streak_stats(logs, TODAY)

    assert stats.current_streak == 3
    assert stats.longest_streak == 5
    assert stats.total_completions == 8
    assert stats.completion_rate == 89  # 8 of 9


def test_streak_stats_accepts_generators():
    stats = streak_stats((log for log in _run(TODAY, 2)), TODAY)
    assert (stats.current_streak, stats.longest_streak, stats.total_completions) == (2, 2, 2)


@pytest.mark.parametrize(
    ("streak", "label"),
    [
        (0, "No streak"),
        (1, "Getting started"),
        (3, "Building momentum"),
        (7, "On a roll!"),
        (14, "Impressive!"),
        (30, "Incredible!"),
        (99, "Incredible!"),
        (100, "Legendary!"),
    ],
)
def test_streak_status_tiers(streak, label):
    assert streak_status(streak).label == label


def test_streak_message_variants():
    assert streak_message(0, False) == "Start your streak today!"
    assert streak_message(1, False) == "Complete today to keep your streak going!"
    assert "5-day streak" in streak_message(5, False)
    assert streak_message(7, True) == "A whole week! You're on fire!"
    assert streak_message(8, True) == "8 days and counting! Keep it up!"
    assert streak_message(150, True) == "150 days! You're legendary!"
