"""Streak calculations over raw logs."""

from __future__ import annotations

from datetime import date, timedelta

import pytest

from habitloop.services.streaks import (
    compute_streaks,
    completed_dates,
    current_streak,
    longest_streak,
    streak_overview,
)

TODAY = date(2024, 3, 22)  # Friday
DAILY = {"id": 1, "name": "Read", "frequency": "daily"}
WEEKDAYS = {"id": 2, "name": "Gym", "frequency": "custom", "target_days": [1, 2, 3, 4, 5]}


def _log(day, completed=True, habit_id=1):
    return {"habit_id": habit_id, "log_date": day, "completed": completed}


def _run(end, count):
    return [_log(end - timedelta(days=offset)) for offset in range(count)]


class TestCurrentStreak:
    def test_no_logs(self):
        assert current_streak(DAILY, [], TODAY) == 0
        assert longest_streak(DAILY, [], TODAY) == 0

    @pytest.mark.parametrize("length", [1, 2, 7, 30])
    def test_consecutive_days_ending_today(self, length):
        assert current_streak(DAILY, _run(TODAY, length), TODAY) == length

    def test_run_ending_yesterday_still_counts(self):
        logs = _run(TODAY - timedelta(days=1), 4)
        assert current_streak(DAILY, logs, TODAY) == 4

    def test_chain_broken_before_yesterday(self):
        logs = _run(TODAY - timedelta(days=2), 4)
        assert current_streak(DAILY, logs, TODAY) == 0

    def test_gap_leaves_only_today(self):
        logs = [_log(TODAY), _log(TODAY - timedelta(days=5))]
        assert current_streak(DAILY, logs, TODAY) == 1

    def test_incomplete_logs_do_not_count(self):
        logs = [_log(TODAY, completed=False), _log(TODAY - timedelta(days=1))]
        assert current_streak(DAILY, logs, TODAY) == 1

    def test_weekday_habit_skips_weekends(self):
        # Three full Monday..Friday weeks ending today, nothing on weekends.
        logs = [
            _log(day, habit_id=2)
            for day in (TODAY - timedelta(days=offset) for offset in range(21))
            if day.weekday() < 5
        ]
        assert len(logs) == 15
        result = compute_streaks(WEEKDAYS, logs, TODAY)
        assert result.current == 15
        assert result.longest == 15

    def test_monday_streak_survives_the_weekend(self):
        monday = date(2024, 3, 25)
        logs = [_log(date(2024, 3, 22), habit_id=2), _log(date(2024, 3, 21), habit_id=2)]
        # Monday is open, so the chain is judged from Sunday backwards.
        assert current_streak(WEEKDAYS, logs, monday) == 2


class TestLongestStreak:
    def test_longest_is_the_best_historic_run(self):
        logs = _run(TODAY - timedelta(days=10), 6) + _run(TODAY, 2)
        result = compute_streaks(DAILY, logs, TODAY)
        assert result.current == 2
        assert result.longest == 6

    def test_longest_never_below_current(self):
        logs = _run(TODAY, 9) + [_log(TODAY - timedelta(days=20))]
        result = compute_streaks(DAILY, logs, TODAY)
        assert result.longest >= result.current == 9

    def test_future_logs_are_ignored(self):
        logs = _run(TODAY, 3) + [_log(TODAY + timedelta(days=1))]
        result = compute_streaks(DAILY, logs, TODAY)
        assert result.current == 3
        assert result.last_completed == TODAY


def test_malformed_dates_are_skipped(caplog):
    logs = _run(TODAY, 2) + [_log("2024-99-99"), _log(None)]
    with caplog.at_level("WARNING", logger="habitloop"):
        assert current_streak(DAILY, logs, TODAY) == 2
    assert "malformed" in caplog.text


def test_completed_dates_deduplicates():
    logs = [_log(TODAY), _log(TODAY), _log(TODAY - timedelta(days=1), completed=False)]
    assert completed_dates(logs) == {TODAY}


def test_streak_overview_average_and_best():
    second = {"id": 3, "name": "Walk", "frequency": "daily"}
    logs_by_habit = {1: _run(TODAY, 3), 3: _run(TODAY - timedelta(days=10), 8)}
    overview = streak_overview([DAILY, second], logs_by_habit, TODAY)
    assert [row.current_streak for row in overview.streaks] == [3, 0]
    assert overview.average_current == 2  # 1.5 rounds half up
    assert overview.best.habit_name == "Walk"
    assert overview.streaks[0].is_active_today


def test_streak_overview_empty():
    overview = streak_overview([], {}, TODAY)
    assert overview.streaks == []
    assert overview.best is None
