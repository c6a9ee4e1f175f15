"""Habit tracker: cache, mutation state machine and write-then-reflect."""

from __future__ import annotations

from datetime import date, timedelta

import pytest
from sqlalchemy.exc import OperationalError

from habitloop.errors import NotDueError, NotFoundError, PersistenceError, ValidationError
from habitloop.models.habit import Habit
from habitloop.services.dates import local_today
from habitloop.services.tracking import HabitDataCache, HabitTracker, LogMutation, MutationStatus


class TestHabitDataCache:
    def test_get_or_load_calls_loader_once(self):
        cache = HabitDataCache()
        calls = []

        def loader():
            calls.append(1)
            return ["value"]

        assert cache.get_or_load(("habits", 1), loader) == ["value"]
        assert cache.get_or_load(("habits", 1), loader) == ["value"]
        assert len(calls) == 1

    def test_invalidate_user_only_drops_that_user(self):
        cache = HabitDataCache()
        cache.get_or_load(("habits", 1), list)
        cache.get_or_load(("logs_on", 1, "2024-03-01"), list)
        cache.get_or_load(("habits", 2), list)
        cache.invalidate_user(1)
        assert len(cache) == 1
        assert cache.peek(("habits", 2)) == []

    def test_invalidate_and_clear(self):
        cache = HabitDataCache()
        cache.get_or_load(("habits", 1), lambda: "x")
        cache.invalidate(("habits", 1), ("missing", 1))
        assert cache.peek(("habits", 1)) is None
        cache.get_or_load(("habits", 1), lambda: "x")
        cache.clear()
        assert len(cache) == 0


class TestLogMutation:
    def _mutation(self):
        return LogMutation(habit_id=1, day=date(2024, 3, 1), previous=False, requested=True)

    def test_pending_displays_requested_value(self):
        mutation = self._mutation()
        assert mutation.status is MutationStatus.PENDING
        assert mutation.displayed is True

    def test_failure_reverts_to_previous(self):
        mutation = self._mutation()
        mutation.fail(OperationalError("stmt", {}, Exception("disk full")))
        assert mutation.status is MutationStatus.FAILED
        assert mutation.displayed is False
        assert mutation.error == "OperationalError"
        assert mutation.to_dict()["completed"] is False

    def test_transitions_are_one_shot(self):
        mutation = self._mutation()
        mutation.confirm(log=None)  # type: ignore[arg-type]
        with pytest.raises(RuntimeError):
            mutation.fail(ValueError("late"))
        assert mutation.to_dict() == {
            "habit_id": 1,
            "date": "2024-03-01",
            "status": "confirmed",
            "completed": True,
            "previous": False,
        }


class TestHabitTracker:
    def test_toggle_creates_then_clears(self, tracker, habit_factory, user):
        habit = habit_factory()
        today = local_today("UTC")

        outcome = tracker.toggle(habit.id, user_id=user.id, day=today)
        assert outcome.mutation.status is MutationStatus.CONFIRMED
        assert outcome.mutation.displayed is True
        assert outcome.streaks.current == 1

        outcome = tracker.toggle(habit.id, user_id=user.id, day=today)
        assert outcome.mutation.previous is True
        assert outcome.mutation.displayed is False
        assert outcome.streaks.current == 0

    def test_explicit_completed_is_idempotent(self, tracker, habit_factory, user, habit_repo):
        habit = habit_factory()
        today = local_today("UTC")
        tracker.toggle(habit.id, user_id=user.id, day=today, completed=True, notes="felt good")
        tracker.toggle(habit.id, user_id=user.id, day=today, completed=True)
        logs = habit_repo.list_logs(habit.id, user_id=user.id)
        assert len(logs) == 1
        assert logs[0].completed is True
        assert logs[0].notes == "felt good"

    def test_streak_cache_written_after_toggle(self, tracker, habit_factory, log_factory, user, habit_repo):
        habit = habit_factory()
        today = local_today("UTC")
        log_factory(habit, *(today - timedelta(days=offset) for offset in range(1, 4)))
        tracker.toggle(habit.id, user_id=user.id, day=today)
        stored = habit_repo.get_habit(habit.id, user_id=user.id)
        assert (stored.current_streak, stored.longest_streak) == (4, 4)

    def test_completing_a_non_due_day_is_rejected(self, tracker, habit_factory, user, habit_repo):
        today = local_today("UTC")
        other_days = [day for day in range(7) if day != (today.weekday() + 1) % 7]
        habit = habit_factory(frequency="custom", target_days=other_days)
        with pytest.raises(NotDueError):
            tracker.toggle(habit.id, user_id=user.id, day=today)
        assert habit_repo.get_log(habit.id, today, user_id=user.id) is None

    def test_unknown_or_archived_habit(self, tracker, habit_factory, user):
        archived = habit_factory(is_active=False)
        with pytest.raises(NotFoundError):
            tracker.toggle(archived.id, user_id=user.id)
        with pytest.raises(NotFoundError):
            tracker.toggle(9999, user_id=user.id)

    def test_other_users_cannot_toggle(self, tracker, habit_factory, user_factory):
        intruder = user_factory("intruder@example.com")
        habit = habit_factory()
        with pytest.raises(NotFoundError):
            tracker.toggle(habit.id, user_id=intruder.id)

    def test_failed_write_keeps_previous_state(self, habit_repo, habit_factory, user):
        class FailingRepo:
            def __getattr__(self, name):
                return getattr(habit_repo, name)

            def upsert_log(self, *args, **kwargs):
                raise OperationalError("INSERT", {}, Exception("database is locked"))

            def update_streak_cache(self, *args, **kwargs):  # pragma: no cover - must not run
                raise AssertionError("streak cache touched after a failed write")

        cache = HabitDataCache()
        tracker = HabitTracker(FailingRepo(), cache=cache)
        habit = habit_factory()
        cached = tracker.habits(user_id=user.id)

        with pytest.raises(PersistenceError) as excinfo:
            tracker.toggle(habit.id, user_id=user.id)

        details = excinfo.value.details
        assert details["status"] == "failed"
        assert details["completed"] is False
        assert details["operation"] == "write habit log"
        # The read cache was not invalidated by the failed write.
        assert cache.peek(("habits", user.id)) is cached

    def test_future_days_are_rejected(self, tracker, habit_factory, user, habit_repo):
        habit = habit_factory()
        next_month = local_today("UTC") + timedelta(days=30)
        with pytest.raises(ValidationError) as excinfo:
            tracker.toggle(habit.id, user_id=user.id, day=next_month)
        assert "date" in excinfo.value.details["errors"]
        assert habit_repo.get_log(habit.id, next_month, user_id=user.id) is None

    def test_streak_refresh_failure_keeps_confirmed_write(self, habit_repo, habit_factory, user):
        class FlakyCacheRepo:
            def __getattr__(self, name):
                return getattr(habit_repo, name)

            def update_streak_cache(self, *args, **kwargs):
                raise OperationalError("UPDATE", {}, Exception("database is locked"))

        tracker = HabitTracker(FlakyCacheRepo())
        habit = habit_factory()
        today = local_today("UTC")

        outcome = tracker.toggle(habit.id, user_id=user.id, day=today)
        assert outcome.mutation.status is MutationStatus.CONFIRMED
        assert outcome.mutation.displayed is True
        assert habit_repo.get_log(habit.id, today, user_id=user.id).completed is True

    def test_refresh_streaks_needs_a_saved_habit(self, tracker, user):
        with pytest.raises(NotFoundError):
            tracker.refresh_streaks(Habit(user_id=user.id, name="Draft"), user_id=user.id)

    def test_habits_are_cached_until_invalidated(self, tracker, habit_factory, user):
        habit_factory("First")
        assert [h.name for h in tracker.habits(user_id=user.id)] == ["First"]
        habit_factory("Second")
        assert len(tracker.habits(user_id=user.id)) == 1
        tracker.invalidate(user_id=user.id)
        assert len(tracker.habits(user_id=user.id)) == 2

    def test_recompute_all_refreshes_drifted_counters(self, tracker, habit_factory, log_factory, user, habit_repo):
        habit = habit_factory()
        today = local_today("UTC")
        log_factory(habit, today, today - timedelta(days=1))
        habit_repo.update_streak_cache(habit.id, 42, 42, user_id=user.id)

        results = tracker.recompute_all(user_id=user.id, today=today)
        assert results[habit.id].current == 2
        stored = habit_repo.get_habit(habit.id, user_id=user.id)
        assert (stored.current_streak, stored.longest_streak) == (2, 2)

    def test_today_view_groups_by_routine(self, tracker, habit_factory, log_factory, user):
        today = local_today("UTC")
        morning = habit_factory("Stretch", routine_type="morning")
        habit_factory("Journal", routine_type="evening")
        log_factory(morning, today)

        view = tracker.today_view(user_id=user.id, day=today)
        assert list(view["routines"]) == ["morning", "evening", "anytime"]
        assert view["routines"]["morning"]["habits"][0]["is_completed"] is True
        assert view["routines"]["morning"]["percentage"] == 100
        assert view["routines"]["evening"]["completed"] == 0
        assert view["routines"]["anytime"]["habits"] == []

    def test_summary_recomputes_streaks(self, tracker, habit_factory, log_factory, user, habit_repo):
        today = local_today("UTC")
        habit = habit_factory(routine_type="morning")
        log_factory(habit, *(today - timedelta(days=offset) for offset in range(3)))
        habit_repo.update_streak_cache(habit.id, 0, 0, user_id=user.id)
        tracker.invalidate(user_id=user.id)

        summary = tracker.summary(user_id=user.id, today=today)
        assert summary["summary"]["longest_streak"] == 3
        assert summary["summary"]["total_completions"] == 3
        assert summary["streaks"]["habits"][0]["current_streak"] == 3
        assert summary["routines"]["morning"] == {"completed": 1, "total": 1, "percentage": 100}
        # 1 habit -> 2, 100% today -> 50, streak 3 -> 6, one routine -> 6.67
        assert summary["health"]["score"] == 65
        assert summary["health"]["message"]

    def test_series_and_heat_map(self, tracker, habit_factory, log_factory, user):
        today = local_today("UTC")
        habit = habit_factory()
        log_factory(habit, today)
        points = tracker.series(user_id=user.id, days=7, end=today)
        assert len(points) == 7
        assert points[-1].percentage == 100
        cells = tracker.heat_map(user_id=user.id, days=14, habit_id=habit.id, end=today)
        assert len(cells) == 14
        assert cells[-1].level == 4
        combined = tracker.heat_map(user_id=user.id, days=14, end=today)
        assert combined[-1].count == 1

    def test_health_score_ignores_stale_streak_cache(self, tracker, habit_factory, log_factory, user, habit_repo):
        today = local_today("UTC")
        habit = habit_factory()
        log_factory(habit, *(today - timedelta(days=offset) for offset in range(11, 21)))
        habit_repo.update_streak_cache(habit.id, 10, 10, user_id=user.id)
        tracker.invalidate(user_id=user.id)

        summary = tracker.summary(user_id=user.id, today=today)
        assert summary["streaks"]["habits"][0]["current_streak"] == 0
        # 1 habit -> 2, nothing done today -> 0, no live streak -> 0, one routine -> 6.67
        assert summary["health"]["score"] == 9
