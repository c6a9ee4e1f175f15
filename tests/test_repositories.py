"""Repository behaviour against an in-memory database."""

from __future__ import annotations

from datetime import date, timedelta

from habitloop.infra.repositories import (
    SQLModelBadHabitRepository,
    SQLModelIdentityRepository,
    SQLModelScorecardRepository,
    SQLModelSettingsRepository,
)
from habitloop.models import BadHabit, Habit, ScorecardItem

DAY = date(2024, 3, 22)


class TestHabitRepository:
    def test_create_and_list_scoped_to_user(self, habit_repo, user, user_factory):
        other = user_factory("other@example.com")
        habit_repo.create_habit(Habit(user_id=0, name="Mine"), user_id=user.id)
        habit_repo.create_habit(Habit(user_id=0, name="Theirs"), user_id=other.id)

        assert [h.name for h in habit_repo.list_habits(user_id=user.id)] == ["Mine"]
        assert [h.name for h in habit_repo.list_habits(user_id=other.id)] == ["Theirs"]

    def test_soft_delete_hides_but_keeps_rows(self, habit_repo, habit_factory, log_factory, user):
        habit = habit_factory()
        log_factory(habit, DAY)
        assert habit_repo.soft_delete_habit(habit.id, user_id=user.id) is True
        assert habit_repo.list_habits(user_id=user.id) == []
        assert len(habit_repo.list_habits(user_id=user.id, include_inactive=True)) == 1
        assert len(habit_repo.list_logs(habit.id, user_id=user.id)) == 1
        assert habit_repo.soft_delete_habit(9999, user_id=user.id) is False

    def test_update_habit(self, habit_repo, habit_factory, user):
        habit = habit_factory()
        habit.name = "Read more"
        habit.target_days = [2, 4]
        updated = habit_repo.update_habit(habit, user_id=user.id)
        stored = habit_repo.get_habit(habit.id, user_id=user.id)
        assert updated.name == stored.name == "Read more"
        assert stored.target_days == [2, 4]

    def test_upsert_log_is_find_or_create(self, habit_repo, habit_factory, user):
        habit = habit_factory()
        first = habit_repo.upsert_log(habit.id, DAY, True, user_id=user.id, notes="first")
        second = habit_repo.upsert_log(habit.id, DAY, False, user_id=user.id)
        assert first.id == second.id
        assert second.completed is False
        assert second.notes == "first"
        assert len(habit_repo.list_all_logs(user_id=user.id)) == 1

    def test_log_queries(self, habit_repo, habit_factory, log_factory, user):
        reading = habit_factory("Read")
        walking = habit_factory("Walk")
        log_factory(reading, DAY - timedelta(days=2), DAY)
        log_factory(walking, DAY)

        ranged = habit_repo.list_logs(reading.id, user_id=user.id, start=DAY - timedelta(days=1))
        assert [log.log_date for log in ranged] == [DAY]
        assert len(habit_repo.list_logs_on_date(DAY, user_id=user.id)) == 2
        grouped = habit_repo.list_logs_for_habits([reading.id, walking.id, 404], user_id=user.id)
        assert [len(grouped[key]) for key in (reading.id, walking.id, 404)] == [2, 1, 0]
        assert habit_repo.get_log(walking.id, DAY - timedelta(days=2), user_id=user.id) is None

    def test_update_streak_cache(self, habit_repo, habit_factory, user):
        habit = habit_factory()
        updated = habit_repo.update_streak_cache(habit.id, 3, 5, user_id=user.id)
        assert (updated.current_streak, updated.longest_streak) == (3, 5)
        assert habit_repo.update_streak_cache(habit.id, 1, 1, user_id=user.id + 1) is None


def test_identity_save_is_find_or_create(session_factory, user):
    repo = SQLModelIdentityRepository(session_factory)
    assert repo.get(user_id=user.id) is None
    created = repo.save("A runner", ["Health"], user_id=user.id)
    updated = repo.save("A marathon runner", ["Health", "Grit"], user_id=user.id)
    assert created.id == updated.id
    stored = repo.get(user_id=user.id)
    assert stored.who_you_want_to_be == "A marathon runner"
    assert stored.core_values == ["Health", "Grit"]


def test_scorecard_crud(session_factory, user):
    repo = SQLModelScorecardRepository(session_factory)
    first = repo.create(ScorecardItem(user_id=0, habit_name="Coffee", rating="neutral"), user_id=user.id)
    repo.create(ScorecardItem(user_id=0, habit_name="Snooze", rating="negative"), user_id=user.id)
    assert [item.habit_name for item in repo.list_items(user_id=user.id)] == ["Coffee", "Snooze"]

    first.rating = "positive"
    repo.update(first, user_id=user.id)
    assert repo.get(first.id, user_id=user.id).rating == "positive"

    assert repo.delete(first.id, user_id=user.id) is True
    assert repo.delete(first.id, user_id=user.id) is False
    assert len(repo.list_items(user_id=user.id)) == 1


def test_bad_habit_soft_delete(session_factory, user):
    repo = SQLModelBadHabitRepository(session_factory)
    bad = repo.create(BadHabit(user_id=0, name="Late snacks", cue="TV"), user_id=user.id)
    assert [b.name for b in repo.list_active(user_id=user.id)] == ["Late snacks"]
    assert repo.soft_delete(bad.id, user_id=user.id) is True
    assert repo.list_active(user_id=user.id) == []
    assert repo.get(bad.id, user_id=user.id).is_active is False


def test_settings_round_trip(session_factory, user):
    repo = SQLModelSettingsRepository(session_factory)
    assert repo.get("theme", user_id=user.id) is None
    repo.set("theme", "dark", user_id=user.id)
    repo.set("theme", "light", user_id=user.id, description="UI theme")
    stored = repo.get("theme", user_id=user.id)
    assert (stored.value, stored.description) == ("light", "UI theme")
    repo.delete("theme", user_id=user.id)
    assert repo.get("theme", user_id=user.id) is None
