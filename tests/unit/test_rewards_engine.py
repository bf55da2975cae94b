"""Tests for achievement evaluation, progress and streak handling."""
import json
from datetime import date, timedelta
from unittest.mock import MagicMock

import pytest

from steptrack.errors import PersistenceWriteError
from steptrack.models.achievement import AchievementCategory
from steptrack.rewards.catalog import DEFAULT_CATALOG
from steptrack.rewards.engine import (
    ACHIEVEMENTS_KEY,
    GOALS_KEY,
    STREAK_KEY,
    RewardsEngine,
    progress_percent,
)

DAY1 = date(2026, 3, 10)
GOAL = 10000


@pytest.fixture
def rewards(store, clock):
    return RewardsEngine(store, clock=clock)


def ids(achievements):
    return {a.id for a in achievements}


class TestCatalog:
    def test_fourteen_unique_definitions(self):
        assert len(DEFAULT_CATALOG) == 14
        assert len({d.id for d in DEFAULT_CATALOG}) == 14

    def test_all_start_locked(self, rewards):
        assert all(not a.unlocked for a in rewards.achievements)
        assert rewards.unlocked_count == 0
        assert rewards.total_count == 14

    def test_by_category(self, rewards):
        streak_ids = ids(rewards.by_category(AchievementCategory.STREAK))
        assert streak_ids == {"consistent", "dedicated", "unstoppable"}


class TestProgressPercent:
    @pytest.mark.parametrize("value,requirement,expected", [
        (0, 100, 0),
        (55, 100, 55),
        (550, 1000, 55),
        (999, 1000, 99),
        (9999, 10000, 99),
        (2, 3, 66),
    ])
    def test_floor_and_cap(self, value, requirement, expected):
        assert progress_percent(value, requirement) == expected


class TestStepAchievements:
    def test_threshold_unlocks(self, rewards, clock):
        result = rewards.evaluate(100, False, GOAL, today=DAY1)
        assert ids(result.unlocked) == {"first_steps"}
        first = rewards.get("first_steps")
        assert first.unlocked
        assert first.unlocked_at_ms == clock.now_ms

    def test_one_below_threshold_is_99_percent(self, rewards):
        result = rewards.evaluate(99, False, GOAL, today=DAY1)
        assert result.unlocked == []
        first = next(a for a in result.achievements if a.id == "first_steps")
        assert first.unlocked is False
        assert first.progress_percent == 99

    def test_progress_for_higher_tiers(self, rewards):
        rewards.evaluate(5500, False, GOAL, today=DAY1)
        assert rewards.get("achiever").progress_percent == 55
        assert rewards.get("superhuman").progress_percent == 11

    def test_multiple_unlock_in_one_call(self, rewards):
        result = rewards.evaluate(12000, False, GOAL, today=DAY1)
        assert ids(result.unlocked) == {"first_steps", "walker", "explorer", "achiever"}

    def test_locked_progress_never_reaches_100(self, rewards):
        for steps in range(0, 20001, 250):
            result = rewards.evaluate(steps, False, GOAL, today=DAY1)
            for a in result.achievements:
                if not a.unlocked and a.progress_percent is not None:
                    assert a.progress_percent < 100

    def test_unlocks_are_monotonic(self, rewards, clock):
        rewards.evaluate(1000, False, GOAL, today=DAY1)
        unlocked_at = rewards.get("walker").unlocked_at_ms
        clock.advance(60_000)
        rewards.evaluate(0, False, GOAL, today=DAY1 + timedelta(days=1))
        walker = rewards.get("walker")
        assert walker.unlocked is True
        assert walker.unlocked_at_ms == unlocked_at

    def test_already_unlocked_not_reported_again(self, rewards):
        rewards.evaluate(100, False, GOAL, today=DAY1)
        result = rewards.evaluate(150, False, GOAL, today=DAY1)
        assert "first_steps" not in ids(result.unlocked)


class TestStreak:
    def test_same_day_counted_once(self, rewards):
        first = rewards.evaluate(12000, True, GOAL, today=DAY1)
        second = rewards.evaluate(12000, True, GOAL, today=DAY1)
        assert first.goal_counted is True
        assert second.goal_counted is False
        assert rewards.streak.current_streak == 1
        assert rewards.goals_reached == 1

    def test_goal_flag_requires_steps_at_goal(self, rewards):
        result = rewards.evaluate(9000, True, GOAL, today=DAY1)
        assert result.goal_counted is False
        assert rewards.streak.current_streak == 0

    def test_goal_not_met_does_not_touch_streak(self, rewards):
        rewards.evaluate(12000, False, GOAL, today=DAY1)
        assert rewards.streak.current_streak == 0
        assert rewards.streak.last_goal_met_date is None

    def test_consecutive_days_unlock_consistent_same_call(self, rewards):
        rewards.evaluate(12000, True, GOAL, today=DAY1)
        rewards.evaluate(12000, True, GOAL, today=DAY1 + timedelta(days=1))
        result = rewards.evaluate(12000, True, GOAL, today=DAY1 + timedelta(days=2))
        assert result.streak.current_streak == 3
        assert "consistent" in ids(result.unlocked)

    def test_streak_progress_uses_fresh_value(self, rewards):
        result = rewards.evaluate(12000, True, GOAL, today=DAY1)
        consistent = next(a for a in result.achievements if a.id == "consistent")
        assert consistent.progress_percent == 33  # 1 of 3, not 0 of 3

    def test_gap_restarts_streak(self, rewards):
        rewards.evaluate(12000, True, GOAL, today=DAY1)
        rewards.evaluate(12000, True, GOAL, today=DAY1 + timedelta(days=1))
        rewards.evaluate(12000, True, GOAL, today=DAY1 + timedelta(days=3))
        assert rewards.streak.current_streak == 1
        assert rewards.goals_reached == 3

    def test_gap_ignored_when_disabled(self, store, clock):
        rewards = RewardsEngine(store, clock=clock, reset_streak_on_gap=False)
        rewards.evaluate(12000, True, GOAL, today=DAY1)
        rewards.evaluate(12000, True, GOAL, today=DAY1 + timedelta(days=5))
        assert rewards.streak.current_streak == 2

    def test_check_streak_keeps_streak_when_gap_reset_disabled(self, store, clock):
        rewards = RewardsEngine(store, clock=clock, reset_streak_on_gap=False)
        rewards.evaluate(12000, True, GOAL, today=DAY1)
        assert rewards.check_streak(DAY1 + timedelta(days=4)).current_streak == 1
        assert json.loads(store.get(STREAK_KEY))["streak"] == 1

    def test_earlier_day_not_counted(self, rewards):
        rewards.evaluate(12000, True, GOAL, today=DAY1)
        result = rewards.evaluate(12000, True, GOAL, today=DAY1 - timedelta(days=1))
        assert result.goal_counted is False

    def test_check_streak_breaks_after_missed_day(self, rewards):
        rewards.evaluate(12000, True, GOAL, today=DAY1)
        assert rewards.check_streak(DAY1 + timedelta(days=1)).current_streak == 1
        assert rewards.check_streak(DAY1 + timedelta(days=2)).current_streak == 0

    def test_reset_streak(self, rewards, store):
        rewards.evaluate(12000, True, GOAL, today=DAY1)
        rewards.reset_streak()
        assert rewards.streak.current_streak == 0
        assert json.loads(store.get(STREAK_KEY)) == {"streak": 0, "lastUpdateDate": None}


class TestGoalCount:
    def test_first_goal_unlocks_goal_getter(self, rewards):
        result = rewards.evaluate(10000, True, GOAL, today=DAY1)
        assert "goal_first" in ids(result.unlocked)
        assert rewards.get("goal_10").progress_percent == 10

    def test_ten_goals_unlock_perfect_week(self, rewards):
        for i in range(10):
            result = rewards.evaluate(10000, True, GOAL, today=DAY1 + timedelta(days=i))
        assert "goal_10" in ids(result.unlocked)
        assert rewards.goals_reached == 10


class TestPersistence:
    def test_state_survives_reload(self, store, clock):
        rewards = RewardsEngine(store, clock=clock)
        rewards.evaluate(12000, True, GOAL, today=DAY1)

        reloaded = RewardsEngine(store, clock=clock)
        assert reloaded.get("achiever").unlocked is True
        assert reloaded.get("champion").progress_percent == 80
        assert reloaded.streak.current_streak == 1
        assert reloaded.streak.last_goal_met_date == DAY1
        assert reloaded.goals_reached == 1

    def test_streak_stored_with_legacy_keys(self, rewards, store):
        rewards.evaluate(12000, True, GOAL, today=DAY1)
        assert json.loads(store.get(STREAK_KEY)) == {"streak": 1, "lastUpdateDate": "2026-03-10"}
        assert json.loads(store.get(GOALS_KEY)) == {"count": 1}

    def test_no_write_when_nothing_changed(self, store, clock):
        spy = MagicMock(wraps=store)
        rewards = RewardsEngine(spy, clock=clock)
        rewards.evaluate(50, False, GOAL, today=DAY1)
        writes = spy.set.call_count
        rewards.evaluate(50, False, GOAL, today=DAY1)
        assert spy.set.call_count == writes

    def test_write_failure_keeps_memory_state(self, clock, caplog):
        failing = MagicMock()
        failing.get.return_value = None
        failing.set.side_effect = PersistenceWriteError("disk full")
        rewards = RewardsEngine(failing, clock=clock)

        result = rewards.evaluate(12000, True, GOAL, today=DAY1)
        assert "achiever" in ids(result.unlocked)
        assert rewards.streak.current_streak == 1
        assert "disk full" in caplog.text

    def test_corrupt_data_falls_back_to_defaults(self, store, clock):
        store.set(ACHIEVEMENTS_KEY, "{not json")
        store.set(STREAK_KEY, '{"streak": -4}')
        rewards = RewardsEngine(store, clock=clock)
        assert rewards.unlocked_count == 0
        assert rewards.streak.current_streak == 0

    def test_unknown_ids_ignored_on_load(self, store, clock):
        store.set(ACHIEVEMENTS_KEY, json.dumps([
            {"id": "retired_badge", "unlocked": True},
            {"id": "walker", "unlocked": True, "unlocked_at_ms": 123},
        ]))
        rewards = RewardsEngine(store, clock=clock)
        assert rewards.unlocked_count == 1
        assert rewards.get("walker").unlocked_at_ms == 123

    def test_goal_counter_not_below_unlocked_badges(self, store, clock):
        store.set(ACHIEVEMENTS_KEY, json.dumps([
            {"id": "goal_first", "unlocked": True, "unlocked_at_ms": 1},
            {"id": "goal_10", "unlocked": True, "unlocked_at_ms": 2},
        ]))
        rewards = RewardsEngine(store, clock=clock)
        assert rewards.goals_reached == 10


class TestSummaryViews:
    def test_newly_unlocked_and_clear(self, rewards):
        rewards.evaluate(1000, False, GOAL, today=DAY1)
        assert ids(rewards.newly_unlocked) == {"first_steps", "walker"}
        rewards.clear_new_unlocks()
        assert rewards.newly_unlocked == []

    def test_completion_percentage(self, rewards):
        rewards.evaluate(100, False, GOAL, today=DAY1)
        assert rewards.completion_percentage == 7  # 1/14 = 7.1%

    def test_recent_unlocks_newest_first(self, rewards, clock):
        rewards.evaluate(100, False, GOAL, today=DAY1)
        clock.advance(1000)
        rewards.evaluate(1000, False, GOAL, today=DAY1)
        assert [a.id for a in rewards.recent_unlocks(limit=2)] == ["walker", "first_steps"]

    def test_share_message(self, rewards):
        rewards.evaluate(12000, True, GOAL, today=DAY1)
        message = rewards.share_message()
        assert "Progress: 5/14 unlocked (36%)" in message
        assert "Current Streak: 1 days" in message
        assert "⭐ Achiever" in message

    def test_returned_achievements_are_copies(self, rewards):
        result = rewards.evaluate(10, False, GOAL, today=DAY1)
        result.achievements[0].unlocked = True
        assert rewards.get(result.achievements[0].id).unlocked is False
