"""
RewardsEngine: achievement unlocks, progress and the daily-goal streak.

Each evaluate() call is a deterministic transform of

    (catalog state, streak, goal counter, steps today, goal)
        → (new catalog state, new streak, new goal counter, unlocked this call)

Ordering within a call:
  1. Step achievements are checked against today's step count.
  2. If the goal is met and has not yet been counted today, the streak and
     the lifetime goal counter are advanced first, and streak/goal
     achievements are then checked against those fresh values.

Per-day idempotence is an explicit comparison of the stored
`last_goal_met_date` against the caller-supplied date, so evaluating
12,000 steps twice on the same day counts the goal once.

Unlocks are monotonic: nothing ever re-locks. A locked achievement's
progress is capped at 99%; crossing the threshold always unlocks instead.

Persistence is best effort. A failed write is logged and the in-memory
state remains authoritative until the next successful write.
"""
import json
import logging
import math
import time
from datetime import date, datetime
from typing import Callable, Dict, Iterable, List, Optional

from pydantic import ValidationError

from steptrack.models.achievement import (
    Achievement,
    AchievementCategory,
    AchievementDefinition,
    EvaluationResult,
    StreakState,
)
from steptrack.rewards.catalog import DEFAULT_CATALOG
from steptrack.storage.kv import write_best_effort

logger = logging.getLogger(__name__)

ACHIEVEMENTS_KEY = "achievements"
STREAK_KEY = "current_streak"
GOALS_KEY = "goals_reached"


def _now_ms() -> int:
    return int(time.time() * 1000)


def progress_percent(value: float, requirement: int) -> int:
    """Locked-achievement progress, floored and capped at 99."""
    if requirement <= 0:
        return 99
    return max(0, min(99, math.floor(100 * value / requirement)))


class RewardsEngine:
    """Owns the achievement catalog state, the streak and the goal counter."""

    def __init__(
        self,
        store,
        *,
        clock: Optional[Callable[[], int]] = None,
        catalog: Iterable[AchievementDefinition] = DEFAULT_CATALOG,
        reset_streak_on_gap: bool = True,
    ):
        """
        Args:
            store: Key/value store with get(key) and set(key, value).
            clock: Returns the current time in epoch milliseconds.
            catalog: Achievement definitions, in display order.
            reset_streak_on_gap: Restart the streak at 1 when the goal is met
                                 after one or more missed days.
        """
        self.store = store
        self.clock = clock or _now_ms
        self.reset_streak_on_gap = reset_streak_on_gap

        self._achievements: Dict[str, Achievement] = {}
        self._by_category: Dict[AchievementCategory, List[Achievement]] = {
            category: [] for category in AchievementCategory
        }
        for definition in catalog:
            achievement = Achievement.from_definition(definition)
            self._achievements[definition.id] = achievement
            self._by_category[definition.category].append(achievement)

        self.streak = StreakState()
        self.goals_reached = 0
        self.newly_unlocked: List[Achievement] = []
        self._load()

    # ─── Evaluation ───────────────────────────────────────────────────────────

    def evaluate(
        self,
        steps_today: int,
        daily_goal_met: bool,
        daily_goal: int,
        today: Optional[date] = None,
    ) -> EvaluationResult:
        """
        Check every locked achievement against today's numbers.

        Args:
            steps_today: Steps since local midnight.
            daily_goal_met: Caller's view of whether today's goal is reached.
            daily_goal: Today's step goal.
            today: Calendar day being evaluated (defaults to the clock's local date).

        Returns:
            EvaluationResult with the updated catalog and the achievements
            unlocked by this call (usually empty).
        """
        now = self.clock()
        if today is None:
            today = datetime.fromtimestamp(now / 1000).date()

        before = {a.id: a.progress_percent for a in self._achievements.values()}
        unlocked = self._advance(AchievementCategory.STEPS, steps_today, now)

        goal_counted = False
        if daily_goal_met and steps_today >= daily_goal and self._goal_pending(today):
            self.streak = self._next_streak(today)
            self._save_streak()
            unlocked += self._advance(AchievementCategory.STREAK, self.streak.current_streak, now)

            self.goals_reached += 1
            self._save_goals()
            unlocked += self._advance(AchievementCategory.GOAL, self.goals_reached, now)
            goal_counted = True
            logger.info(
                "Daily goal counted for %s (streak %d, total %d)",
                today.isoformat(),
                self.streak.current_streak,
                self.goals_reached,
            )

        progress_changed = any(
            a.progress_percent != before[a.id] for a in self._achievements.values()
        )
        if unlocked or progress_changed:
            self._save_achievements()
        if unlocked:
            self.newly_unlocked.extend(unlocked)
            logger.info("Unlocked: %s", ", ".join(a.id for a in unlocked))

        return EvaluationResult(
            achievements=self.achievements,
            streak=self.streak.model_copy(),
            goals_reached=self.goals_reached,
            unlocked=[a.model_copy() for a in unlocked],
            goal_counted=goal_counted,
        )

    def check_streak(self, today: Optional[date] = None) -> StreakState:
        """
        Break the streak if a full day passed without the goal being met.

        Meant to run at a day boundary; evaluate() alone only notices a gap
        the next time the goal is met.
        """
        if today is None:
            today = datetime.fromtimestamp(self.clock() / 1000).date()
        last = self.streak.last_goal_met_date
        stale = last is not None and (today - last).days > 1
        if self.reset_streak_on_gap and stale and self.streak.current_streak > 0:
            logger.info("Streak of %d broken (last goal %s)", self.streak.current_streak, last)
            self.streak = StreakState(current_streak=0, last_goal_met_date=last)
            self._save_streak()
        return self.streak.model_copy()

    def reset_streak(self) -> None:
        self.streak = StreakState()
        self._save_streak()

    def clear_new_unlocks(self) -> None:
        self.newly_unlocked = []

    # ─── Read-only views ──────────────────────────────────────────────────────

    @property
    def achievements(self) -> List[Achievement]:
        return [a.model_copy() for a in self._achievements.values()]

    def by_category(self, category: AchievementCategory) -> List[Achievement]:
        return [a.model_copy() for a in self._by_category[category]]

    def get(self, achievement_id: str) -> Optional[Achievement]:
        achievement = self._achievements.get(achievement_id)
        return achievement.model_copy() if achievement else None

    @property
    def unlocked_count(self) -> int:
        return sum(1 for a in self._achievements.values() if a.unlocked)

    @property
    def total_count(self) -> int:
        return len(self._achievements)

    @property
    def completion_percentage(self) -> int:
        if not self._achievements:
            return 0
        return math.floor(self.unlocked_count / self.total_count * 100 + 0.5)

    def recent_unlocks(self, limit: int = 3) -> List[Achievement]:
        unlocked = [a for a in self._achievements.values() if a.unlocked]
        unlocked.sort(key=lambda a: a.unlocked_at_ms or 0, reverse=True)
        return [a.model_copy() for a in unlocked[:limit]]

    def share_message(self) -> str:
        lines = "\n".join(
            f"{a.icon} {a.title}" for a in self._achievements.values() if a.unlocked
        )
        return (
            "🏆 My StepTracker Achievements\n\n"
            f"📊 Progress: {self.unlocked_count}/{self.total_count} unlocked "
            f"({self.completion_percentage}%)\n"
            f"🔥 Current Streak: {self.streak.current_streak} days\n\n"
            f"{lines}\n\n"
            "Join me on StepTracker and unlock your fitness achievements!"
        )

    # ─── Internal helpers ─────────────────────────────────────────────────────

    def _goal_pending(self, today: date) -> bool:
        last = self.streak.last_goal_met_date
        return last is None or today > last

    def _next_streak(self, today: date) -> StreakState:
        last = self.streak.last_goal_met_date
        if self.reset_streak_on_gap and last is not None and (today - last).days > 1:
            current = 1
        else:
            current = self.streak.current_streak + 1
        return StreakState(current_streak=current, last_goal_met_date=today)

    def _advance(self, category: AchievementCategory, value: float, now: int) -> List[Achievement]:
        unlocked = []
        for achievement in self._by_category[category]:
            if achievement.unlocked:
                continue
            if value >= achievement.requirement:
                achievement.unlocked = True
                achievement.unlocked_at_ms = now
                achievement.progress_percent = None
                unlocked.append(achievement)
            else:
                achievement.progress_percent = progress_percent(value, achievement.requirement)
        return unlocked

    def _load(self) -> None:
        self._load_achievements()
        raw = self.store.get(STREAK_KEY)
        if raw:
            try:
                self.streak = StreakState.model_validate_json(raw)
            except ValidationError as exc:
                logger.error("Ignoring unreadable streak state: %s", exc)

        raw = self.store.get(GOALS_KEY)
        if raw:
            try:
                self.goals_reached = max(0, int(json.loads(raw)["count"]))
            except (ValueError, KeyError, TypeError) as exc:
                logger.error("Ignoring unreadable goal counter: %s", exc)
        # The counter can never be lower than what the unlocked goal badges prove
        proven = max(
            (a.requirement for a in self._by_category[AchievementCategory.GOAL] if a.unlocked),
            default=0,
        )
        self.goals_reached = max(self.goals_reached, proven)

    def _load_achievements(self) -> None:
        raw = self.store.get(ACHIEVEMENTS_KEY)
        if not raw:
            return
        try:
            saved = json.loads(raw)
        except ValueError as exc:
            logger.error("Ignoring unreadable achievements: %s", exc)
            return

        for item in saved if isinstance(saved, list) else []:
            achievement = self._achievements.get(item.get("id")) if isinstance(item, dict) else None
            if achievement is None:
                continue
            if item.get("unlocked"):
                achievement.unlocked = True
                achievement.unlocked_at_ms = item.get("unlocked_at_ms") or self.clock()
                achievement.progress_percent = None
            else:
                progress = item.get("progress_percent")
                if isinstance(progress, (int, float)):
                    achievement.progress_percent = max(0, min(99, int(progress)))

    def _save_achievements(self) -> None:
        payload = json.dumps([a.model_dump(mode="json") for a in self._achievements.values()])
        write_best_effort(self.store, ACHIEVEMENTS_KEY, payload)

    def _save_streak(self) -> None:
        write_best_effort(self.store, STREAK_KEY, self.streak.model_dump_json(by_alias=True))

    def _save_goals(self) -> None:
        write_best_effort(self.store, GOALS_KEY, json.dumps({"count": self.goals_reached}))
