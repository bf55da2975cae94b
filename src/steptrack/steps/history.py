"""Daily step history and the user's daily goal."""
import json
import logging
from datetime import date
from typing import List

from pydantic import ValidationError

from steptrack.models.steps import StepRecord
from steptrack.storage.kv import write_best_effort

logger = logging.getLogger(__name__)

STEP_RECORDS_KEY = "step_records"
GOAL_KEY = "daily_goal"
DEFAULT_GOAL = 10000
DEFAULT_LIMIT = 30


class StepHistory:
    """
    Most-recent-first list of {date, steps, goal}, one entry per day.

    Saving the same day again replaces that day's entry.
    """

    def __init__(self, store, limit: int = DEFAULT_LIMIT, default_goal: int = DEFAULT_GOAL):
        self.store = store
        self.limit = limit
        self.default_goal = default_goal

    def records(self) -> List[StepRecord]:
        raw = self.store.get(STEP_RECORDS_KEY)
        if not raw:
            return []
        try:
            return [StepRecord.model_validate(r) for r in json.loads(raw)]
        except (ValueError, ValidationError) as exc:
            logger.error("Discarding unreadable step history: %s", exc)
            return []

    def save_steps(self, day: date, steps: int, goal: int) -> bool:
        record = StepRecord(day=day, steps=steps, goal=goal)
        updated = [record] + [r for r in self.records() if r.day != day]
        updated.sort(key=lambda r: r.day, reverse=True)
        updated = updated[: self.limit]
        payload = json.dumps([r.model_dump(mode="json", by_alias=True) for r in updated])
        return write_best_effort(self.store, STEP_RECORDS_KEY, payload)

    def get_daily_goal(self) -> int:
        raw = self.store.get(GOAL_KEY)
        if not raw:
            return self.default_goal
        try:
            goal = int(raw)
        except ValueError:
            logger.error("Ignoring unreadable daily goal %r", raw)
            return self.default_goal
        return goal if goal > 0 else self.default_goal

    def set_daily_goal(self, goal: int) -> bool:
        if goal <= 0:
            raise ValueError(f"Daily goal must be positive, got {goal}")
        return write_best_effort(self.store, GOAL_KEY, str(goal))
