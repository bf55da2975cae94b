"""
StepTracker turns pedometer readings into daily history and reward checks.

Today's count is the pedometer's "since midnight" baseline plus the live
count delivered since we subscribed. poll() runs periodically (see
steptrack.scheduler.jobs) and only calls the rewards engine when the count
has grown since the last check.
"""
import logging
import time
from datetime import date, datetime
from typing import Callable, Optional

from steptrack.errors import DeviceUnsupportedError, PermissionDeniedError
from steptrack.models.achievement import EvaluationResult

logger = logging.getLogger(__name__)


def _now_ms() -> int:
    return int(time.time() * 1000)


class StepTracker:
    def __init__(
        self,
        provider,
        rewards,
        history,
        *,
        clock: Optional[Callable[[], int]] = None,
    ):
        """
        Args:
            provider: StepCounterProvider implementation.
            rewards: RewardsEngine to evaluate on step growth.
            history: StepHistory for daily records and the daily goal.
            clock: Returns the current time in epoch milliseconds.
        """
        self.provider = provider
        self.rewards = rewards
        self.history = history
        self.clock = clock or _now_ms

        self.is_available = False
        self._day: Optional[date] = None
        self._base = 0
        self._live = 0
        self._live_offset = 0
        self._last_checked = 0
        self._last_saved: Optional[int] = None
        self._subscription = None

    @property
    def steps(self) -> int:
        return self._base + max(0, self._live - self._live_offset)

    def today(self) -> date:
        return datetime.fromtimestamp(self.clock() / 1000).date()

    async def start(self) -> None:
        """
        Raises:
            DeviceUnsupportedError: no pedometer on this device.
            PermissionDeniedError: the user refused motion/step access.
        """
        if not self.provider.is_supported():
            raise DeviceUnsupportedError("Step counting is not available on this device")
        if not await self.provider.request_permission():
            raise PermissionDeniedError("Step counter permission denied")

        self._day = self.today()
        self._base = await self.provider.get_steps_since_midnight() or 0
        self._live = 0
        self._live_offset = 0
        self._subscription = await self.provider.subscribe(self._on_steps)
        self.is_available = True
        logger.info("Step tracking started with %d steps today", self._base)

    def stop(self) -> None:
        subscription, self._subscription = self._subscription, None
        if subscription is not None:
            subscription.unsubscribe()
        self.is_available = False

    async def poll(self) -> Optional[EvaluationResult]:
        """
        Record today's steps and evaluate rewards if the count grew.

        Returns:
            The EvaluationResult, or None if nothing was evaluated.
        """
        if not self.is_available:
            return None
        if self.today() != self._day:
            await self.roll_over_day()
        return self._record(self._day)

    async def roll_over_day(self) -> None:
        """
        Start a new calendar day: fresh baseline, counters and streak check.

        The outgoing day's final count is saved and evaluated first, so steps
        taken after the last poll before midnight still count for that day.
        """
        if not self.is_available:
            return
        self._record(self._day)

        self._day = self.today()
        self._base = await self.provider.get_steps_since_midnight() or 0
        self._live_offset = self._live
        self._last_checked = 0
        self._last_saved = None
        self.rewards.check_streak(self._day)
        logger.info("Rolled over to %s with %d steps", self._day.isoformat(), self._base)

    def _record(self, day: date) -> Optional[EvaluationResult]:
        steps = self.steps
        goal = self.history.get_daily_goal()
        result = None
        if steps > self._last_checked and steps > 0:
            result = self.rewards.evaluate(steps, steps >= goal, goal, day)
            self._last_checked = steps

        if steps != self._last_saved:
            self.history.save_steps(day, steps, goal)
            self._last_saved = steps
        return result

    def _on_steps(self, steps_since_subscribe: int) -> None:
        self._live = max(0, steps_since_subscribe)
