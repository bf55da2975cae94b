"""
APScheduler jobs driving the step tracker.

Step polling runs on a short interval; a midnight job starts the new
calendar day so yesterday's count never leaks into today's rewards.
Both run on the asyncio loop, so every poll is handled to completion
before the next event.
"""
import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from steptrack.config import get_settings

logger = logging.getLogger(__name__)


def build_scheduler(tracker) -> AsyncIOScheduler:
    """
    Create and configure the APScheduler.

    Args:
        tracker: StepTracker whose poll() and roll_over_day() are scheduled.

    Returns:
        Configured AsyncIOScheduler (not yet started).
    """
    settings = get_settings()
    scheduler = AsyncIOScheduler()

    scheduler.add_job(
        _step_poll,
        trigger="interval",
        seconds=settings.step_poll_seconds,
        id="step_poll",
        replace_existing=True,
        max_instances=1,
        coalesce=True,
        kwargs={"tracker": tracker},
    )
    scheduler.add_job(
        _midnight_rollover,
        trigger="cron",
        hour=0,
        minute=0,
        id="midnight_rollover",
        replace_existing=True,
        kwargs={"tracker": tracker},
    )

    return scheduler


async def _step_poll(tracker) -> None:
    try:
        result = await tracker.poll()
    except Exception as exc:
        logger.error("Step poll failed: %s", exc)
        return
    if result is not None and result.unlocked:
        logger.info(
            "New achievements: %s", ", ".join(a.title for a in result.unlocked)
        )


async def _midnight_rollover(tracker) -> None:
    try:
        await tracker.roll_over_day()
    except Exception as exc:
        logger.error("Day rollover failed: %s", exc)
