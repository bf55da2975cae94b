"""
Offline inspection of the local steptrack store.

Usage:
    python -m steptrack summary     # achievements, streak, today's goal
    python -m steptrack sessions    # recent completed tracking sessions
    python -m steptrack goal 8000   # set the daily step goal
"""
import argparse
import logging
from datetime import datetime

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(name)s %(levelname)s %(message)s",
)
logger = logging.getLogger(__name__)


def _open_store():
    from steptrack.db.engine import get_engine
    from steptrack.storage.kv import SqlKeyValueStore

    return SqlKeyValueStore(get_engine())


def _summary() -> None:
    from steptrack.analysis.steps import estimate_calories, estimate_distance_km, goal_progress
    from steptrack.config import get_settings
    from steptrack.rewards.engine import RewardsEngine
    from steptrack.steps.history import StepHistory

    settings = get_settings()
    store = _open_store()
    rewards = RewardsEngine(store, reset_streak_on_gap=settings.reset_streak_on_gap)
    history = StepHistory(
        store,
        limit=settings.step_history_limit,
        default_goal=settings.default_daily_goal,
    )

    print(
        f"Achievements: {rewards.unlocked_count}/{rewards.total_count} "
        f"({rewards.completion_percentage}%)"
    )
    print(f"Current streak: {rewards.streak.current_streak} days")
    print(f"Goals reached: {rewards.goals_reached}")
    print(f"Daily goal: {history.get_daily_goal()}")
    records = history.records()
    if records:
        latest = records[0]
        print(
            f"Latest day {latest.day.isoformat()}: {latest.steps} steps "
            f"({goal_progress(latest.steps, latest.goal):.0%} of goal), "
            f"{estimate_distance_km(latest.steps):.2f} km, "
            f"{estimate_calories(latest.steps)} kcal"
        )
    for a in rewards.achievements:
        status = "unlocked" if a.unlocked else f"{a.progress_percent or 0}%"
        print(f"  {a.icon} {a.title:<16} {status}")


def _sessions() -> None:
    from steptrack.analysis.formatting import format_distance, format_duration, format_pace
    from steptrack.config import get_settings
    from steptrack.storage.sessions import SessionHistory

    settings = get_settings()
    history = SessionHistory(_open_store(), limit=settings.session_history_limit)
    records = history.records()
    if not records:
        print("No sessions recorded.")
        return
    for r in records:
        started = datetime.fromtimestamp(r.start_timestamp_ms / 1000)
        print(
            f"{started:%Y-%m-%d %H:%M}  {format_distance(r.distance_meters):>8}  "
            f"{format_duration(r.duration_ms // 1000):>8}  {format_pace(r.avg_speed_kmh)}"
        )


def _set_goal(goal: int) -> None:
    from steptrack.steps.history import StepHistory

    if StepHistory(_open_store()).set_daily_goal(goal):
        logger.info("Daily goal set to %d", goal)


def main() -> None:
    parser = argparse.ArgumentParser(prog="steptrack", description=__doc__.splitlines()[1])
    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("summary", help="Show achievements, streak and goal")
    sub.add_parser("sessions", help="List recent tracking sessions")
    goal_parser = sub.add_parser("goal", help="Set the daily step goal")
    goal_parser.add_argument("steps", type=int)
    args = parser.parse_args()

    if args.command == "summary":
        _summary()
    elif args.command == "sessions":
        _sessions()
    else:
        if args.steps <= 0:
            parser.error("goal must be a positive number of steps")
        _set_goal(args.steps)


if __name__ == "__main__":
    main()
