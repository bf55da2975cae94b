"""
Rough estimates derived from a raw step count.

These are the same flat per-step constants the home screen displays;
they are not personalised by stride length or body weight.
"""

KCAL_PER_STEP = 0.04
KM_PER_STEP = 0.0008


def estimate_calories(steps: int) -> int:
    return round(steps * KCAL_PER_STEP)


def estimate_distance_km(steps: int) -> float:
    return steps * KM_PER_STEP


def goal_progress(steps: int, daily_goal: int) -> float:
    """Fraction of the daily goal reached (may exceed 1.0). Zero for a non-positive goal."""
    if daily_goal <= 0:
        return 0.0
    return steps / daily_goal
