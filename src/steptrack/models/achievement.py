"""Achievement, streak and evaluation result models."""
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class AchievementCategory(str, Enum):
    STEPS = "steps"    # steps walked in a single day
    STREAK = "streak"  # consecutive days the goal was met
    GOAL = "goal"      # lifetime number of days the goal was met


@dataclass(frozen=True)
class AchievementDefinition:
    """Immutable catalog entry. Fixed at process start."""

    id: str
    title: str
    description: str
    icon: str
    requirement: int
    category: AchievementCategory


class Achievement(BaseModel):
    """
    A catalog entry plus the user's mutable state for it.

    Once unlocked, unlocked_at_ms is set and progress_percent is no longer
    meaningful. While locked, progress_percent stays in 0..99.
    """

    id: str
    title: str
    description: str
    icon: str
    requirement: int
    category: AchievementCategory
    unlocked: bool = False
    unlocked_at_ms: Optional[int] = None
    progress_percent: Optional[int] = Field(default=None, ge=0, le=99)

    @classmethod
    def from_definition(cls, definition: AchievementDefinition) -> "Achievement":
        return cls(
            id=definition.id,
            title=definition.title,
            description=definition.description,
            icon=definition.icon,
            requirement=definition.requirement,
            category=definition.category,
        )


class StreakState(BaseModel):
    """Consecutive-day goal streak. Persisted as {streak, lastUpdateDate}."""

    current_streak: int = Field(default=0, ge=0, alias="streak")
    last_goal_met_date: Optional[date] = Field(default=None, alias="lastUpdateDate")

    model_config = ConfigDict(populate_by_name=True)


class EvaluationResult(BaseModel):
    """Outcome of one RewardsEngine.evaluate() call."""

    achievements: List[Achievement]
    streak: StreakState
    goals_reached: int
    unlocked: List[Achievement] = Field(default_factory=list)
    goal_counted: bool = False  # True if this call counted today's goal
