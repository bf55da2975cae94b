"""The fixed achievement catalog."""
from typing import Tuple

from steptrack.models.achievement import AchievementCategory as Cat
from steptrack.models.achievement import AchievementDefinition as Def

DEFAULT_CATALOG: Tuple[Def, ...] = (
    # Steps in a single day
    Def("first_steps", "First Steps", "Take your first 100 steps", "👣", 100, Cat.STEPS),
    Def("walker", "Walker", "Walk 1,000 steps in a day", "🚶", 1000, Cat.STEPS),
    Def("explorer", "Explorer", "Walk 5,000 steps in a day", "🥾", 5000, Cat.STEPS),
    Def("achiever", "Achiever", "Reach 10,000 steps in a day", "⭐", 10000, Cat.STEPS),
    Def("champion", "Champion", "Walk 15,000 steps in a day", "🏆", 15000, Cat.STEPS),
    Def("marathon", "Marathon", "Walk 20,000 steps in a day", "👑", 20000, Cat.STEPS),
    Def("legend", "Legend", "Walk 30,000 steps in a day", "💎", 30000, Cat.STEPS),
    Def("superhuman", "Superhuman", "Walk 50,000 steps in a day", "🌟", 50000, Cat.STEPS),
    # Consecutive days
    Def("consistent", "Consistent", "Reach your goal 3 days in a row", "🔥", 3, Cat.STREAK),
    Def("dedicated", "Dedicated", "Reach your goal 7 days in a row", "💪", 7, Cat.STREAK),
    Def("unstoppable", "Unstoppable", "Reach your goal 30 days in a row", "⚡", 30, Cat.STREAK),
    # Lifetime goal count
    Def("goal_first", "Goal Getter", "Reach your daily goal", "🎯", 1, Cat.GOAL),
    Def("goal_10", "Perfect Week", "Reach your goal 10 times", "✨", 10, Cat.GOAL),
    Def("goal_50", "Fitness Master", "Reach your goal 50 times", "🎖️", 50, Cat.GOAL),
)
