"""Backend services for the Goal Progress API."""

from backend.services.goal_store import (
    CreatedGoal,
    GoalProgress,
    GoalStats,
    GoalStore,
    RecomputeResult,
)

__all__ = [
    "GoalStore",
    "GoalProgress",
    "GoalStats",
    "CreatedGoal",
    "RecomputeResult",
]
