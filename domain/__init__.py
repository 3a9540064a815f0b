"""
Domain layer for the Goal Progress API.

This package contains pure domain models and converters that are independent
of infrastructure concerns (database, API, external services).
"""

from domain.models import (
    ExerciseMuscles,
    Goal,
    GoalStatus,
    GoalType,
    Session,
    parse_goal,
)

__all__ = [
    "ExerciseMuscles",
    "Goal",
    "GoalStatus",
    "GoalType",
    "Session",
    "parse_goal",
]
