"""
Domain models for the Goal Progress API.

This package contains pure domain models that are independent of
infrastructure concerns (database, API, external services).

These models represent the core business concepts:
- Goal: Tagged variant (strength, volume, frequency, streak) with a common envelope
- Session: A completed training session (read-only input)
- ExerciseMuscles: Catalog lookup value for muscle-group matching

Usage:
    >>> from domain.models import parse_goal, GoalStatus

    >>> goal = parse_goal({
    ...     "type": "frequency",
    ...     "owner_id": "user_1",
    ...     "frequency_type": "total",
    ...     "target_count": 4,
    ...     "period": "week",
    ... })
    >>> goal.status == GoalStatus.ACTIVE
    True
"""

from domain.models.exercise import ExerciseMuscles
from domain.models.goal import (
    ALLOWED_TRANSITIONS,
    MILESTONE_THRESHOLDS,
    FrequencyGoal,
    FrequencyType,
    Goal,
    GoalStatus,
    GoalType,
    Period,
    StreakGoal,
    StreakType,
    StrengthGoal,
    VolumeGoal,
    VolumeType,
    can_transition,
    parse_goal,
)
from domain.models.session import ExerciseEntry, Session, SetEntry, normalize_name

__all__ = [
    # Goals
    "Goal",
    "StrengthGoal",
    "VolumeGoal",
    "FrequencyGoal",
    "StreakGoal",
    "parse_goal",
    "can_transition",
    "ALLOWED_TRANSITIONS",
    "MILESTONE_THRESHOLDS",
    # Enums
    "GoalType",
    "GoalStatus",
    "Period",
    "VolumeType",
    "FrequencyType",
    "StreakType",
    # Sessions
    "Session",
    "ExerciseEntry",
    "SetEntry",
    "normalize_name",
    # Catalog
    "ExerciseMuscles",
]
