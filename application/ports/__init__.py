"""
Repository Interfaces (Ports) for the Goal Progress API.

This package defines abstract interfaces that decouple the goal engine from
infrastructure (database, notification delivery). Implementations are
provided in the infrastructure layer.

Architecture follows the Ports & Adapters (Hexagonal) pattern:
- Ports: Abstract interfaces defined here (what the engine needs)
- Adapters: Concrete implementations in infrastructure/ (how it's provided)

Usage:
    from application.ports import GoalRepository, SessionRepository

    class GoalStore:
        def __init__(self, goal_repo: GoalRepository, session_repo: SessionRepository):
            self._goal_repo = goal_repo
            self._session_repo = session_repo
"""

# Goal persistence
from application.ports.goal_repository import GoalRepository

# Session history (read-only)
from application.ports.session_repository import SessionRepository

# Canonical exercises
from application.ports.exercises_repository import ExercisesRepository

# Milestone notification delivery
from application.ports.milestone_notifier import (
    MilestoneNotifier,
    MilestoneNotification,
)

__all__ = [
    "GoalRepository",
    "SessionRepository",
    "ExercisesRepository",
    "MilestoneNotifier",
    "MilestoneNotification",
]
