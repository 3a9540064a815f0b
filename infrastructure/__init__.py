"""
Infrastructure Layer for the Goal Progress API.

This package contains concrete implementations of the application ports:
- db/: Supabase database implementations
- notifications: milestone notification delivery
"""

from infrastructure.db import (
    SupabaseGoalRepository,
    SupabaseSessionRepository,
    SupabaseExercisesRepository,
)
from infrastructure.notifications import LoggingMilestoneNotifier

__all__ = [
    "SupabaseGoalRepository",
    "SupabaseSessionRepository",
    "SupabaseExercisesRepository",
    "LoggingMilestoneNotifier",
]
