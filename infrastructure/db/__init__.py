"""
Supabase database implementations of the repository ports.
"""

from infrastructure.db.goal_repository import SupabaseGoalRepository
from infrastructure.db.session_repository import SupabaseSessionRepository
from infrastructure.db.exercises_repository import SupabaseExercisesRepository

__all__ = [
    "SupabaseGoalRepository",
    "SupabaseSessionRepository",
    "SupabaseExercisesRepository",
]
