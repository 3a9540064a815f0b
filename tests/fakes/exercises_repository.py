"""
Fake ExercisesRepository for testing.

This module provides an in-memory fake implementation of ExercisesRepository
for unit testing without database access.
"""
from typing import Optional, List, Dict, Any


class FakeExercisesRepository:
    """
    In-memory fake implementation of ExercisesRepository for testing.

    Pre-populated with common exercises and their muscle profiles.
    """

    def __init__(self, exercises: Optional[List[Dict[str, Any]]] = None):
        """
        Initialize with optional custom exercise list.

        Args:
            exercises: Custom exercise list, or None for default test data
        """
        if exercises is not None:
            self._exercises = exercises
        else:
            self._exercises = self._default_exercises()

    def _default_exercises(self) -> List[Dict[str, Any]]:
        """Return default test exercises."""
        return [
            {
                "id": "barbell-bench-press",
                "name": "Barbell Bench Press",
                "aliases": ["Bench Press", "Flat Bench Press", "BB Bench"],
                "primary_muscles": ["chest"],
                "secondary_muscles": ["anterior_deltoid", "triceps"],
            },
            {
                "id": "barbell-back-squat",
                "name": "Barbell Back Squat",
                "aliases": ["Back Squat", "Squat", "BB Squat"],
                "primary_muscles": ["quadriceps", "glutes"],
                "secondary_muscles": ["hamstrings", "core", "lower_back"],
            },
            {
                "id": "conventional-deadlift",
                "name": "Conventional Deadlift",
                "aliases": ["Deadlift", "Barbell Deadlift"],
                "primary_muscles": ["lower_back", "glutes", "hamstrings"],
                "secondary_muscles": ["traps", "forearms", "quadriceps"],
            },
            {
                "id": "pull-up",
                "name": "Pull-Up",
                "aliases": ["Pullup", "Pull Up"],
                "primary_muscles": ["lats"],
                "secondary_muscles": ["biceps", "rhomboids"],
            },
            {
                "id": "triceps-pushdown",
                "name": "Triceps Pushdown",
                "aliases": ["Cable Pushdown"],
                "primary_muscles": ["triceps"],
                "secondary_muscles": [],
            },
        ]

    def reset(self) -> None:
        self._exercises = self._default_exercises()

    def seed(self, exercises: List[Dict[str, Any]]) -> None:
        self._exercises.extend(exercises)

    def get_all(self, limit: int = 500) -> List[Dict[str, Any]]:
        return self._exercises[:limit]
