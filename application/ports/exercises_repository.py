"""
Exercises Repository Interface (Port).

This module defines the abstract interface for reading the canonical
exercise catalog. The catalog's own CRUD lives elsewhere; goal evaluation
only reads muscle-group information from it.
"""
from typing import Protocol, List, Dict, Any


class ExercisesRepository(Protocol):
    """
    Abstract interface for reading canonical exercises.

    Rows carry at least id, name, aliases, primary_muscles and
    secondary_muscles.
    """

    def get_all(self, limit: int = 500) -> List[Dict[str, Any]]:
        """
        Get all exercises from the catalog.

        Args:
            limit: Maximum number of exercises to return

        Returns:
            List of exercise dictionaries
        """
        ...
