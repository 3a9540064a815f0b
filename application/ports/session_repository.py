"""
Session Repository Interface (Port).

This module defines the abstract interface for reading completed training
sessions. Sessions are read-only input; records are returned raw and
normalized by domain.converters.session_converters at the ingestion boundary.
"""
from typing import Protocol, List, Dict, Any


class SessionRepository(Protocol):
    """
    Abstract interface for session history access.
    """

    def list_completed(self, owner_id: str) -> List[Dict[str, Any]]:
        """
        Get every completed session of a user.

        Args:
            owner_id: User ID

        Returns:
            List of raw session dicts, each with:
                - id: str
                - completed_at: timestamp in any supported representation
                - exercises: List of {name, exercise_id, sets: [{weight, reps}]}
        """
        ...
