"""
Supabase implementation of ExercisesRepository.

This module provides the concrete Supabase implementation for reading
the canonical exercises table. Goal evaluation reads the primary and
secondary muscles of each exercise to score muscle-group goals.
"""
import logging
from typing import List, Dict, Any

from supabase import Client

logger = logging.getLogger(__name__)


class SupabaseExercisesRepository:
    """Supabase implementation of ExercisesRepository protocol."""

    def __init__(self, client: Client):
        """
        Initialize with Supabase client.

        Args:
            client: Supabase client instance (injected, not global)
        """
        self._client = client

    def get_all(self, limit: int = 500) -> List[Dict[str, Any]]:
        """
        Get all exercises from the database.

        Args:
            limit: Maximum number of exercises to return

        Returns:
            List of exercise dictionaries (empty on failure)
        """
        try:
            result = self._client.table("exercises") \
                .select("id, name, aliases, primary_muscles, secondary_muscles") \
                .limit(limit) \
                .execute()
            return result.data or []
        except Exception:
            logger.exception("Error fetching all exercises")
            return []
