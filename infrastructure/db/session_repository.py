"""
Supabase Session Repository Implementation.

Reads completed sessions from the workout_completions table. Exercise
detail comes from the execution_log JSONB column: each interval is one
logged exercise with its sets. Records are returned as plain dicts; time
normalization happens in domain.converters.session_converters.
"""
from typing import Dict, Any, List
import logging

from supabase import Client

from application.exceptions import GoalPersistenceError

logger = logging.getLogger(__name__)


def completion_to_session_record(record: Dict[str, Any]) -> Dict[str, Any]:
    """
    Flatten one workout_completions row into a session record.

    Intervals without any sets (rest blocks, timed warm-ups) carry no volume
    and are dropped.
    """
    execution_log = record.get("execution_log") or {}
    exercises = []
    for interval in execution_log.get("intervals") or []:
        sets = interval.get("sets") or []
        if not sets:
            continue
        exercises.append({
            "name": interval.get("planned_name") or interval.get("name") or "",
            "exercise_id": interval.get("canonical_exercise_id"),
            "muscle_group": interval.get("muscle_group"),
            "sets": sets,
        })

    return {
        "id": record.get("id"),
        "completed_at": record.get("ended_at"),
        "started_at": record.get("started_at"),
        "exercises": exercises,
    }


class SupabaseSessionRepository:
    """
    Supabase implementation of SessionRepository.

    A row in workout_completions exists only once a workout has ended, so
    every row is a completed session.
    """

    def __init__(self, client: Client):
        """
        Initialize with Supabase client.

        Args:
            client: Supabase client instance (injected)
        """
        self._client = client

    def list_completed(self, owner_id: str) -> List[Dict[str, Any]]:
        try:
            result = self._client.table("workout_completions") \
                .select("id, started_at, ended_at, execution_log") \
                .eq("user_id", owner_id) \
                .order("ended_at", desc=False) \
                .execute()
        except Exception as e:
            logger.exception(f"Error fetching sessions for {owner_id}")
            raise GoalPersistenceError(f"Could not fetch sessions: {e}") from e

        return [completion_to_session_record(r) for r in result.data or []]
