"""
Fake SessionRepository for testing.

Stores raw session records per owner, in the same loose shape the real
source returns, so ingestion normalization is exercised too.
"""
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple
import uuid

from application.exceptions import GoalPersistenceError

SetSpec = Tuple[float, int]


def session_record(
    completed_at: Any,
    exercises: Optional[Mapping[str, Sequence[SetSpec]]] = None,
    session_id: Optional[str] = None,
    muscle_groups: Optional[Mapping[str, str]] = None,
    exercise_ids: Optional[Mapping[str, str]] = None,
) -> Dict[str, Any]:
    """
    Build a raw session record.

    Args:
        completed_at: Completion time in any supported representation
        exercises: Exercise name -> list of (weight, reps) sets
        session_id: Record ID (generated if omitted)
        muscle_groups: Exercise name -> muscle group recorded on the entry
        exercise_ids: Exercise name -> catalog ID
    """
    muscle_groups = muscle_groups or {}
    exercise_ids = exercise_ids or {}
    return {
        "id": session_id or str(uuid.uuid4()),
        "completed_at": completed_at,
        "exercises": [
            {
                "name": name,
                "exercise_id": exercise_ids.get(name),
                "muscle_group": muscle_groups.get(name),
                "sets": [{"weight": w, "reps": r} for w, r in sets],
            }
            for name, sets in (exercises or {}).items()
        ],
    }


class FakeSessionRepository:
    """
    In-memory fake implementation of SessionRepository for testing.

    Usage:
        repo = FakeSessionRepository()
        repo.seed("user1", [session_record(now, {"Bench Press": [(100, 5)]})])
    """

    def __init__(self):
        """Initialize with empty storage."""
        self._records: Dict[str, List[Dict[str, Any]]] = {}
        self.fail_next_read = False

    def reset(self) -> None:
        self._records.clear()
        self.fail_next_read = False

    def seed(self, owner_id: str, records: Iterable[Dict[str, Any]]) -> None:
        self._records.setdefault(owner_id, []).extend(records)

    def add(self, owner_id: str, record: Dict[str, Any]) -> None:
        self._records.setdefault(owner_id, []).append(record)

    def list_completed(self, owner_id: str) -> List[Dict[str, Any]]:
        if self.fail_next_read:
            self.fail_next_read = False
            raise GoalPersistenceError("Injected session read failure")
        return [dict(r) for r in self._records.get(owner_id, [])]
