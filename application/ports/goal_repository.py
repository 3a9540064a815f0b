"""
Goal Repository Interface (Port).

This module defines the abstract interface for goal persistence. The goal
store itself is an external collaborator; the engine only needs these
operations to keep its canonical goal list in sync.
"""
from typing import Protocol, Optional, List, Dict, Any, Iterable

from domain.models import Goal


class GoalRepository(Protocol):
    """
    Abstract interface for goal persistence.

    Implementations raise GoalPersistenceError when the backing store fails,
    so callers can tell I/O failures apart from "not found" (None).
    """

    def list_for_owner(self, owner_id: str) -> List[Goal]:
        """
        Get all goals owned by a user, newest first.

        Args:
            owner_id: Owning user ID

        Returns:
            List of goals (empty if none)
        """
        ...

    def get(self, goal_id: str) -> Optional[Goal]:
        """
        Get the currently persisted state of a goal.

        Args:
            goal_id: Goal ID

        Returns:
            Goal, or None if it does not exist
        """
        ...

    def create(self, goal: Goal) -> Goal:
        """
        Persist a new goal.

        Args:
            goal: Goal without an ID

        Returns:
            The stored goal, with its assigned ID
        """
        ...

    def update(
        self,
        goal_id: str,
        fields: Dict[str, Any],
        expected_status: Optional[str] = None,
    ) -> Optional[Goal]:
        """
        Apply a partial update to a goal.

        Args:
            goal_id: Goal ID
            fields: Field name -> new value (JSON-safe values)
            expected_status: Only write if the stored status still equals this

        Returns:
            The updated goal, or None if it does not exist or its status no
            longer matches expected_status
        """
        ...

    def add_milestones(self, goal_id: str, thresholds: Iterable[int]) -> Optional[Goal]:
        """
        Atomically union thresholds into the goal's milestones_reached.

        Concurrent calls for the same goal must not lose each other's
        thresholds. Thresholds already present are ignored. Thresholds this
        call actually adds are also queued in pending_milestones, so exactly
        one writer queues each threshold for notification.

        Args:
            goal_id: Goal ID
            thresholds: Milestone thresholds to add

        Returns:
            The updated goal, or None if it does not exist
        """
        ...

    def claim_pending_milestones(self, goal_id: str) -> List[int]:
        """
        Atomically take every queued threshold out of pending_milestones.

        Two concurrent claims never return the same threshold.

        Returns:
            Claimed thresholds, ascending (empty if none or goal missing)
        """
        ...

    def requeue_milestones(self, goal_id: str, thresholds: Iterable[int]) -> Optional[Goal]:
        """
        Put claimed thresholds back into pending_milestones after a failed delivery.

        Returns:
            The updated goal, or None if it does not exist
        """
        ...

    def delete(self, goal_id: str) -> bool:
        """
        Delete a goal.

        Args:
            goal_id: Goal ID

        Returns:
            True if a goal was deleted
        """
        ...
