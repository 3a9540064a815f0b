"""
Supabase Goal Repository Implementation.

This module implements the GoalRepository protocol over the ``goals`` table.
Type-specific goal fields live in the ``definition`` JSONB column; the
envelope (status, milestones, timestamps) has its own columns so it can be
filtered and updated without touching the definition.

Milestone columns are changed with a read-merge-write guarded by a
compare-and-set on ``updated_at``, retried a bounded number of times.
Status transitions are conditional on the stored status.
"""
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple
import logging

from pydantic import ValidationError
from supabase import Client

from application.exceptions import GoalPersistenceError
from domain.converters.goal_converters import (
    db_row_to_goal,
    goal_to_db_row,
    split_goal_fields,
)
from domain.models import Goal, MILESTONE_THRESHOLDS

logger = logging.getLogger(__name__)

TABLE = "goals"

# Compare-and-set attempts before a milestone write gives up
MAX_CAS_ATTEMPTS = 5

Row = Dict[str, Any]


def _utcnow_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _to_goal(row: Row) -> Goal:
    """Convert a stored row, reporting malformed rows as persistence failures."""
    try:
        return db_row_to_goal(row)
    except ValidationError as e:
        logger.error(f"Malformed goal row {row.get('id')}: {e}")
        raise GoalPersistenceError(f"Stored goal {row.get('id')} is malformed") from e


class SupabaseGoalRepository:
    """
    Supabase implementation of GoalRepository.

    Every client failure, and every stored row that no longer forms a valid
    goal, is wrapped in GoalPersistenceError so callers can tell I/O
    failures apart from a missing goal.
    """

    def __init__(self, client: Client):
        """
        Initialize with Supabase client.

        Args:
            client: Supabase client instance (injected, not global)
        """
        self._client = client

    def _fetch_row(self, goal_id: str) -> Optional[Row]:
        result = self._client.table(TABLE).select("*").eq("id", goal_id).limit(1).execute()
        if result.data and len(result.data) > 0:
            return result.data[0]
        return None

    def _compare_and_set(
        self,
        goal_id: str,
        action: str,
        changes_for: Callable[[Row], Optional[Row]],
    ) -> Tuple[Optional[Row], Optional[Row]]:
        """
        Read-merge-write one goal row, guarded by its updated_at.

        changes_for receives the stored row and returns the columns to write,
        or None when nothing needs writing.

        Returns:
            (before, after): the row the winning attempt read and the row as
            stored afterwards. Both are None if the goal does not exist.
        """
        try:
            for attempt in range(1, MAX_CAS_ATTEMPTS + 1):
                row = self._fetch_row(goal_id)
                if row is None:
                    return None, None

                changes = changes_for(row)
                if changes is None:
                    return row, row

                query = self._client.table(TABLE) \
                    .update({**changes, "updated_at": _utcnow_iso()}) \
                    .eq("id", goal_id)
                if row.get("updated_at") is None:
                    query = query.is_("updated_at", "null")
                else:
                    query = query.eq("updated_at", row["updated_at"])

                result = query.execute()
                if result.data:
                    return row, result.data[0]

                logger.info(f"Write to {action} goal {goal_id} lost a race (attempt {attempt})")
        except Exception as e:
            logger.exception(f"Error trying to {action} goal {goal_id}")
            raise GoalPersistenceError(f"Could not {action} goal {goal_id}: {e}") from e

        raise GoalPersistenceError(
            f"Could not {action} goal {goal_id} after {MAX_CAS_ATTEMPTS} attempts"
        )

    def list_for_owner(self, owner_id: str) -> List[Goal]:
        try:
            result = self._client.table(TABLE) \
                .select("*") \
                .eq("owner_id", owner_id) \
                .order("created_at", desc=True) \
                .execute()
        except Exception as e:
            logger.exception(f"Error listing goals for {owner_id}")
            raise GoalPersistenceError(f"Could not list goals: {e}") from e

        goals = []
        for row in result.data or []:
            try:
                goals.append(db_row_to_goal(row))
            except ValidationError as e:
                logger.warning(f"Skipping malformed goal row {row.get('id')}: {e}")
        return goals

    def get(self, goal_id: str) -> Optional[Goal]:
        try:
            row = self._fetch_row(goal_id)
        except Exception as e:
            logger.exception(f"Error fetching goal {goal_id}")
            raise GoalPersistenceError(f"Could not fetch goal {goal_id}: {e}") from e
        return _to_goal(row) if row else None

    def create(self, goal: Goal) -> Goal:
        row = goal_to_db_row(goal)
        try:
            result = self._client.table(TABLE).insert(row).execute()
        except Exception as e:
            logger.exception(f"Error creating {goal.type} goal for {goal.owner_id}")
            raise GoalPersistenceError(f"Could not create goal: {e}") from e

        if not result.data:
            raise GoalPersistenceError("Goal insert returned no row")
        return _to_goal(result.data[0])

    def update(
        self,
        goal_id: str,
        fields: Dict[str, Any],
        expected_status: Optional[str] = None,
    ) -> Optional[Goal]:
        columns, definition_updates = split_goal_fields(fields)
        try:
            if definition_updates:
                row = self._fetch_row(goal_id)
                if row is None:
                    return None
                columns["definition"] = {**(row.get("definition") or {}), **definition_updates}

            query = self._client.table(TABLE).update(columns).eq("id", goal_id)
            if expected_status is not None:
                query = query.eq("status", expected_status)
            result = query.execute()
        except Exception as e:
            logger.exception(f"Error updating goal {goal_id}")
            raise GoalPersistenceError(f"Could not update goal {goal_id}: {e}") from e

        if not result.data:
            return None
        return _to_goal(result.data[0])

    def add_milestones(self, goal_id: str, thresholds: Iterable[int]) -> Optional[Goal]:
        additions = {t for t in thresholds if t in MILESTONE_THRESHOLDS}

        def merge(row: Row) -> Optional[Row]:
            reached = set(row.get("milestones_reached") or [])
            new = additions - reached
            if not new:
                return None
            pending = set(row.get("pending_milestones") or [])
            return {
                "milestones_reached": sorted(reached | new),
                "pending_milestones": sorted(pending | new),
            }

        _, row = self._compare_and_set(goal_id, "add milestones to", merge)
        return _to_goal(row) if row else None

    def claim_pending_milestones(self, goal_id: str) -> List[int]:
        def take(row: Row) -> Optional[Row]:
            return {"pending_milestones": []} if row.get("pending_milestones") else None

        before, _ = self._compare_and_set(goal_id, "claim milestones of", take)
        if before is None:
            return []
        return sorted(before.get("pending_milestones") or [])

    def requeue_milestones(self, goal_id: str, thresholds: Iterable[int]) -> Optional[Goal]:
        requeued = {t for t in thresholds if t in MILESTONE_THRESHOLDS}

        def merge(row: Row) -> Optional[Row]:
            pending = set(row.get("pending_milestones") or [])
            if requeued <= pending:
                return None
            return {"pending_milestones": sorted(pending | requeued)}

        _, row = self._compare_and_set(goal_id, "requeue milestones of", merge)
        return _to_goal(row) if row else None

    def delete(self, goal_id: str) -> bool:
        try:
            result = self._client.table(TABLE).delete().eq("id", goal_id).execute()
        except Exception as e:
            logger.exception(f"Error deleting goal {goal_id}")
            raise GoalPersistenceError(f"Could not delete goal {goal_id}: {e}") from e
        return bool(result.data)
