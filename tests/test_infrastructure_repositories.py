"""
Tests for the Supabase repository implementations.

The Supabase client is replaced by a MagicMock whose query builder returns
itself from every chained call, with scripted ``execute()`` results.
"""
import pytest
from datetime import datetime, timezone
from unittest.mock import MagicMock

from application.exceptions import GoalPersistenceError
from domain.models import GoalStatus, StrengthGoal
from infrastructure.db.exercises_repository import SupabaseExercisesRepository
from infrastructure.db.goal_repository import MAX_CAS_ATTEMPTS, SupabaseGoalRepository
from infrastructure.db.session_repository import (
    SupabaseSessionRepository,
    completion_to_session_record,
)

# All tests in this module are pure logic tests with mocks - mark as unit
pytestmark = pytest.mark.unit

BUILDER_METHODS = ("select", "eq", "is_", "limit", "order", "insert", "update", "delete")


def make_client(*responses):
    """
    Build a mock Supabase client.

    Each response is the ``data`` of one execute() call, or an exception
    instance to raise from it.
    """
    query = MagicMock()
    for method in BUILDER_METHODS:
        getattr(query, method).return_value = query
    query.execute.side_effect = [
        r if isinstance(r, Exception) else MagicMock(data=r) for r in responses
    ]
    client = MagicMock()
    client.table.return_value = query
    return client, query


def goal_row(**overrides):
    row = {
        "id": "g1",
        "owner_id": "user1",
        "type": "strength",
        "status": "active",
        "milestones_reached": [25],
        "definition": {
            "exercise_name": "Bench Press",
            "target_weight": 130,
            "current_weight": 100,
            "deadline": "2026-06-01T00:00:00+00:00",
        },
        "notes": None,
        "created_at": "2026-03-01T00:00:00+00:00",
        "updated_at": "2026-03-10T00:00:00+00:00",
    }
    row.update(overrides)
    return row


# ============================================================================
# SupabaseGoalRepository
# ============================================================================


class TestGoalRepositoryReads:
    """list_for_owner and get."""

    def test_list_for_owner(self):
        client, query = make_client([goal_row(), goal_row(id="g2", type="unknown")])
        repo = SupabaseGoalRepository(client)

        goals = repo.list_for_owner("user1")

        assert [g.id for g in goals] == ["g1"]
        client.table.assert_called_with("goals")
        query.eq.assert_called_with("owner_id", "user1")
        query.order.assert_called_with("created_at", desc=True)

    def test_list_failure_is_wrapped(self):
        client, _ = make_client(RuntimeError("connection reset"))
        with pytest.raises(GoalPersistenceError, match="connection reset"):
            SupabaseGoalRepository(client).list_for_owner("user1")

    def test_get(self):
        client, _ = make_client([goal_row()])
        goal = SupabaseGoalRepository(client).get("g1")

        assert isinstance(goal, StrengthGoal)
        assert goal.milestones_reached == [25]
        assert goal.updated_at == datetime(2026, 3, 10, tzinfo=timezone.utc)

    def test_get_missing(self):
        client, _ = make_client([])
        assert SupabaseGoalRepository(client).get("nope") is None

    def test_get_malformed_row_is_wrapped(self):
        client, _ = make_client([goal_row(definition={"exercise_name": "Bench Press"})])

        with pytest.raises(GoalPersistenceError, match="malformed"):
            SupabaseGoalRepository(client).get("g1")


class TestGoalRepositoryWrites:
    """create, update and delete."""

    def test_create(self):
        client, query = make_client([goal_row(id="new-id")])
        goal = StrengthGoal(
            owner_id="user1",
            exercise_name="Bench Press",
            target_weight=130,
            deadline=datetime(2026, 6, 1, tzinfo=timezone.utc),
        )

        stored = SupabaseGoalRepository(client).create(goal)

        assert stored.id == "new-id"
        inserted = query.insert.call_args[0][0]
        assert "id" not in inserted
        assert inserted["definition"]["exercise_name"] == "Bench Press"

    def test_create_without_returned_row(self):
        client, _ = make_client([])
        goal = StrengthGoal(
            owner_id="user1",
            exercise_name="Bench Press",
            target_weight=130,
            deadline=datetime(2026, 6, 1, tzinfo=timezone.utc),
        )
        with pytest.raises(GoalPersistenceError):
            SupabaseGoalRepository(client).create(goal)

    def test_update_envelope_only(self):
        client, query = make_client([goal_row(status="paused")])

        goal = SupabaseGoalRepository(client).update("g1", {"status": "paused"})

        assert goal.status == GoalStatus.PAUSED
        query.update.assert_called_once_with({"status": "paused"})
        assert query.execute.call_count == 1

    def test_update_merges_definition(self):
        updated = goal_row()
        updated["definition"] = {**updated["definition"], "target_weight": 140}
        client, query = make_client([goal_row()], [updated])

        goal = SupabaseGoalRepository(client).update(
            "g1", {"target_weight": 140, "updated_at": "2026-03-18T12:00:00+00:00"}
        )

        assert goal.target_weight == 140
        written = query.update.call_args[0][0]
        assert written["updated_at"] == "2026-03-18T12:00:00+00:00"
        assert written["definition"]["target_weight"] == 140
        assert written["definition"]["exercise_name"] == "Bench Press"

    def test_update_missing_goal(self):
        client, _ = make_client([])
        assert SupabaseGoalRepository(client).update("nope", {"target_weight": 1}) is None

    def test_update_with_expected_status(self):
        client, query = make_client([goal_row(status="completed")])

        goal = SupabaseGoalRepository(client).update(
            "g1", {"status": "completed"}, expected_status="active"
        )

        assert goal.status == GoalStatus.COMPLETED
        query.eq.assert_any_call("status", "active")

    def test_update_skipped_when_status_changed(self):
        client, _ = make_client([])

        assert SupabaseGoalRepository(client).update(
            "g1", {"status": "completed"}, expected_status="active"
        ) is None

    def test_update_malformed_row_is_wrapped(self):
        client, _ = make_client([goal_row(status="archived")])

        with pytest.raises(GoalPersistenceError, match="malformed"):
            SupabaseGoalRepository(client).update("g1", {"notes": "x"})

    def test_delete(self):
        client, _ = make_client([goal_row()], [])
        repo = SupabaseGoalRepository(client)

        assert repo.delete("g1") is True
        assert repo.delete("g1") is False

    def test_delete_failure_is_wrapped(self):
        client, _ = make_client(RuntimeError("boom"))
        with pytest.raises(GoalPersistenceError):
            SupabaseGoalRepository(client).delete("g1")


class TestAddMilestones:
    """Compare-and-set milestone merge."""

    def test_merges_with_stored_thresholds(self):
        client, query = make_client([goal_row()], [goal_row(milestones_reached=[25, 50, 75])])

        goal = SupabaseGoalRepository(client).add_milestones("g1", [75, 50])

        assert goal.milestones_reached == [25, 50, 75]
        written = query.update.call_args[0][0]
        assert written["milestones_reached"] == [25, 50, 75]
        assert written["pending_milestones"] == [50, 75]
        query.eq.assert_any_call("updated_at", "2026-03-10T00:00:00+00:00")

    def test_retries_after_lost_race(self):
        client, query = make_client(
            [goal_row()],
            [],  # another writer changed updated_at
            [goal_row(milestones_reached=[25, 50], updated_at="2026-03-11T00:00:00+00:00")],
            [goal_row(milestones_reached=[25, 50, 75])],
        )

        goal = SupabaseGoalRepository(client).add_milestones("g1", [50, 75])

        assert goal.milestones_reached == [25, 50, 75]
        query.eq.assert_any_call("updated_at", "2026-03-11T00:00:00+00:00")

    def test_null_updated_at_uses_is_null(self):
        client, query = make_client([goal_row(updated_at=None)], [goal_row(milestones_reached=[25, 50])])

        SupabaseGoalRepository(client).add_milestones("g1", [50])

        query.is_.assert_called_once_with("updated_at", "null")

    def test_nothing_new_skips_write(self):
        client, query = make_client([goal_row(milestones_reached=[25, 50])])

        goal = SupabaseGoalRepository(client).add_milestones("g1", [25])

        assert goal.milestones_reached == [25, 50]
        query.update.assert_not_called()

    def test_gives_up_after_max_attempts(self):
        client, _ = make_client(*([[goal_row()], []] * MAX_CAS_ATTEMPTS))

        with pytest.raises(GoalPersistenceError, match="after 5 attempts"):
            SupabaseGoalRepository(client).add_milestones("g1", [50])

    def test_missing_goal(self):
        client, _ = make_client([])
        assert SupabaseGoalRepository(client).add_milestones("g1", [50]) is None


class TestPendingMilestones:
    """Claiming and requeueing queued milestone notifications."""

    def test_claim_takes_every_pending_threshold(self):
        client, query = make_client(
            [goal_row(milestones_reached=[25, 50], pending_milestones=[50, 25])],
            [goal_row(milestones_reached=[25, 50])],
        )

        claimed = SupabaseGoalRepository(client).claim_pending_milestones("g1")

        assert claimed == [25, 50]
        assert query.update.call_args[0][0]["pending_milestones"] == []
        query.eq.assert_any_call("updated_at", "2026-03-10T00:00:00+00:00")

    def test_claim_with_nothing_pending(self):
        client, query = make_client([goal_row()])

        assert SupabaseGoalRepository(client).claim_pending_milestones("g1") == []
        query.update.assert_not_called()

    def test_claim_lost_to_concurrent_claimer(self):
        client, _ = make_client(
            [goal_row(pending_milestones=[25])],
            [],  # the other claimer wrote first
            [goal_row(updated_at="2026-03-11T00:00:00+00:00")],
        )

        assert SupabaseGoalRepository(client).claim_pending_milestones("g1") == []

    def test_claim_missing_goal(self):
        client, _ = make_client([])
        assert SupabaseGoalRepository(client).claim_pending_milestones("g1") == []

    def test_requeue_merges_with_pending(self):
        client, query = make_client(
            [goal_row(milestones_reached=[25, 50, 75, 90], pending_milestones=[90])],
            [goal_row(milestones_reached=[25, 50, 75, 90], pending_milestones=[50, 90])],
        )

        goal = SupabaseGoalRepository(client).requeue_milestones("g1", [50])

        assert goal.pending_milestones == [50, 90]
        assert query.update.call_args[0][0]["pending_milestones"] == [50, 90]


# ============================================================================
# SupabaseSessionRepository
# ============================================================================


class TestSessionRepository:
    """workout_completions -> session records."""

    COMPLETION = {
        "id": "c1",
        "started_at": "2026-03-17T17:00:00+00:00",
        "ended_at": "2026-03-17T18:00:00+00:00",
        "execution_log": {
            "intervals": [
                {"planned_name": "Warm-up", "sets": []},
                {
                    "planned_name": "Bench Press",
                    "canonical_exercise_id": "barbell-bench-press",
                    "sets": [{"weight": {"components": [{"value": 100, "unit": "kg"}]}, "reps_completed": 5}],
                },
            ]
        },
    }

    def test_completion_to_session_record(self):
        record = completion_to_session_record(self.COMPLETION)

        assert record["completed_at"] == "2026-03-17T18:00:00+00:00"
        assert [e["name"] for e in record["exercises"]] == ["Bench Press"]
        assert record["exercises"][0]["exercise_id"] == "barbell-bench-press"

    def test_missing_execution_log(self):
        record = completion_to_session_record({"id": "c2", "ended_at": "2026-03-17T18:00:00+00:00"})
        assert record["exercises"] == []

    def test_list_completed(self):
        client, query = make_client([self.COMPLETION])

        records = SupabaseSessionRepository(client).list_completed("user1")

        client.table.assert_called_with("workout_completions")
        query.eq.assert_called_with("user_id", "user1")
        assert records[0]["id"] == "c1"

    def test_read_failure_is_wrapped(self):
        client, _ = make_client(RuntimeError("timeout"))
        with pytest.raises(GoalPersistenceError):
            SupabaseSessionRepository(client).list_completed("user1")


# ============================================================================
# SupabaseExercisesRepository
# ============================================================================


class TestExercisesRepository:
    """Catalog lookups."""

    ROWS = [
        {"id": "barbell-bench-press", "name": "Barbell Bench Press", "primary_muscles": ["chest"]},
        {"id": "pull-up", "name": "Pull-Up", "primary_muscles": ["lats"]},
    ]

    def test_get_all(self):
        client, query = make_client(self.ROWS)
        assert SupabaseExercisesRepository(client).get_all(limit=10) == self.ROWS
        query.limit.assert_called_with(10)

    def test_get_all_failure_returns_empty(self):
        client, _ = make_client(RuntimeError("boom"))
        assert SupabaseExercisesRepository(client).get_all() == []
