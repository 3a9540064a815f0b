"""
Goal store - owner-scoped orchestration of goal state.

The store owns the canonical goal list for one owner and is the only
component that performs I/O. It:
- loads goals and completed sessions through the repository ports
- exposes read views and per-type progress snapshots
- runs explicit, owner-gated lifecycle operations
- runs the reactive pass (milestones, auto-complete, auto-fail) whenever
  new sessions arrive

Concurrency: within one store every write to a goal happens under that
goal's lock. Across stores the repository does the serializing: milestones
are merged by set union, each newly reached threshold is queued once and
announced only by the pass that claims it, and status writes only land
while the stored status is unchanged. Overlapping passes therefore neither
drop nor repeat a milestone, and a goal completes or fails once.

Lifecycle guards always read the persisted goal, never a cached copy,
which keeps the reactive pass idempotent: running it twice over unchanged
data emits nothing the second time.

Usage:
    store = GoalStore(
        owner_id="user_1",
        goal_repo=goal_repo,
        session_repo=session_repo,
        notifier=notifier,
    )
    store.load()
    store.record_session_arrival()
"""
import logging
import threading
from contextlib import contextmanager
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, Iterator, List, Mapping, Optional

from pydantic import ValidationError

from application.exceptions import (
    GoalError,
    GoalNotFoundError,
    GoalPermissionError,
    GoalPersistenceError,
    GoalTransitionError,
    GoalValidationError,
)
from application.ports import (
    ExercisesRepository,
    GoalRepository,
    MilestoneNotification,
    MilestoneNotifier,
    SessionRepository,
)
from backend.core.goal_validator import (
    GoalValidator,
    ValidationIssue,
    ValidationResult,
    ValidationSeverity,
    issues_from_pydantic,
)
from backend.core.milestone_detector import (
    COMPLETION_MILESTONE,
    detect_milestones,
    get_milestone_message,
)
from backend.core.progress_calculators import (
    ON_TRACK_STATUSES,
    PacingStatus,
    ProgressSnapshot,
    calculate_progress,
)
from backend.core.strength import best_historical_1rm
from backend.settings import Settings, get_settings
from domain.converters.exercise_converters import exercise_map_from_rows
from domain.converters.session_converters import sessions_from_records
from domain.models import (
    Goal,
    GoalStatus,
    GoalType,
    Session,
    StrengthGoal,
    can_transition,
    parse_goal,
)

logger = logging.getLogger(__name__)

# Fields a caller may never change through update_goal
IMMUTABLE_FIELDS = frozenset({
    "id",
    "owner_id",
    "type",
    "status",
    "milestones_reached",
    "pending_milestones",
    "created_at",
    "updated_at",
    "completed_at",
    "failed_at",
})


# =============================================================================
# Result DTOs
# =============================================================================


@dataclass
class GoalProgress:
    """A goal together with its current snapshot."""
    goal: Goal
    snapshot: ProgressSnapshot

    def to_dict(self) -> Dict[str, Any]:
        data = self.goal.model_dump(mode="json")
        data["progress"] = self.snapshot.to_dict()
        return data


@dataclass
class GoalStats:
    """Aggregate figures over the owner's goals."""
    total: int = 0
    active: int = 0
    completed: int = 0
    completion_rate: float = 0.0
    on_track: int = 0
    at_risk: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class CreatedGoal:
    """A stored goal plus the advisory warnings raised while validating it."""
    goal: Goal
    warnings: List[ValidationIssue] = field(default_factory=list)


@dataclass
class RecomputeResult:
    """Outcome of one reactive pass."""
    milestones: List[MilestoneNotification] = field(default_factory=list)
    completed: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)
    errors: List[Dict[str, str]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "milestones": [asdict(m) for m in self.milestones],
            "completed": list(self.completed),
            "failed": list(self.failed),
            "errors": list(self.errors),
        }


# =============================================================================
# Store
# =============================================================================


class GoalStore:
    """
    Canonical goal collection for one owner.

    Args:
        owner_id: The user whose goals this store manages
        goal_repo: Goal persistence
        session_repo: Completed-session source
        notifier: Milestone notification delivery
        exercises_repo: Exercise catalog for muscle-group goals (optional)
        settings: Application settings (defaults to get_settings())
        clock: Returns the current time (defaults to now in the configured timezone)
    """

    def __init__(
        self,
        owner_id: str,
        goal_repo: GoalRepository,
        session_repo: SessionRepository,
        notifier: MilestoneNotifier,
        exercises_repo: Optional[ExercisesRepository] = None,
        settings: Optional[Settings] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.owner_id = owner_id
        self._goal_repo = goal_repo
        self._session_repo = session_repo
        self._notifier = notifier
        self._exercises_repo = exercises_repo
        self._settings = settings or get_settings()
        self._validator = GoalValidator(self._settings)
        self._clock = clock or (lambda: datetime.now(self._settings.tzinfo))

        self._state_lock = threading.Lock()
        self._goal_locks: Dict[str, threading.Lock] = {}
        self._goals: List[Goal] = []
        self._sessions: List[Session] = []
        self._exercise_map: Optional[Dict[str, Any]] = None

        self.last_error: Optional[Exception] = None

    # -------------------------------------------------------------------------
    # Internal helpers
    # -------------------------------------------------------------------------

    def _now(self) -> datetime:
        return self._clock()

    def _lock_for(self, goal_id: str) -> threading.Lock:
        with self._state_lock:
            lock = self._goal_locks.get(goal_id)
            if lock is None:
                lock = threading.Lock()
                self._goal_locks[goal_id] = lock
            return lock

    @contextmanager
    def _recording_failures(self, action: str, goal_id: Optional[str] = None) -> Iterator[None]:
        """Log and record persistence failures, then re-raise."""
        try:
            yield
        except GoalPersistenceError as e:
            logger.exception(f"Failed to {action} (owner={self.owner_id}, goal={goal_id})")
            self.last_error = e
            raise

    def _replace_local(self, goal: Goal) -> None:
        with self._state_lock:
            for i, existing in enumerate(self._goals):
                if existing.id == goal.id:
                    self._goals[i] = goal
                    return
            self._goals.insert(0, goal)

    def _remove_local(self, goal_id: str) -> None:
        with self._state_lock:
            self._goals = [g for g in self._goals if g.id != goal_id]
            self._goal_locks.pop(goal_id, None)

    def _require_owned(self, goal_id: str) -> Goal:
        """Read the persisted goal and check the owner."""
        goal = self._goal_repo.get(goal_id)
        if goal is None:
            raise GoalNotFoundError(goal_id)
        if goal.owner_id != self.owner_id:
            raise GoalPermissionError(goal_id, self.owner_id)
        return goal

    def _exercise_lookup(self) -> Optional[Dict[str, Any]]:
        if self._exercise_map is None and self._exercises_repo is not None:
            self._exercise_map = exercise_map_from_rows(self._exercises_repo.get_all())
        return self._exercise_map

    def _refresh_sessions(self) -> List[Session]:
        records = self._session_repo.list_completed(self.owner_id)
        sessions = sessions_from_records(records, self._settings.tzinfo)
        with self._state_lock:
            self._sessions = sessions
        return sessions

    # -------------------------------------------------------------------------
    # Loading
    # -------------------------------------------------------------------------

    def load(self) -> None:
        """Fetch the owner's goals and completed sessions."""
        with self._recording_failures("load goals"):
            goals = self._goal_repo.list_for_owner(self.owner_id)
            self._refresh_sessions()
        self.handle_remote_change(goals)
        logger.info(
            f"Loaded {len(goals)} goals and {len(self._sessions)} sessions for {self.owner_id}"
        )

    def handle_remote_change(self, goals: Iterable[Goal]) -> None:
        """Replace the canonical list with a pushed snapshot from the goal store."""
        owned = [g for g in goals if g.owner_id == self.owner_id]
        with self._state_lock:
            self._goals = owned
            kept = {g.id for g in owned}
            self._goal_locks = {
                goal_id: lock for goal_id, lock in self._goal_locks.items() if goal_id in kept
            }

    # -------------------------------------------------------------------------
    # Views
    # -------------------------------------------------------------------------

    @property
    def goals(self) -> List[Goal]:
        with self._state_lock:
            return list(self._goals)

    @property
    def sessions(self) -> List[Session]:
        with self._state_lock:
            return list(self._sessions)

    @property
    def active_goals(self) -> List[Goal]:
        return self.filter_goals(status=GoalStatus.ACTIVE)

    @property
    def completed_goals(self) -> List[Goal]:
        return self.filter_goals(status=GoalStatus.COMPLETED)

    @property
    def paused_goals(self) -> List[Goal]:
        return self.filter_goals(status=GoalStatus.PAUSED)

    @property
    def failed_goals(self) -> List[Goal]:
        return self.filter_goals(status=GoalStatus.FAILED)

    def filter_goals(
        self,
        status: Optional[GoalStatus] = None,
        goal_type: Optional[GoalType] = None,
    ) -> List[Goal]:
        """Goals matching an optional status and type."""
        goals = self.goals
        if status is not None:
            goals = [g for g in goals if g.status == GoalStatus(status)]
        if goal_type is not None:
            goals = [g for g in goals if g.type == GoalType(goal_type).value]
        return goals

    def progress_for(self, goal: Goal, now: Optional[datetime] = None) -> ProgressSnapshot:
        """Snapshot of one goal against the loaded sessions."""
        return calculate_progress(
            goal,
            self.sessions,
            now or self._now(),
            self._exercise_lookup(),
        )

    def get_goal(self, goal_id: str) -> Goal:
        """
        Read one goal owned by this store's owner.

        Raises:
            GoalNotFoundError: If the goal does not exist
            GoalPermissionError: If another user owns it
        """
        with self._recording_failures("read goal", goal_id):
            return self._require_owned(goal_id)

    def get_goal_progress(self, goal_id: str) -> GoalProgress:
        goal = self.get_goal(goal_id)
        return GoalProgress(goal=goal, snapshot=self.progress_for(goal))

    def _progress_of(self, goals: List[Goal]) -> List[GoalProgress]:
        now = self._now()
        return [GoalProgress(goal=g, snapshot=self.progress_for(g, now)) for g in goals]

    def strength_goal_progress(self) -> List[GoalProgress]:
        return self._progress_of(self.filter_goals(GoalStatus.ACTIVE, GoalType.STRENGTH))

    def volume_goal_progress(self) -> List[GoalProgress]:
        return self._progress_of(self.filter_goals(GoalStatus.ACTIVE, GoalType.VOLUME))

    def frequency_goal_progress(self) -> List[GoalProgress]:
        return self._progress_of(self.filter_goals(GoalStatus.ACTIVE, GoalType.FREQUENCY))

    def streak_goal_progress(self) -> List[GoalProgress]:
        return self._progress_of(self.filter_goals(GoalStatus.ACTIVE, GoalType.STREAK))

    def all_goal_progress(self) -> List[GoalProgress]:
        """Snapshots of every active goal, grouped by type."""
        return (
            self.strength_goal_progress()
            + self.volume_goal_progress()
            + self.frequency_goal_progress()
            + self.streak_goal_progress()
        )

    def goal_stats(self) -> GoalStats:
        """
        Aggregate stats.

        completion_rate is the mean progress across every goal, active or
        not. on_track and at_risk count active goals by pacing.
        """
        goals = self.goals
        if not goals:
            return GoalStats()

        progress = self._progress_of(goals)
        active = [p for p in progress if p.goal.status == GoalStatus.ACTIVE]

        return GoalStats(
            total=len(goals),
            active=len(active),
            completed=len([g for g in goals if g.status == GoalStatus.COMPLETED]),
            completion_rate=sum(p.snapshot.progress_percent for p in progress) / len(progress),
            on_track=len([p for p in active if p.snapshot.pacing_status in ON_TRACK_STATUSES]),
            at_risk=len([p for p in active if p.snapshot.pacing_status == PacingStatus.AT_RISK]),
        )

    # -------------------------------------------------------------------------
    # Explicit operations
    # -------------------------------------------------------------------------

    def validate(self, goal_data: Mapping[str, Any]) -> ValidationResult:
        """Dry-run validation of a goal definition for this owner."""
        data = dict(goal_data)
        data["owner_id"] = self.owner_id
        return self._validator.validate_goal(
            data, self.sessions, self._exercise_lookup(), self._now()
        )

    def create_goal(self, goal_data: Mapping[str, Any]) -> CreatedGoal:
        """
        Validate and persist a new goal.

        Raises:
            GoalPermissionError: If goal_data names another owner
            GoalValidationError: If validation reports errors
            GoalPersistenceError: If the goal could not be stored
        """
        owner = goal_data.get("owner_id")
        if owner and owner != self.owner_id:
            raise GoalPermissionError(None, self.owner_id)

        now = self._now()
        data = {k: v for k, v in goal_data.items() if k not in IMMUTABLE_FIELDS or k == "type"}
        data.update({
            "owner_id": self.owner_id,
            "status": GoalStatus.ACTIVE.value,
            "milestones_reached": [],
            "created_at": now,
            "updated_at": now,
        })
        if data.get("type") == GoalType.STRENGTH.value and not data.get("start_date"):
            data["start_date"] = now

        sessions = self.sessions
        result = self._validator.validate_goal(data, sessions, self._exercise_lookup(), now)
        if not result.is_valid:
            logger.info(f"Rejected {data.get('type')} goal for {self.owner_id}: {result.summary}")
            raise GoalValidationError(result.errors)

        goal = result.goal
        if isinstance(goal, StrengthGoal) and "current_weight" not in goal_data:
            best = best_historical_1rm(sessions, goal.exercise_name)
            if best is not None:
                goal = goal.model_copy(update={"current_weight": best})

        with self._recording_failures("create goal"):
            stored = self._goal_repo.create(goal)

        self._replace_local(stored)
        logger.info(f"Created {stored.type} goal {stored.id} for {self.owner_id}")
        return CreatedGoal(goal=stored, warnings=result.warnings)

    def update_goal(self, goal_id: str, fields: Mapping[str, Any]) -> Goal:
        """
        Update editable fields (targets, notes, deadlines) of a goal.

        Raises:
            GoalValidationError: If an immutable field is touched or the
                merged goal is invalid
            GoalNotFoundError / GoalPermissionError: As for lifecycle operations
        """
        blocked = sorted(set(fields) & IMMUTABLE_FIELDS)
        if blocked:
            raise GoalValidationError([
                ValidationIssue(
                    message=f"Field '{name}' cannot be updated",
                    severity=ValidationSeverity.ERROR,
                    field=name,
                )
                for name in blocked
            ])

        with self._lock_for(goal_id), self._recording_failures("update goal", goal_id):
            current = self._require_owned(goal_id)
            foreign = sorted(set(fields) - set(type(current).model_fields))
            if foreign:
                raise GoalValidationError([
                    ValidationIssue(
                        message=f"Field '{name}' does not apply to {current.type} goals",
                        severity=ValidationSeverity.ERROR,
                        field=name,
                    )
                    for name in foreign
                ])

            merged = current.model_dump()
            merged.update(fields)
            try:
                candidate = parse_goal(merged)
            except ValidationError as e:
                raise GoalValidationError(issues_from_pydantic(e, current.type))

            deadline = candidate.deadline_at
            if "deadline" in fields and deadline is not None and deadline <= self._now():
                raise GoalValidationError([
                    ValidationIssue(
                        message="Deadline must be in the future",
                        severity=ValidationSeverity.ERROR,
                        field="deadline",
                    )
                ])

            dumped = candidate.model_dump(mode="json")
            changes = {name: dumped[name] for name in fields}
            changes["updated_at"] = self._now().isoformat()
            updated = self._goal_repo.update(goal_id, changes)
            if updated is None:
                raise GoalNotFoundError(goal_id)

        self._replace_local(updated)
        logger.info(f"Updated goal {goal_id}: {sorted(fields)}")
        return updated

    def _transition(self, goal_id: str, target: GoalStatus) -> Goal:
        with self._lock_for(goal_id), self._recording_failures(f"move goal to {target.value}", goal_id):
            current = self._require_owned(goal_id)
            updated = self._apply_transition(current, target, self._now())
            if updated is None:
                # Status changed between the read and the conditional write
                fresh = self._require_owned(goal_id)
                raise GoalTransitionError(goal_id, fresh.status.value, target.value)

        self._replace_local(updated)
        return updated

    def _apply_transition(self, current: Goal, target: GoalStatus, now: datetime) -> Optional[Goal]:
        """
        Persist a lifecycle transition. Caller holds the goal lock.

        The write only lands while the stored status still equals
        current.status; returns None when it did not.
        """
        if not can_transition(current.status, target):
            raise GoalTransitionError(current.id, current.status.value, target.value)

        changes: Dict[str, Any] = {"status": target.value, "updated_at": now.isoformat()}
        if target == GoalStatus.COMPLETED:
            changes["completed_at"] = now.isoformat()
        elif target == GoalStatus.FAILED:
            changes["failed_at"] = now.isoformat()

        updated = self._goal_repo.update(
            current.id, changes, expected_status=current.status.value
        )
        if updated is None:
            logger.info(
                f"Goal {current.id} is no longer {current.status.value}; "
                f"skipped move to {target.value}"
            )
            return None

        logger.info(f"Goal {current.id}: {current.status.value} -> {target.value}")
        return updated

    def pause_goal(self, goal_id: str) -> Goal:
        return self._transition(goal_id, GoalStatus.PAUSED)

    def resume_goal(self, goal_id: str) -> Goal:
        return self._transition(goal_id, GoalStatus.ACTIVE)

    def complete_goal(self, goal_id: str) -> Goal:
        return self._transition(goal_id, GoalStatus.COMPLETED)

    def fail_goal(self, goal_id: str) -> Goal:
        return self._transition(goal_id, GoalStatus.FAILED)

    def delete_goal(self, goal_id: str) -> None:
        """Delete a goal from any status."""
        with self._lock_for(goal_id), self._recording_failures("delete goal", goal_id):
            self._require_owned(goal_id)
            if not self._goal_repo.delete(goal_id):
                raise GoalNotFoundError(goal_id)

        self._remove_local(goal_id)
        logger.info(f"Deleted goal {goal_id}")

    # -------------------------------------------------------------------------
    # Reactive pass
    # -------------------------------------------------------------------------

    def record_session_arrival(self) -> RecomputeResult:
        """
        Refresh sessions and recompute when the completed-session count grew.

        Called by the session-change hook. Returns an empty result when no new
        session arrived.
        """
        previous = len(self.sessions)
        with self._recording_failures("refresh sessions"):
            sessions = self._refresh_sessions()

        if len(sessions) <= previous:
            return RecomputeResult()

        logger.info(f"{len(sessions) - previous} new session(s) for {self.owner_id}")
        return self.recompute()

    def recompute(self) -> RecomputeResult:
        """
        Run milestone detection and automatic transitions over active goals.

        Goals in any other status are only visited to deliver milestone
        notifications left pending by an earlier pass. A failure on one goal
        is logged and recorded; the remaining goals are still evaluated, and
        the next pass retries whatever the failed one left undone.
        """
        result = RecomputeResult()
        now = self._now()

        for goal in self.goals:
            if goal.status != GoalStatus.ACTIVE and not goal.pending_milestones:
                continue
            try:
                with self._lock_for(goal.id):
                    if goal.status == GoalStatus.ACTIVE:
                        self._evaluate(goal, now, result)
                    else:
                        self._deliver_pending(goal, result)
            except GoalError as e:
                logger.exception(f"Recompute failed for goal {goal.id}")
                self.last_error = e
                result.errors.append({"goal_id": goal.id, "error": str(e)})

        return result

    def _evaluate(self, goal: Goal, now: datetime, result: RecomputeResult) -> None:
        """Milestones and automatic transitions for one goal. Caller holds its lock."""
        snapshot = self.progress_for(goal, now)

        persisted = self._goal_repo.get(goal.id)
        if persisted is None:
            self._remove_local(goal.id)
            return
        if persisted.status != GoalStatus.ACTIVE:
            self._replace_local(persisted)
            return

        new_thresholds = detect_milestones(
            snapshot.progress_percent, persisted.milestones_reached
        )
        if new_thresholds:
            updated = self._goal_repo.add_milestones(goal.id, new_thresholds)
            if updated is None:
                self._remove_local(goal.id)
                return
            persisted = updated

        if persisted.pending_milestones:
            persisted = self._deliver_pending(persisted, result)
            if persisted is None:
                return

        if persisted.status != GoalStatus.ACTIVE:
            # Another pass moved the goal first
            self._replace_local(persisted)
            return

        target = None
        if snapshot.progress_percent >= 100:
            target = GoalStatus.COMPLETED
        elif isinstance(persisted, StrengthGoal) and persisted.deadline < now:
            target = GoalStatus.FAILED

        if target is not None:
            transitioned = self._apply_transition(persisted, target, now)
            if transitioned is None:
                # Another pass moved the goal first
                transitioned = self._goal_repo.get(goal.id)
                if transitioned is None:
                    self._remove_local(goal.id)
                    return
            elif target == GoalStatus.COMPLETED:
                result.completed.append(goal.id)
            else:
                result.failed.append(goal.id)
            persisted = transitioned

        self._replace_local(persisted)

    def _deliver_pending(self, goal: Goal, result: RecomputeResult) -> Optional[Goal]:
        """
        Claim the goal's queued milestones and notify them.

        Only thresholds this call claims are sent, so overlapping passes
        never announce the same milestone twice. Thresholds whose delivery
        fails are queued again for the next pass.

        Returns:
            The goal as stored afterwards, or None if it was deleted
        """
        failed = []
        for threshold in self._goal_repo.claim_pending_milestones(goal.id):
            notification = MilestoneNotification(
                goal_id=goal.id,
                owner_id=goal.owner_id,
                goal_type=goal.type,
                threshold=threshold,
                message=get_milestone_message(threshold, goal),
                emphasis=threshold == COMPLETION_MILESTONE,
            )
            try:
                self._notifier.notify(notification)
            except Exception as e:
                logger.exception(f"Milestone notification failed for goal {goal.id}")
                result.errors.append({"goal_id": goal.id, "error": str(e)})
                failed.append(threshold)
                continue
            logger.info(f"Goal {goal.id} reached {threshold}% milestone")
            result.milestones.append(notification)

        if failed:
            self._goal_repo.requeue_milestones(goal.id, failed)

        stored = self._goal_repo.get(goal.id)
        if stored is None:
            self._remove_local(goal.id)
        else:
            self._replace_local(stored)
        return stored
