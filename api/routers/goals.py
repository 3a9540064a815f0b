"""
Goals router for goal management and progress.

This router provides endpoints for:
- Listing goals and per-type progress snapshots
- Aggregate goal statistics
- Creating goals (with dry-run validation)
- Updating and moving goals through their lifecycle
- Running the reactive recompute pass

Error mapping: validation 422, permission 403, not found 404,
invalid transition 409, persistence 503.
"""
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Path, Query
from pydantic import BaseModel, Field

from api.deps import get_goal_store
from application.exceptions import (
    GoalError,
    GoalNotFoundError,
    GoalPermissionError,
    GoalPersistenceError,
    GoalTransitionError,
    GoalValidationError,
)
from backend.services.goal_store import GoalStore
from domain.models import GoalStatus, GoalType

router = APIRouter(
    prefix="/goals",
    tags=["Goals"],
)


# =============================================================================
# Request / Response Models
# =============================================================================


class UpdateGoalRequest(BaseModel):
    """Editable goal fields. Only the fields sent are changed."""
    notes: Optional[str] = Field(default=None, max_length=2000)
    exercise_name: Optional[str] = None
    muscle_group: Optional[str] = None
    target_weight: Optional[float] = None
    target: Optional[float] = None
    target_count: Optional[int] = None
    target_days: Optional[int] = None
    target_weeks: Optional[int] = None
    allow_rest_days: Optional[bool] = None
    max_rest_days: Optional[int] = None
    deadline: Optional[str] = None


class GoalStatsResponse(BaseModel):
    """Aggregate statistics over the caller's goals."""
    total: int
    active: int
    completed: int
    completion_rate: float
    on_track: int
    at_risk: int


class DeleteGoalResponse(BaseModel):
    success: bool
    goal_id: str


# =============================================================================
# Error Mapping
# =============================================================================


def _http_error(e: GoalError) -> HTTPException:
    """Translate a goal error into the matching HTTP error."""
    if isinstance(e, GoalValidationError):
        return HTTPException(
            status_code=422,
            detail={"message": str(e), "issues": [i.to_dict() for i in e.issues]},
        )
    if isinstance(e, GoalPermissionError):
        return HTTPException(status_code=403, detail=str(e))
    if isinstance(e, GoalNotFoundError):
        return HTTPException(status_code=404, detail=str(e))
    if isinstance(e, GoalTransitionError):
        return HTTPException(status_code=409, detail=str(e))
    if isinstance(e, GoalPersistenceError):
        return HTTPException(status_code=503, detail=str(e))
    return HTTPException(status_code=500, detail=str(e))


# =============================================================================
# Read Endpoints
# =============================================================================


@router.get("")
def list_goals(
    status: Optional[GoalStatus] = Query(None, description="Filter by lifecycle status"),
    goal_type: Optional[GoalType] = Query(None, alias="type", description="Filter by goal type"),
    store: GoalStore = Depends(get_goal_store),
) -> Dict[str, Any]:
    """List the caller's goals, newest first."""
    goals = store.filter_goals(status=status, goal_type=goal_type)
    return {
        "goals": [g.model_dump(mode="json") for g in goals],
        "total": len(goals),
    }


@router.get("/progress")
def get_goal_progress(
    goal_type: Optional[GoalType] = Query(None, alias="type", description="Only this goal type"),
    store: GoalStore = Depends(get_goal_store),
) -> Dict[str, List[Dict[str, Any]]]:
    """
    Progress snapshots of active goals, grouped by type.

    Snapshots are computed on request and never stored.
    """
    views = {
        GoalType.STRENGTH: store.strength_goal_progress,
        GoalType.VOLUME: store.volume_goal_progress,
        GoalType.FREQUENCY: store.frequency_goal_progress,
        GoalType.STREAK: store.streak_goal_progress,
    }
    if goal_type is not None:
        views = {goal_type: views[goal_type]}

    return {t.value: [p.to_dict() for p in view()] for t, view in views.items()}


@router.get("/stats", response_model=GoalStatsResponse)
def get_goal_stats(store: GoalStore = Depends(get_goal_store)) -> GoalStatsResponse:
    """Aggregate goal statistics."""
    return GoalStatsResponse(**store.goal_stats().to_dict())


@router.get("/{goal_id}")
def get_goal(
    goal_id: str = Path(..., description="Goal ID"),
    store: GoalStore = Depends(get_goal_store),
) -> Dict[str, Any]:
    """A single goal with its current progress."""
    try:
        progress = store.get_goal_progress(goal_id)
    except GoalError as e:
        raise _http_error(e)
    return progress.to_dict()


# =============================================================================
# Write Endpoints
# =============================================================================


@router.post("/validate")
def validate_goal(
    goal_data: Dict[str, Any] = Body(..., description="Goal definition including 'type'"),
    store: GoalStore = Depends(get_goal_store),
) -> Dict[str, Any]:
    """Dry-run validation. Never stores anything."""
    return store.validate(goal_data).to_dict()


@router.post("", status_code=201)
def create_goal(
    goal_data: Dict[str, Any] = Body(..., description="Goal definition including 'type'"),
    store: GoalStore = Depends(get_goal_store),
) -> Dict[str, Any]:
    """
    Create a goal.

    Returns the stored goal plus any feasibility warnings. Validation
    errors are returned as 422 with the structured issue list.
    """
    try:
        created = store.create_goal(goal_data)
    except GoalError as e:
        raise _http_error(e)
    return {
        "goal": created.goal.model_dump(mode="json"),
        "warnings": [w.to_dict() for w in created.warnings],
    }


@router.post("/recompute")
def recompute_goals(store: GoalStore = Depends(get_goal_store)) -> Dict[str, Any]:
    """Run milestone detection and automatic transitions now."""
    return store.recompute().to_dict()


@router.patch("/{goal_id}")
def update_goal(
    request: UpdateGoalRequest,
    goal_id: str = Path(..., description="Goal ID"),
    store: GoalStore = Depends(get_goal_store),
) -> Dict[str, Any]:
    """Update editable fields of a goal."""
    fields = request.model_dump(exclude_unset=True)
    if not fields:
        raise HTTPException(status_code=422, detail="No fields to update")
    try:
        goal = store.update_goal(goal_id, fields)
    except GoalError as e:
        raise _http_error(e)
    return goal.model_dump(mode="json")


def _lifecycle(action):
    """Build a lifecycle endpoint that runs one GoalStore transition."""

    def endpoint(
        goal_id: str = Path(..., description="Goal ID"),
        store: GoalStore = Depends(get_goal_store),
    ) -> Dict[str, Any]:
        try:
            goal = action(store, goal_id)
        except GoalError as e:
            raise _http_error(e)
        return goal.model_dump(mode="json")

    return endpoint


router.add_api_route(
    "/{goal_id}/pause", _lifecycle(GoalStore.pause_goal), methods=["POST"],
    summary="Pause an active goal",
)
router.add_api_route(
    "/{goal_id}/resume", _lifecycle(GoalStore.resume_goal), methods=["POST"],
    summary="Resume a paused goal",
)
router.add_api_route(
    "/{goal_id}/complete", _lifecycle(GoalStore.complete_goal), methods=["POST"],
    summary="Mark an active goal completed",
)
router.add_api_route(
    "/{goal_id}/fail", _lifecycle(GoalStore.fail_goal), methods=["POST"],
    summary="Mark an active goal failed",
)


@router.delete("/{goal_id}", response_model=DeleteGoalResponse)
def delete_goal(
    goal_id: str = Path(..., description="Goal ID"),
    store: GoalStore = Depends(get_goal_store),
) -> DeleteGoalResponse:
    """Delete a goal from any status."""
    try:
        store.delete_goal(goal_id)
    except GoalError as e:
        raise _http_error(e)
    return DeleteGoalResponse(success=True, goal_id=goal_id)
