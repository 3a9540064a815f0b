"""
Goal domain model - a closed tagged variant with one payload per goal type.

Every goal shares a common envelope (identity, owner, lifecycle status,
reached milestones, timestamps). The ``type`` field is the discriminator
that selects one of four payload shapes:

- StrengthGoal: reach a target estimated 1RM on one exercise by a deadline
- VolumeGoal: accumulate a target volume (weight x reps) per week/month
- FrequencyGoal: complete a target number of sessions per week/month
- StreakGoal: keep a daily or weekly training streak going

Lifecycle status (GoalStatus) is the persisted state that drives transitions.
It is deliberately a different type from the derived pacing status that
progress snapshots carry.

Usage:
    >>> from domain.models import parse_goal

    >>> goal = parse_goal({
    ...     "type": "volume",
    ...     "owner_id": "user_1",
    ...     "volume_type": "total",
    ...     "target": 10000,
    ...     "period": "week",
    ... })
    >>> goal.status
    <GoalStatus.ACTIVE: 'active'>
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter, field_validator, model_validator

# Fixed progress thresholds (percent) that trigger a one-time notification
MILESTONE_THRESHOLDS = (25, 50, 75, 90, 100)


class GoalType(str, Enum):
    """Goal variants."""

    STRENGTH = "strength"
    VOLUME = "volume"
    FREQUENCY = "frequency"
    STREAK = "streak"


class GoalStatus(str, Enum):
    """Persisted lifecycle status of a goal."""

    ACTIVE = "active"
    COMPLETED = "completed"
    FAILED = "failed"
    PAUSED = "paused"


# Permitted lifecycle transitions. Deletion is allowed from any state and is
# handled separately because it removes the record.
ALLOWED_TRANSITIONS = {
    GoalStatus.ACTIVE: {GoalStatus.COMPLETED, GoalStatus.FAILED, GoalStatus.PAUSED},
    GoalStatus.PAUSED: {GoalStatus.ACTIVE},
    GoalStatus.COMPLETED: set(),
    GoalStatus.FAILED: set(),
}


class Period(str, Enum):
    """Evaluation window for volume and frequency goals."""

    WEEK = "week"
    MONTH = "month"


class VolumeType(str, Enum):
    """Which sets count towards a volume goal."""

    TOTAL = "total"
    EXERCISE = "exercise"
    MUSCLE_GROUP = "muscle-group"


class FrequencyType(str, Enum):
    """Which sessions count towards a frequency goal."""

    TOTAL = "total"
    MUSCLE_GROUP = "muscle-group"


class StreakType(str, Enum):
    """Streak granularity."""

    DAILY = "daily"
    WEEKLY = "weekly"


def _as_aware(value: Optional[datetime]) -> Optional[datetime]:
    """Read naive datetimes as UTC."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def can_transition(current: GoalStatus, target: GoalStatus) -> bool:
    """Check whether a lifecycle transition is permitted."""
    return target in ALLOWED_TRANSITIONS.get(current, set())


class GoalBase(BaseModel):
    """Common envelope shared by every goal variant."""

    id: Optional[str] = Field(
        default=None,
        description="Unique identifier. None for new, unsaved goals.",
    )
    owner_id: str = Field(..., min_length=1, description="Owning user ID")
    status: GoalStatus = Field(
        default=GoalStatus.ACTIVE,
        description="Persisted lifecycle status",
    )
    milestones_reached: List[int] = Field(
        default_factory=list,
        description="Milestone thresholds already reached (never shrinks)",
    )
    pending_milestones: List[int] = Field(
        default_factory=list,
        description="Reached thresholds whose notification is not yet delivered",
    )
    notes: Optional[str] = Field(default=None, max_length=2000)

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    failed_at: Optional[datetime] = None

    @field_validator("milestones_reached", "pending_milestones")
    @classmethod
    def validate_milestones(cls, v: List[int]) -> List[int]:
        """Only known thresholds; stored sorted and de-duplicated."""
        unknown = [m for m in v if m not in MILESTONE_THRESHOLDS]
        if unknown:
            raise ValueError(
                f"Unknown milestone thresholds {unknown}. "
                f"Must be within {list(MILESTONE_THRESHOLDS)}"
            )
        return sorted(set(v))

    @field_validator("created_at", "updated_at", "completed_at", "failed_at")
    @classmethod
    def validate_timestamps(cls, v: Optional[datetime]) -> Optional[datetime]:
        return _as_aware(v)

    @property
    def is_active(self) -> bool:
        return self.status == GoalStatus.ACTIVE

    @property
    def deadline_at(self) -> Optional[datetime]:
        """Deadline for deadline-bound goals, None otherwise."""
        return None


class StrengthGoal(GoalBase):
    """Reach a target estimated one-rep max on one exercise by a deadline."""

    type: Literal["strength"] = "strength"
    exercise_name: str = Field(..., min_length=1, max_length=200)
    target_weight: float = Field(..., gt=0, description="Target 1RM in kg")
    current_weight: float = Field(
        default=0.0,
        ge=0,
        description="Estimated 1RM at goal creation, in kg",
    )
    start_date: Optional[datetime] = None
    deadline: datetime

    @field_validator("start_date", "deadline")
    @classmethod
    def validate_dates(cls, v: Optional[datetime]) -> Optional[datetime]:
        return _as_aware(v)

    @property
    def deadline_at(self) -> Optional[datetime]:
        return self.deadline


class VolumeGoal(GoalBase):
    """Accumulate a target training volume within each period."""

    type: Literal["volume"] = "volume"
    volume_type: VolumeType
    exercise_name: Optional[str] = Field(default=None, max_length=200)
    muscle_group: Optional[str] = Field(default=None, max_length=100)
    target: float = Field(..., gt=0, description="Target volume (kg x reps)")
    period: Period

    @model_validator(mode="after")
    def validate_scope(self) -> "VolumeGoal":
        if self.volume_type == VolumeType.EXERCISE and not self.exercise_name:
            raise ValueError("exercise_name is required for exercise volume goals")
        if self.volume_type == VolumeType.MUSCLE_GROUP and not self.muscle_group:
            raise ValueError("muscle_group is required for muscle-group volume goals")
        return self


class FrequencyGoal(GoalBase):
    """Complete a target number of sessions within each period."""

    type: Literal["frequency"] = "frequency"
    frequency_type: FrequencyType
    muscle_group: Optional[str] = Field(default=None, max_length=100)
    target_count: int = Field(..., gt=0)
    period: Period

    @model_validator(mode="after")
    def validate_scope(self) -> "FrequencyGoal":
        if self.frequency_type == FrequencyType.MUSCLE_GROUP and not self.muscle_group:
            raise ValueError("muscle_group is required for muscle-group frequency goals")
        return self


class StreakGoal(GoalBase):
    """Keep a daily or weekly training streak going."""

    type: Literal["streak"] = "streak"
    streak_type: StreakType
    target_days: Optional[int] = Field(default=None, gt=0)
    target_weeks: Optional[int] = Field(default=None, gt=0)
    allow_rest_days: bool = False
    max_rest_days: int = Field(
        default=0,
        ge=0,
        description="Consecutive missed days tolerated before a daily streak breaks",
    )

    @model_validator(mode="after")
    def validate_target(self) -> "StreakGoal":
        if self.streak_type == StreakType.DAILY and self.target_days is None:
            raise ValueError("target_days is required for daily streak goals")
        if self.streak_type == StreakType.WEEKLY and self.target_weeks is None:
            raise ValueError("target_weeks is required for weekly streak goals")
        return self

    @property
    def target(self) -> int:
        if self.streak_type == StreakType.DAILY:
            return self.target_days or 0
        return self.target_weeks or 0


Goal = Annotated[
    Union[StrengthGoal, VolumeGoal, FrequencyGoal, StreakGoal],
    Field(discriminator="type"),
]

_goal_adapter: TypeAdapter = TypeAdapter(Goal)


def parse_goal(data: Dict[str, Any]) -> Goal:
    """
    Build the matching goal variant from a plain dict.

    Raises:
        pydantic.ValidationError: If the type tag is missing/unknown or the
            payload does not satisfy the variant's constraints.
    """
    return _goal_adapter.validate_python(data)
