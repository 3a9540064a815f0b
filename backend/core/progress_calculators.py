"""
Progress calculators - one pure function per goal variant.

Each calculator turns a goal plus the completed-session history into an
ephemeral ProgressSnapshot. Snapshots are recomputed on demand and never
persisted. The only time input is the explicit ``now`` argument, so every
calculator is deterministic for a given (goal, sessions, now).

Sessions are expected to be normalized (see
domain.converters.session_converters) and expressed in the timezone used
for ``now``; calendar days and period windows are taken in that timezone.
"""
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Set, Tuple

from backend.core.goal_utils import (
    calculate_expected_progress,
    calculate_period_expected_progress,
    calculate_required_pace,
    days_until,
    determine_goal_status,
    determine_period_status,
    get_period_boundaries,
)
from backend.core.milestone_detector import get_next_milestone
from backend.core.strength import calculate_exercise_volume, session_best_1rm
from backend.core.trend_estimator import Trend, estimate_trend, predict_completion
from domain.converters.exercise_converters import resolve_muscles
from domain.models import (
    ExerciseEntry,
    ExerciseMuscles,
    FrequencyGoal,
    FrequencyType,
    GoalType,
    Session,
    StreakGoal,
    StreakType,
    StrengthGoal,
    VolumeGoal,
    VolumeType,
    normalize_name,
)

DAILY_STREAK_WINDOW_DAYS = 365
WEEKLY_STREAK_WINDOW_WEEKS = 52

ExerciseMap = Mapping[str, ExerciseMuscles]


class PacingStatus(str, Enum):
    """Derived pacing of a goal. Display and stats only."""

    ON_TRACK = "on-track"
    AHEAD = "ahead"
    BEHIND = "behind"
    AT_RISK = "at-risk"
    COMPLETED = "completed"
    ACHIEVED = "achieved"
    ON_PACE = "on-pace"


# Pacing values that count as "on track" in aggregate stats
ON_TRACK_STATUSES = frozenset({
    PacingStatus.ON_TRACK,
    PacingStatus.AHEAD,
    PacingStatus.ACHIEVED,
    PacingStatus.ON_PACE,
})


# =============================================================================
# Snapshot DTO
# =============================================================================


@dataclass
class ProgressSnapshot:
    """Derived progress of one goal at one point in time."""
    goal_id: Optional[str]
    goal_type: GoalType
    current_value: float
    target_value: float
    progress_percent: float
    expected_progress: float
    pacing_status: PacingStatus
    days_remaining: int
    trend: Optional[Trend] = None
    next_milestone: Optional[int] = None

    # Strength
    history: List[Tuple[datetime, float]] = field(default_factory=list)
    predicted_completion: Optional[datetime] = None
    required_pace: Optional[Dict[str, float]] = None

    # Volume / frequency
    period_start: Optional[datetime] = None
    period_end: Optional[datetime] = None

    # Streak
    current_streak: Optional[int] = None
    longest_streak: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        """JSON-friendly representation."""
        return {
            "goal_id": self.goal_id,
            "goal_type": self.goal_type.value,
            "current_value": self.current_value,
            "target_value": self.target_value,
            "progress_percent": self.progress_percent,
            "expected_progress": self.expected_progress,
            "pacing_status": self.pacing_status.value,
            "days_remaining": self.days_remaining,
            "trend": self.trend.to_dict() if self.trend else None,
            "next_milestone": self.next_milestone,
            "history": [
                {"date": at.isoformat(), "value": value} for at, value in self.history
            ],
            "predicted_completion": (
                self.predicted_completion.isoformat() if self.predicted_completion else None
            ),
            "required_pace": self.required_pace,
            "period_start": self.period_start.isoformat() if self.period_start else None,
            "period_end": self.period_end.isoformat() if self.period_end else None,
            "current_streak": self.current_streak,
            "longest_streak": self.longest_streak,
        }


def _percent(current: float, target: float) -> float:
    if target <= 0:
        return 0.0
    return min(max(current / target * 100, 0.0), 100.0)


def _in_window(sessions: Iterable[Session], start: datetime, end: datetime) -> List[Session]:
    return [s for s in sessions if start <= s.completed_at <= end]


def trains_muscle_group(
    entry: ExerciseEntry,
    muscle_group: str,
    exercise_map: Optional[ExerciseMap],
) -> bool:
    """
    Check whether a logged exercise works the muscle group.

    The catalog decides when it knows the exercise (primary or secondary
    muscle). Otherwise the muscle group recorded on the entry is used.
    """
    muscles = resolve_muscles(entry, exercise_map)
    if muscles is not None:
        return muscles.trains(muscle_group)
    if entry.muscle_group:
        return normalize_name(entry.muscle_group) == normalize_name(muscle_group)
    return False


# =============================================================================
# Strength
# =============================================================================


def strength_history(
    goal: StrengthGoal,
    sessions: Sequence[Session],
) -> List[Tuple[datetime, float]]:
    """Chronological per-session best 1RM estimates for the goal's exercise."""
    history = []
    for session in sorted(sessions, key=lambda s: s.completed_at):
        estimate = session_best_1rm(session, goal.exercise_name)
        if estimate is not None:
            history.append((session.completed_at, estimate))
    return history


def calculate_strength_progress(
    goal: StrengthGoal,
    sessions: Sequence[Session],
    now: datetime,
) -> ProgressSnapshot:
    """
    Strength progress: personal-record 1RM against the target.

    The current value is the best estimate ever achieved, not the latest
    one, so a bad session never lowers progress.
    """
    history = strength_history(goal, sessions)
    values = [value for _, value in history]
    current = max(values) if values else goal.current_weight

    progress = _percent(current, goal.target_weight)
    expected = calculate_expected_progress(goal, now)
    remaining_days = days_until(goal.deadline, now)

    return ProgressSnapshot(
        goal_id=goal.id,
        goal_type=GoalType.STRENGTH,
        current_value=current,
        target_value=goal.target_weight,
        progress_percent=progress,
        expected_progress=expected,
        pacing_status=PacingStatus(determine_goal_status(progress, expected, remaining_days)),
        days_remaining=remaining_days,
        trend=estimate_trend(values),
        next_milestone=get_next_milestone(progress, goal.milestones_reached),
        history=history,
        predicted_completion=predict_completion(history, goal.target_weight),
        required_pace=calculate_required_pace(current, goal.target_weight, remaining_days),
    )


# =============================================================================
# Volume / Frequency
# =============================================================================


def period_volume(
    goal: VolumeGoal,
    sessions: Iterable[Session],
    exercise_map: Optional[ExerciseMap] = None,
) -> float:
    """Volume of the given sessions that counts towards the goal."""
    total = 0.0
    for session in sessions:
        for entry in session.exercises:
            if goal.volume_type == VolumeType.EXERCISE:
                if not entry.matches(goal.exercise_name):
                    continue
            elif goal.volume_type == VolumeType.MUSCLE_GROUP:
                if not trains_muscle_group(entry, goal.muscle_group, exercise_map):
                    continue
            total += calculate_exercise_volume(entry)
    return total


def _period_snapshot(
    goal,
    goal_type: GoalType,
    current: float,
    target: float,
    period_start: datetime,
    period_end: datetime,
    now: datetime,
) -> ProgressSnapshot:
    progress = _percent(current, target)
    expected = calculate_period_expected_progress(period_start, period_end, now)

    return ProgressSnapshot(
        goal_id=goal.id,
        goal_type=goal_type,
        current_value=current,
        target_value=target,
        progress_percent=progress,
        expected_progress=expected,
        pacing_status=PacingStatus(determine_period_status(progress, expected)),
        days_remaining=days_until(period_end, now),
        next_milestone=get_next_milestone(progress, goal.milestones_reached),
        period_start=period_start,
        period_end=period_end,
    )


def calculate_volume_progress(
    goal: VolumeGoal,
    sessions: Sequence[Session],
    now: datetime,
    exercise_map: Optional[ExerciseMap] = None,
) -> ProgressSnapshot:
    """Volume accumulated in the current period against the target."""
    period_start, period_end = get_period_boundaries(goal.period, now)
    in_period = _in_window(sessions, period_start, period_end)
    current = period_volume(goal, in_period, exercise_map)

    return _period_snapshot(
        goal, GoalType.VOLUME, current, goal.target, period_start, period_end, now
    )


def calculate_frequency_progress(
    goal: FrequencyGoal,
    sessions: Sequence[Session],
    now: datetime,
    exercise_map: Optional[ExerciseMap] = None,
) -> ProgressSnapshot:
    """Sessions completed in the current period against the target count."""
    period_start, period_end = get_period_boundaries(goal.period, now)
    in_period = _in_window(sessions, period_start, period_end)

    if goal.frequency_type == FrequencyType.MUSCLE_GROUP:
        in_period = [
            s for s in in_period
            if any(trains_muscle_group(e, goal.muscle_group, exercise_map) for e in s.exercises)
        ]

    return _period_snapshot(
        goal,
        GoalType.FREQUENCY,
        float(len(in_period)),
        float(goal.target_count),
        period_start,
        period_end,
        now,
    )


# =============================================================================
# Streak
# =============================================================================


def calculate_daily_streak(
    training_days: Set[date],
    today: date,
    allow_rest_days: bool = False,
    max_rest_days: int = 0,
    window_days: int = DAILY_STREAK_WINDOW_DAYS,
) -> Tuple[int, int]:
    """
    Current and longest daily streak, walking back from today.

    With rest days allowed, up to ``max_rest_days`` consecutive missed days
    are transparent: they neither extend nor break the run. The first break
    fixes the current streak to the run accumulated before it.

    Returns:
        (current_streak, longest_streak)
    """
    current: Optional[int] = None
    longest = 0
    run = 0
    misses = 0

    for offset in range(window_days):
        day = today - timedelta(days=offset)
        if day in training_days:
            run += 1
            misses = 0
            continue

        misses += 1
        if allow_rest_days and misses <= max_rest_days:
            continue

        longest = max(longest, run)
        if current is None:
            current = run
        run = 0

    longest = max(longest, run)
    if current is None:
        current = run
    return current, longest


def calculate_weekly_streak(
    training_days: Set[date],
    today: date,
    window_weeks: int = WEEKLY_STREAK_WINDOW_WEEKS,
) -> Tuple[int, int]:
    """
    Current and longest streak of Monday-start weeks with at least one session.

    Returns:
        (current_streak, longest_streak)
    """
    trained_weeks = {d - timedelta(days=d.weekday()) for d in training_days}
    this_week = today - timedelta(days=today.weekday())

    current: Optional[int] = None
    longest = 0
    run = 0

    for offset in range(window_weeks):
        week_start = this_week - timedelta(weeks=offset)
        if week_start in trained_weeks:
            run += 1
            continue

        longest = max(longest, run)
        if current is None:
            current = run
        run = 0

    longest = max(longest, run)
    if current is None:
        current = run
    return current, longest


def calculate_streak_progress(
    goal: StreakGoal,
    sessions: Sequence[Session],
    now: datetime,
) -> ProgressSnapshot:
    """Current streak against the target length."""
    tz = now.tzinfo
    training_days = {s.completed_at.astimezone(tz).date() for s in sessions}
    today = now.date()

    if goal.streak_type == StreakType.DAILY:
        current, longest = calculate_daily_streak(
            training_days,
            today,
            allow_rest_days=goal.allow_rest_days,
            max_rest_days=goal.max_rest_days,
        )
    else:
        current, longest = calculate_weekly_streak(training_days, today)

    target = goal.target
    progress = _percent(current, target)

    if progress >= 100:
        pacing = PacingStatus.COMPLETED
    elif current > 0:
        pacing = PacingStatus.ON_TRACK
    else:
        pacing = PacingStatus.BEHIND

    return ProgressSnapshot(
        goal_id=goal.id,
        goal_type=GoalType.STREAK,
        current_value=float(current),
        target_value=float(target),
        progress_percent=progress,
        expected_progress=0.0,
        pacing_status=pacing,
        days_remaining=max(target - current, 0),
        next_milestone=get_next_milestone(progress, goal.milestones_reached),
        current_streak=current,
        longest_streak=longest,
    )


# =============================================================================
# Dispatch
# =============================================================================


def calculate_progress(
    goal,
    sessions: Sequence[Session],
    now: datetime,
    exercise_map: Optional[ExerciseMap] = None,
) -> ProgressSnapshot:
    """
    Compute the snapshot for any goal variant.

    Raises:
        ValueError: If the goal is not a known variant
    """
    if isinstance(goal, StrengthGoal):
        return calculate_strength_progress(goal, sessions, now)
    if isinstance(goal, VolumeGoal):
        return calculate_volume_progress(goal, sessions, now, exercise_map)
    if isinstance(goal, FrequencyGoal):
        return calculate_frequency_progress(goal, sessions, now, exercise_map)
    if isinstance(goal, StreakGoal):
        return calculate_streak_progress(goal, sessions, now)
    raise ValueError(f"Unknown goal variant: {type(goal).__name__}")
