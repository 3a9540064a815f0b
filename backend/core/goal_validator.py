"""
Goal validator for checking new goals against the user's history.

Validates goal definitions before creation:
- Structure: goal type and the fields each variant requires
- Deadline: strictly in the future
- Strength: target above the current best 1RM, realistic gain rate
- Volume: target increase over the last complete period
- Frequency: overtraining risk
- Streak: rest-day allowance

Errors block creation. Warnings are advisory and never block.
"""

import logging
import math
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Sequence

from pydantic import ValidationError

from backend.core.goal_utils import get_period_boundaries
from backend.core.progress_calculators import ExerciseMap, period_volume
from backend.core.strength import best_historical_1rm
from backend.settings import Settings, get_settings
from domain.models import (
    FrequencyGoal,
    Goal,
    GoalType,
    Period,
    Session,
    StreakGoal,
    StrengthGoal,
    VolumeGoal,
    parse_goal,
)

logger = logging.getLogger(__name__)


class ValidationSeverity(str, Enum):
    """Severity level for validation issues."""

    ERROR = "error"  # Blocks creation
    WARNING = "warning"  # Advisory only


@dataclass
class ValidationIssue:
    """A single validation issue."""

    message: str
    severity: ValidationSeverity
    field: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "message": self.message,
            "severity": self.severity.value,
            "field": self.field,
        }


@dataclass
class ValidationResult:
    """Result of goal validation."""

    is_valid: bool
    issues: List[ValidationIssue] = field(default_factory=list)
    summary: Optional[str] = None
    goal: Optional[Goal] = None  # Parsed goal when the structure is valid

    @property
    def errors(self) -> List[ValidationIssue]:
        """Get error-level issues."""
        return [i for i in self.issues if i.severity == ValidationSeverity.ERROR]

    @property
    def warnings(self) -> List[ValidationIssue]:
        """Get warning-level issues."""
        return [i for i in self.issues if i.severity == ValidationSeverity.WARNING]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "is_valid": self.is_valid,
            "issues": [i.to_dict() for i in self.issues],
            "summary": self.summary,
        }


def _error(message: str, field_name: Optional[str] = None) -> ValidationIssue:
    return ValidationIssue(message=message, severity=ValidationSeverity.ERROR, field=field_name)


def _warning(message: str, field_name: Optional[str] = None) -> ValidationIssue:
    return ValidationIssue(message=message, severity=ValidationSeverity.WARNING, field=field_name)


def issues_from_pydantic(exc: ValidationError, goal_type: Optional[str] = None) -> List[ValidationIssue]:
    """Map pydantic errors into validation issues, one per error."""
    issues = []
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ())]
        # Discriminated unions prefix the location with the tag
        if goal_type and loc and loc[0] == goal_type:
            loc = loc[1:]
        message = err.get("msg", "Invalid value")
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        issues.append(_error(message, ".".join(loc) or None))
    return issues


class GoalValidator:
    """
    Validates goal definitions against the owner's session history.

    Heuristic thresholds come from Settings so they can be tuned per
    deployment.
    """

    def __init__(self, settings: Optional[Settings] = None):
        self._settings = settings or get_settings()

    def validate_goal(
        self,
        goal_data: Mapping[str, Any],
        sessions: Sequence[Session],
        exercise_map: Optional[ExerciseMap] = None,
        now: Optional[datetime] = None,
    ) -> ValidationResult:
        """
        Validate a goal definition.

        Args:
            goal_data: Goal fields, including the "type" tag
            sessions: Owner's completed sessions (normalized)
            exercise_map: Catalog muscle lookup for muscle-group volume goals
            now: Evaluation time (defaults to the current time)

        Returns:
            ValidationResult; ``goal`` holds the parsed goal when the
            structure is valid
        """
        now = now or datetime.now(self._settings.tzinfo)
        issues: List[ValidationIssue] = []
        goal: Optional[Goal] = None

        goal_type = goal_data.get("type")
        if not goal_type:
            issues.append(_error("Goal type is required", "type"))
        elif goal_type not in {t.value for t in GoalType}:
            issues.append(_error(
                f"Unknown goal type '{goal_type}'. "
                f"Must be one of: {', '.join(t.value for t in GoalType)}",
                "type",
            ))
        else:
            try:
                goal = parse_goal(dict(goal_data))
            except ValidationError as e:
                issues.extend(issues_from_pydantic(e, goal_type))

        if goal is not None:
            issues.extend(self._validate_deadline(goal, now))

            if isinstance(goal, StrengthGoal):
                issues.extend(self._validate_strength(goal, sessions, now))
            elif isinstance(goal, VolumeGoal):
                issues.extend(self._validate_volume(goal, sessions, exercise_map, now))
            elif isinstance(goal, FrequencyGoal):
                issues.extend(self._validate_frequency(goal))
            elif isinstance(goal, StreakGoal):
                issues.extend(self._validate_streak(goal))

        is_valid = not any(i.severity == ValidationSeverity.ERROR for i in issues)

        error_count = len([i for i in issues if i.severity == ValidationSeverity.ERROR])
        warning_count = len([i for i in issues if i.severity == ValidationSeverity.WARNING])

        if is_valid and not issues:
            summary = "Goal validated successfully with no issues."
        elif is_valid:
            summary = f"Goal valid with {warning_count} warning(s)."
        else:
            summary = f"Goal invalid: {error_count} error(s), {warning_count} warning(s)."

        logger.debug(f"Validated {goal_type} goal: {summary}")

        return ValidationResult(
            is_valid=is_valid,
            issues=issues,
            summary=summary,
            goal=goal if is_valid else None,
        )

    def _validate_deadline(self, goal: Goal, now: datetime) -> List[ValidationIssue]:
        deadline = goal.deadline_at
        if deadline is not None and deadline <= now:
            return [_error("Deadline must be in the future", "deadline")]
        return []

    def _validate_strength(
        self,
        goal: StrengthGoal,
        sessions: Sequence[Session],
        now: datetime,
    ) -> List[ValidationIssue]:
        """
        Check the strength target against the history-derived best 1RM.

        Args:
            goal: Parsed strength goal
            sessions: Owner's sessions
            now: Evaluation time

        Returns:
            List of strength-related issues
        """
        issues = []
        relevant = [s for s in sessions if s.has_exercise(goal.exercise_name)]

        if len(relevant) < self._settings.min_strength_history_sessions:
            issues.append(_warning(
                f"Only {len(relevant)} sessions found for {goal.exercise_name}. "
                "Log more sessions for accurate progress tracking.",
                "exercise_name",
            ))

        if not relevant:
            return issues

        current_1rm = best_historical_1rm(relevant, goal.exercise_name)
        if current_1rm is None:
            issues.append(_error(
                f"No valid sets found for {goal.exercise_name}",
                "exercise_name",
            ))
            return issues

        if goal.target_weight <= current_1rm:
            issues.append(_error(
                f"Target weight ({goal.target_weight}kg) must be higher than "
                f"current 1RM ({current_1rm:.1f}kg)",
                "target_weight",
            ))
            return issues

        weeks_available = max((goal.deadline - now).total_seconds(), 0) / 86400.0 / 7.0
        realistic_pct = (weeks_available / 4.0) * self._settings.strength_gain_pct_per_four_weeks
        increase_pct = (goal.target_weight - current_1rm) / current_1rm * 100

        if increase_pct > realistic_pct * self._settings.strength_gain_safety_multiplier:
            realistic_weight = current_1rm * (1 + realistic_pct / 100)
            issues.append(_warning(
                "Target may be ambitious. Based on typical progress, "
                f"{realistic_weight:.1f}kg in {math.floor(weeks_available)} weeks "
                "is more realistic.",
                "target_weight",
            ))

        return issues

    def _validate_volume(
        self,
        goal: VolumeGoal,
        sessions: Sequence[Session],
        exercise_map: Optional[ExerciseMap],
        now: datetime,
    ) -> List[ValidationIssue]:
        """Warn when the target jumps well above the last complete period."""
        current_start, _ = get_period_boundaries(goal.period, now)
        previous_start, previous_end = get_period_boundaries(
            goal.period, current_start - timedelta(microseconds=1)
        )
        previous = [s for s in sessions if previous_start <= s.completed_at <= previous_end]
        baseline = period_volume(goal, previous, exercise_map)

        if baseline <= 0:
            return []

        increase_pct = (goal.target - baseline) / baseline * 100
        if increase_pct > self._settings.volume_increase_warning_pct:
            return [_warning(
                f"Volume increase of {increase_pct:.0f}% over last {goal.period.value} "
                "may be too aggressive. Consider increasing by 10-15% for "
                "sustainable progress.",
                "target",
            )]
        return []

    def _validate_frequency(self, goal: FrequencyGoal) -> List[ValidationIssue]:
        if goal.period == Period.WEEK and goal.target_count > self._settings.weekly_frequency_warning:
            return [_warning(
                f"Training more than {self._settings.weekly_frequency_warning} times per "
                "week may lead to overtraining. Ensure adequate recovery.",
                "target_count",
            )]
        return []

    def _validate_streak(self, goal: StreakGoal) -> List[ValidationIssue]:
        if goal.allow_rest_days and goal.max_rest_days < 1:
            return [_error(
                "max_rest_days must be at least 1 when rest days are allowed",
                "max_rest_days",
            )]
        return []


def validate_goal(
    goal_data: Mapping[str, Any],
    sessions: Sequence[Session],
    exercise_map: Optional[ExerciseMap] = None,
    now: Optional[datetime] = None,
) -> ValidationResult:
    """Validate with the application settings. See GoalValidator.validate_goal."""
    return GoalValidator().validate_goal(goal_data, sessions, exercise_map, now)
