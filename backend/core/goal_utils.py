"""
Time arithmetic and pacing classification for goals.

Pacing statuses returned here are derived values for display and stats.
They are never persisted and never drive lifecycle transitions.
"""
import math
from datetime import datetime, timedelta
from typing import Dict, Tuple

from domain.models.goal import Period

SECONDS_PER_DAY = 86400.0

# Deadline goals: close to the deadline and well short of target
AT_RISK_DAYS = 14
AT_RISK_PROGRESS = 80

# Tolerance bands (percentage points) around expected progress
DEADLINE_AHEAD_MARGIN = 10
DEADLINE_BEHIND_MARGIN = 10
PERIOD_AHEAD_MARGIN = 5
PERIOD_BEHIND_MARGIN = 10


def _clamp_percent(value: float) -> float:
    return min(max(value, 0.0), 100.0)


def _whole_days(delta: timedelta) -> int:
    """Full days in a span, truncated towards zero."""
    return math.trunc(delta.total_seconds() / SECONDS_PER_DAY)


def _ceil_days(delta: timedelta) -> int:
    return math.ceil(delta.total_seconds() / SECONDS_PER_DAY)


# =============================================================================
# Deadline goals
# =============================================================================


def calculate_expected_progress(goal, now: datetime) -> float:
    """
    Expected progress for a deadline goal, from elapsed time alone.

    Args:
        goal: Any goal; only goals with both start_date and deadline count
        now: Evaluation time

    Returns:
        Percentage in [0, 100]. Goals without both dates expect 0. A
        non-positive span expects 100 once the deadline has passed.
    """
    start = getattr(goal, "start_date", None)
    deadline = getattr(goal, "deadline", None)
    if start is None or deadline is None:
        return 0.0

    total_days = _whole_days(deadline - start)
    if total_days <= 0:
        return 100.0 if now >= deadline else 0.0

    elapsed_days = _whole_days(now - start)
    return _clamp_percent(elapsed_days / total_days * 100)


def determine_goal_status(
    current_progress: float,
    expected_progress: float,
    days_remaining: int,
) -> str:
    """
    Pacing for a deadline goal.

    Returns:
        "completed", "at-risk", "ahead", "behind" or "on-track"
    """
    if current_progress >= 100:
        return "completed"
    if days_remaining < AT_RISK_DAYS and current_progress < AT_RISK_PROGRESS:
        return "at-risk"
    if current_progress > expected_progress + DEADLINE_AHEAD_MARGIN:
        return "ahead"
    if current_progress < expected_progress - DEADLINE_BEHIND_MARGIN:
        return "behind"
    return "on-track"


def calculate_required_pace(
    current: float,
    target: float,
    days_remaining: float,
) -> Dict[str, float]:
    """
    Rate needed to close the gap to the target before the deadline.

    Returns:
        Dict with per_day, per_week and total. With no days left the whole
        remainder is due at once.
    """
    remaining = max(target - current, 0.0)
    if days_remaining <= 0:
        return {"per_day": remaining, "per_week": remaining, "total": remaining}

    weeks_remaining = days_remaining / 7.0
    return {
        "per_day": remaining / days_remaining,
        "per_week": remaining / weeks_remaining if weeks_remaining >= 1 else remaining,
        "total": remaining,
    }


# =============================================================================
# Period goals
# =============================================================================


def get_period_boundaries(period, reference: datetime) -> Tuple[datetime, datetime]:
    """
    Calendar window containing the reference time.

    Week windows run Monday 00:00 through Sunday 23:59:59.999999. Month
    windows run from the first through the last calendar day. Both are
    expressed in the reference's timezone.

    Raises:
        ValueError: If the period is not "week" or "month"
    """
    try:
        period = Period(period)
    except ValueError:
        raise ValueError(f"Unknown period: {period}")

    day_start = reference.replace(hour=0, minute=0, second=0, microsecond=0)

    if period == Period.WEEK:
        start = day_start - timedelta(days=day_start.weekday())
        end = start + timedelta(days=7) - timedelta(microseconds=1)
        return start, end

    start = day_start.replace(day=1)
    if start.month == 12:
        next_month = start.replace(year=start.year + 1, month=1)
    else:
        next_month = start.replace(month=start.month + 1)
    return start, next_month - timedelta(microseconds=1)


def calculate_period_expected_progress(
    period_start: datetime,
    period_end: datetime,
    now: datetime,
) -> float:
    """Share of the period elapsed, in ceil-days, as a percentage in [0, 100]."""
    total_days = _ceil_days(period_end - period_start)
    if total_days <= 0:
        return 100.0 if now >= period_end else 0.0

    days_passed = _ceil_days(now - period_start)
    return _clamp_percent(days_passed / total_days * 100)


def days_until(end: datetime, now: datetime) -> int:
    """Whole days (rounded up) from now until end; 0 once end has passed."""
    return max(_ceil_days(end - now), 0)


def determine_period_status(current_progress: float, expected_progress: float) -> str:
    """
    Pacing for a volume or frequency goal within its period.

    Returns:
        "achieved", "ahead", "behind" or "on-pace"
    """
    if current_progress >= 100:
        return "achieved"
    if current_progress > expected_progress + PERIOD_AHEAD_MARGIN:
        return "ahead"
    if current_progress < expected_progress - PERIOD_BEHIND_MARGIN:
        return "behind"
    return "on-pace"
