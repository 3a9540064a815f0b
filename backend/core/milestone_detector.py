"""
Milestone threshold detection.

A milestone is reached once progress passes one of the fixed thresholds.
Each threshold fires at most once per goal: callers fold the detected
thresholds back into the goal's milestones_reached.
"""
from typing import Iterable, List, Optional

from domain.models.goal import MILESTONE_THRESHOLDS

COMPLETION_MILESTONE = 100


def detect_milestones(current_progress: float, already_reached: Iterable[int] = ()) -> List[int]:
    """
    Thresholds newly reached at the given progress.

    A single jump yields every intervening threshold, in ascending order.

    Example:
        >>> detect_milestones(92, [25])
        [50, 75, 90]
    """
    reached = set(already_reached)
    return [
        threshold
        for threshold in MILESTONE_THRESHOLDS
        if current_progress >= threshold and threshold not in reached
    ]


def get_next_milestone(current_progress: float, already_reached: Iterable[int] = ()) -> Optional[int]:
    """Smallest threshold above the current progress not yet reached."""
    reached = set(already_reached)
    for threshold in MILESTONE_THRESHOLDS:
        if current_progress < threshold and threshold not in reached:
            return threshold
    return None


def _goal_label(goal) -> str:
    exercise = getattr(goal, "exercise_name", None)
    if exercise:
        return exercise
    muscle_group = getattr(goal, "muscle_group", None)
    if muscle_group:
        return f"your {muscle_group} goal"
    return "your goal"


def get_milestone_message(threshold: int, goal) -> str:
    """Celebration copy for a reached threshold."""
    label = _goal_label(goal)
    messages = {
        25: f"You're 25% of the way to {label}! Keep it up!",
        50: f"Halfway there! {label} is within reach!",
        75: "75% complete! You're crushing it!",
        90: f"Almost there! Just 10% more to {label}!",
        100: f"GOAL ACHIEVED! {label} is complete! Congratulations!",
    }
    return messages.get(threshold, f"Milestone {threshold}% reached!")
