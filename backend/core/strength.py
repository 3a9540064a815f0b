"""
Strength helpers for goal progress.

This module provides the 1RM arithmetic used by strength goals:
- Epley 1RM estimation for a single set
- Best-set selection within a session
- Per-session and all-time best estimates for a named exercise
- Exercise volume (weight x reps)

Only sets with positive weight and 1-15 reps are considered valid; the
Epley estimate is unreliable outside that range.
"""
from typing import Iterable, Optional, Sequence

from domain.models.session import ExerciseEntry, Session, SetEntry

MIN_VALID_REPS = 1
MAX_VALID_REPS = 15


# =============================================================================
# 1RM Calculation
# =============================================================================


def is_valid_set(set_entry: SetEntry) -> bool:
    """A set is usable for 1RM estimation when it has load and 1-15 reps."""
    return set_entry.weight > 0 and MIN_VALID_REPS <= set_entry.reps <= MAX_VALID_REPS


def calculate_1rm_epley(weight: float, reps: int) -> Optional[float]:
    """
    Calculate estimated 1RM using Epley formula.

    Formula: 1RM = weight * (1 + reps/30)

    Args:
        weight: Weight lifted
        reps: Number of reps completed

    Returns:
        Estimated 1RM, the weight itself for a single rep, or None when the
        weight is not positive or reps fall outside 1-15
    """
    if weight <= 0 or reps < MIN_VALID_REPS or reps > MAX_VALID_REPS:
        return None
    if reps == 1:
        return float(weight)

    return weight * (1.0 + reps / 30.0)


def find_best_set(sets: Iterable[SetEntry]) -> Optional[SetEntry]:
    """
    Pick the set with the highest weight x reps among valid sets.

    Ties keep the earlier set.
    """
    best: Optional[SetEntry] = None
    for set_entry in sets:
        if not is_valid_set(set_entry):
            continue
        if best is None or set_entry.volume > best.volume:
            best = set_entry
    return best


def session_best_1rm(session: Session, exercise_name: str) -> Optional[float]:
    """
    Best-set 1RM estimate for one exercise within one session.

    All entries of the exercise in the session are pooled (the same lift can
    be logged more than once). Name matching is case-insensitive.

    Returns:
        Estimated 1RM or None if the session has no valid set of the exercise
    """
    sets = [s for entry in session.entries_for(exercise_name) for s in entry.sets]
    best = find_best_set(sets)
    if best is None:
        return None
    return calculate_1rm_epley(best.weight, best.reps)


def best_historical_1rm(
    sessions: Sequence[Session],
    exercise_name: str,
) -> Optional[float]:
    """Maximum per-session estimate across the history, or None."""
    estimates = [
        estimate
        for estimate in (session_best_1rm(s, exercise_name) for s in sessions)
        if estimate is not None
    ]
    return max(estimates) if estimates else None


# =============================================================================
# Volume
# =============================================================================


def calculate_exercise_volume(entry: ExerciseEntry) -> float:
    """Sum of weight x reps over sets with positive weight and reps."""
    return sum(s.volume for s in entry.sets)
