"""
Unit tests for strength helpers.

Tests cover:
- Epley 1RM estimation and the valid rep range
- Best-set selection
- Per-session and historical best estimates
- Exercise volume
"""
import pytest
from datetime import datetime, timedelta, timezone

from backend.core.strength import (
    best_historical_1rm,
    calculate_1rm_epley,
    calculate_exercise_volume,
    find_best_set,
    is_valid_set,
    session_best_1rm,
)
from domain.models import ExerciseEntry, Session, SetEntry

START = datetime(2026, 3, 1, 9, tzinfo=timezone.utc)


def make_session(day, exercises):
    """Session on START + day with {name: [(weight, reps), ...]}."""
    return Session(
        id=f"s{day}",
        completed_at=START + timedelta(days=day),
        exercises=tuple(
            ExerciseEntry(name=name, sets=tuple(SetEntry(weight=w, reps=r) for w, r in sets))
            for name, sets in exercises.items()
        ),
    )


# =============================================================================
# Epley Formula Tests
# =============================================================================


@pytest.mark.unit
class TestEpleyFormula:
    """Tests for calculate_1rm_epley."""

    def test_single_rep_returns_weight(self):
        assert calculate_1rm_epley(140, 1) == 140.0

    def test_five_reps(self):
        assert calculate_1rm_epley(100, 5) == pytest.approx(116.6667, rel=1e-4)

    def test_fifteen_reps_is_still_valid(self):
        assert calculate_1rm_epley(60, 15) == pytest.approx(90.0)

    @pytest.mark.parametrize("weight,reps", [(100, 0), (100, 16), (0, 5), (-20, 5)])
    def test_out_of_range_returns_none(self, weight, reps):
        assert calculate_1rm_epley(weight, reps) is None


@pytest.mark.unit
class TestBestSet:
    """Tests for is_valid_set / find_best_set."""

    def test_invalid_sets(self):
        assert not is_valid_set(SetEntry(weight=0, reps=5))
        assert not is_valid_set(SetEntry(weight=100, reps=20))
        assert is_valid_set(SetEntry(weight=100, reps=15))

    def test_highest_volume_wins(self):
        best = find_best_set([
            SetEntry(weight=100, reps=5),
            SetEntry(weight=90, reps=8),
            SetEntry(weight=120, reps=1),
        ])
        assert best == SetEntry(weight=90, reps=8)

    def test_invalid_sets_ignored(self):
        best = find_best_set([SetEntry(weight=50, reps=30), SetEntry(weight=60, reps=3)])
        assert best == SetEntry(weight=60, reps=3)

    def test_tie_keeps_earlier_set(self):
        sets = [SetEntry(weight=100, reps=4), SetEntry(weight=80, reps=5)]
        assert find_best_set(sets) is sets[0]

    def test_no_valid_sets(self):
        assert find_best_set([SetEntry(weight=0, reps=0)]) is None
        assert find_best_set([]) is None


# =============================================================================
# Session / History Tests
# =============================================================================


@pytest.mark.unit
class TestSessionBest:
    """Tests for session_best_1rm / best_historical_1rm."""

    def test_session_best_uses_best_set(self):
        session = make_session(0, {"Bench Press": [(80, 10), (100, 5)]})
        # 80x10 has more volume than 100x5
        assert session_best_1rm(session, "Bench Press") == pytest.approx(80 * (1 + 10 / 30))

    def test_name_match_is_case_insensitive(self):
        session = make_session(0, {"bench  press": [(100, 5)]})
        assert session_best_1rm(session, "Bench Press") == pytest.approx(116.6667, rel=1e-4)

    def test_other_exercises_ignored(self):
        session = make_session(0, {"Squat": [(140, 5)]})
        assert session_best_1rm(session, "Bench Press") is None

    def test_historical_best_is_maximum(self):
        sessions = [
            make_session(0, {"Bench Press": [(100, 5)]}),
            make_session(3, {"Bench Press": [(105, 5)]}),
            make_session(6, {"Bench Press": [(95, 5)]}),
        ]
        assert best_historical_1rm(sessions, "Bench Press") == pytest.approx(122.5)

    def test_historical_best_none_without_valid_sets(self):
        sessions = [make_session(0, {"Bench Press": [(100, 20)]})]
        assert best_historical_1rm(sessions, "Bench Press") is None


@pytest.mark.unit
def test_exercise_volume():
    entry = ExerciseEntry(
        name="Squat",
        sets=(SetEntry(weight=100, reps=5), SetEntry(weight=0, reps=10), SetEntry(weight=80, reps=8)),
    )
    assert calculate_exercise_volume(entry) == 1140.0
