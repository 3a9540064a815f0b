"""
Fake Repository Implementations for Testing.

This package provides in-memory fake implementations of the application
ports for fast, isolated testing. No database or external dependencies
required.

Features:
- All fakes implement the same Protocol interfaces as real implementations
- Supports seeding with test data
- Supports reset() for test isolation
- Failure injection for persistence error paths

Usage:
    from tests.fakes import FakeGoalRepository, FakeSessionRepository, session_record

    goal_repo = FakeGoalRepository()
    session_repo = FakeSessionRepository()
    session_repo.seed("user1", [session_record(now, {"Bench Press": [(100, 5)]})])
"""

from tests.fakes.goal_repository import FakeGoalRepository
from tests.fakes.session_repository import FakeSessionRepository, session_record
from tests.fakes.exercises_repository import FakeExercisesRepository
from tests.fakes.milestone_notifier import FakeMilestoneNotifier

__all__ = [
    "FakeGoalRepository",
    "FakeSessionRepository",
    "FakeExercisesRepository",
    "FakeMilestoneNotifier",
    "session_record",
]
