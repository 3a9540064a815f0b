"""
Application-layer exceptions.

These exceptions are used across application, infrastructure and API layers.
The API maps each class to an HTTP status (see api/routers/goals.py).
"""

from typing import TYPE_CHECKING, List, Optional

if TYPE_CHECKING:
    from backend.core.goal_validator import ValidationIssue


class GoalError(Exception):
    """Base class for goal engine errors."""

    pass


class GoalValidationError(GoalError):
    """A goal was rejected by validation.

    Carries the structured list of issues that caused the rejection so the
    caller can show every reason, not just the first.
    """

    def __init__(self, issues: List["ValidationIssue"], message: Optional[str] = None):
        self.issues = issues
        if message is None:
            reasons = "; ".join(issue.message for issue in issues) or "unknown reason"
            message = f"Invalid goal: {reasons}"
        super().__init__(message)


class GoalNotFoundError(GoalError):
    """No goal exists with the requested ID."""

    def __init__(self, goal_id: str):
        self.goal_id = goal_id
        super().__init__(f"Goal not found: {goal_id}")


class GoalPermissionError(GoalError):
    """The caller does not own the goal it tried to act on.

    Always fatal; never retried.
    """

    def __init__(self, goal_id: Optional[str], user_id: str):
        self.goal_id = goal_id
        self.user_id = user_id
        super().__init__(f"Permission denied: user {user_id} cannot modify goal {goal_id}")


class GoalTransitionError(GoalError):
    """A lifecycle transition is not permitted from the goal's current status."""

    def __init__(self, goal_id: str, current: str, target: str):
        self.goal_id = goal_id
        self.current = current
        self.target = target
        super().__init__(f"Goal {goal_id} cannot move from '{current}' to '{target}'")


class GoalPersistenceError(GoalError):
    """The goal store could not read or write a goal record.

    Raised by infrastructure adapters wrapping client failures.
    """

    pass
