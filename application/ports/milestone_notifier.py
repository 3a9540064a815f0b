"""
Milestone Notifier Interface (Port).

Notification delivery (push, toast, email) is an external concern. The goal
store hands one MilestoneNotification per newly crossed threshold to this
port after the threshold has been persisted.
"""
from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class MilestoneNotification:
    """A newly reached milestone on a goal."""
    goal_id: str
    owner_id: str
    goal_type: str
    threshold: int
    message: str
    emphasis: bool = False  # True for the terminal 100% milestone


class MilestoneNotifier(Protocol):
    """
    Abstract interface for milestone notification delivery.
    """

    def notify(self, notification: MilestoneNotification) -> None:
        """
        Deliver a milestone notification.

        Args:
            notification: The milestone to announce
        """
        ...
