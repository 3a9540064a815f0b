"""
Milestone notification delivery.

Delivery channels (push, email, in-app toasts) live outside this service.
The in-process notifier records each milestone in the application log.
"""
import logging

from application.ports.milestone_notifier import MilestoneNotification

logger = logging.getLogger(__name__)


class LoggingMilestoneNotifier:
    """MilestoneNotifier that writes each notification to the log."""

    def notify(self, notification: MilestoneNotification) -> None:
        prefix = "[GOAL ACHIEVED] " if notification.emphasis else ""
        logger.info(
            f"{prefix}Milestone {notification.threshold}% on {notification.goal_type} goal "
            f"{notification.goal_id} (owner={notification.owner_id}): {notification.message}"
        )
