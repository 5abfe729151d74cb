"""
Notification dispatcher interface.

Delivery of booking notifications is an external concern (push, email, chat).
The booking core only needs something it can hand a NotificationEvent to.

Dependencies: tutoring.core.notifications
System role: Outbound port for booking notifications
"""

import logging
from abc import ABC, abstractmethod

from tutoring.core.notifications import NotificationEvent

logger = logging.getLogger(__name__)


class NotificationDispatcher(ABC):
    """
    Abstract notification sink.

    Implementations must return promptly; the booking core awaits dispatch
    after its transaction has committed and only logs failures.
    """

    @abstractmethod
    async def dispatch(self, event: NotificationEvent) -> None:
        """
        Submit one notification for delivery.

        Args:
            event: Recipient, title, body, related entity and kind
        """


class LoggingNotificationDispatcher(NotificationDispatcher):
    """Dispatcher that writes each event to the application log."""

    async def dispatch(self, event: NotificationEvent) -> None:
        logger.info(
            "Notification dispatched",
            extra={
                "recipient_id": event.recipient_id,
                "kind": event.kind.value,
                "title": event.title,
                "related_entity_id": str(event.related_entity_id),
            },
        )
