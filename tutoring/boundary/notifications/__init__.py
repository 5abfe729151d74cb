"""
Notification delivery adapters.

Exports:
  - NotificationDispatcher: Abstract dispatch port
  - LoggingNotificationDispatcher: Default dispatcher writing events to the log
"""

from tutoring.boundary.notifications.dispatcher import (
    LoggingNotificationDispatcher,
    NotificationDispatcher,
)

__all__ = ["LoggingNotificationDispatcher", "NotificationDispatcher"]
