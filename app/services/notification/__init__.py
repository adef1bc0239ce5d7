"""
Notification package.

Records engine events for the notification/UI layer; delivery happens
elsewhere.
"""

from app.services.notification.messages import (
    activation_message,
    daily_income_message,
    inactivity_message,
)
from app.services.notification.notification_service import NotificationService


__all__ = [
    "NotificationService",
    "activation_message",
    "daily_income_message",
    "inactivity_message",
]
