"""Notification utilities - email."""

from src.agency.core.notifications.email import (
    TEAM_INVITATION,
    DeliveryResult,
    NotificationDispatcher,
    get_dispatcher,
    sign_in_link,
)

__all__ = [
    "TEAM_INVITATION",
    "DeliveryResult",
    "NotificationDispatcher",
    "get_dispatcher",
    "sign_in_link",
]
