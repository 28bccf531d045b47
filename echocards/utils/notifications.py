"""
User notifications for backup and restore feedback.

Notifications are kept in the Streamlit session so they survive the rerun
that follows a button press.
"""

import itertools
import logging
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Dict, List, Optional

import streamlit as st

logger = logging.getLogger(__name__)

_ids = itertools.count(1)


class NotificationType(Enum):
    """Types of notifications."""
    SUCCESS = "success"
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class Notification:
    """Represents a user notification."""

    def __init__(self, message: str, notification_type: NotificationType,
                 title: Optional[str] = None, duration: Optional[timedelta] = None,
                 dismissible: bool = True):
        """
        Initialize notification.

        Args:
            message: Notification message
            notification_type: Type of notification
            title: Optional title
            duration: How long to show notification (None = until dismissed)
            dismissible: Whether user can dismiss the notification
        """
        self.id = f"notification_{next(_ids)}"
        self.message = message
        self.type = notification_type
        self.title = title
        self.created_at = datetime.now()
        self.duration = duration
        self.dismissible = dismissible
        self.dismissed = False

    def is_expired(self) -> bool:
        if self.duration is None:
            return False
        return datetime.now() - self.created_at > self.duration

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'message': self.message,
            'type': self.type.value,
            'title': self.title,
            'created_at': self.created_at.isoformat(),
            'duration': self.duration.total_seconds() if self.duration else None,
            'dismissible': self.dismissible,
            'dismissed': self.dismissed
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Notification':
        notification = cls(
            message=data['message'],
            notification_type=NotificationType(data['type']),
            title=data.get('title'),
            duration=timedelta(seconds=data['duration']) if data.get('duration') else None,
            dismissible=data.get('dismissible', True)
        )
        notification.id = data['id']
        notification.created_at = datetime.fromisoformat(data['created_at'])
        notification.dismissed = data.get('dismissed', False)
        return notification


class NotificationManager:
    """Session-backed queue of notifications."""

    def __init__(self, max_notifications: int = 10):
        self.notifications_key = "notifications"
        self.max_notifications = max_notifications

    def add_notification(self, message: str, notification_type: NotificationType,
                         title: Optional[str] = None, duration: Optional[timedelta] = None,
                         dismissible: bool = True) -> str:
        """
        Add a new notification.

        Returns:
            Notification ID
        """
        notification = Notification(message, notification_type, title, duration, dismissible)

        notifications = self._get_notifications()
        notifications.append(notification)
        # Keep only the most recent notifications
        notifications = notifications[-self.max_notifications:]
        self._save_notifications(notifications)

        logger.debug(f"Added {notification_type.value} notification: {message}")
        return notification.id

    def success(self, message: str, title: Optional[str] = None,
                duration: Optional[timedelta] = None) -> str:
        return self.add_notification(message, NotificationType.SUCCESS, title, duration)

    def error(self, message: str, title: Optional[str] = None,
              duration: Optional[timedelta] = None) -> str:
        return self.add_notification(message, NotificationType.ERROR, title, duration)

    def warning(self, message: str, title: Optional[str] = None,
                duration: Optional[timedelta] = None) -> str:
        return self.add_notification(message, NotificationType.WARNING, title, duration)

    def info(self, message: str, title: Optional[str] = None,
             duration: Optional[timedelta] = None) -> str:
        return self.add_notification(message, NotificationType.INFO, title, duration)

    def dismiss_notification(self, notification_id: str) -> bool:
        """
        Dismiss a notification.

        Returns:
            True if dismissed, False if not found
        """
        notifications = self._get_notifications()
        for notification in notifications:
            if notification.id == notification_id:
                notification.dismissed = True
                self._save_notifications(notifications)
                logger.debug(f"Dismissed notification: {notification_id}")
                return True
        return False

    def clear_all_notifications(self) -> None:
        self._save_notifications([])
        logger.debug("Cleared all notifications")

    def get_active_notifications(self) -> List[Notification]:
        """Non-dismissed, non-expired notifications, oldest first."""
        return [n for n in self._get_notifications() if not n.dismissed and not n.is_expired()]

    def render_notifications(self) -> None:
        """Render active notifications, each with a dismiss button."""
        for notification in self.get_active_notifications():
            render = {
                NotificationType.SUCCESS: st.success,
                NotificationType.ERROR: st.error,
                NotificationType.WARNING: st.warning,
            }.get(notification.type, st.info)

            message = notification.message
            if notification.title:
                message = f"**{notification.title}**\n\n{message}"
            render(message)

            if notification.dismissible and st.button("Dismiss", key=f"dismiss_{notification.id}"):
                self.dismiss_notification(notification.id)
                st.rerun()

    def _get_notifications(self) -> List[Notification]:
        if self.notifications_key not in st.session_state:
            return []
        return [Notification.from_dict(data) for data in st.session_state[self.notifications_key]]

    def _save_notifications(self, notifications: List[Notification]) -> None:
        st.session_state[self.notifications_key] = [n.to_dict() for n in notifications]


def get_notification_manager() -> NotificationManager:
    """Get or create the session's notification manager."""
    if 'notification_manager' not in st.session_state:
        st.session_state.notification_manager = NotificationManager()
    return st.session_state.notification_manager


def render_notifications() -> None:
    get_notification_manager().render_notifications()
