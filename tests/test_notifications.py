"""
Unit tests for notification utilities.
"""

import pytest
from unittest.mock import Mock, patch
from datetime import datetime, timedelta

from echocards.utils.notifications import (
    Notification,
    NotificationManager,
    NotificationType,
    get_notification_manager,
)


class _SessionState(dict):
    """Dict with attribute access, like st.session_state."""

    def __getattr__(self, name):
        try:
            return self[name]
        except KeyError:
            raise AttributeError(name)

    def __setattr__(self, name, value):
        self[name] = value


@pytest.fixture
def mock_st():
    with patch('echocards.utils.notifications.st') as st_mock:
        st_mock.session_state = _SessionState()
        st_mock.button.return_value = False
        yield st_mock


class TestNotification:
    """Test cases for Notification class."""

    def test_notification_creation(self):
        notification = Notification(
            message="Backup exported",
            notification_type=NotificationType.SUCCESS,
            title="Export",
            duration=timedelta(seconds=5)
        )

        assert notification.message == "Backup exported"
        assert notification.type == NotificationType.SUCCESS
        assert notification.title == "Export"
        assert notification.dismissible is True
        assert notification.dismissed is False
        assert notification.id.startswith("notification_")

    def test_ids_are_unique(self):
        first = Notification("a", NotificationType.INFO)
        second = Notification("b", NotificationType.INFO)

        assert first.id != second.id

    def test_notification_expiration(self):
        assert not Notification("Permanent", NotificationType.INFO).is_expired()

        notification = Notification(
            message="Recent",
            notification_type=NotificationType.INFO,
            duration=timedelta(seconds=60)
        )
        assert not notification.is_expired()

        notification.created_at = datetime.now() - timedelta(seconds=120)
        assert notification.is_expired()

    def test_dict_conversion(self):
        notification = Notification(
            message="Checksum mismatch",
            notification_type=NotificationType.ERROR,
            duration=timedelta(seconds=5),
            dismissible=False
        )
        notification.dismissed = True

        data = notification.to_dict()
        assert data['type'] == "error"
        assert data['duration'] == 5.0

        restored = Notification.from_dict(data)
        assert restored.id == notification.id
        assert restored.type == NotificationType.ERROR
        assert restored.duration == timedelta(seconds=5)
        assert restored.created_at == notification.created_at
        assert restored.dismissible is False
        assert restored.dismissed is True


class TestNotificationManager:
    """Test cases for NotificationManager backed by session state."""

    def test_typed_helpers(self, mock_st):
        manager = NotificationManager()

        manager.success("done")
        manager.error("failed")
        manager.warning("careful")
        manager.info("fyi")

        types = [n.type for n in manager.get_active_notifications()]
        assert types == [
            NotificationType.SUCCESS,
            NotificationType.ERROR,
            NotificationType.WARNING,
            NotificationType.INFO,
        ]
        assert len(mock_st.session_state["notifications"]) == 4

    def test_max_notifications(self, mock_st):
        manager = NotificationManager(max_notifications=2)
        for i in range(3):
            manager.info(f"message {i}")

        messages = [n.message for n in manager.get_active_notifications()]
        assert messages == ["message 1", "message 2"]

    def test_dismiss_notification(self, mock_st):
        manager = NotificationManager()
        notification_id = manager.success("done")

        assert manager.dismiss_notification(notification_id) is True
        assert manager.get_active_notifications() == []
        assert manager.dismiss_notification("missing") is False

    def test_expired_notifications_hidden(self, mock_st):
        manager = NotificationManager()
        manager.info("short", duration=timedelta(seconds=1))
        stored = mock_st.session_state["notifications"][0]
        stored['created_at'] = (datetime.now() - timedelta(seconds=10)).isoformat()

        assert manager.get_active_notifications() == []

    def test_clear_all_notifications(self, mock_st):
        manager = NotificationManager()
        manager.error("failed")

        manager.clear_all_notifications()

        assert manager.get_active_notifications() == []

    def test_render_notifications(self, mock_st):
        manager = NotificationManager()
        manager.success("Data exported successfully as JSON!", title="Export")
        manager.warning("Orphan card skipped")

        manager.render_notifications()

        mock_st.success.assert_called_once_with("**Export**\n\nData exported successfully as JSON!")
        mock_st.warning.assert_called_once_with("Orphan card skipped")
        assert mock_st.button.call_count == 2
        mock_st.rerun.assert_not_called()

    def test_render_dismiss_button(self, mock_st):
        manager = NotificationManager()
        manager.error("failed")
        mock_st.button.return_value = True

        manager.render_notifications()

        mock_st.rerun.assert_called_once()
        assert manager.get_active_notifications() == []


def test_get_notification_manager_is_cached(mock_st):
    first = get_notification_manager()
    second = get_notification_manager()

    assert isinstance(first, NotificationManager)
    assert first is second
