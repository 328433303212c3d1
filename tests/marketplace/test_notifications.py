"""Tests for the notification inbox."""

import pytest

from localpro.notifications import NotificationService
from localpro.results import ErrorCode


@pytest.fixture
def service(storage):
    return NotificationService(storage)


class TestNotify:
    def test_creates_unread_notification(self, service, storage):
        result = service.notify("user-1", "info", "Welcome to LocalPro", link="/dashboard")

        assert result.success is True
        [stored] = storage.list_notifications("user-1")
        assert stored.read is False
        assert stored.priority == "medium"
        assert stored.link == "/dashboard"

    def test_invalid_type(self, service, storage):
        result = service.notify("user-1", "gossip", "hello")

        assert result.code == ErrorCode.VALIDATION
        assert result.error == "Invalid notification type: gossip"
        assert storage.list_notifications("user-1") == []

    def test_empty_message(self, service):
        assert service.notify("user-1", "info", "").error == "Message is required"


class TestInbox:
    @pytest.fixture
    def inbox(self, service):
        for text in ("one", "two", "three"):
            service.notify("user-1", "info", text)
        service.notify("user-2", "info", "other user")
        return service

    def test_unread_count_and_mark_all(self, inbox):
        assert inbox.get_unread_count("user-1").data == 3

        result = inbox.mark_all_as_read("user-1")

        assert result.data == 3
        assert inbox.get_unread_count("user-1").data == 0
        assert inbox.get_unread_count("user-2").data == 1

    def test_mark_one_read(self, inbox, storage):
        target = storage.list_notifications("user-1")[0]

        assert inbox.mark_as_read("user-1", target.id).success is True
        assert inbox.get_unread_count("user-1").data == 2

    def test_cannot_touch_other_users_notification(self, inbox, storage):
        theirs = storage.list_notifications("user-2")[0]

        assert inbox.mark_as_read("user-1", theirs.id).code == ErrorCode.NOT_FOUND
        assert inbox.delete_notification("user-1", theirs.id).code == ErrorCode.NOT_FOUND

    def test_delete(self, inbox, storage):
        target = storage.list_notifications("user-1")[0]

        assert inbox.delete_notification("user-1", target.id).message == "Notification deleted"
        assert len(inbox.list_notifications("user-1").data) == 2

    def test_unread_only_listing(self, inbox, storage):
        target = storage.list_notifications("user-1")[0]
        inbox.mark_as_read("user-1", target.id)

        result = inbox.list_notifications("user-1", unread_only=True)

        assert target.id not in [n.id for n in result.data]
