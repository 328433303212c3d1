"""
In-app notifications.

Notifications are fire-and-forget: callers that notify as a side effect of
another action check ``result.success`` and log, they never roll back.
"""

import logging
import uuid
from typing import Any, Dict, List, Optional

from localpro.models import Notification, NotificationPriority, NotificationType, utc_now
from localpro.results import ActionResult, ErrorCode, action
from localpro.storage.base import NotificationStorage
from localpro.validation import require, require_choice

logger = logging.getLogger(__name__)


class NotificationService:
    def __init__(self, storage: NotificationStorage):
        self.storage = storage

    @action("Could not send notification", "Failed to create notification")
    def notify(
        self,
        user_id: str,
        notification_type: str,
        message: str,
        link: Optional[str] = None,
        priority: str = NotificationPriority.MEDIUM.value,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> ActionResult[Notification]:
        """Create a notification for ``user_id``."""
        user_id = require(user_id, "User ID")
        message = require(message, "Message")
        notification_type = require_choice(
            notification_type, NotificationType, "Notification type", "notification type"
        )
        priority = require_choice(priority, NotificationPriority, "Priority", "priority")

        notification = Notification(
            id=str(uuid.uuid4()),
            user_id=user_id,
            type=notification_type,
            message=message,
            link=link,
            priority=priority,
            metadata=metadata or {},
            created_at=utc_now(),
        )
        self.storage.save_notification(notification)
        logger.debug(f"Notification created | user={user_id} | type={notification_type}")
        return ActionResult.ok(notification, "Notification created")

    @action("Could not retrieve notifications", "Failed to get notifications")
    def list_notifications(self, user_id: str, unread_only: bool = False) -> ActionResult[List[Notification]]:
        user_id = require(user_id, "User ID")
        items = self.storage.list_notifications(user_id, unread_only=unread_only)
        return ActionResult.ok(items, "Notifications retrieved successfully")

    @action("Could not count notifications", "Failed to count unread notifications")
    def get_unread_count(self, user_id: str) -> ActionResult[int]:
        user_id = require(user_id, "User ID")
        return ActionResult.ok(len(self.storage.list_notifications(user_id, unread_only=True)))

    @action("Could not mark notification as read", "Failed to mark notification as read")
    def mark_as_read(self, user_id: str, notification_id: str) -> ActionResult:
        user_id = require(user_id, "User ID")
        notification_id = require(notification_id, "Notification ID")
        if not self.storage.mark_notification_read(user_id, notification_id):
            return ActionResult.fail(
                "Notification not found", "Could not mark notification as read", ErrorCode.NOT_FOUND
            )
        return ActionResult.ok(message="Notification marked as read")

    @action("Could not mark notifications as read", "Failed to mark all notifications as read")
    def mark_all_as_read(self, user_id: str) -> ActionResult[int]:
        user_id = require(user_id, "User ID")
        count = self.storage.mark_all_notifications_read(user_id)
        return ActionResult.ok(count, "All notifications marked as read")

    @action("Could not delete notification", "Failed to delete notification")
    def delete_notification(self, user_id: str, notification_id: str) -> ActionResult:
        user_id = require(user_id, "User ID")
        notification_id = require(notification_id, "Notification ID")
        if not self.storage.delete_notification(user_id, notification_id):
            return ActionResult.fail("Notification not found", "Could not delete notification", ErrorCode.NOT_FOUND)
        return ActionResult.ok(message="Notification deleted")
