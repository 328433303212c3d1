"""Notification inbox routes for the authenticated user."""

from fastapi import APIRouter, Query

from localpro.feeds import wait_for_change

from ..auth import CurrentUser
from ..config import get_settings
from ..database import Notifications, Storage
from ..responses import respond

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("")
async def list_notifications(
    auth: CurrentUser,
    notifications: Notifications,
    unread: bool = Query(False, description="Only unread notifications"),
):
    return respond(notifications.list_notifications(auth.user_id, unread_only=unread))


@router.get("/unread-count")
async def unread_count(auth: CurrentUser, notifications: Notifications):
    return respond(notifications.get_unread_count(auth.user_id))


@router.get("/feed")
async def notifications_feed(auth: CurrentUser, storage: Storage, since: str | None = Query(None)):
    """Long-poll the caller's notifications; returns when they differ from ``since``."""
    settings = get_settings()
    snapshot = await wait_for_change(
        lambda: storage.list_notifications(auth.user_id),
        since=since,
        timeout=settings.feed_timeout_seconds,
        interval=settings.feed_poll_interval_seconds,
    )
    return {"success": True, "data": snapshot.to_dict()}


@router.post("/read-all")
async def mark_all_read(auth: CurrentUser, notifications: Notifications):
    return respond(notifications.mark_all_as_read(auth.user_id))


@router.post("/{notification_id}/read")
async def mark_read(notification_id: str, auth: CurrentUser, notifications: Notifications):
    return respond(notifications.mark_as_read(auth.user_id, notification_id))


@router.delete("/{notification_id}")
async def delete_notification(notification_id: str, auth: CurrentUser, notifications: Notifications):
    return respond(notifications.delete_notification(auth.user_id, notification_id))
