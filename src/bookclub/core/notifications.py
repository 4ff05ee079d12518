"""User notifications."""

from __future__ import annotations

from typing import Any

import structlog

from bookclub.db import notifications_repository as notifications_repo
from bookclub.db.notifications_repository import NotificationRecord
from bookclub.utils.errors import APIError

logger = structlog.get_logger(__name__)


def notify(user_id: str, type: str, title: str, message: str) -> NotificationRecord:
    notification = notifications_repo.insert_notification(user_id, type, title, message)
    logger.info("notification_created", user_id=user_id, type=type)
    return notification


def list_for_user(user_id: str, unread_only: bool = False, limit: int = 50) -> dict[str, Any]:
    notifications = notifications_repo.list_notifications(user_id, unread_only=unread_only, limit=limit)
    return {
        "notifications": notifications,
        "unread_count": notifications_repo.count_unread(user_id),
    }


def mark_read(user_id: str, notification_id: str) -> None:
    if not notifications_repo.mark_read(notification_id, user_id):
        raise APIError.not_found("Notification not found")
