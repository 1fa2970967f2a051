from typing import Any, Dict, List

from pymongo import DESCENDING

import database
from database import NOTIFICATIONS
from logger import get_logger
from schemas import Notification

logger = get_logger("notifications")


def create_notification(notification: Notification) -> Dict[str, Any]:
    saved = database.create_document(NOTIFICATIONS, notification)
    logger.debug("Notification %s (%s) for %s", saved["id"], notification.type, notification.user_id)
    return saved


def get_user_notifications(user_id: str, limit: int = 20) -> List[Dict[str, Any]]:
    return database.get_documents(
        NOTIFICATIONS,
        {"user_id": user_id},
        limit=limit,
        sort=[("created_at", DESCENDING)],
    )


def get_notification(notification_id: str) -> Dict[str, Any]:
    return database.get_document(NOTIFICATIONS, notification_id)


def mark_as_read(notification_id: str):
    return database.update_document(NOTIFICATIONS, notification_id, {"is_read": True})


def mark_all_as_read(user_id: str) -> int:
    result = database.db[NOTIFICATIONS].update_many(
        {"user_id": user_id, "is_read": False},
        {"$set": {"is_read": True, "updated_at": database.utcnow()}},
    )
    return result.modified_count


def get_unread_count(user_id: str) -> int:
    return database.db[NOTIFICATIONS].count_documents({"user_id": user_id, "is_read": False})


def delete_notification(notification_id: str) -> bool:
    return database.delete_document(NOTIFICATIONS, notification_id)
