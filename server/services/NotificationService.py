import logging

from database.Repository import utc_now
from models.models import NotificationType

logger = logging.getLogger(__name__)


async def notify(db, user_id, title, message, type: NotificationType = NotificationType.INFO):
    """Store a notification; a failure here never breaks the action that triggered it"""
    notification = {
        "user_id": user_id,
        "title": title,
        "message": message,
        "type": type.value,
        "read": False,
        "created_at": utc_now(),
    }
    try:
        result = await db.add("notifications", notification)
    except Exception as e:
        logger.error(f"Failed to create notification for user {user_id}: {e}")
        return False
    return result["status"] == 200


async def list_for_user(db, user_id, limit):
    result = await db.find_many("notifications", {"user_id": user_id}, sort=[("created_at", -1)], limit=limit)
    return result["data"]


async def mark_as_read(db, notification_id):
    return await db.update("notifications", {"id": notification_id}, {"$set": {"read": True}})


async def mark_all_as_read(db, user_id):
    return await db.update_many("notifications", {"user_id": user_id, "read": False}, {"$set": {"read": True}})
