from fastapi import APIRouter, HTTPException, Depends, Query
from fastapi.responses import JSONResponse

from config.config import NOTIFICATION_LIMIT
from database.DB import get_db
from helpers import AccessPolicy
from services import NotificationService
from .dependencies import get_current_user, require_db

router = APIRouter()


@router.get('')
async def get_notifications(
    limit: int = Query(NOTIFICATION_LIMIT, ge=1, le=200),
    user: dict = Depends(get_current_user),
    db = Depends(get_db),
):
    require_db(db)
    try:
        notifications = await NotificationService.list_for_user(db, user["id"], limit)
        unread = sum(1 for n in notifications if not n.get("read"))
        return JSONResponse(content={"notifications": notifications, "unread_count": unread})

    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching notifications: {str(e)}")


@router.post('/read-all')
async def mark_all_read(user: dict = Depends(get_current_user), db = Depends(get_db)):
    require_db(db)
    result = await NotificationService.mark_all_as_read(db, user["id"])
    return JSONResponse(content={"success": True, "updated": result["modified_count"]})


@router.post('/{notification_id}/read')
async def mark_read(notification_id: str, user: dict = Depends(get_current_user), db = Depends(get_db)):
    require_db(db)
    notification = await db.find_one("notifications", {"id": notification_id})
    if not notification or not AccessPolicy.can_read_notification(user, notification):
        raise HTTPException(status_code=404, detail="Notification not found")

    await NotificationService.mark_as_read(db, notification_id)
    return JSONResponse(content={"success": True})
