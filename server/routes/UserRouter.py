import logging

from fastapi import APIRouter, HTTPException, Depends
from fastapi.responses import JSONResponse

from database.DB import get_db
from database.Repository import utc_now
from models.models import NotificationType, Role, RoleUpdate
from services import NotificationService
from .dependencies import require_admin, require_db

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get('')
async def get_users(admin_user: dict = Depends(require_admin), db = Depends(get_db)):
    """List active users (Admin only)"""
    require_db(db)
    try:
        result = await db.find_many("users", {"is_active": True}, sort=[("created_at", -1)])
        return JSONResponse(content={"users": result["data"]})

    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching users: {str(e)}")


@router.post('/{user_id}/promote')
async def promote_to_captain(user_id: str, admin_user: dict = Depends(require_admin), db = Depends(get_db)):
    """Promote a volunteer to captain (Admin only)"""
    require_db(db)
    target = await db.find_one("users", {"id": user_id})
    if not target:
        raise HTTPException(status_code=404, detail="User not found")
    if target.get("role") in (Role.CAPTAIN.value, Role.ADMIN.value):
        raise HTTPException(status_code=400, detail="User is already a captain or admin")

    await db.update("users", {"id": user_id}, {"$set": {"role": Role.CAPTAIN.value, "updated_at": utc_now()}})
    await NotificationService.notify(
        db, user_id, "Promotion", "You are now a team captain.", NotificationType.SUCCESS,
    )
    logger.info(f"User {user_id} promoted to captain by {admin_user['id']}")
    return JSONResponse(content={"success": True, "message": "User promoted to captain"})


@router.put('/{user_id}/role')
async def set_role(user_id: str, payload: RoleUpdate, admin_user: dict = Depends(require_admin), db = Depends(get_db)):
    """Set a user's role (Admin only)"""
    require_db(db)
    result = await db.update("users", {"id": user_id}, {"$set": {"role": payload.role.value, "updated_at": utc_now()}})
    if result["matched_count"] == 0:
        raise HTTPException(status_code=404, detail="User not found")
    return JSONResponse(content={"success": True, "role": payload.role.value})
