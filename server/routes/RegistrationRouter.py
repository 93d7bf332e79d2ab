from fastapi import APIRouter, HTTPException, Depends
from fastapi.responses import JSONResponse

from database.DB import get_db
from database import Repository
from models.models import RegistrationStatus
from services import RegistrationService
from .dependencies import get_current_user, require_db

router = APIRouter()


@router.get('/me')
async def my_registrations(user: dict = Depends(get_current_user), db = Depends(get_db)):
    """All of the current user's registrations, with their events"""
    require_db(db)
    try:
        registrations = await Repository.fetch_registrations(db, user["id"], [s.value for s in RegistrationStatus])
        return JSONResponse(content={"registrations": registrations})

    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching registrations: {str(e)}")


@router.post('/{registration_id}/cancel')
async def cancel_registration(registration_id: str, user: dict = Depends(get_current_user), db = Depends(get_db)):
    require_db(db)
    try:
        await RegistrationService.cancel(db, user, registration_id)
        return JSONResponse(content={"success": True, "message": "Your registration was cancelled."})

    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error cancelling registration: {str(e)}")
