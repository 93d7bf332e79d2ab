from fastapi import APIRouter, HTTPException, Depends
from fastapi.responses import JSONResponse

from database.DB import get_db
from services import ParticipationService
from .dependencies import get_current_user, require_db

router = APIRouter()


@router.get('')
async def my_participations(user: dict = Depends(get_current_user), db = Depends(get_db)):
    """
    Reconciled participations and statistics for the current user.
    Sources that failed to load come back empty and are listed in ``errors``.
    """
    require_db(db)
    dashboard = await ParticipationService.load_dashboard(db, user)
    return JSONResponse(content=dashboard.model_dump(mode="json"))


@router.post('/{participation_id}/leave')
async def leave_participation(participation_id: str, user: dict = Depends(get_current_user), db = Depends(get_db)):
    """Leave a team or cancel a direct registration, depending on the participation's kind"""
    require_db(db)
    try:
        result = await ParticipationService.leave(db, user, participation_id)
        return JSONResponse(content=result)

    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error processing your request: {str(e)}")
