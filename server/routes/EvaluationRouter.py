import logging

from fastapi import APIRouter, HTTPException, Depends, Query
from fastapi.responses import JSONResponse
from pymongo.errors import DuplicateKeyError

from database.DB import get_db
from database import Repository
from helpers import AccessPolicy
from models.models import EvaluationCreate, NotificationType
from services import NotificationService
from .dependencies import get_current_user, require_captain_or_admin, require_db

logger = logging.getLogger(__name__)

router = APIRouter()

ALREADY_EVALUATED = "Volunteer already evaluated for this event"


@router.post('')
async def create_evaluation(payload: EvaluationCreate, user: dict = Depends(require_captain_or_admin), db = Depends(get_db)):
    """A captain rates a volunteer of their own team for the team's event"""
    require_db(db)
    try:
        team = await db.find_one("teams", {"id": payload.team_id})
        if not team or team.get("event_id") != payload.event_id:
            raise HTTPException(status_code=404, detail="Team not found for this event")

        membership = await db.find_one("team_members", {"team_id": payload.team_id, "user_id": payload.volunteer_id})
        if not AccessPolicy.can_evaluate(user, team, membership):
            raise HTTPException(status_code=403, detail="You can only evaluate volunteers of a team you lead")

        existing = await db.find_one("evaluations", {
            "captain_id": user["id"],
            "volunteer_id": payload.volunteer_id,
            "event_id": payload.event_id,
            "team_id": payload.team_id,
        })
        if existing:
            raise HTTPException(status_code=409, detail=ALREADY_EVALUATED)

        try:
            result = await Repository.insert_evaluation(db, user["id"], payload.model_dump())
        except DuplicateKeyError:
            raise HTTPException(status_code=409, detail=ALREADY_EVALUATED)
        if result["status"] != 200:
            raise HTTPException(status_code=500, detail="Failed to save evaluation")

        await NotificationService.notify(
            db, payload.volunteer_id, "New evaluation",
            f"Your captain rated your work on team \"{team['name']}\".", NotificationType.INFO,
        )
        logger.info(f"Captain {user['id']} evaluated volunteer {payload.volunteer_id} on team {payload.team_id}")
        return JSONResponse(status_code=201, content={"message": "Evaluation saved", "evaluation": result["data"]})

    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error saving evaluation: {str(e)}")


@router.get('/me')
async def my_evaluations(user: dict = Depends(get_current_user), db = Depends(get_db)):
    """Evaluations the current user has received"""
    require_db(db)
    try:
        evaluations = await Repository.fetch_evaluations_received(db, user["id"])
        return JSONResponse(content={"evaluations": evaluations})

    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching evaluations: {str(e)}")


@router.get('/given')
async def evaluated_volunteers(
    event_id: str = Query(...),
    team_id: str = Query(...),
    user: dict = Depends(require_captain_or_admin),
    db = Depends(get_db),
):
    """Ids of the volunteers the captain already evaluated for this event and team"""
    require_db(db)
    result = await db.find_many("evaluations", {"captain_id": user["id"], "event_id": event_id, "team_id": team_id})
    return JSONResponse(content={"volunteer_ids": [e["volunteer_id"] for e in result["data"]]})
