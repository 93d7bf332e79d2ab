from fastapi import APIRouter, HTTPException, Depends, Query
from fastapi.responses import JSONResponse
from typing import Optional

from database.DB import get_db
from database import Repository
from helpers.ParticipationReconciler import average_rating
from .dependencies import require_admin, require_db

router = APIRouter()


@router.get('/events')
async def event_summary(
    event_id: Optional[str] = Query(None),
    admin_user: dict = Depends(require_admin),
    db = Depends(get_db),
):
    """Per-event totals: teams, volunteers placed on teams, capacity and open registrations"""
    require_db(db)
    try:
        query = {"id": event_id} if event_id else {}
        events = (await db.find_many("events", query, sort=[("event_date", 1)]))["data"]

        summary = []
        for event in events:
            teams = (await db.find_many("teams", {"event_id": event["id"]}))["data"]
            volunteers = sum(t.get("current_volunteers") or 0 for t in teams)
            summary.append({
                "event_id": event["id"],
                "title": event.get("title"),
                "event_date": event.get("event_date"),
                "status": event.get("status"),
                "total_teams": len(teams),
                "total_volunteers": volunteers,
                "capacity": event.get("max_volunteers"),
                "open_registrations": await Repository.count_open_registrations(db, event["id"]),
            })
        return JSONResponse(content={"events": summary})

    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error building event report: {str(e)}")


@router.get('/evaluations')
async def evaluation_summary(admin_user: dict = Depends(require_admin), db = Depends(get_db)):
    """System-wide average rating and evaluation count"""
    require_db(db)
    result = await db.find_many("evaluations", {}, projection={"rating": 1})
    ratings = [e["rating"] for e in result["data"] if e.get("rating") is not None]
    return JSONResponse(content={"average_rating": average_rating(ratings), "total_evaluations": len(ratings)})
