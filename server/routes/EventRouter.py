from fastapi import APIRouter, HTTPException, Depends, Query
from fastapi.responses import JSONResponse
from typing import Optional

from config.config import MAX_EVENT_CAPACITY
from database.DB import get_db
from database import Repository
from database.Repository import utc_now
from models.models import EventCreate, EventStatus, EventUpdate, OPEN_REGISTRATION_STATUSES, RegistrationCreate
from services import RegistrationService
from .dependencies import get_current_user, require_admin, require_db

router = APIRouter()

LISTED_STATUSES = [EventStatus.PUBLISHED.value, EventStatus.IN_PROGRESS.value]


def check_capacity(max_volunteers):
    if max_volunteers is not None and not 1 <= max_volunteers <= MAX_EVENT_CAPACITY:
        raise HTTPException(status_code=422, detail=f"max_volunteers must be between 1 and {MAX_EVENT_CAPACITY}")


def matches_search(event: dict, search: str) -> bool:
    needle = search.lower()
    return any(needle in (event.get(field) or "").lower() for field in ("title", "description", "location"))


@router.get('')
async def get_events(
    user: dict = Depends(get_current_user),
    status: Optional[str] = Query(None),
    category: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    db = Depends(get_db),
):
    """List published and in-progress events, optionally filtered"""
    require_db(db)
    try:
        query = {"status": {"$in": LISTED_STATUSES}}
        if status and status != "all":
            query["status"] = status
        if category and category != "all":
            query["category"] = category

        result = await db.find_many("events", query, sort=[("event_date", 1)])
        events = result["data"] if result["status"] == 200 else []
        if search:
            events = [e for e in events if matches_search(e, search)]
        return JSONResponse(content={"events": events})

    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching events: {str(e)}")


@router.get('/available')
async def get_available_events(user: dict = Depends(get_current_user), db = Depends(get_db)):
    """Upcoming published events with remaining spots and the caller's registration state"""
    require_db(db)
    try:
        today = utc_now().date().isoformat()
        result = await db.find_many(
            "events",
            {"status": EventStatus.PUBLISHED.value, "event_date": {"$gte": today}},
            sort=[("event_date", 1)],
        )
        events = result["data"]

        mine = await db.find_many(
            "event_registrations",
            {"user_id": user["id"], "status": {"$in": OPEN_REGISTRATION_STATUSES}},
        )
        registered = {r["event_id"] for r in mine["data"]}

        for event in events:
            taken = await Repository.count_open_registrations(db, event["id"])
            total = event.get("max_volunteers") or 0
            event["total_spots"] = total
            event["available_spots"] = max(0, total - taken)
            event["is_user_registered"] = event["id"] in registered

        return JSONResponse(content={"events": events})

    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching events: {str(e)}")


@router.get('/{event_id}')
async def get_event(event_id: str, user: dict = Depends(get_current_user), db = Depends(get_db)):
    """Get one event with its teams and rosters"""
    require_db(db)
    event = await db.find_one("events", {"id": event_id})
    if not event:
        raise HTTPException(status_code=404, detail="Event not found")

    teams = await db.find_many("teams", {"event_id": event_id})
    event["teams"] = await Repository.expand_teams(db, teams["data"])
    for team in event["teams"]:
        team.pop("event", None)
    return JSONResponse(content={"event": event})


@router.post('')
async def create_event(event_data: EventCreate, admin_user: dict = Depends(require_admin), db = Depends(get_db)):
    """Create a new event (Admin only)"""
    require_db(db)
    check_capacity(event_data.max_volunteers)
    try:
        event = event_data.model_dump(mode="json")
        event.update({
            "current_volunteers": 0,
            "created_by": admin_user["id"],
            "created_at": utc_now(),
            "updated_at": utc_now(),
        })

        result = await db.add("events", event)
        if result["status"] == 200:
            return JSONResponse(status_code=201, content={"message": "Event created successfully", "event": result["data"]})
        else:
            raise HTTPException(status_code=500, detail="Failed to create event")

    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error creating event: {str(e)}")


@router.put('/{event_id}')
async def update_event(event_id: str, event_data: EventUpdate, admin_user: dict = Depends(require_admin), db = Depends(get_db)):
    """Update an existing event (Admin only)"""
    require_db(db)
    check_capacity(event_data.max_volunteers)
    try:
        update_data = event_data.model_dump(mode="json", exclude_none=True)
        if not update_data:
            raise HTTPException(status_code=400, detail="No fields to update")

        update_data["updated_at"] = utc_now()
        update_data["updated_by"] = admin_user["id"]

        result = await db.update("events", {"id": event_id}, {"$set": update_data})
        if result["matched_count"] == 0:
            raise HTTPException(status_code=404, detail="Event not found")

        updated_event = await db.find_one("events", {"id": event_id})
        return JSONResponse(content={"message": "Event updated successfully", "event": updated_event})

    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error updating event: {str(e)}")


@router.post('/{event_id}/register')
async def register_for_event(event_id: str, payload: RegistrationCreate, user: dict = Depends(get_current_user), db = Depends(get_db)):
    """Register the current user for an event"""
    require_db(db)
    try:
        result = await RegistrationService.register(db, user, event_id, accept_terms=payload.accept_terms)
        return JSONResponse(status_code=201, content={"success": True, **result})

    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error registering for event: {str(e)}")
