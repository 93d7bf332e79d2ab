import logging

from fastapi import HTTPException
from pymongo.errors import DuplicateKeyError

from database import Repository
from helpers import AccessPolicy
from helpers.ParticipationReconciler import parse_event_date
from models.models import EventStatus, OPEN_REGISTRATION_STATUSES, RegistrationStatus

logger = logging.getLogger(__name__)

ALREADY_REGISTERED = "You are already registered for this event."


async def register(db, user, event_id, accept_terms=False, today=None):
    """Register ``user`` for an event, reusing a cancelled registration when one exists"""
    if not AccessPolicy.can_register(user):
        raise HTTPException(status_code=403, detail="Only volunteers can register for events")

    event = await db.find_one("events", {"id": event_id})
    if not event:
        raise HTTPException(status_code=404, detail="Event not found")
    if event.get("status") not in (EventStatus.PUBLISHED.value, EventStatus.IN_PROGRESS.value):
        raise HTTPException(status_code=400, detail="This event is not open for registration")

    event_date = parse_event_date(event.get("event_date"))
    if today is None:
        today = Repository.utc_now().date()
    if event_date is not None and event_date < today:
        raise HTTPException(status_code=400, detail="This event has already taken place")

    if event.get("terms_content") and not accept_terms:
        raise HTTPException(status_code=400, detail="You must accept the event terms to register")

    existing = await db.find_one("event_registrations", {"event_id": event_id, "user_id": user["id"]})
    if existing and existing.get("status") in OPEN_REGISTRATION_STATUSES:
        raise HTTPException(status_code=409, detail=ALREADY_REGISTERED)

    taken = await Repository.count_open_registrations(db, event_id)
    if (event.get("max_volunteers") or 0) - taken <= 0:
        raise HTTPException(status_code=400, detail="There are no spots left for this event")

    terms_accepted = bool(event.get("terms_content")) and accept_terms
    if existing:
        await Repository.set_registration_status(
            db, existing["id"], RegistrationStatus.CONFIRMED, terms_accepted=terms_accepted
        )
        await db.update("events", {"id": event_id}, {"$inc": {"current_volunteers": 1}})
        logger.info(f"Reactivated registration {existing['id']} for user {user['id']} on event {event_id}")
        registration = await db.find_one("event_registrations", {"id": existing["id"]})
        return {"message": f"Your registration for \"{event['title']}\" was reactivated.", "registration": registration}

    try:
        result = await Repository.insert_registration(db, user["id"], event_id, terms_accepted)
    except DuplicateKeyError:
        raise HTTPException(status_code=409, detail=ALREADY_REGISTERED)

    if result["status"] != 200:
        raise HTTPException(status_code=500, detail="Failed to register for event")

    logger.info(f"User {user['id']} registered for event {event_id}")
    return {"message": f"You are registered for \"{event['title']}\".", "registration": result["data"]}


async def cancel(db, user, registration_id):
    registration = await db.find_one("event_registrations", {"id": registration_id})
    if not registration:
        raise HTTPException(status_code=404, detail="Registration not found")
    if not AccessPolicy.can_modify_registration(user, registration):
        raise HTTPException(status_code=403, detail="You cannot change this registration")
    if registration.get("status") not in OPEN_REGISTRATION_STATUSES:
        raise HTTPException(status_code=400, detail="Registration is already cancelled")

    await Repository.set_registration_status(db, registration_id, RegistrationStatus.CANCELLED)
    await db.update("events", {"id": registration["event_id"]}, {"$inc": {"current_volunteers": -1}})
    logger.info(f"Registration {registration_id} cancelled by user {user['id']}")
    return registration
