"""
Participation dashboard: fetch the user's sources concurrently, reconcile, and
dispatch "leave" actions to the right write.
"""
import asyncio
import logging

from fastapi import HTTPException

from database import Repository
from helpers.ParticipationReconciler import ParticipationReconciler
from models.models import (
    OPEN_REGISTRATION_STATUSES,
    MembershipStatus,
    ParticipationDashboard,
    ParticipationKind,
)
from services import RegistrationService

logger = logging.getLogger(__name__)

SOURCES = ("team memberships", "captained teams", "registrations", "evaluations")


async def load_dashboard(db, user, today=None) -> ParticipationDashboard:
    """
    Build the reconciled participation view for ``user``.

    A source whose fetch fails is treated as empty and reported in ``errors``;
    the other sources are still reconciled.
    """
    user_id = user["id"]
    results = await asyncio.gather(
        Repository.fetch_memberships(db, user_id),
        Repository.fetch_captained_teams(db, user_id),
        Repository.fetch_registrations(db, user_id, OPEN_REGISTRATION_STATUSES),
        Repository.fetch_evaluations_received(db, user_id),
        return_exceptions=True,
    )

    errors = []
    data = []
    for source, result in zip(SOURCES, results):
        if isinstance(result, Exception):
            logger.error(f"Failed to load {source} for user {user_id}: {result}")
            errors.append(f"Could not load {source}. Please try again.")
            data.append([])
        else:
            data.append(result)
    memberships, captained, registrations, evaluations = data

    reconciler = ParticipationReconciler(
        user_id,
        today=today,
        user_name=user.get("full_name") or "",
        user_email=user.get("email") or "",
    )
    participations = reconciler.reconcile(memberships, captained, registrations)
    stats = reconciler.stats(participations, evaluations)

    return ParticipationDashboard(
        participations=participations,
        stats=stats,
        evaluations=evaluations,
        errors=errors,
    )


async def leave(db, user, participation_id, today=None):
    """Leave the participation identified by its dashboard id"""
    dashboard = await load_dashboard(db, user, today=today)
    participation = next((p for p in dashboard.participations if p.id == participation_id), None)
    if participation is None:
        if dashboard.errors:
            raise HTTPException(status_code=503, detail="Participations are temporarily unavailable")
        raise HTTPException(status_code=404, detail="Participation not found")

    if participation.kind == ParticipationKind.CAPTAIN:
        raise HTTPException(status_code=400, detail="Captains cannot leave the team they lead")
    if not participation.can_leave:
        raise HTTPException(status_code=400, detail="This participation can no longer be left")

    if participation.kind == ParticipationKind.DIRECT_REGISTRATION:
        await RegistrationService.cancel(db, user, participation.registration_id)
        return {"success": True, "message": "Your registration was cancelled."}

    membership = await db.find_one("team_members", {"id": participation.id})
    if membership is None:
        raise HTTPException(status_code=404, detail="Team membership not found")
    await Repository.set_membership_status(db, membership, MembershipStatus.INACTIVE)
    logger.info(f"User {user['id']} left team {membership['team_id']}")
    return {"success": True, "message": f"You left the team \"{participation.team.name}\"."}
