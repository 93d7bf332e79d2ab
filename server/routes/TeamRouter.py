import logging

from fastapi import APIRouter, HTTPException, Depends, Query
from fastapi.responses import JSONResponse

from database.DB import get_db
from database import Repository
from database.Repository import utc_now
from helpers import AccessPolicy
from models.models import MembershipStatus, NotificationType, TeamCreate, TeamMemberAdd, TeamRole
from services import NotificationService
from .dependencies import get_current_user, require_captain_or_admin, require_db

logger = logging.getLogger(__name__)

router = APIRouter()


async def load_team(db, team_id):
    team = await db.find_one("teams", {"id": team_id})
    if not team:
        raise HTTPException(status_code=404, detail="Team not found")
    return team


async def active_team_for_event(db, user_id, event_id):
    """The team (if any) the user is actively on for the given event"""
    memberships = await db.find_many("team_members", {"user_id": user_id, "status": MembershipStatus.ACTIVE.value})
    team_ids = [m["team_id"] for m in memberships["data"]]
    if not team_ids:
        return None
    return await db.find_one("teams", {"id": {"$in": team_ids}, "event_id": event_id})


@router.post('')
async def create_team(payload: TeamCreate, user: dict = Depends(require_captain_or_admin), db = Depends(get_db)):
    """Create a team for an event with the requesting user as captain"""
    require_db(db)
    try:
        event = await db.find_one("events", {"id": payload.event_id})
        if not event:
            raise HTTPException(status_code=404, detail="Event not found")

        existing_name = await db.find_one("teams", {"event_id": payload.event_id, "name": payload.name})
        if existing_name:
            return JSONResponse(status_code=400, content={"success": False, "message": "Team name already taken for this event. Choose a different name."})

        if await active_team_for_event(db, user["id"], payload.event_id):
            return JSONResponse(status_code=400, content={"success": False, "message": "You already belong to a team for this event."})

        team = {
            "name": payload.name,
            "description": payload.description,
            "event_id": payload.event_id,
            "captain_id": user["id"],
            "max_volunteers": payload.max_volunteers,
            "current_volunteers": 1,
            "created_at": utc_now(),
            "updated_at": utc_now(),
        }
        result = await db.add("teams", team)
        if result["status"] != 200:
            raise HTTPException(status_code=500, detail="Failed to create team")

        team = result["data"]
        await db.add("team_members", {
            "team_id": team["id"],
            "user_id": user["id"],
            "role_in_team": TeamRole.CAPTAIN.value,
            "status": MembershipStatus.ACTIVE.value,
            "joined_at": utc_now(),
            "left_at": None,
        })
        logger.info(f"Team {team['id']} created for event {payload.event_id} by {user['id']}")
        return JSONResponse(status_code=201, content={"message": "Team created successfully", "team": team})

    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error creating team: {str(e)}")


@router.get('')
async def get_event_teams(event_id: str = Query(...), user: dict = Depends(get_current_user), db = Depends(get_db)):
    """List the teams of an event with their rosters"""
    require_db(db)
    try:
        result = await db.find_many("teams", {"event_id": event_id})
        teams = await Repository.expand_teams(db, result["data"])
        return JSONResponse(content={"teams": teams})

    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching teams: {str(e)}")


@router.get('/{team_id}')
async def get_team(team_id: str, user: dict = Depends(get_current_user), db = Depends(get_db)):
    require_db(db)
    team = await load_team(db, team_id)
    expanded = await Repository.expand_teams(db, [team])
    return JSONResponse(content={"team": expanded[0]})


@router.post('/{team_id}/members')
async def add_member(team_id: str, payload: TeamMemberAdd, user: dict = Depends(get_current_user), db = Depends(get_db)):
    """Place a volunteer on the team (team captain or admin)"""
    require_db(db)
    try:
        team = await load_team(db, team_id)
        if not AccessPolicy.can_manage_team(user, team):
            raise HTTPException(status_code=403, detail="Only the team captain can add members")
        if payload.role_in_team != TeamRole.VOLUNTEER:
            raise HTTPException(status_code=400, detail="Members can only be added as volunteers; a team has one captain")

        volunteer = await db.find_one("users", {"id": payload.user_id})
        if not volunteer:
            raise HTTPException(status_code=404, detail="User not found")

        if (team.get("current_volunteers") or 0) >= (team.get("max_volunteers") or 0):
            return JSONResponse(status_code=400, content={"success": False, "message": "Team is full"})

        current_team = await active_team_for_event(db, payload.user_id, team["event_id"])
        if current_team:
            message = "Already a member of this team" if current_team["id"] == team_id else "Already belongs to another team for this event"
            return JSONResponse(status_code=409, content={"success": False, "message": message})

        existing = await db.find_one("team_members", {"team_id": team_id, "user_id": payload.user_id})
        if existing:
            await db.update("team_members", {"id": existing["id"]}, {"$set": {
                "status": MembershipStatus.ACTIVE.value,
                "role_in_team": TeamRole.VOLUNTEER.value,
                "joined_at": utc_now(),
                "left_at": None,
            }})
            membership = await db.find_one("team_members", {"id": existing["id"]})
        else:
            result = await db.add("team_members", {
                "team_id": team_id,
                "user_id": payload.user_id,
                "role_in_team": TeamRole.VOLUNTEER.value,
                "status": MembershipStatus.ACTIVE.value,
                "joined_at": utc_now(),
                "left_at": None,
            })
            if result["status"] != 200:
                raise HTTPException(status_code=500, detail="Failed to add member to team")
            membership = result["data"]

        await db.update("teams", {"id": team_id}, {"$inc": {"current_volunteers": 1}})
        await NotificationService.notify(
            db, payload.user_id, "Team assignment",
            f"You were added to team \"{team['name']}\".", NotificationType.SUCCESS,
        )
        return JSONResponse(status_code=201, content={"success": True, "message": "Member added", "membership": membership})

    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error adding member: {str(e)}")


@router.delete('/{team_id}/members/{user_id}')
async def remove_member(team_id: str, user_id: str, user: dict = Depends(get_current_user), db = Depends(get_db)):
    """Remove a volunteer from the team; the membership is kept with status 'removed'"""
    require_db(db)
    try:
        team = await load_team(db, team_id)
        membership = await db.find_one("team_members", {
            "team_id": team_id, "user_id": user_id, "status": MembershipStatus.ACTIVE.value,
        })
        if not membership:
            raise HTTPException(status_code=404, detail="Member not found")
        if not AccessPolicy.can_remove_member(user, team, membership):
            raise HTTPException(status_code=403, detail="Only the team captain can remove members")
        if user_id == team.get("captain_id"):
            return JSONResponse(status_code=400, content={"success": False, "message": "The captain cannot be removed from their own team."})

        await Repository.set_membership_status(db, membership, MembershipStatus.REMOVED)
        return JSONResponse(content={"success": True, "message": "Member removed"})

    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error removing member: {str(e)}")


@router.post('/{team_id}/leave')
async def leave_team(team_id: str, user: dict = Depends(get_current_user), db = Depends(get_db)):
    """Leave a team the current user is an active member of"""
    require_db(db)
    try:
        team = await load_team(db, team_id)
        if team.get("captain_id") == user["id"]:
            return JSONResponse(status_code=400, content={"success": False, "message": "Captains cannot leave the team they lead."})

        membership = await db.find_one("team_members", {
            "team_id": team_id, "user_id": user["id"], "status": MembershipStatus.ACTIVE.value,
        })
        if not membership or not AccessPolicy.can_leave_membership(user, membership):
            return JSONResponse(status_code=400, content={"success": False, "message": "User is not a member of this team."})

        await Repository.set_membership_status(db, membership, MembershipStatus.INACTIVE)
        return JSONResponse(content={"success": True, "message": "Left team successfully."})

    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error leaving team: {str(e)}")
