"""
Read and write queries shared by the routers and the participation service.

Reads return plain documents with their references expanded in place:
  team_members -> team -> (event, captain, members -> user)
  teams        -> (event, captain, members -> user)
  registration -> event
  evaluation   -> (captain, event, team)
"""
from datetime import datetime, timezone

from models.models import MembershipStatus, RegistrationStatus

USER_REF_FIELDS = ("id", "full_name", "email")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _ref(document, fields):
    if not document:
        return None
    return {key: document.get(key) for key in fields}


async def _index_by_id(db, collection_name, ids):
    ids = sorted({i for i in ids if i})
    if not ids:
        return {}
    result = await db.find_many(collection_name, {"id": {"$in": ids}})
    return {doc["id"]: doc for doc in result["data"]}


async def expand_teams(db, teams):
    """Attach event, captain and roster (with users) to each team document"""
    if not teams:
        return []

    events = await _index_by_id(db, "events", [t.get("event_id") for t in teams])
    team_ids = [t["id"] for t in teams]
    members_result = await db.find_many("team_members", {"team_id": {"$in": team_ids}})
    members = members_result["data"]
    users = await _index_by_id(
        db, "users", [t.get("captain_id") for t in teams] + [m.get("user_id") for m in members]
    )

    for team in teams:
        team["event"] = events.get(team.get("event_id"))
        team["captain"] = _ref(users.get(team.get("captain_id")), USER_REF_FIELDS)
        team["members"] = [
            {**m, "user": _ref(users.get(m.get("user_id")), USER_REF_FIELDS)}
            for m in members if m.get("team_id") == team["id"]
        ]
    return teams


async def fetch_memberships(db, user_id):
    result = await db.find_many("team_members", {"user_id": user_id}, sort=[("joined_at", -1)])
    memberships = result["data"]
    if not memberships:
        return []

    teams_result = await db.find_many("teams", {"id": {"$in": [m["team_id"] for m in memberships]}})
    teams = {t["id"]: t for t in await expand_teams(db, teams_result["data"])}
    for membership in memberships:
        membership["team"] = teams.get(membership.get("team_id"))
    return memberships


async def fetch_captained_teams(db, user_id):
    result = await db.find_many("teams", {"captain_id": user_id})
    return await expand_teams(db, result["data"])


async def fetch_registrations(db, user_id, statuses):
    result = await db.find_many(
        "event_registrations", {"user_id": user_id, "status": {"$in": list(statuses)}}
    )
    registrations = result["data"]
    events = await _index_by_id(db, "events", [r.get("event_id") for r in registrations])
    for registration in registrations:
        registration["event"] = events.get(registration.get("event_id"))
    return registrations


async def fetch_evaluations_received(db, user_id):
    result = await db.find_many("evaluations", {"volunteer_id": user_id}, sort=[("created_at", -1)])
    evaluations = result["data"]
    users = await _index_by_id(db, "users", [e.get("captain_id") for e in evaluations])
    events = await _index_by_id(db, "events", [e.get("event_id") for e in evaluations])
    teams = await _index_by_id(db, "teams", [e.get("team_id") for e in evaluations])
    for evaluation in evaluations:
        evaluation["captain"] = _ref(users.get(evaluation.get("captain_id")), ("id", "full_name"))
        evaluation["event"] = _ref(events.get(evaluation.get("event_id")), ("id", "title", "event_date"))
        evaluation["team"] = _ref(teams.get(evaluation.get("team_id")), ("id", "name"))
    return evaluations


async def count_open_registrations(db, event_id):
    return await db.count(
        "event_registrations",
        {"event_id": event_id, "status": {"$in": [RegistrationStatus.PENDING.value, RegistrationStatus.CONFIRMED.value]}},
    )


async def set_membership_status(db, membership, status: MembershipStatus):
    """Soft-remove a membership and keep the team's volunteer counter in step"""
    result = await db.update(
        "team_members",
        {"id": membership["id"]},
        {"$set": {"status": status.value, "left_at": utc_now()}},
    )
    if result["modified_count"] and membership.get("status") == MembershipStatus.ACTIVE.value:
        await db.update("teams", {"id": membership["team_id"]}, {"$inc": {"current_volunteers": -1}})
    return result


async def set_registration_status(db, registration_id, status: RegistrationStatus, terms_accepted=None):
    update = {"status": status.value, "updated_at": utc_now()}
    if terms_accepted is not None:
        update["terms_accepted"] = terms_accepted
        update["terms_accepted_at"] = utc_now() if terms_accepted else None
    return await db.update("event_registrations", {"id": registration_id}, {"$set": update})


async def insert_registration(db, user_id, event_id, terms_accepted):
    now = utc_now()
    registration = {
        "user_id": user_id,
        "event_id": event_id,
        "status": RegistrationStatus.CONFIRMED.value,
        "terms_accepted": terms_accepted,
        "terms_accepted_at": now if terms_accepted else None,
        "registered_at": now,
        "updated_at": now,
    }
    result = await db.add("event_registrations", registration)
    if result["status"] == 200:
        await db.update("events", {"id": event_id}, {"$inc": {"current_volunteers": 1}})
    return result


async def insert_evaluation(db, captain_id, payload):
    evaluation = {
        **payload,
        "captain_id": captain_id,
        "created_at": utc_now(),
        "updated_at": utc_now(),
    }
    return await db.add("evaluations", evaluation)
