"""
Capability checks for the signed-in user.

Each function takes the session user (a dict with ``id`` and ``role``) and the
documents involved, and answers whether the action is allowed. Routers turn a
``False`` into a 403.
"""
from models.models import Role


def role_of(user) -> Role:
    try:
        return Role(user.get("role"))
    except ValueError:
        return Role.VOLUNTEER


def is_admin(user) -> bool:
    return role_of(user) == Role.ADMIN


def can_create_team(user) -> bool:
    return role_of(user) in (Role.CAPTAIN, Role.ADMIN)


def can_manage_team(user, team) -> bool:
    return is_admin(user) or team.get("captain_id") == user.get("id")


def can_register(user) -> bool:
    # captains may also volunteer on events they do not lead
    return role_of(user) in (Role.VOLUNTEER, Role.CAPTAIN)


def can_modify_registration(user, registration) -> bool:
    return is_admin(user) or registration.get("user_id") == user.get("id")


def can_leave_membership(user, membership) -> bool:
    return membership.get("user_id") == user.get("id")


def can_remove_member(user, team, membership) -> bool:
    return can_manage_team(user, team) and membership.get("team_id") == team.get("id")


def can_evaluate(user, team, membership) -> bool:
    """Only the team's own captain evaluates, and only volunteers on that team"""
    if role_of(user) not in (Role.CAPTAIN, Role.ADMIN):
        return False
    if team.get("captain_id") != user.get("id"):
        return False
    return membership is not None and membership.get("team_id") == team.get("id") \
        and membership.get("user_id") != user.get("id")


def can_read_notification(user, notification) -> bool:
    return notification.get("user_id") == user.get("id")
