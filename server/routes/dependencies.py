"""
Shared dependency functions for FastAPI routers.
Eliminates code duplication across multiple router files.
"""
from fastapi import Request, HTTPException, Depends

from helpers import AccessPolicy


async def get_current_user(request: Request):
    """
    Dependency to get the currently authenticated user from session.
    Raises HTTPException if user is not authenticated.
    """
    user = request.session.get('user')
    if not user:
        raise HTTPException(status_code=401, detail="User not authenticated")
    return user


async def require_admin(user: dict = Depends(get_current_user)):
    """
    Dependency to require admin role.
    Raises HTTPException if user is not an admin.
    """
    if not AccessPolicy.is_admin(user):
        raise HTTPException(status_code=403, detail="Admin access required")
    return user


async def require_captain_or_admin(user: dict = Depends(get_current_user)):
    """
    Dependency to require captain or admin role.
    Raises HTTPException if user is neither captain nor admin.
    """
    if not AccessPolicy.can_create_team(user):
        raise HTTPException(status_code=403, detail="Captain or admin access required")
    return user


def require_db(db):
    if db is None:
        raise HTTPException(status_code=503, detail="Database connection not available. Please check MongoDB configuration.")
    return db
