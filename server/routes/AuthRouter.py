import logging

from fastapi import APIRouter, Request, HTTPException, Depends
from fastapi.responses import RedirectResponse, JSONResponse
from authlib.integrations.starlette_client import OAuth, OAuthError
import httpx

from config.config import (
    CLIENT_ID,
    CLIENT_SECRET,
    ADMIN_EMAIL,
    FRONTEND_URL,
    OAUTH_METADATA_URL,
    OAUTH_SCOPE,
    ALLOWED_EMAIL_DOMAIN,
)
from database.DB import get_db
from database.Repository import utc_now
from models.models import ProfileUpdate, Role
from .dependencies import get_current_user, require_db

logger = logging.getLogger(__name__)

router = APIRouter()

# OAuth configuration
oauth = OAuth()
oauth.register(
    name='provider',
    client_id=CLIENT_ID,
    client_secret=CLIENT_SECRET,
    server_metadata_url=OAUTH_METADATA_URL,
    client_kwargs={'scope': OAUTH_SCOPE},
)


def session_user(profile: dict) -> dict:
    """The slice of a profile kept in the session cookie"""
    return {
        "id": profile["id"],
        "email": profile["email"],
        "full_name": profile.get("full_name") or "",
        "role": profile.get("role", Role.VOLUNTEER.value),
    }


def email_allowed(email: str) -> bool:
    if not email:
        return False
    if not ALLOWED_EMAIL_DOMAIN:
        return True
    return email.lower().endswith("@" + ALLOWED_EMAIL_DOMAIN.lower())


async def resolve_profile(db, email: str, full_name: str) -> dict:
    """Load the user's profile, creating it as a volunteer on first login"""
    email = email.lower()
    profile = await db.find_one("users", {"email": email})
    if profile:
        if ADMIN_EMAIL and email == ADMIN_EMAIL.lower() and profile.get("role") != Role.ADMIN.value:
            await db.update("users", {"id": profile["id"]}, {"$set": {"role": Role.ADMIN.value}})
            profile["role"] = Role.ADMIN.value
        return profile

    role = Role.ADMIN if ADMIN_EMAIL and email == ADMIN_EMAIL.lower() else Role.VOLUNTEER
    result = await db.add("users", {
        "email": email,
        "full_name": full_name or email.split("@")[0],
        "role": role.value,
        "skills": [],
        "is_active": True,
        "is_first_login": True,
        "created_at": utc_now(),
        "updated_at": utc_now(),
    })
    if result["status"] != 200:
        raise HTTPException(status_code=500, detail="Failed to create user profile")
    logger.info(f"Created profile for {email} with role {role.value}")
    return result["data"]


@router.get('/login')
async def login(request: Request):
    redirect_uri = request.url_for('auth')
    return await oauth.provider.authorize_redirect(request, redirect_uri)


@router.get('/auth')
async def auth(request: Request, db = Depends(get_db)):
    require_db(db)
    try:
        token = await oauth.provider.authorize_access_token(request)
    except (OAuthError, httpx.HTTPError) as e:
        logger.warning(f"OAuth token exchange failed: {e}")
        return JSONResponse(status_code=401, content={"error": "Authorization failed", "details": str(e)})

    user_info = token.get("userinfo")
    if not user_info:
        try:
            user_info = await oauth.provider.userinfo(token=token)
        except (OAuthError, httpx.HTTPError) as e:
            logger.warning(f"Fetching user info failed: {e}")
            return JSONResponse(status_code=401, content={"error": "Failed to get user info", "details": str(e)})

    email = user_info.get("email")
    if not email_allowed(email):
        return JSONResponse(
            status_code=403,
            content={"error": f"Access Denied: Only users with an '{ALLOWED_EMAIL_DOMAIN}' email can log in."}
        )

    try:
        profile = await resolve_profile(db, email, user_info.get("name"))
    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"Profile lookup failed for {email}")
        raise HTTPException(status_code=500, detail=f"Error loading profile: {str(e)}")

    if not profile.get("is_active", True):
        return JSONResponse(status_code=403, content={"error": "This account is inactive"})

    request.session.clear()
    request.session['user'] = session_user(profile)

    return RedirectResponse(url=f"{FRONTEND_URL}/{profile['role']}", status_code=302)


@router.get('/health')
async def health_check():
    """Simple health check endpoint"""
    return JSONResponse(content={"status": "healthy", "message": "Server is running"})


@router.get('/user/profile')
async def user_profile(user: dict = Depends(get_current_user), db = Depends(get_db)):
    require_db(db)
    profile = await db.find_one("users", {"id": user["id"]})
    if not profile:
        raise HTTPException(status_code=404, detail="Profile not found")
    return JSONResponse(content=profile)


@router.put('/user/profile')
async def update_profile(payload: ProfileUpdate, request: Request, user: dict = Depends(get_current_user), db = Depends(get_db)):
    require_db(db)
    update_data = payload.model_dump(exclude_none=True)
    if not update_data:
        raise HTTPException(status_code=400, detail="No fields to update")
    update_data["updated_at"] = utc_now()

    try:
        result = await db.update("users", {"id": user["id"]}, {"$set": update_data})
        if result["matched_count"] == 0:
            raise HTTPException(status_code=404, detail="Profile not found")

        profile = await db.find_one("users", {"id": user["id"]})
        request.session['user'] = session_user(profile)
        return JSONResponse(content={"message": "Profile updated successfully", "profile": profile})

    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error updating profile: {str(e)}")


@router.post('/user/first-login/complete')
async def complete_first_login(user: dict = Depends(get_current_user), db = Depends(get_db)):
    require_db(db)
    await db.update("users", {"id": user["id"]}, {"$set": {"is_first_login": False}})
    return JSONResponse(content={"success": True})


@router.get('/logout')
async def logout(request: Request):
    request.session.pop('user', None)
    return RedirectResponse(url=FRONTEND_URL or "/")
