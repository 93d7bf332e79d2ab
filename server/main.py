import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.sessions import SessionMiddleware
from contextlib import asynccontextmanager

from config.config import APP_NAME, SESSION_SECRET_KEY, FRONTEND_URL
from config.logging_config import setup_logging
from database.DB import Database
from routes import (
    AuthRouter,
    EventRouter,
    RegistrationRouter,
    TeamRouter,
    ParticipationRouter,
    EvaluationRouter,
    NotificationRouter,
    UserRouter,
    ReportRouter,
)

''' The backend API Endpoints setup '''

setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: Initialize database
    db = Database()
    db.check_connection()
    db.connect()
    try:
        await db.ensure_indexes()
    except Exception as e:
        logger.error(f"Could not ensure database indexes: {e}")
    app.state.db = db
    logger.info("Database connected successfully")

    yield

    # Shutdown: Clean up resources
    db.close()
    logger.info("Application shutting down")

app = FastAPI(title=APP_NAME, lifespan=lifespan)

allowed_origins = [FRONTEND_URL]
if FRONTEND_URL != "http://localhost:5173":
    allowed_origins.append("http://localhost:5173")

logger.info(f"Configuring CORS middleware for origins: {allowed_origins}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["*"],
    max_age=3600,
)

if not SESSION_SECRET_KEY:
    raise ValueError("SESSION_SECRET_KEY environment variable not set!")

app.add_middleware(
    SessionMiddleware,
    secret_key=SESSION_SECRET_KEY,
    session_cookie="session",
    max_age=3600,
    same_site="none",
    https_only=True
)

# Include routers
app.include_router(AuthRouter.router, prefix="/api", tags=["Authentication"])
app.include_router(EventRouter.router, prefix="/api/events", tags=["Events"])
app.include_router(RegistrationRouter.router, prefix="/api/registrations", tags=["Registrations"])
app.include_router(TeamRouter.router, prefix="/api/teams", tags=["Teams"])
app.include_router(ParticipationRouter.router, prefix="/api/participations", tags=["Participations"])
app.include_router(EvaluationRouter.router, prefix="/api/evaluations", tags=["Evaluations"])
app.include_router(NotificationRouter.router, prefix="/api/notifications", tags=["Notifications"])
app.include_router(UserRouter.router, prefix="/api/users", tags=["Users"])
app.include_router(ReportRouter.router, prefix="/api/reports", tags=["Reports"])


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
