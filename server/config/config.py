from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict

''' Environment-driven settings, re-exported as module constants for the routers '''


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # Application
    APP_NAME: str = "Volunteer Hub API"
    FRONTEND_URL: str = "http://localhost:5173"
    SESSION_SECRET_KEY: str = ""
    LOG_LEVEL: str = "INFO"
    LOG_FILE: Optional[str] = None

    # Database
    MONGODB_URI: str = "mongodb://localhost:27017"
    DATABASE_NAME: str = "volunteer_hub"

    # OAuth
    CLIENT_ID: str = ""
    CLIENT_SECRET: str = ""
    OAUTH_METADATA_URL: str = "https://accounts.google.com/.well-known/openid-configuration"
    OAUTH_SCOPE: str = "openid email profile"
    ADMIN_EMAIL: str = ""
    ALLOWED_EMAIL_DOMAIN: Optional[str] = None

    # Features
    NOTIFICATION_LIMIT: int = 50
    MAX_EVENT_CAPACITY: int = 1000


settings = Settings()

APP_NAME = settings.APP_NAME
FRONTEND_URL = settings.FRONTEND_URL
SESSION_SECRET_KEY = settings.SESSION_SECRET_KEY
LOG_LEVEL = settings.LOG_LEVEL
LOG_FILE = settings.LOG_FILE
MONGODB_URI = settings.MONGODB_URI
DATABASE_NAME = settings.DATABASE_NAME
CLIENT_ID = settings.CLIENT_ID
CLIENT_SECRET = settings.CLIENT_SECRET
OAUTH_METADATA_URL = settings.OAUTH_METADATA_URL
OAUTH_SCOPE = settings.OAUTH_SCOPE
ADMIN_EMAIL = settings.ADMIN_EMAIL
ALLOWED_EMAIL_DOMAIN = settings.ALLOWED_EMAIL_DOMAIN
NOTIFICATION_LIMIT = settings.NOTIFICATION_LIMIT
MAX_EVENT_CAPACITY = settings.MAX_EVENT_CAPACITY
