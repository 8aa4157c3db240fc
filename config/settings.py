"""
Configuration settings for the application
"""
from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Fixed key the admin bearer token is persisted under
TOKEN_KEY = "admin_token"

# Client-side pagination window (admin lists)
ITEM_PER_PAGE = 5

# Project statuses understood by the backend
PROJECT_STATUSES = ["Draft", "Live", "Completed", "Github"]


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        populate_by_name=True,  # Allow both field name and alias
        extra="ignore",
    )

    # External portfolio backend
    api_url: str = Field(default="http://localhost:8082", alias="API_URL")
    request_timeout: Optional[float] = Field(default=None, alias="REQUEST_TIMEOUT")

    # Persistent client storage for the admin session token
    session_file: Path = Field(default=Path("./data/session.json"), alias="SESSION_FILE")

    # Frontend configuration
    frontend_url: Optional[str] = Field(default="http://localhost:3000", alias="FRONTEND_URL")

    # Logging
    log_dir: Path = Field(default=Path("./logs"), alias="LOG_DIR")

    # Public contact page
    site_owner: str = Field(default="Serkan Ursavas", alias="SITE_OWNER")
    contact_email: Optional[str] = Field(default="serkan.ursavas@icloud.com", alias="CONTACT_EMAIL")
    contact_discord: Optional[str] = Field(default="Serkan#2792", alias="CONTACT_DISCORD")

    # Environment configuration
    env: Optional[str] = Field(default=None, alias="ENV")

    @property
    def base_url(self) -> str:
        """API base URL without a trailing slash"""
        return self.api_url.rstrip("/")

    @property
    def uploads_prefix(self) -> str:
        """URL prefix of files stored in the backend's local upload folder"""
        return f"{self.base_url}/uploads/"


# Instantiate settings object
settings = Settings()

# Determine if we're in production mode
IS_PRODUCTION = bool(settings.env and settings.env.lower() == "production")
