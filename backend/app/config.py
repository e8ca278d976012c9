"""Application configuration using pydantic-settings."""

import warnings
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


# Sentinel value that indicates an unconfigured Firebase project
_UNCONFIGURED_PROJECT = "CHANGE_ME"

# Find .env file: check backend dir first, then project root
_BACKEND_DIR = Path(__file__).parent.parent
_PROJECT_ROOT = _BACKEND_DIR.parent
_ENV_FILE = _BACKEND_DIR / ".env" if (_BACKEND_DIR / ".env").exists() else _PROJECT_ROOT / ".env"


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    The Firebase values are the public web-app config; they are handed to the
    browser for the sign-in popup and used server-side to scope Firestore
    reads to the signed-in user.
    """

    model_config = SettingsConfigDict(
        env_file=str(_ENV_FILE),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Firebase web app
    firebase_api_key: str = ""
    firebase_auth_domain: str = ""
    firebase_project_id: str = _UNCONFIGURED_PROJECT
    firebase_storage_bucket: str = ""
    firebase_messaging_sender_id: str = ""
    firebase_app_id: str = ""

    # Serve fixed demo records with no sign-in
    demo: bool = False

    # Timezone for absolute timestamps in the table and detail panel
    display_timezone: str = "UTC"

    # Viewer sessions
    session_idle_timeout: float = 3600.0
    max_viewer_sessions: int = 1000
    cookie_secure: bool = False

    # Comma-separated list of allowed origins
    cors_origins: str = "http://localhost:8000"

    # Application
    debug: bool = False

    def model_post_init(self, __context) -> None:
        """Warn about unconfigured credentials."""
        if not self.demo and self.firebase_project_id == _UNCONFIGURED_PROJECT:
            warnings.warn(
                "FIREBASE_PROJECT_ID not configured! Set FIREBASE_PROJECT_ID "
                "environment variable or DEMO=1.",
                UserWarning,
                stacklevel=2,
            )

    def firebase_web_config(self) -> dict[str, str]:
        """Config object for the Firebase JS SDK, keyed the way it expects."""
        return {
            "apiKey": self.firebase_api_key,
            "authDomain": self.firebase_auth_domain,
            "projectId": self.firebase_project_id,
            "storageBucket": self.firebase_storage_bucket,
            "messagingSenderId": self.firebase_messaging_sender_id,
            "appId": self.firebase_app_id,
        }


settings = Settings()
