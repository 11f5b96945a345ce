# clientdesk/core/config.py
"""
Application settings, read from environment variables.
launcher.py loads .env into the environment before they are read.
"""
import os
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict

# clientdesk/core/ -> clientdesk/ -> {project_root}
PROJECT_ROOT = os.path.normpath(
    os.path.join(os.path.dirname(os.path.abspath(__file__)), "..", "..")
)
DATA_DIR = os.path.join(PROJECT_ROOT, "data")
DEFAULT_DATABASE_URL = f"sqlite+aiosqlite:///{os.path.join(DATA_DIR, 'clientdesk.sqlite')}"

# Values that ship in sample configs and must never sign real cookies
PLACEHOLDER_SECRETS = {
    "changeme",
    "change-me",
    "secret",
    "your-secret-key",
    "your_secret_key",
    "mysecret",
}


class Settings(BaseSettings):
    model_config = SettingsConfigDict(extra="ignore")

    host: str = "0.0.0.0"
    port: int = 3000
    secret_key: str = ""
    database_url: str = DEFAULT_DATABASE_URL
    app_env: str = "development"

    session_cookie: str = "clientdesk_session"
    session_ttl_seconds: int = 28800  # 8 hours

    login_rate_limit: str = "10/minute"
    audit_log_file: str = os.path.join("logs", "audit.log")

    @property
    def is_production(self) -> bool:
        return self.app_env.lower() == "production"


def check_secret_key(settings: Settings) -> None:
    """Refuse to start with a missing or sample session secret."""
    secret = (settings.secret_key or "").strip()
    if not secret:
        raise RuntimeError("FATAL: SECRET_KEY not configured")
    if secret.lower() in PLACEHOLDER_SECRETS:
        raise RuntimeError("FATAL: SECRET_KEY is a placeholder value, set a real secret")


@lru_cache
def get_settings() -> Settings:
    return Settings()
