# clientdesk/core/limiter.py
from typing import Optional

from slowapi import Limiter
from slowapi.util import get_remote_address

from .config import Settings, get_settings

limiter = Limiter(key_func=get_remote_address)

# Set by create_app from the Settings it was given
_login_limit: Optional[str] = None


def configure_login_limit(settings: Settings) -> None:
    global _login_limit
    _login_limit = settings.login_rate_limit


def login_rate_limit() -> str:
    return _login_limit or get_settings().login_rate_limit
