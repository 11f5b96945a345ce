# clientdesk/core/sessions.py
"""
Server-side sessions.

The signed session cookie (Starlette SessionMiddleware) only carries an
opaque session id. The authenticated principal lives in a TTLStore keyed by
that id, so logging out or expiring the entry invalidates the cookie.
"""
import logging
import secrets
from typing import Optional

from fastapi import Request
from pydantic import BaseModel, ConfigDict

from ..utils.store import TTLStore

logger = logging.getLogger(__name__)

SESSION_ID_KEY = "sid"


class Principal(BaseModel):
    """Minimal projection of an authenticated user. Never holds the hash."""

    id: int
    username: str
    email: str
    model_config = ConfigDict(frozen=True, from_attributes=True)


class SessionAuthority:
    """Two states per session: anonymous, or authenticated(principal)."""

    def __init__(self, store: TTLStore):
        self.store = store

    def login(self, request: Request, principal: Principal) -> str:
        """Issue a fresh session id for the principal. Returns the new id."""
        previous = request.session.get(SESSION_ID_KEY)
        if previous:
            self.store.delete(previous)

        session_id = secrets.token_urlsafe(32)
        self.store.set(session_id, principal.model_dump())
        request.session.clear()
        request.session[SESSION_ID_KEY] = session_id
        return session_id

    def logout(self, request: Request) -> None:
        """Destroy the session entry. Succeeds even without a session."""
        session_id = request.session.get(SESSION_ID_KEY)
        if session_id:
            self.store.delete(session_id)
        request.session.clear()

    def current_principal(self, request: Request) -> Optional[Principal]:
        session_id = request.session.get(SESSION_ID_KEY)
        if not session_id:
            return None

        data = self.store.get(session_id)
        if data is None:
            # Cookie outlived its server-side entry (expired or logged out)
            logger.debug("Dropping session id with no live entry.")
            request.session.pop(SESSION_ID_KEY, None)
            return None
        return Principal(**data)


def get_session_authority(request: Request) -> SessionAuthority:
    return request.app.state.session_authority


async def get_current_principal(request: Request) -> Optional[Principal]:
    """Dependency: the request's principal, or None when anonymous."""
    return get_session_authority(request).current_principal(request)
