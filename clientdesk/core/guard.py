# clientdesk/core/guard.py
"""
Access guard for protected routes.

Anonymous requests raise 401; the application's exception handler turns
that into a redirect to /login for page routes.
"""
from typing import Optional

from fastapi import Depends, HTTPException, status

from .sessions import Principal, get_current_principal


def is_authenticated(principal: Optional[Principal]) -> bool:
    return principal is not None


async def require_principal(
    principal: Optional[Principal] = Depends(get_current_principal),
) -> Principal:
    """
    Usage:
        @router.get("/protected")
        async def page(principal: Principal = Depends(require_principal)):
            ...
    """
    if not is_authenticated(principal):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Login required",
        )
    return principal
