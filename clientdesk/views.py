# clientdesk/views.py
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Form, Request, status
from fastapi.responses import HTMLResponse, PlainTextResponse, RedirectResponse
from sqlmodel.ext.asyncio.session import AsyncSession

from .core.errors import (
    InvalidCredentialsError,
    PersistenceError,
    UserAlreadyExistsError,
    UserNotFoundError,
)
from .core.limiter import limiter, login_rate_limit
from .core.sessions import (
    Principal,
    SessionAuthority,
    get_current_principal,
    get_session_authority,
)
from .core.templates import templates
from .db.engine import get_session
from .schemas.user import UserCreate, UserLogin
from .services.user_service import UserService

logger = logging.getLogger(__name__)

router = APIRouter()


def get_user_service(session: AsyncSession = Depends(get_session)) -> UserService:
    return UserService(session)


# --- Pages ---

@router.get("/", response_class=HTMLResponse, tags=["Pages"])
async def read_index(
    request: Request, principal: Optional[Principal] = Depends(get_current_principal)
):
    return templates.TemplateResponse(request, "index.html", {"user": principal})


@router.get("/health", tags=["Pages"])
async def health():
    return {"status": "ok"}


# --- Registration ---

@router.get("/register", response_class=HTMLResponse, tags=["Auth"])
async def read_register_form(request: Request):
    return templates.TemplateResponse(request, "register.html", {})


@router.post("/register", response_class=HTMLResponse, tags=["Auth"])
async def register(
    request: Request,
    username: str = Form(...),
    email: str = Form(...),
    password: str = Form(...),
    service: UserService = Depends(get_user_service),
):
    user_create = UserCreate(username=username, email=email, password=password)
    try:
        await service.register(user_create)
    except UserAlreadyExistsError as e:
        return templates.TemplateResponse(
            request,
            "register.html",
            {"error_message": str(e), "username": username, "email": email},
            status_code=status.HTTP_400_BAD_REQUEST,
        )
    except PersistenceError as e:
        return templates.TemplateResponse(
            request,
            "register.html",
            {"error_message": str(e), "username": username, "email": email},
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )
    return RedirectResponse(url="/login", status_code=status.HTTP_303_SEE_OTHER)


# --- Login / logout ---

@router.get("/login", response_class=HTMLResponse, tags=["Auth"])
async def read_login_form(request: Request):
    return templates.TemplateResponse(request, "login.html", {})


@router.post("/login", response_class=HTMLResponse, tags=["Auth"])
@limiter.limit(login_rate_limit)
async def login(
    request: Request,
    email: str = Form(...),
    password: str = Form(...),
    service: UserService = Depends(get_user_service),
    authority: SessionAuthority = Depends(get_session_authority),
):
    credentials = UserLogin(email=email, password=password)
    try:
        principal = await service.authenticate(credentials.email, credentials.password)
    except UserNotFoundError as e:
        logger.info(f"Login failed, unknown email: {credentials.email}")
        return _login_error(request, str(e), credentials.email, status.HTTP_404_NOT_FOUND)
    except InvalidCredentialsError as e:
        logger.info(f"Login failed, bad password for: {credentials.email}")
        return _login_error(request, str(e), credentials.email, status.HTTP_401_UNAUTHORIZED)
    except PersistenceError as e:
        return PlainTextResponse(str(e), status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)

    authority.login(request, principal)
    logger.info(f"User logged in: {principal.username}")
    return RedirectResponse(url="/clients", status_code=status.HTTP_303_SEE_OTHER)


def _login_error(request: Request, message: str, email: str, status_code: int):
    return templates.TemplateResponse(
        request,
        "login.html",
        {"error_message": message, "email": email},
        status_code=status_code,
    )


@router.get("/logout", tags=["Auth"], include_in_schema=False)
async def logout(
    request: Request,
    authority: SessionAuthority = Depends(get_session_authority),
):
    authority.logout(request)
    return RedirectResponse(url="/", status_code=status.HTTP_303_SEE_OTHER)
