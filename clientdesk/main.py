# clientdesk/main.py
import logging
import os
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse, PlainTextResponse, RedirectResponse
from fastapi.staticfiles import StaticFiles
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.sessions import SessionMiddleware

from . import __version__
from .api.clients import main as clients_main
from .core.audit import setup_audit_log
from .core.config import PROJECT_ROOT, Settings, check_secret_key, get_settings
from .core.errors import (
    InvalidFormError,
    InvalidQueryError,
    MultipleRecordsError,
    PersistenceError,
    RecordNotFoundError,
)
from .core.limiter import configure_login_limit, limiter
from .core.middleware import MethodOverrideMiddleware
from .core.sessions import SessionAuthority
from .core.templates import templates
from .db.engine import build_engine, build_session_maker, create_db_and_tables
from .db.init_db import init_db
from .utils.store import TTLStore
from .views import router as views_router

logger = logging.getLogger(__name__)

# Failures surfaced to the requester as their plain message
ERROR_STATUS_CODES = {
    InvalidFormError: status.HTTP_400_BAD_REQUEST,
    InvalidQueryError: status.HTTP_400_BAD_REQUEST,
    RecordNotFoundError: status.HTTP_404_NOT_FOUND,
    MultipleRecordsError: status.HTTP_500_INTERNAL_SERVER_ERROR,
    PersistenceError: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Application factory. Refuses to build an app without a real SECRET_KEY.
    Run with: uvicorn clientdesk.main:create_app --factory
    Settings come from the environment; launcher.py loads .env first.
    """
    settings = settings or get_settings()
    check_secret_key(settings)
    setup_audit_log(settings.audit_log_file)

    engine = build_engine(settings.database_url)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await create_db_and_tables(engine)
        async with app.state.async_session_maker() as session:
            await init_db(session)
        logger.info("Database tables initialized")
        yield
        await engine.dispose()

    app = FastAPI(title="ClientDesk", version=__version__, lifespan=lifespan)

    app.state.settings = settings
    app.state.engine = engine
    app.state.async_session_maker = build_session_maker(engine)
    app.state.session_authority = SessionAuthority(
        TTLStore(default_ttl=settings.session_ttl_seconds)
    )

    # --- Rate limiting (login) ---
    app.state.limiter = limiter
    configure_login_limit(settings)

    async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
        if request.url.path == "/login":
            return templates.TemplateResponse(
                request,
                "login.html",
                {"error_message": "Too many login attempts. Please wait a minute."},
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            )
        return JSONResponse(
            content={"error": f"Rate limit exceeded: {exc.detail}"},
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        )

    app.add_exception_handler(RateLimitExceeded, rate_limit_handler)

    # --- Core failures as plain text ---
    async def core_error_handler(request: Request, exc: Exception):
        status_code = next(
            code for error, code in ERROR_STATUS_CODES.items() if isinstance(exc, error)
        )
        return PlainTextResponse(str(exc), status_code=status_code)

    for error in ERROR_STATUS_CODES:
        app.add_exception_handler(error, core_error_handler)

    # --- Unauthenticated page requests go to the login form ---
    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == status.HTTP_401_UNAUTHORIZED and not request.url.path.startswith("/api/"):
            return RedirectResponse(url="/login", status_code=status.HTTP_303_SEE_OTHER)
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})

    # --- Security headers ---
    @app.middleware("http")
    async def add_security_headers(request: Request, call_next):
        response = await call_next(request)
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        return response

    # Session cookie carries only the session id; the store holds the data
    app.add_middleware(
        SessionMiddleware,
        secret_key=settings.secret_key,
        session_cookie=settings.session_cookie,
        max_age=settings.session_ttl_seconds,
        same_site="lax",
        https_only=settings.is_production,
    )
    app.add_middleware(MethodOverrideMiddleware)

    static_dir = os.path.join(PROJECT_ROOT, "static")
    if os.path.isdir(static_dir):
        app.mount("/static", StaticFiles(directory=static_dir), name="static")

    app.include_router(views_router)
    app.include_router(clients_main.router)

    return app
