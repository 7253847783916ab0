"""
api/main.py -- FastAPI application factory for NoteVault.

create_app(settings) assembles the whole service from one Settings object:
the token codec, password hasher and session service are built here, once,
and handed to routes through app.state. Nothing downstream reads the
environment.

Run with:      uvicorn asgi:app --reload
               python asgi.py

Middleware stack (outermost to innermost):
  1. log_requests          -- method, path, status and latency for every request
  2. security_headers      -- nosniff, frame, referrer and CSP headers on every response
  3. TrustedHostMiddleware -- rejects requests with unexpected Host headers
  4. CORSMiddleware        -- adds CORS headers for the configured origins

Lifespan handles startup (open the credential store) and shutdown (dispose
its connection pool) symmetrically.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.types import Scope

from api.models import ErrorDetail, ErrorResponse, HealthResponse
from api.routes.admin import router as admin_router
from api.routes.auth import router as auth_router
from auth.errors import AuthError
from auth.service import SessionService
from auth.store import UserStore
from auth.tokens import PasswordHasher, TokenCodec
from core.config import Settings

__version__ = "0.1.0"

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("notevault.api")

# ---------------------------------------------------------------------------
# Lifespan -- modern startup / shutdown pattern (replaces @app.on_event)
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Open the credential store on startup and close it on shutdown.

    The store is created here rather than in create_app() so that building an
    app object never touches the database; only running it does.
    """
    settings: Settings = app.state.settings
    logger.info("NoteVault API starting up")
    app.state.user_store = UserStore(settings.database_url)
    app.state.session_service = SessionService(
        store=app.state.user_store,
        hasher=app.state.password_hasher,
        codec=app.state.token_codec,
    )
    app.state.started_at = time.monotonic()
    logger.info("Credential store initialized")

    yield

    app.state.user_store.close()
    logger.info("NoteVault API shutdown complete")


# ---------------------------------------------------------------------------
# Request logging middleware
#
# Pattern: Interceptor / Chain of Responsibility. Every request passes through
# this coroutine before reaching any route handler.
# ---------------------------------------------------------------------------


async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    ms = (time.perf_counter() - start) * 1000
    logger.info(
        "%s %s %d %.1fms %s",
        request.method,
        request.url.path,
        response.status_code,
        ms,
        request.client.host if request.client else "unknown",
    )
    return response


# ---------------------------------------------------------------------------
# Security headers middleware
#
# Applied to every response, errors and static files included. setdefault
# leaves any header a route already chose untouched.
# ---------------------------------------------------------------------------

SECURITY_HEADERS = {
    "Content-Security-Policy": "default-src 'self'; base-uri 'self'; object-src 'none'; frame-ancestors 'self'",
    "Cross-Origin-Opener-Policy": "same-origin",
    "Referrer-Policy": "no-referrer",
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "SAMEORIGIN",
}


async def security_headers(request: Request, call_next):
    response = await call_next(request)
    for name, value in SECURITY_HEADERS.items():
        response.headers.setdefault(name, value)
    return response


# ---------------------------------------------------------------------------
# Front-end files
# ---------------------------------------------------------------------------

# First path segments owned by the API. Unknown paths under them keep the
# JSON 404 instead of receiving the front end's index.html.
API_PREFIXES = frozenset({"auth", "admin", "health"})


class FrontEndFiles(StaticFiles):
    """StaticFiles that answers unknown paths with index.html.

    The front end routes on the client (/notes/42 and the like), so a deep
    link must load the app shell rather than a 404.
    """

    async def get_response(self, path: str, scope: Scope):
        try:
            return await super().get_response(path, scope)
        except StarletteHTTPException as exc:
            if exc.status_code != 404 or path.split("/", 1)[0] in API_PREFIXES:
                raise
            return await super().get_response("index.html", scope)


# ---------------------------------------------------------------------------
# Exception handlers
#
# All handlers return the same ErrorResponse envelope so API clients can parse
# errors uniformly without inspecting status codes to choose a schema.
# ---------------------------------------------------------------------------


async def auth_error_handler(request: Request, exc: AuthError) -> JSONResponse:
    """Map the auth error taxonomy to its status code and user-safe message."""
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(error=ErrorDetail(code=exc.code, message=exc.message)).model_dump(),
    )


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Return 400 with a structured error when the request body is malformed."""
    return JSONResponse(
        status_code=400,
        content=ErrorResponse(
            error=ErrorDetail(
                code="validation_error",
                message="Request validation failed.",
                detail=str(exc.errors()),
            )
        ).model_dump(),
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Return a structured error for FastAPI/Starlette HTTP exceptions (404, 405, ...)."""
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(
            error=ErrorDetail(
                code=f"http_{exc.status_code}",
                message=str(exc.detail),
            )
        ).model_dump(),
        headers=getattr(exc, "headers", None),
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all handler for unexpected server errors.

    Security note: the raw exception is written to the server log only, never
    to the response body. Stack traces, SQL text and configuration values stay
    on the server. The client receives only a generic message.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content=ErrorResponse(
            error=ErrorDetail(
                code="internal_error",
                message="An unexpected error occurred.",
            )
        ).model_dump(),
    )


# ---------------------------------------------------------------------------
# Health endpoint
#
# No authentication -- load balancers and monitoring must reach it.
# ---------------------------------------------------------------------------


def health(request: Request) -> HealthResponse:
    """Return liveness, version, and a database round-trip check."""
    try:
        database = "ok" if request.app.state.user_store.ping() else "error"
    except SQLAlchemyError:
        logger.exception("Health check: database unreachable")
        database = "error"
    return HealthResponse(version=__version__, components={"app": "ok", "database": database})


# ---------------------------------------------------------------------------
# App factory
# ---------------------------------------------------------------------------


def create_app(settings: Settings) -> FastAPI:
    """Build a NoteVault FastAPI application from an explicit Settings object."""
    app = FastAPI(
        title="NoteVault API",
        description="Registration, login and session tokens for NoteVault.",
        version=__version__,
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.password_hasher = PasswordHasher(rounds=settings.bcrypt_rounds)
    app.state.token_codec = TokenCodec(settings.secret_key, settings.token_expire_seconds)

    # Starlette wraps middleware in reverse registration order: the last one
    # added is outermost. Register innermost first: CORS -> TrustedHost -> logging.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["Content-Type", "Authorization"],
        max_age=3600,
    )
    app.add_middleware(TrustedHostMiddleware, allowed_hosts=settings.trusted_hosts)
    app.middleware("http")(security_headers)
    app.middleware("http")(log_requests)

    app.add_exception_handler(AuthError, auth_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    app.add_api_route("/health", health, methods=["GET"], response_model=HealthResponse, tags=["Health"])
    app.include_router(auth_router, tags=["Auth"])
    app.include_router(admin_router, tags=["Admin"])

    # The built front end is served last so API paths always win.
    if settings.static_dir:
        static_path = Path(settings.static_dir)
        if static_path.is_dir():
            app.mount("/", FrontEndFiles(directory=static_path, html=True), name="static")
        else:
            logger.warning("STATIC_DIR %s is not a directory -- front end not served", static_path)

    return app
