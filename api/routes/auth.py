"""
api/routes/auth.py -- Registration, login, logout and session endpoints.

Routes:
  POST /auth/register   -- create an account; 201 with public user fields
  POST /auth/login      -- verify credentials; token in body and httpOnly cookie
  POST /auth/logout     -- clear the session cookie; always 200
  GET  /auth/me         -- current user's public fields (requires auth)

Security:
  Login never distinguishes "unknown identifier" from "wrong password" --
  SessionService raises the same Unauthorized for both.
  Cache-Control: no-store on login responses so tokens are not cached.
  The handlers that hash or query are plain `def`: FastAPI runs them in the
  thread pool, so bcrypt never blocks the event loop.

Errors raised by SessionService (auth/errors.py) propagate to the AuthError
handler in api/main.py; handlers here do not catch them.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from api.models import LoginRequest, LoginResponse, LogoutResponse, RegisterRequest, UserResponse
from auth.dependencies import require_identity
from auth.models import Identity
from auth.service import SessionService
from auth.tokens import clear_auth_cookie, set_auth_cookie
from core.config import Settings

# Auth policy:
# - POST /auth/register: public
# - POST /auth/login:    public -- login endpoint must be unauthenticated
# - POST /auth/logout:   public -- clearing a cookie needs no prior auth
# - GET  /auth/me:       requires auth (require_identity)
router = APIRouter()


def _cookie_is_secure(request: Request, settings: Settings) -> bool:
    """Secure when configured, or whenever this request arrived over HTTPS."""
    return settings.secure_cookies or request.url.scheme == "https"


@router.post("/auth/register", response_model=UserResponse, status_code=201)
def register(request: Request, body: RegisterRequest) -> UserResponse:
    """Create an account. Responds 400 on missing fields, 409 on a taken identifier."""
    service: SessionService = request.app.state.session_service
    user = service.register(body.identifier, body.password, body.display_name, body.email)
    return UserResponse.from_user(user)


@router.post("/auth/login", response_model=LoginResponse)
def login(request: Request, body: LoginRequest) -> JSONResponse:
    """Authenticate with identifier and password; return the token and set it as a cookie."""
    service: SessionService = request.app.state.session_service
    settings: Settings = request.app.state.settings

    result = service.login(body.identifier, body.password)
    resp = JSONResponse(
        status_code=200,
        content=LoginResponse(
            token=result.token,
            token_type="bearer",  # noqa: S106 # nosec B106 -- OAuth token type, not a password
            expires_in=result.expires_in,
            user=UserResponse.from_user(result.user),
        ).model_dump(),
    )
    set_auth_cookie(
        resp,
        result.token,
        name=settings.cookie_name,
        max_age=result.expires_in,
        secure=_cookie_is_secure(request, settings),
    )
    resp.headers["Cache-Control"] = "no-store"
    return resp


@router.post("/auth/logout", response_model=LogoutResponse)
async def logout(request: Request) -> JSONResponse:
    """Clear the session cookie. Tokens are stateless, so nothing else is revoked."""
    settings: Settings = request.app.state.settings
    resp = JSONResponse(content=LogoutResponse().model_dump())
    clear_auth_cookie(resp, name=settings.cookie_name, secure=_cookie_is_secure(request, settings))
    return resp


@router.get("/auth/me", response_model=UserResponse)
def me(request: Request, identity: Identity = Depends(require_identity)) -> UserResponse:
    """Return the public fields of the account behind the current token."""
    service: SessionService = request.app.state.session_service
    return UserResponse.from_user(service.who_am_i(identity))
