"""
auth/dependencies.py -- FastAPI Depends() helper that enforces authentication.

require_identity() is the single control point for protected routes. It
checks the token sources in priority order:
  1. Authorization: Bearer <token> header -- API clients.
  2. Session cookie (Settings.cookie_name, "token" by default) -- browsers.

Outcomes:
  no token at all          -> Unauthorized (401, "token_missing")
  bad signature / expired  -> Forbidden    (403, "token_invalid")
  valid                    -> Identity, also stored on request.state.identity

The token is not re-checked against the database here; handlers that need
the full record (e.g. /auth/me) fetch it through SessionService.

Layer rule: no imports from api/.
  auth/dependencies.py may import from fastapi (for Request) because this
  module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

from fastapi import Request

from auth.errors import Forbidden, Unauthorized
from auth.models import Identity
from auth.tokens import TokenCodec


def extract_token(request: Request, cookie_name: str) -> str | None:
    """Return the candidate token from the Bearer header, else the cookie."""
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        token = auth_header[7:].strip()
        if token:
            return token
    return request.cookies.get(cookie_name) or None


def require_identity(request: Request) -> Identity:
    """Require a valid session token. Raises Unauthorized or Forbidden otherwise.

    Use as a FastAPI dependency:
        @router.get("/protected")
        def route(identity: Identity = Depends(require_identity)): ...
    """
    codec: TokenCodec = request.app.state.token_codec
    cookie_name: str = request.app.state.settings.cookie_name

    token = extract_token(request, cookie_name)
    if token is None:
        raise Unauthorized("Token missing.", code="token_missing")

    identity = codec.decode(token)
    if identity is None:
        raise Forbidden("Token invalid or expired.", code="token_invalid")

    request.state.identity = identity
    return identity
