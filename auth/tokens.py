"""
auth/tokens.py -- Password hashing, JWT session tokens, and cookie helpers.

Security design decisions:
  JWT: python-jose with HS256. Tokens are signed with SECRET_KEY and carry
       user_id, username (as the "sub" claim), issue time and expiry.
       Verification returns None on any failure -- the token dependency turns
       that into a 403.

  Passwords: bcrypt with a configurable work factor (10 by default). Bcrypt
       is the right choice for low-entropy secrets because its cost factor
       makes brute-force expensive. The dummy hash held by PasswordHasher
       enables timing equalization in SessionService.login() so response time
       does not reveal whether an identifier exists.

  Configuration: nothing here reads settings at import time. PasswordHasher
       and TokenCodec take their parameters in the constructor; create_app()
       builds them once from the Settings object.

Layer rule: no imports from api/.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

import bcrypt
from jose import JWTError, jwt

from auth.models import Identity

logger = logging.getLogger("notevault.auth")

_ALGORITHM = "HS256"

# bcrypt only looks at the first 72 bytes of its input; bcrypt >= 4.1 raises
# ValueError for anything longer instead of truncating silently.
MAX_PASSWORD_BYTES = 72


# ---------------------------------------------------------------------------
# Password hashing (bcrypt -- direct usage, no passlib wrapper)
#
# Using bcrypt directly rather than passlib[bcrypt] because passlib's internal
# wrap-bug detection creates a password longer than 72 bytes, which bcrypt 4.x
# rejects with an explicit error.
# ---------------------------------------------------------------------------


class PasswordHasher:
    """Salted one-way password hashing with a fixed bcrypt work factor.

    Usage:
        hasher = PasswordHasher(rounds=10)
        stored = hasher.hash("hunter2")
        hasher.verify("hunter2", stored)  # True
    """

    def __init__(self, rounds: int = 10) -> None:
        self.rounds = rounds
        # Timing equalization dummy hash. Computed once per hasher so the
        # first login attempt is not measurably slower than later ones.
        self._dummy_hash = self.hash("notevault_timing_dummy")

    def hash(self, plain: str) -> str:
        """Return a bcrypt hash of the given plaintext password."""
        return bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt(rounds=self.rounds)).decode("utf-8")

    def verify(self, plain: str, hashed: str) -> bool:
        """Return True if the plaintext password matches the bcrypt hash.

        bcrypt.checkpw compares in constant time. A malformed stored hash or an
        over-long input counts as a mismatch.
        """
        try:
            return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
        except ValueError:
            logger.warning("Password verification failed on malformed input")
            return False

    def burn(self, plain: str) -> None:
        """Run a full bcrypt comparison against the dummy hash and discard the result.

        Called on the unknown-identifier path of login so it costs the same as
        a wrong-password attempt.
        """
        self.verify(plain, self._dummy_hash)


# ---------------------------------------------------------------------------
# JWT encode / decode
# ---------------------------------------------------------------------------


class TokenCodec:
    """Signs and verifies session tokens with one secret and one default lifetime."""

    def __init__(self, secret_key: str, expire_seconds: int) -> None:
        self._secret_key = secret_key
        self.expire_seconds = expire_seconds

    def encode(self, user_id: int, username: str, expire_seconds: int = 0) -> str:
        """Encode a signed JWT with user identity and expiry.

        Args:
            user_id:        Numeric user ID stored in the DB.
            username:       Canonical identifier, stored as the "sub" claim.
            expire_seconds: Token lifetime in seconds. If 0 (default), uses
                            the codec's configured lifetime.
        """
        duration = expire_seconds if expire_seconds > 0 else self.expire_seconds
        now = datetime.now(timezone.utc)
        payload = {
            "sub": username,
            "user_id": user_id,
            "iat": now,
            "exp": now + timedelta(seconds=duration),
        }
        return jwt.encode(payload, self._secret_key, algorithm=_ALGORITHM)

    def decode(self, token: str) -> Identity | None:
        """Verify a JWT and return its Identity, or None on any failure.

        Bad signature, expired "exp", malformed token and missing claims all
        come back as None. The caller decides which status that maps to.
        """
        try:
            payload = jwt.decode(token, self._secret_key, algorithms=[_ALGORITHM])
        except JWTError:
            return None
        user_id = payload.get("user_id")
        username = payload.get("sub")
        if not isinstance(user_id, int) or not isinstance(username, str):
            return None
        return Identity(
            user_id=user_id,
            username=username,
            issued_at=payload.get("iat"),
            expires_at=payload.get("exp"),
        )


# ---------------------------------------------------------------------------
# Cookie helpers
# ---------------------------------------------------------------------------


def set_auth_cookie(response, token: str, *, name: str, max_age: int, secure: bool) -> None:
    """Write the session token as an httpOnly cookie on the response.

    httponly=True: JS cannot read the cookie (XSS mitigation).
    samesite="strict": cookie is never sent on cross-site requests.
    path="/": every route on the origin receives it.
    secure: only sent over HTTPS; set when SECURE_COOKIES=true or the request was HTTPS.
    max_age: matches the JWT expiry so both expire together.
    """
    response.set_cookie(
        name,
        value=token,
        httponly=True,
        samesite="strict",
        secure=secure,
        path="/",
        max_age=max_age,
    )


def clear_auth_cookie(response, *, name: str, secure: bool) -> None:
    """Expire the session cookie. Attributes must match set_auth_cookie()."""
    response.delete_cookie(name, path="/", secure=secure, httponly=True, samesite="strict")
