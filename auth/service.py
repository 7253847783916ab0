"""
auth/service.py -- Registration, login and session lookup.

SessionService is the only place that combines the credential store, the
password hasher and the token codec. It holds no per-request state: every
method is a pure function of its arguments plus whatever the store returns,
so one instance is shared by all requests.

Every method is synchronous. bcrypt and SQL are blocking calls; route
handlers that call this service are plain `def` functions, which FastAPI
runs in its worker thread pool instead of on the event loop.

Layer rule: no imports from api/.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol

from auth.errors import BadRequest, Conflict, NotFound, Unauthorized
from auth.models import Identity, User
from auth.tokens import MAX_PASSWORD_BYTES, PasswordHasher, TokenCodec

logger = logging.getLogger("notevault.auth")

_BAD_CREDENTIALS = "Invalid identifier or password."


class CredentialStore(Protocol):
    """What the service needs from persistence. UserStore satisfies it."""

    def find_by_identifier(self, identifier: str) -> User | None: ...

    def get_by_id(self, user_id: int) -> User | None: ...

    def create_user(self, user: User) -> User: ...


@dataclass
class LoginResult:
    user: User
    token: str
    expires_in: int  # seconds


def default_display_name(username: str, email: str | None) -> str:
    """Derive a display name: the local part of the email, else the username."""
    if email and "@" in email:
        local = email.split("@", 1)[0]
        if local:
            return local
    return username


class SessionService:
    """Stateless authentication flow over an injected store, hasher and codec."""

    def __init__(self, store: CredentialStore, hasher: PasswordHasher, codec: TokenCodec) -> None:
        self.store = store
        self.hasher = hasher
        self.codec = codec

    def register(
        self,
        identifier: str | None,
        password: str | None,
        display_name: str | None = None,
        email: str | None = None,
    ) -> User:
        """Create a new account and return it.

        The lookups below reject the common duplicate case early. They are not
        the uniqueness guarantee: the store's UNIQUE constraints are, and a
        constraint violation surfaces from create_user() as Conflict too.
        """
        identifier = (identifier or "").strip()
        email = (email or "").strip() or None
        display_name = (display_name or "").strip() or None
        _require_credentials(identifier, password)
        if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
            raise BadRequest(f"Password must be at most {MAX_PASSWORD_BYTES} bytes.", code="password_too_long")

        if self.store.find_by_identifier(identifier) is not None:
            raise Conflict()
        if email is not None and self.store.find_by_identifier(email) is not None:
            raise Conflict()

        user = self.store.create_user(
            User(
                username=identifier,
                display_name=display_name or default_display_name(identifier, email),
                email=email,
                password_hash=self.hasher.hash(password),
            )
        )
        logger.info("Registered user id=%s", user.id)
        return user

    def login(self, identifier: str | None, password: str | None) -> LoginResult:
        """Verify credentials and mint a session token.

        Unknown identifier and wrong password raise the same Unauthorized with
        the same message. bcrypt runs on both paths so they also cost the same.
        """
        identifier = (identifier or "").strip()
        _require_credentials(identifier, password)

        user = self.store.find_by_identifier(identifier)
        if user is None:
            # Equalize timing -- do NOT return before running bcrypt
            self.hasher.burn(password)
            logger.info("Login failed: unknown identifier")
            raise Unauthorized(_BAD_CREDENTIALS, code="bad_credentials")
        if not self.hasher.verify(password, user.password_hash):
            logger.info("Login failed: wrong password for user id=%s", user.id)
            raise Unauthorized(_BAD_CREDENTIALS, code="bad_credentials")

        token = self.codec.encode(user.id, user.username)
        logger.info("Login succeeded for user id=%s", user.id)
        return LoginResult(user=user, token=token, expires_in=self.codec.expire_seconds)

    def who_am_i(self, identity: Identity) -> User:
        """Re-read the account behind an already-verified token."""
        user = self.store.get_by_id(identity.user_id)
        if user is None:
            raise NotFound()
        return user


def _require_credentials(identifier: str, password: str | None) -> None:
    if not identifier or not password:
        raise BadRequest("Identifier and password are required.", code="missing_fields")
