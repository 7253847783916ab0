"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Stores, the session
service and routes do the work.

Layer rule: no imports from api/.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class User:
    """A registered NoteVault account.

    username is the canonical identifier: it is the token subject and the
    primary lookup key. email is optional and, when present, works as an
    alternative login identifier.

    password_hash is the bcrypt output and never leaves the server. Route code
    maps User to the public response model, which has no hash field.
    """

    username: str
    password_hash: str
    id: int | None = None
    display_name: str | None = None
    email: str | None = None
    created_at: str | None = None  # ISO 8601, set by store on insert


@dataclass(frozen=True)
class Identity:
    """The verified payload of a session token, attached to the request.

    Built only by TokenCodec.decode() after signature and expiry checks pass.
    """

    user_id: int
    username: str
    issued_at: int | None = None  # epoch seconds
    expires_at: int | None = None  # epoch seconds
