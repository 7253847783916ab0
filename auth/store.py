"""
auth/store.py -- SQLAlchemy Core persistence layer for NoteVault users.

Pattern: Repository + Data Mapper.
UserStore is the repository; _row_to_user is the mapper. Service, dependency
and route code never touches SQL directly.

Security:
  All queries use bound parameters. No f-strings in SQL.

Uniqueness:
  UNIQUE(username) and UNIQUE(email) are the authoritative guard against
  duplicate accounts. The session service runs a lookup before inserting,
  but two concurrent registrations can both pass that lookup; whichever
  INSERT loses hits the constraint, and create_user() turns the
  IntegrityError into Conflict. NULL emails do not collide with each other.

Notes table:
  The notes table belongs to the front end's notes feature. This store only
  creates it (so a fresh database has both tables) and counts its rows for
  the stats endpoint.

Connections:
  The Engine owns a connection pool; every method checks out a connection
  for the duration of one statement and returns it.

Layer rule: no imports from api/.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy import (
    Column,
    ForeignKey,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    create_engine,
    event,
    func,
    or_,
    select,
)
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError

from auth.errors import Conflict, ServerError
from auth.models import User

logger = logging.getLogger("notevault.store")

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_users = Table(
    "users",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("username", String(255), nullable=False, unique=True),
    Column("display_name", String(255)),
    Column("email", String(255), unique=True),  # NULL allowed; NULLs never collide
    Column("password_hash", Text, nullable=False),
    Column("created_at", String(32), nullable=False),
)

_notes = Table(
    "notes",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("user_id", Integer, ForeignKey("users.id"), nullable=False),
    Column("content", Text, nullable=False, server_default=""),
    Column("created_at", String(32), nullable=False),
)


# ---------------------------------------------------------------------------
# WAL mode
# ---------------------------------------------------------------------------


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode for concurrent read safety.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class UserStore:
    """Repository for User records plus the aggregate counts used by /admin/stats.

    Usage:
        store = UserStore("sqlite:///:memory:")
        user = store.create_user(User(username="alice", password_hash=hasher.hash("hunter2")))
        store.find_by_identifier("alice")
        store.close()
    """

    def __init__(self, db_url: str) -> None:
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args, pool_pre_ping=True)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_wal_mode)
        _metadata.create_all(self.engine)

    # ------------------------------------------------------------------
    # User queries
    # ------------------------------------------------------------------

    def find_by_identifier(self, identifier: str) -> User | None:
        """Look up a user by exact username or email (case-sensitive).

        If one account has the identifier as its username and another as its
        email, the username match wins. Returns None on zero rows. Only
        transport failures raise.
        """
        stmt = (
            select(_users)
            .where(or_(_users.c.username == identifier, _users.c.email == identifier))
            .order_by((_users.c.username == identifier).desc())
            .limit(1)
        )
        with self.engine.connect() as conn:
            row = conn.execute(stmt).fetchone()
        return _row_to_user(row) if row is not None else None

    def get_by_id(self, user_id: int) -> User | None:
        """Look up a user by primary key. Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(select(_users).where(_users.c.id == user_id)).fetchone()
        return _row_to_user(row) if row is not None else None

    def create_user(self, user: User) -> User:
        """Insert a new user and return the stored record.

        Raises Conflict if the username or email is already taken.
        """
        try:
            with self.engine.connect() as conn:
                result = conn.execute(
                    _users.insert().values(
                        username=user.username,
                        display_name=user.display_name,
                        email=user.email,
                        password_hash=user.password_hash,
                        created_at=_now_iso(),
                    )
                )
                conn.commit()
                user_id = result.inserted_primary_key[0]
        except IntegrityError as exc:
            logger.info("Insert rejected by unique constraint for username=%r", user.username)
            raise Conflict() from exc

        created = self.get_by_id(user_id)
        if created is None:
            logger.error("User id=%s not found after write", user_id)
            raise ServerError()
        return created

    # ------------------------------------------------------------------
    # Aggregates
    # ------------------------------------------------------------------

    def count_users(self) -> int:
        with self.engine.connect() as conn:
            result = conn.execute(select(func.count()).select_from(_users)).scalar()
        return result or 0

    def count_notes(self) -> int:
        with self.engine.connect() as conn:
            result = conn.execute(select(func.count()).select_from(_notes)).scalar()
        return result or 0

    # ------------------------------------------------------------------
    # Health
    # ------------------------------------------------------------------

    def ping(self) -> bool:
        """Return True if the database answers a trivial query."""
        with self.engine.connect() as conn:
            return conn.execute(select(1)).scalar() == 1

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_user(row) -> User:
    return User(
        id=row.id,
        username=row.username,
        display_name=row.display_name,
        email=row.email,
        password_hash=row.password_hash,
        created_at=row.created_at,
    )
