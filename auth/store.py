"""
auth/store.py -- SQLAlchemy Core persistence layer for users.

Pattern: Repository + Data Mapper. UserStore is the repository; _row_to_user
is the mapper. Service and route code never touches SQL directly.

Lifecycle: the store is constructed by the process entry point (the FastAPI
lifespan in api/main.py, or main.py for CLI commands) and passed to the
services that need it. close() disposes the connection pool.

Security:
  All queries use bound parameters. No f-strings in SQL.

  UNIQUE(email) is enforced by the database. create_user() and update_user()
  let sqlalchemy.exc.IntegrityError propagate so the caller can map a lost
  race between two concurrent writers to EmailExists.

Layer rule: no imports from api/ or web/.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Column, Integer, MetaData, String, Table, Text, create_engine, event, func, select
from sqlalchemy.engine import Engine

from auth.models import ROLE_ADMIN, User
from core.config import get_settings

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_users = Table(
    "users",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("email", String(255), nullable=False, unique=True),
    Column("name", String(255)),
    Column("hashed_password", Text, nullable=False),
    Column("role", String(30), nullable=False, server_default="user"),
    Column("is_active", Integer, nullable=False, server_default="0"),
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
    Column("last_login", String(32)),
)

# Columns update_user() may write. Anything else is a programming error.
_UPDATABLE = {"email", "name", "hashed_password", "role", "is_active"}


# ---------------------------------------------------------------------------
# WAL mode
# ---------------------------------------------------------------------------


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode so readers never block on a writer.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class UserStore:
    """Repository for User entities.

    Usage:
        store = UserStore("sqlite:///useradmin.db")
        uid = store.create_user(User(email="a@x.com", hashed_password=hash_password("secret123")))
        user = store.get_by_email("a@x.com")
        store.close()
    """

    def __init__(self, db_url: str | None = None) -> None:
        db_url = db_url or get_settings().database_url
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if db_url.startswith("sqlite") and ":memory:" not in db_url and "mode=memory" not in db_url:
            event.listen(self.engine, "connect", _set_wal_mode)
        _metadata.create_all(self.engine)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def ping(self) -> bool:
        """Return True if the database answers a trivial query."""
        with self.engine.connect() as conn:
            return conn.execute(select(1)).scalar() == 1

    def has_users(self) -> bool:
        with self.engine.connect() as conn:
            result = conn.execute(select(func.count()).select_from(_users)).scalar()
        return (result or 0) > 0

    def count_admins(self) -> int:
        """Return the number of admin records, active or not.

        Used to protect the last admin from deletion and demotion.
        """
        with self.engine.connect() as conn:
            result = conn.execute(select(func.count()).select_from(_users).where(_users.c.role == ROLE_ADMIN)).scalar()
        return result or 0

    def get_by_id(self, user_id: int) -> User | None:
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.id == user_id)).fetchone()
        return _row_to_user(row) if row is not None else None

    def get_by_email(self, email: str) -> User | None:
        """Look up a user by exact email. Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.email == email)).fetchone()
        return _row_to_user(row) if row is not None else None

    def list_users(self) -> list[User]:
        with self.engine.connect() as conn:
            rows = conn.execute(_users.select().order_by(_users.c.id)).fetchall()
        return [_row_to_user(r) for r in rows]

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create_user(self, user: User) -> int:
        """Insert a new user and return its assigned database ID.

        Raises sqlalchemy.exc.IntegrityError if the email already exists.
        """
        now = _now_iso()
        with self.engine.connect() as conn:
            result = conn.execute(
                _users.insert().values(
                    email=user.email,
                    name=user.name,
                    hashed_password=user.hashed_password,
                    role=user.role,
                    is_active=1 if user.is_active else 0,
                    created_at=now,
                    updated_at=now,
                )
            )
            conn.commit()
            return result.inserted_primary_key[0]

    def update_user(self, user_id: int, **fields) -> bool:
        """Update mutable fields on an existing user and refresh updated_at.

        Accepted fields: email, name, hashed_password, role, is_active.
        is_active must be passed as bool.

        Returns True if a row was updated, False if user_id was not found.
        Raises sqlalchemy.exc.IntegrityError if the new email is taken.
        """
        unknown = set(fields) - _UPDATABLE
        if unknown:
            raise ValueError(f"Unknown user fields: {unknown!r}")
        if "is_active" in fields:
            fields["is_active"] = 1 if fields["is_active"] else 0
        fields["updated_at"] = _now_iso()
        with self.engine.connect() as conn:
            result = conn.execute(_users.update().where(_users.c.id == user_id).values(**fields))
            conn.commit()
        return result.rowcount > 0

    def update_last_login(self, user_id: int) -> None:
        """Stamp last_login without touching updated_at."""
        with self.engine.connect() as conn:
            conn.execute(_users.update().where(_users.c.id == user_id).values(last_login=_now_iso()))
            conn.commit()

    def delete_user(self, user_id: int) -> bool:
        """Permanently delete a user record. Returns True if deleted.

        Callers must check the last-admin invariant first; the store does not.
        """
        with self.engine.connect() as conn:
            result = conn.execute(_users.delete().where(_users.c.id == user_id))
            conn.commit()
        return result.rowcount > 0

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mapper
# ---------------------------------------------------------------------------


def _row_to_user(row) -> User:
    return User(
        id=row.id,
        email=row.email,
        name=row.name,
        hashed_password=row.hashed_password,
        role=row.role,
        is_active=bool(row.is_active),
        created_at=row.created_at,
        updated_at=row.updated_at,
        last_login=row.last_login,
    )
