"""
auth/models.py -- Domain dataclass for the user entity.

Pattern: Data class (pure data container, zero logic). The store maps rows to
this shape; services and routes do the work.

Layer rule: no imports from api/ or web/.
"""

from __future__ import annotations

from dataclasses import dataclass

ROLE_ADMIN = "admin"
ROLE_USER = "user"
ROLES = (ROLE_ADMIN, ROLE_USER)


@dataclass
class User:
    """A login identity.

    email is the login key and is unique across the table. hashed_password is
    a bcrypt digest; it never leaves the server (api/models.UserResponse has
    no field for it).

    is_active gates both login and every authenticated request. Non-admin
    accounts start inactive until an admin activates them.
    """

    email: str
    hashed_password: str
    role: str = ROLE_USER  # "admin" or "user"
    name: str | None = None
    id: int | None = None
    is_active: bool = False
    created_at: str | None = None
    updated_at: str | None = None
    last_login: str | None = None

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN
