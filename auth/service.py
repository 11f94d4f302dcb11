"""
auth/service.py -- Authentication and user administration service.

AuthService owns every rule about who may log in, register, or change a user
record. Routes parse input and render output; the store persists rows; the
decisions happen here and are reported by raising core.errors exceptions.

Registration policy:
  Public self-registration is always refused (RegistrationDisabled) unless the
  caller presents the server-held admin secret. A matching secret creates an
  active admin immediately. If the server has no secret configured, any
  attempt that supplies a key fails closed with AdminKeyNotConfigured -- there
  is no built-in fallback key.

Uniqueness:
  Email uniqueness is checked before writing so the common case gets a clean
  EmailExists. Two concurrent writers can both pass that check; the loser hits
  the UNIQUE constraint and its IntegrityError is mapped to the same error.

Layer rule: no imports from api/ or web/.
"""

from __future__ import annotations

import hmac
import logging

from sqlalchemy.exc import IntegrityError

from auth.models import ROLE_ADMIN, ROLE_USER, ROLES, User
from auth.store import UserStore
from auth.tokens import equalize_timing, hash_password, verify_password
from core.errors import (
    AccountDisabled,
    AdminKeyNotConfigured,
    AdminRequired,
    EmailExists,
    EmailInUse,
    InternalError,
    InvalidCredentials,
    LastAdminProtected,
    NotFound,
    NotOwner,
    RegistrationDisabled,
    ValidationError,
)

logger = logging.getLogger("useradmin.auth")


class AuthService:
    """Login, registration, activation and user administration.

    Args:
        store:            The shared UserStore.
        admin_secret_key: Value a registration must present to be accepted.
                          Empty or None means unconfigured.
        bcrypt_rounds:    Optional work factor override for new hashes.
    """

    def __init__(self, store: UserStore, admin_secret_key: str | None, bcrypt_rounds: int | None = None) -> None:
        self.store = store
        self._admin_secret_key = admin_secret_key or None
        self._bcrypt_rounds = bcrypt_rounds

    # ------------------------------------------------------------------
    # Authentication
    # ------------------------------------------------------------------

    def login(self, email: str, password: str) -> User:
        """Validate credentials and return the user.

        Unknown email and wrong password raise the same InvalidCredentials,
        and both run one bcrypt verification [C1]. The active check comes
        after the password check so a disabled account is only revealed to
        someone who knows its password.
        """
        user = self.store.get_by_email(email)
        if user is None:
            equalize_timing(password)
            logger.info("Login failed: unknown email")
            raise InvalidCredentials()
        if not verify_password(password, user.hashed_password):
            logger.info("Login failed: bad password for user_id=%s", user.id)
            raise InvalidCredentials()
        if not user.is_active:
            logger.info("Login refused: user_id=%s is disabled", user.id)
            raise AccountDisabled()
        self.store.update_last_login(user.id)
        logger.info("Login succeeded: user_id=%s", user.id)
        return self._reload(user.id)

    def register(
        self,
        email: str,
        password: str,
        name: str | None = None,
        admin_key: str | None = None,
    ) -> User:
        """Create an active admin if admin_key matches the server secret."""
        if not admin_key:
            raise RegistrationDisabled()
        if self._admin_secret_key is None:
            logger.error("Admin registration attempted but ADMIN_SECRET_KEY is not configured")
            raise AdminKeyNotConfigured()
        if not hmac.compare_digest(admin_key.encode("utf-8"), self._admin_secret_key.encode("utf-8")):
            logger.warning("Admin registration rejected: wrong admin key")
            raise RegistrationDisabled()

        user = self._insert(email=email, password=password, name=name, role=ROLE_ADMIN, is_active=True)
        logger.info("Admin registered: user_id=%s", user.id)
        return user

    # ------------------------------------------------------------------
    # Activation
    # ------------------------------------------------------------------

    def activate(self, user_id: int) -> User:
        return self._set_active(user_id, True)

    def deactivate(self, user_id: int) -> User:
        return self._set_active(user_id, False)

    def _set_active(self, user_id: int, active: bool) -> User:
        user = self.get_user(user_id)
        if user.is_active != active:
            self.store.update_user(user_id, is_active=active)
            logger.info("User %s: user_id=%s", "activated" if active else "deactivated", user_id)
        return self._reload(user_id)

    # ------------------------------------------------------------------
    # User administration
    # ------------------------------------------------------------------

    def list_users(self) -> list[User]:
        return self.store.list_users()

    def get_user(self, user_id: int) -> User:
        user = self.store.get_by_id(user_id)
        if user is None:
            raise NotFound()
        return user

    def create_user(
        self,
        email: str,
        password: str,
        name: str | None = None,
        role: str = ROLE_USER,
        is_active: bool | None = None,
    ) -> User:
        """Admin-side creation. is_active defaults to True for admins, False otherwise."""
        if role not in ROLES:
            raise ValidationError(f"Unknown role {role!r}")
        if is_active is None:
            is_active = role == ROLE_ADMIN
        user = self._insert(email=email, password=password, name=name, role=role, is_active=is_active)
        logger.info("User created: user_id=%s role=%s", user.id, role)
        return user

    def update_user(
        self,
        user_id: int,
        actor: User,
        *,
        name: str | None = None,
        email: str | None = None,
        password: str | None = None,
        role: str | None = None,
        is_active: bool | None = None,
    ) -> User:
        """Apply a partial update on behalf of actor.

        Non-admins may only touch their own record, and only name, email and
        password. Admins may change any field on any record. Demoting the
        last admin is refused.
        """
        if not actor.is_admin:
            if actor.id != user_id:
                raise NotOwner()
            if role is not None or is_active is not None:
                raise AdminRequired()

        target = self.get_user(user_id)
        fields: dict = {}

        if name is not None:
            fields["name"] = name
        if email is not None and email != target.email:
            other = self.store.get_by_email(email)
            if other is not None and other.id != user_id:
                raise EmailInUse()
            fields["email"] = email
        if password is not None:
            fields["hashed_password"] = hash_password(password, self._bcrypt_rounds)
        if role is not None and role != target.role:
            if role not in ROLES:
                raise ValidationError(f"Unknown role {role!r}")
            if target.role == ROLE_ADMIN and self.store.count_admins() <= 1:
                raise LastAdminProtected()
            fields["role"] = role
        if is_active is not None:
            fields["is_active"] = is_active

        if fields:
            try:
                self.store.update_user(user_id, **fields)
            except IntegrityError as exc:
                raise EmailInUse() from exc
            logger.info("User updated: user_id=%s by user_id=%s fields=%s", user_id, actor.id, sorted(fields))
        return self._reload(user_id)

    def delete_user(self, user_id: int) -> User:
        """Delete a user, refusing to remove the last admin record."""
        target = self.get_user(user_id)
        if target.role == ROLE_ADMIN and self.store.count_admins() <= 1:
            raise LastAdminProtected()
        if not self.store.delete_user(user_id):
            raise NotFound()
        logger.info("User deleted: user_id=%s", user_id)
        return target

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _insert(self, *, email: str, password: str, name: str | None, role: str, is_active: bool) -> User:
        if self.store.get_by_email(email) is not None:
            raise EmailExists()
        new_user = User(
            email=email,
            name=name,
            hashed_password=hash_password(password, self._bcrypt_rounds),
            role=role,
            is_active=is_active,
        )
        try:
            user_id = self.store.create_user(new_user)
        except IntegrityError as exc:
            # Lost a race with a concurrent create for the same email.
            raise EmailExists() from exc
        return self._reload(user_id)

    def _reload(self, user_id: int) -> User:
        user = self.store.get_by_id(user_id)
        if user is None:
            raise InternalError("User not found after write.")
        return user
