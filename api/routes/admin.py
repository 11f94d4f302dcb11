"""
api/routes/admin.py -- User management endpoints (admin only).

Routes:
  GET    /api/admin/users                  -- list all users
  POST   /api/admin/users                  -- create a user
  PUT    /api/admin/users/{id}             -- update any field
  DELETE /api/admin/users/{id}             -- delete (last admin protected)
  POST   /api/admin/users/{id}/activate    -- set isActive=true (idempotent)
  POST   /api/admin/users/{id}/deactivate  -- set isActive=false (idempotent)

Every route depends on require_admin: 401 without a session, 403 for a
non-admin or disabled account.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from api.models import AdminUserUpdate, UserCreate, UserEnvelope, UserResponse
from auth.dependencies import get_auth_service, get_translator, require_admin
from auth.models import User
from auth.service import AuthService
from core.i18n import Translator

router = APIRouter(prefix="/admin")


@router.get("/users", response_model=list[UserResponse])
def list_users(
    current_user: User = Depends(require_admin),
    service: AuthService = Depends(get_auth_service),
) -> list[UserResponse]:
    return [UserResponse.from_user(u) for u in service.list_users()]


@router.post("/users", response_model=UserEnvelope, status_code=201)
def create_user(
    body: UserCreate,
    current_user: User = Depends(require_admin),
    service: AuthService = Depends(get_auth_service),
    _: Translator = Depends(get_translator),
) -> UserEnvelope:
    user = service.create_user(
        body.email,
        body.password,
        name=body.name,
        role=body.role.value,
        is_active=body.is_active,
    )
    return UserEnvelope(message=_("user_created"), user=UserResponse.from_user(user))


@router.put("/users/{user_id}", response_model=UserEnvelope)
def update_user(
    user_id: int,
    body: AdminUserUpdate,
    current_user: User = Depends(require_admin),
    service: AuthService = Depends(get_auth_service),
    _: Translator = Depends(get_translator),
) -> UserEnvelope:
    user = service.update_user(
        user_id,
        current_user,
        name=body.name,
        email=body.email,
        password=body.password,
        role=body.role.value if body.role is not None else None,
        is_active=body.is_active,
    )
    return UserEnvelope(message=_("user_updated"), user=UserResponse.from_user(user))


@router.delete("/users/{user_id}", response_model=UserEnvelope)
def delete_user(
    user_id: int,
    current_user: User = Depends(require_admin),
    service: AuthService = Depends(get_auth_service),
    _: Translator = Depends(get_translator),
) -> UserEnvelope:
    """Delete a user. Deleting the only remaining admin returns 400 last_admin."""
    user = service.delete_user(user_id)
    return UserEnvelope(message=_("user_deleted"), user=UserResponse.from_user(user))


@router.post("/users/{user_id}/activate", response_model=UserEnvelope)
def activate_user(
    user_id: int,
    current_user: User = Depends(require_admin),
    service: AuthService = Depends(get_auth_service),
    _: Translator = Depends(get_translator),
) -> UserEnvelope:
    user = service.activate(user_id)
    return UserEnvelope(message=_("account_activated"), user=UserResponse.from_user(user))


@router.post("/users/{user_id}/deactivate", response_model=UserEnvelope)
def deactivate_user(
    user_id: int,
    current_user: User = Depends(require_admin),
    service: AuthService = Depends(get_auth_service),
    _: Translator = Depends(get_translator),
) -> UserEnvelope:
    user = service.deactivate(user_id)
    return UserEnvelope(message=_("account_deactivated"), user=UserResponse.from_user(user))
