"""
api/routes/users.py -- Self-service user endpoints.

Routes:
  GET /api/users/{id}  -- read one user (requires auth)
  PUT /api/users/{id}  -- update name/email/password (own record, or any record as admin)

Ownership is enforced by AuthService.update_user(): a non-admin editing
someone else's record gets 403 not_owner before the target is even looked up,
so the response does not reveal whether that id exists.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from api.models import UserEnvelope, UserResponse, UserSelfUpdate
from auth.dependencies import get_auth_service, get_current_user, get_translator
from auth.models import User
from auth.service import AuthService
from core.i18n import Translator

router = APIRouter()


@router.get("/users/{user_id}", response_model=UserResponse)
def get_user(
    user_id: int,
    current_user: User = Depends(get_current_user),
    service: AuthService = Depends(get_auth_service),
) -> UserResponse:
    return UserResponse.from_user(service.get_user(user_id))


@router.put("/users/{user_id}", response_model=UserEnvelope)
def update_user(
    user_id: int,
    body: UserSelfUpdate,
    current_user: User = Depends(get_current_user),
    service: AuthService = Depends(get_auth_service),
    _: Translator = Depends(get_translator),
) -> UserEnvelope:
    """Update the caller's own profile. A changed password is rehashed."""
    user = service.update_user(
        user_id,
        current_user,
        name=body.name,
        email=body.email,
        password=body.password,
    )
    return UserEnvelope(message=_("user_updated"), user=UserResponse.from_user(user))
