"""User router - profiles, admin user management, roles and push tokens"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import get_current_user, get_decoded_token, require_admin, resolve_role_name
from ...config import ADMIN_ROLE_NAME
from ...database import get_db
from ...firebase import get_firebase_app
from ...models import User
from .schemas import (
    ProvisionRequest,
    PushTokenRequest,
    RoleResponse,
    RoleUpdate,
    UserCreate,
    UserResponse,
)
from .service import UserService, to_user_response

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Users"])


def get_user_service(
    db: Session = Depends(get_db), firebase_app=Depends(get_firebase_app)
) -> UserService:
    """Dependency injection for UserService"""
    return UserService(db, firebase_app=firebase_app)


def get_profile_service(db: Session = Depends(get_db)) -> UserService:
    """UserService for endpoints that never call Firebase Auth"""
    return UserService(db)


# ============================================================================
# AUTH / PROFILE
# ============================================================================


@router.post("/auth/provision", response_model=UserResponse, tags=["Authentication"])
async def provision_profile(
    data: Optional[ProvisionRequest] = None,
    decoded_token: dict = Depends(get_decoded_token),
    service: UserService = Depends(get_profile_service),
):
    """Create the caller's profile with the default role (no-op when it exists)"""
    user = service.ensure_user_profile(
        decoded_token["uid"],
        decoded_token.get("email"),
        (data.name if data else None) or decoded_token.get("name"),
    )
    return to_user_response(user)


@router.get("/auth/me", tags=["Authentication"])
async def get_me(current_user: User = Depends(get_current_user)):
    role_name = resolve_role_name(current_user)
    return {
        "uid": current_user.firebase_uid,
        "email": current_user.email,
        "name": current_user.name,
        "roleId": current_user.role_id,
        "roleName": role_name,
        "isAdmin": role_name == ADMIN_ROLE_NAME,
    }


@router.post("/users/me/push-tokens")
async def register_push_token(
    data: PushTokenRequest,
    current_user: User = Depends(get_current_user),
    service: UserService = Depends(get_profile_service),
):
    return service.register_push_token(current_user, data.token)


@router.delete("/users/me/push-tokens")
async def remove_push_token(
    data: PushTokenRequest,
    current_user: User = Depends(get_current_user),
    service: UserService = Depends(get_profile_service),
):
    return service.remove_push_token(current_user, data.token)


# ============================================================================
# ADMIN
# ============================================================================


@router.get("/users", response_model=list[UserResponse])
async def get_users(
    current_user: User = Depends(require_admin),
    service: UserService = Depends(get_profile_service),
):
    return [to_user_response(user) for user in service.get_users()]


@router.post("/users", response_model=UserResponse)
async def create_user(
    data: UserCreate,
    current_user: User = Depends(require_admin),
    service: UserService = Depends(get_user_service),
):
    logger.info(f"👤 {current_user.email} creating user {data.email}")
    return to_user_response(service.create_user(data))


@router.patch("/users/{uid}/role", response_model=UserResponse)
async def change_user_role(
    uid: str,
    data: RoleUpdate,
    current_user: User = Depends(require_admin),
    service: UserService = Depends(get_profile_service),
):
    return to_user_response(service.change_role(uid, data.roleId))


@router.delete("/users/{uid}")
async def delete_user(
    uid: str,
    current_user: User = Depends(require_admin),
    service: UserService = Depends(get_user_service),
):
    return service.delete_user(uid, current_user)


@router.get("/roles", response_model=list[RoleResponse])
async def get_roles(
    current_user: User = Depends(get_current_user),
    service: UserService = Depends(get_profile_service),
):
    return service.get_roles()
