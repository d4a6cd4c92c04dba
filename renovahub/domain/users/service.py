"""User service - profiles, roles, admin account management and push tokens"""

import logging
from typing import Optional

from fastapi import HTTPException
from firebase_admin import auth as firebase_auth
from firebase_admin import exceptions as firebase_exceptions
from sqlalchemy.orm import Session

from ...auth import resolve_role_name
from ...config import DEFAULT_ROLE_ID
from ...models import User
from .repository import UserRepository
from .schemas import RoleResponse, UserCreate, UserResponse

logger = logging.getLogger(__name__)


def to_user_response(user: User) -> UserResponse:
    return UserResponse(
        uid=user.firebase_uid,
        email=user.email,
        name=user.name,
        roleId=user.role_id,
        roleName=resolve_role_name(user),
        pushTokenCount=len(user.push_tokens),
        createdAt=user.created_at,
    )


class UserService:
    """Service layer for user business logic"""

    def __init__(self, db: Session, firebase_app=None):
        self.db = db
        self.firebase_app = firebase_app
        self.repo = UserRepository()

    def ensure_user_profile(
        self,
        firebase_uid: str,
        email: Optional[str],
        name: Optional[str] = None,
        role_id: str = DEFAULT_ROLE_ID,
    ) -> User:
        """
        Create the profile for a Firebase account if it does not exist yet.

        Idempotent: an existing profile is returned unchanged (its role is never
        reset). Profiles are keyed by Firebase UID only; an email already owned
        by another UID is rejected, never relinked.
        """
        user = self.repo.get_user_by_uid(self.db, firebase_uid)
        if user:
            return user

        if not email:
            raise HTTPException(status_code=400, detail="Account has no email address")
        email = email.strip().lower()

        if self.repo.get_user_by_email(self.db, email):
            logger.warning(f"⚠️ Provision rejected: {email} belongs to another account (UID {firebase_uid})")
            raise HTTPException(status_code=409, detail="Email already linked to another account")

        if not self.repo.get_role(self.db, role_id):
            raise HTTPException(status_code=400, detail=f"Unknown role: {role_id}")

        logger.info(f"🆕 Provisioning profile for {email} with role {role_id}")
        return self.repo.create_user(
            self.db, firebase_uid=firebase_uid, email=email, name=name, role_id=role_id
        )

    def get_users(self) -> list[User]:
        return self.repo.get_users(self.db)

    def get_user(self, firebase_uid: str) -> User:
        user = self.repo.get_user_by_uid(self.db, firebase_uid)
        if not user:
            raise HTTPException(status_code=404, detail="User not found")
        return user

    def get_roles(self) -> list[RoleResponse]:
        return [RoleResponse(id=r.id, name=r.name) for r in self.repo.get_roles(self.db)]

    def create_user(self, data: UserCreate) -> User:
        """Create the Firebase Auth account, then its profile"""
        role_id = data.roleId or DEFAULT_ROLE_ID
        if not self.repo.get_role(self.db, role_id):
            raise HTTPException(status_code=400, detail=f"Unknown role: {role_id}")

        try:
            record = firebase_auth.create_user(
                email=data.email,
                password=data.password,
                display_name=data.name or None,
                app=self.firebase_app,
            )
        except firebase_auth.EmailAlreadyExistsError as e:
            raise HTTPException(status_code=409, detail="Email already registered") from e
        except firebase_exceptions.FirebaseError as e:
            logger.error(f"❌ Firebase user creation failed for {data.email}: {e}")
            raise HTTPException(status_code=500, detail="Failed to create user") from e

        logger.info(f"✅ Firebase user created: {data.email} ({record.uid})")
        return self.ensure_user_profile(record.uid, data.email, data.name, role_id=role_id)

    def change_role(self, firebase_uid: str, role_id: str) -> User:
        user = self.get_user(firebase_uid)
        if not self.repo.get_role(self.db, role_id):
            raise HTTPException(status_code=400, detail=f"Unknown role: {role_id}")

        logger.info(f"🔄 Changing role of {user.email}: {user.role_id} → {role_id}")
        return self.repo.update_user(self.db, user, role_id=role_id)

    def delete_user(self, firebase_uid: str, current_user: User) -> dict:
        if firebase_uid == current_user.firebase_uid:
            raise HTTPException(status_code=400, detail="You cannot delete your own account")

        user = self.get_user(firebase_uid)
        try:
            firebase_auth.delete_user(firebase_uid, app=self.firebase_app)
        except firebase_auth.UserNotFoundError:
            logger.warning(f"⚠️ Firebase user {firebase_uid} already gone, removing profile only")
        except firebase_exceptions.FirebaseError as e:
            logger.error(f"❌ Firebase user deletion failed for {firebase_uid}: {e}")
            raise HTTPException(status_code=500, detail="Failed to delete user") from e

        self.repo.delete_user(self.db, user)
        logger.info(f"✅ User deleted: {user.email}")
        return {"message": "User deleted"}

    # Push tokens
    def register_push_token(self, user: User, token: str) -> dict:
        """Attach an FCM token to the user; a token seen on another account moves over"""
        push_token = self.repo.get_push_token(self.db, token)
        if push_token and push_token.user_id == user.id:
            return {"message": "Token already registered"}
        if push_token:
            logger.info(f"🔄 Moving push token from user {push_token.user_id} to {user.id}")
            self.repo.delete_push_token(self.db, push_token)

        self.repo.add_push_token(self.db, user, token)
        logger.info(f"📱 Push token registered for {user.email}")
        return {"message": "Token registered"}

    def remove_push_token(self, user: User, token: str) -> dict:
        push_token = self.repo.get_push_token(self.db, token)
        if not push_token or push_token.user_id != user.id:
            raise HTTPException(status_code=404, detail="Token not found")

        self.repo.delete_push_token(self.db, push_token)
        return {"message": "Token removed"}
