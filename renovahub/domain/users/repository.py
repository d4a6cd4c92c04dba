"""User repository - Database operations for users, roles and push tokens"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import PushToken, Role, User

DEFAULT_ROLES = (("01", "Administrator"), ("02", "User"))


class UserRepository:
    """Repository for user database operations"""

    @staticmethod
    def get_users(db: Session) -> list[User]:
        return db.query(User).order_by(User.email.asc()).all()

    @staticmethod
    def get_user_by_uid(db: Session, firebase_uid: str) -> Optional[User]:
        return db.query(User).filter(User.firebase_uid == firebase_uid).first()

    @staticmethod
    def get_user_by_email(db: Session, email: str) -> Optional[User]:
        return db.query(User).filter(User.email == email).first()

    @staticmethod
    def create_user(db: Session, **user_data) -> User:
        user = User(**user_data)
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    @staticmethod
    def update_user(db: Session, user: User, **updates) -> User:
        for key, value in updates.items():
            if hasattr(user, key):
                setattr(user, key, value)
        db.commit()
        db.refresh(user)
        return user

    @staticmethod
    def delete_user(db: Session, user: User) -> None:
        db.delete(user)
        db.commit()

    # Roles
    @staticmethod
    def get_roles(db: Session) -> list[Role]:
        return db.query(Role).order_by(Role.id.asc()).all()

    @staticmethod
    def get_role(db: Session, role_id: str) -> Optional[Role]:
        return db.query(Role).filter(Role.id == role_id).first()

    @staticmethod
    def seed_default_roles(db: Session) -> int:
        """Insert the default roles that are missing; returns how many were added"""
        existing = {role_id for (role_id,) in db.query(Role.id).all()}
        added = 0
        for role_id, name in DEFAULT_ROLES:
            if role_id not in existing:
                db.add(Role(id=role_id, name=name))
                added += 1
        if added:
            db.commit()
        return added

    # Push tokens
    @staticmethod
    def get_push_token(db: Session, token: str) -> Optional[PushToken]:
        return db.query(PushToken).filter(PushToken.token == token).first()

    @staticmethod
    def add_push_token(db: Session, user: User, token: str) -> PushToken:
        push_token = PushToken(user_id=user.id, token=token)
        db.add(push_token)
        db.commit()
        db.refresh(push_token)
        return push_token

    @staticmethod
    def delete_push_token(db: Session, push_token: PushToken) -> None:
        db.delete(push_token)
        db.commit()

    @staticmethod
    def get_users_with_tokens(db: Session) -> list[User]:
        return db.query(User).join(PushToken).distinct().all()
