"""User domain schemas"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator


class UserCreate(BaseModel):
    """Admin-created account (Firebase Auth user + profile)"""

    email: str
    password: str
    name: Optional[str] = None
    roleId: Optional[str] = None

    @field_validator("email")
    @classmethod
    def validate_email(cls, v):
        v = v.strip().lower()
        if "@" not in v:
            raise ValueError("Invalid email address")
        return v

    @field_validator("password")
    @classmethod
    def validate_password(cls, v):
        if len(v) < 6:
            raise ValueError("Password must be at least 6 characters")
        return v


class RoleUpdate(BaseModel):
    roleId: str


class ProvisionRequest(BaseModel):
    name: Optional[str] = None


class PushTokenRequest(BaseModel):
    token: str

    @field_validator("token")
    @classmethod
    def validate_token(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Token cannot be empty")
        return v


class RoleResponse(BaseModel):
    id: str
    name: str


class UserResponse(BaseModel):
    uid: str
    email: str
    name: Optional[str] = None
    roleId: Optional[str] = None
    roleName: str
    pushTokenCount: int = 0
    createdAt: Optional[datetime] = None
