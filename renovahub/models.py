import uuid

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base


def generate_id():
    """Generate an opaque identifier for license records"""
    return str(uuid.uuid4())


class Role(Base):
    __tablename__ = "roles"

    id = Column(String(10), primary_key=True)  # "01" Administrator, "02" User
    name = Column(String(100), nullable=False)

    users = relationship("User", back_populates="role")


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    firebase_uid = Column(String(255), unique=True, index=True, nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    name = Column(String(255), nullable=True)
    role_id = Column(String(10), ForeignKey("roles.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    role = relationship("Role", back_populates="users")
    push_tokens = relationship(
        "PushToken", back_populates="user", cascade="all, delete-orphan", lazy="selectin"
    )


class PushToken(Base):
    """FCM registration token for a user's browser/device"""

    __tablename__ = "push_tokens"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    token = Column(String(512), unique=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    user = relationship("User", back_populates="push_tokens")


class License(Base):
    __tablename__ = "licenses"

    id = Column(String(36), primary_key=True, default=generate_id)
    software_name = Column(String(255), nullable=False, index=True)
    renewal_date = Column(Date, nullable=False, index=True)
    amount = Column(Float, nullable=False, default=0.0)
    currency = Column(String(10), nullable=False, default="USD")
    # Joined to users.email by value, not by foreign key
    responsible_email = Column(String(255), nullable=False, index=True)
    renewal_url = Column(String(1000), nullable=True)
    status = Column(String(20), nullable=False, default="active", index=True)
    source_sheet = Column(String(255), nullable=True)  # Import batch / spreadsheet tab
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class Integration(Base):
    __tablename__ = "integrations"

    id = Column(String(50), primary_key=True)  # slack, email, trello, webhook, google_sheets
    type = Column(String(50), nullable=False)
    name = Column(String(255), nullable=False)
    enabled = Column(Boolean, default=False, nullable=False)
    # url, emailRecipient, trelloBoardId, trelloListId, spreadsheetId, messageTemplate
    config = Column(JSON, default=dict, nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class EmailSettings(Base):
    """Single-row email provider configuration"""

    __tablename__ = "email_settings"

    id = Column(Integer, primary_key=True)
    enabled = Column(Boolean, default=False, nullable=False)
    provider = Column(String(20), default="resend", nullable=False)  # resend, smtp
    resend_api_key = Column(Text, nullable=True)  # Encrypted
    smtp_host = Column(String(255), nullable=True)
    smtp_port = Column(Integer, default=587, nullable=True)
    smtp_secure = Column(Boolean, default=False, nullable=False)
    smtp_user = Column(String(255), nullable=True)
    smtp_password = Column(Text, nullable=True)  # Encrypted
    from_name = Column(String(255), default="RenovaHub", nullable=False)
    from_email = Column(String(255), nullable=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class NotificationDelivery(Base):
    """One row per (license, tier, day) reminder, so overlapping sweeps don't double-notify"""

    __tablename__ = "notification_deliveries"
    __table_args__ = (
        UniqueConstraint("license_id", "urgency_level", "sent_on", name="uq_delivery_per_day"),
    )

    id = Column(Integer, primary_key=True, index=True)
    license_id = Column(String(36), nullable=False, index=True)
    urgency_level = Column(String(20), nullable=False)
    sent_on = Column(Date, nullable=False)
    success_count = Column(Integer, default=0, nullable=False)
    failure_count = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
