"""Email provider configuration (Resend or SMTP)"""

import logging
import re
from typing import Literal, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy.orm import Session

from ..auth import require_admin
from ..database import get_db
from ..email_service import (
    EmailServiceError,
    ProviderConfig,
    encrypt_secret,
    get_email_settings,
    send_test_email,
)
from ..models import EmailSettings, User

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/config/email", tags=["Email Configuration"])

MASKED_API_KEY = "••••••••••••••••••••••••••••••"
MASKED_PASSWORD = "••••••••"

EMAIL_REGEX = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


class EmailConfig(BaseModel):
    enabled: bool = False
    provider: Literal["resend", "smtp"] = "resend"
    resendApiKey: Optional[str] = ""
    host: Optional[str] = ""
    port: int = 587
    secure: bool = False
    user: Optional[str] = ""
    password: Optional[str] = ""
    fromName: str = "RenovaHub"
    fromEmail: Optional[str] = ""


class EmailConfigRequest(BaseModel):
    config: EmailConfig


class EmailTestRequest(BaseModel):
    config: EmailConfig
    testEmail: str


def is_masked(value: Optional[str]) -> bool:
    return bool(value) and "•" in value


def validate_email_config(config: EmailConfig) -> None:
    """Required fields when the service is enabled"""
    if not config.enabled:
        return

    if not config.fromEmail:
        raise HTTPException(status_code=400, detail="fromEmail is required when email service is enabled")
    if not EMAIL_REGEX.match(config.fromEmail):
        raise HTTPException(status_code=400, detail="Invalid fromEmail format")

    if config.provider == "resend" and not config.resendApiKey:
        raise HTTPException(status_code=400, detail="Resend API Key is required when using Resend")
    if config.provider == "smtp" and not (config.host and config.user and config.password):
        raise HTTPException(
            status_code=400, detail="Host, user, and password are required when using SMTP"
        )


def masked_config(settings: Optional[EmailSettings]) -> EmailConfig:
    if settings is None:
        return EmailConfig()
    return EmailConfig(
        enabled=settings.enabled,
        provider=settings.provider,
        resendApiKey=MASKED_API_KEY if settings.resend_api_key else "",
        host=settings.smtp_host or "",
        port=settings.smtp_port or 587,
        secure=settings.smtp_secure,
        user=settings.smtp_user or "",
        password=MASKED_PASSWORD if settings.smtp_password else "",
        fromName=settings.from_name or "RenovaHub",
        fromEmail=settings.from_email or "",
    )


@router.get("")
async def get_email_config(
    current_user: User = Depends(require_admin), db: Session = Depends(get_db)
):
    """Stored configuration with secrets masked"""
    return {"config": masked_config(get_email_settings(db))}


@router.post("")
async def save_email_config(
    data: EmailConfigRequest,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    config = data.config
    validate_email_config(config)

    settings = get_email_settings(db)
    if settings is None:
        settings = EmailSettings()
        db.add(settings)

    # Masked values mean "unchanged": keep the stored (encrypted) secret
    if config.resendApiKey != MASKED_API_KEY:
        settings.resend_api_key = encrypt_secret(config.resendApiKey) if config.resendApiKey else None
    if config.password != MASKED_PASSWORD:
        settings.smtp_password = encrypt_secret(config.password) if config.password else None

    settings.enabled = config.enabled
    settings.provider = config.provider
    settings.smtp_host = config.host or None
    settings.smtp_port = config.port
    settings.smtp_secure = config.secure
    settings.smtp_user = config.user or None
    settings.from_name = config.fromName or "RenovaHub"
    settings.from_email = config.fromEmail or None

    db.commit()
    logger.info(f"✅ Email configuration saved by {current_user.email} (provider={config.provider}, enabled={config.enabled})")
    return {"message": "Email configuration saved successfully", "success": True}


@router.post("/test")
async def test_email_config(
    data: EmailTestRequest,
    current_user: User = Depends(require_admin),
):
    """Send a test email with the submitted (unsaved) configuration"""
    config = data.config

    if config.provider == "resend" and (not config.resendApiKey or is_masked(config.resendApiKey)):
        raise HTTPException(
            status_code=400,
            detail="Please provide a valid Resend API key. The masked key cannot be used.",
        )
    if config.provider == "smtp" and (not config.password or is_masked(config.password)):
        raise HTTPException(
            status_code=400,
            detail="Please provide a valid SMTP password. The masked password cannot be used.",
        )
    if not EMAIL_REGEX.match(data.testEmail):
        raise HTTPException(status_code=400, detail="Invalid test email format")
    if not config.fromEmail:
        raise HTTPException(status_code=400, detail="fromEmail is required")

    provider_config = ProviderConfig(
        provider=config.provider,
        resend_api_key=config.resendApiKey,
        host=config.host,
        port=config.port,
        secure=config.secure,
        user=config.user,
        password=config.password,
        from_name=config.fromName,
        from_email=config.fromEmail,
    )

    try:
        result = send_test_email(provider_config, data.testEmail)
    except EmailServiceError as e:
        logger.error(f"❌ Test email failed: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to send test email: {e}") from e

    logger.info(f"✅ Test email sent to {data.testEmail} via {config.provider}")
    return {"message": "Test email sent successfully", "success": True, "result": result}
