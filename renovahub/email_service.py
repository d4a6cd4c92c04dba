"""
Email Service using Resend or SMTP
Reads the provider from the stored email settings, falls back to the
RESEND_API_KEY environment variable when nothing is stored or enabled.
"""

import logging
import smtplib
import ssl
from dataclasses import dataclass
from datetime import datetime
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Optional, Union

import resend
from cryptography.fernet import Fernet, InvalidToken
from mjml import mjml_to_html
from sqlalchemy.orm import Session

from .config import EMAIL_FROM_ADDRESS, RESEND_API_KEY, SECRET_ENCRYPTION_KEY
from .email_templates import (
    email_config_test_template,
    license_assigned_template,
    license_reminder_template,
)
from .models import EmailSettings

logger = logging.getLogger(__name__)

fernet = Fernet(SECRET_ENCRYPTION_KEY) if SECRET_ENCRYPTION_KEY else None


class EmailServiceError(Exception):
    """Raised when an email cannot be sent or no provider is configured"""


def encrypt_secret(value: str) -> str:
    """Encrypt an SMTP password / API key for storage"""
    if not fernet:
        logger.warning("SECRET_ENCRYPTION_KEY not set, storing email secret in plain text")
        return value
    return fernet.encrypt(value.encode()).decode()


def decrypt_secret(encrypted: Optional[str]) -> str:
    if not fernet or not encrypted:
        return encrypted or ""
    try:
        return fernet.decrypt(encrypted.encode()).decode()
    except InvalidToken:
        return encrypted  # Stored before encryption was configured


@dataclass
class ProviderConfig:
    """Plain-text provider credentials, never persisted"""

    provider: str = "resend"
    resend_api_key: Optional[str] = None
    host: Optional[str] = None
    port: int = 587
    secure: bool = False
    user: Optional[str] = None
    password: Optional[str] = None
    from_name: str = "RenovaHub"
    from_email: Optional[str] = None

    @property
    def from_address(self) -> str:
        if self.from_email:
            return f"{self.from_name} <{self.from_email}>"
        return EMAIL_FROM_ADDRESS


def get_email_settings(db: Session) -> Optional[EmailSettings]:
    return db.query(EmailSettings).order_by(EmailSettings.id.asc()).first()


def provider_config_from_settings(settings: Optional[EmailSettings]) -> Optional[ProviderConfig]:
    """Decrypt stored settings; None when email is disabled and no env fallback exists"""
    if settings and settings.enabled:
        return ProviderConfig(
            provider=settings.provider,
            resend_api_key=decrypt_secret(settings.resend_api_key),
            host=settings.smtp_host,
            port=settings.smtp_port or 587,
            secure=bool(settings.smtp_secure),
            user=settings.smtp_user,
            password=decrypt_secret(settings.smtp_password),
            from_name=settings.from_name or "RenovaHub",
            from_email=settings.from_email,
        )
    if RESEND_API_KEY:
        return ProviderConfig(provider="resend", resend_api_key=RESEND_API_KEY)
    return None


def compile_mjml_to_html(mjml_content: str) -> str:
    """Compile MJML template to production-ready HTML"""
    try:
        result = mjml_to_html(mjml_content)
        if isinstance(result, dict):
            if result.get("errors"):
                logger.warning(f"MJML compilation warnings: {result['errors']}")
            return result.get("html", "")
        return str(result)
    except Exception as e:
        logger.error(f"MJML compilation error: {e}")
        raise EmailServiceError(f"Failed to compile MJML template: {str(e)}") from e


def send_via_smtp(config: ProviderConfig, recipients: list[str], subject: str, html_content: str) -> dict:
    """Send email via the configured SMTP server"""
    msg = MIMEMultipart("alternative")
    msg["Subject"] = subject
    msg["From"] = config.from_address
    msg["To"] = ", ".join(recipients)
    msg.attach(MIMEText(html_content, "html"))

    try:
        if config.secure or config.port == 465:
            context = ssl.create_default_context()
            server = smtplib.SMTP_SSL(config.host, config.port, context=context, timeout=30)
        else:
            server = smtplib.SMTP(config.host, config.port, timeout=30)
            server.starttls(context=ssl.create_default_context())

        server.login(config.user, config.password)
        server.sendmail(config.from_email or config.user, recipients, msg.as_string())
        server.quit()
    except (smtplib.SMTPException, ssl.SSLError, OSError) as e:
        logger.error(f"❌ SMTP send failed via {config.host}: {e}")
        raise EmailServiceError(f"SMTP failed: {str(e)}") from e

    logger.info(f"✅ SMTP email sent successfully via {config.host}")
    return {"id": f"smtp-{datetime.utcnow().timestamp()}", "success": True}


def send_via_resend(config: ProviderConfig, recipients: list[str], subject: str, html_content: str) -> dict:
    if not config.resend_api_key:
        raise EmailServiceError("Resend API key missing")

    resend.api_key = config.resend_api_key
    try:
        response = resend.Emails.send(
            {
                "from": config.from_address,
                "to": recipients,
                "subject": subject,
                "html": html_content,
            }
        )
    except Exception as e:
        logger.error(f"❌ Email send error to {recipients}: {e}")
        raise EmailServiceError(f"Failed to send email: {str(e)}") from e

    logger.info(f"✅ Email sent successfully via Resend: {response}")
    return response


def send_email(
    to: Union[str, list[str]],
    subject: str,
    mjml_content: str,
    config: Optional[ProviderConfig],
) -> dict:
    """Send an email with the given provider configuration"""
    if config is None:
        logger.error("❌ No email service configured - email settings disabled and RESEND_API_KEY missing")
        raise EmailServiceError("Email service not configured")

    recipients = [to] if isinstance(to, str) else list(to)
    html_content = compile_mjml_to_html(mjml_content)

    logger.info(f"📧 Sending email via {config.provider} to: {recipients}")
    if config.provider == "smtp":
        return send_via_smtp(config, recipients, subject, html_content)
    return send_via_resend(config, recipients, subject, html_content)


# ============================================
# Pre-built emails
# ============================================


def send_license_reminder_email(
    config: Optional[ProviderConfig],
    to: Union[str, list[str]],
    title: str,
    body: str,
    software_name: str,
    renewal_date: str,
    urgency_level: str,
    renewal_url: Optional[str] = None,
) -> dict:
    mjml_content = license_reminder_template(
        title, body, software_name, renewal_date, urgency_level, renewal_url
    )
    return send_email(to=to, subject=title, mjml_content=mjml_content, config=config)


def send_license_assigned_email(
    config: Optional[ProviderConfig], to: str, software_name: str, renewal_date: str
) -> dict:
    mjml_content = license_assigned_template(software_name, renewal_date)
    return send_email(
        to=to,
        subject=f"Nueva Licencia Asignada: {software_name}",
        mjml_content=mjml_content,
        config=config,
    )


def send_test_email(config: ProviderConfig, to: str) -> dict:
    return send_email(
        to=to,
        subject="Prueba de Configuración Email - RenovaHub",
        mjml_content=email_config_test_template(config.provider),
        config=config,
    )
