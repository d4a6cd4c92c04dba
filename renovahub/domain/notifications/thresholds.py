"""
Expiration reminder thresholds.

A license is reminded on exact day counts (30, 15, 7 and 1 days before
renewal), and on every check once it is due or past due. Shared by the
manual /notifications/send check and the scheduled worker sweep.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Optional

from ..licenses.urgency import days_until_renewal

INFO = "info"
WARNING = "warning"
URGENT = "urgent"
CRITICAL = "critical"
EXPIRED = "expired"

# Exact day count -> severity, checked in this order
EXACT_THRESHOLDS = (
    (30, INFO),
    (15, WARNING),
    (7, URGENT),
    (1, CRITICAL),
)

REMINDER_DAYS = tuple(days for days, _ in EXACT_THRESHOLDS)

_TEMPLATES = {
    INFO: (
        "📅 Licencia por Vencer en 30 días",
        "La licencia de {software_name} vence el {renewal_date}. Planifica su renovación.",
    ),
    WARNING: (
        "⚠️ Licencia por Vencer en 15 días",
        "La licencia de {software_name} vence el {renewal_date}. Es momento de renovar.",
    ),
    URGENT: (
        "🚨 Licencia por Vencer en 7 días",
        "¡URGENTE! La licencia de {software_name} vence el {renewal_date}.",
    ),
    CRITICAL: (
        "🔥 Licencia Vence Mañana",
        "¡CRÍTICO! La licencia de {software_name} vence MAÑANA ({renewal_date}).",
    ),
    EXPIRED: (
        "💀 Licencia Vencida",
        "La licencia de {software_name} ha VENCIDO. "
        "Renueva inmediatamente para evitar interrupciones.",
    ),
}


@dataclass(frozen=True)
class NotificationDecision:
    """A reminder that should fire now for one license"""

    license_id: str
    software_name: str
    urgency_level: str
    days_until_renewal: int
    title: str
    body: str
    data: dict = field(default_factory=dict)


def format_renewal_date(value: date) -> str:
    return value.strftime("%d/%m/%Y")


def severity_for(days: int) -> Optional[str]:
    """Severity tier for a signed day count, or None when no reminder is due"""
    for threshold, severity in EXACT_THRESHOLDS:
        if days == threshold:
            return severity
    if days <= 0:
        return EXPIRED
    return None


def decide(license, today: date) -> Optional[NotificationDecision]:
    """Decide whether an expiration reminder fires today for a license"""
    if license.status != "active":
        return None

    days = days_until_renewal(license.renewal_date, today)
    severity = severity_for(days)
    if severity is None:
        return None

    title, body_template = _TEMPLATES[severity]
    body = body_template.format(
        software_name=license.software_name,
        renewal_date=format_renewal_date(license.renewal_date),
    )

    return NotificationDecision(
        license_id=str(license.id),
        software_name=license.software_name,
        urgency_level=severity,
        days_until_renewal=days,
        title=title,
        body=body,
        data={
            "type": "license_expiring",
            "licenseId": str(license.id),
            "software_name": license.software_name,
            "urgency": severity,
            "renewal_date": format_renewal_date(license.renewal_date),
            "renewal_url": license.renewal_url or "",
            "days_until_renewal": str(days),
        },
    )
