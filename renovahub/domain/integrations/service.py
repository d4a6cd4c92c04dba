"""
Integration settings and reminder fan-out.

Every reminder the sweep fires is also pushed to the enabled integrations
(Slack webhook, generic webhook, email recipient, Trello card). A broken
integration is logged and skipped; it never fails the sweep.
"""

import logging
import re
from typing import Any, Optional

import httpx
from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...config import TRELLO_API_KEY, TRELLO_API_TOKEN
from ...email_service import ProviderConfig, send_license_reminder_email
from ...models import Integration
from ..notifications.thresholds import NotificationDecision
from .repository import IntegrationRepository
from .schemas import IntegrationResponse, IntegrationUpdate

logger = logging.getLogger(__name__)

DEFAULT_MESSAGE_TEMPLATE = "La licencia de {{software_name}} vence el {{renewal_date}}."

DEFAULT_INTEGRATIONS = [
    {
        "id": "slack_webhook",
        "type": "slack",
        "name": "Notificaciones Slack (Webhook)",
        "config": {"url": "", "messageTemplate": DEFAULT_MESSAGE_TEMPLATE},
    },
    {
        "id": "email_notifications",
        "type": "email",
        "name": "Notificaciones por Correo Electrónico",
        "config": {"emailRecipient": "", "messageTemplate": DEFAULT_MESSAGE_TEMPLATE},
    },
    {
        "id": "trello_cards",
        "type": "trello",
        "name": "Crear Tarjetas Trello",
        "config": {
            "trelloBoardId": "",
            "trelloListId": "",
            "messageTemplate": "Renovar {{software_name}} ({{renewal_date}})",
        },
    },
    {
        "id": "custom_webhook",
        "type": "webhook",
        "name": "Webhook Personalizado",
        "config": {"url": "", "messageTemplate": DEFAULT_MESSAGE_TEMPLATE},
    },
    {
        "id": "google_sheets_sync",
        "type": "google_sheets",
        "name": "Sincronización Google Sheets",
        "config": {"spreadsheetId": "", "sheetName": "Licencias"},
    },
]

TRELLO_CARDS_URL = "https://api.trello.com/1/cards"

_TEMPLATE_VARIABLE = re.compile(r"\{\{\s*(\w+)\s*\}\}")


def render_template(template: str, values: dict[str, Any]) -> str:
    """Fill {{name}} placeholders; unknown placeholders are left as written"""

    def _replace(match):
        key = match.group(1)
        if key not in values:
            return match.group(0)
        value = values[key]
        return "" if value is None else str(value)

    return _TEMPLATE_VARIABLE.sub(_replace, template or "")


def template_values(license, decision: NotificationDecision) -> dict[str, Any]:
    return {
        "software_name": license.software_name,
        "renewal_date": decision.data.get("renewal_date", ""),
        "amount": f"{license.amount:,.2f}" if license.amount is not None else "",
        "currency": license.currency,
        "responsible_email": license.responsible_email,
        "renewal_url": license.renewal_url or "",
        "days_until_renewal": decision.days_until_renewal,
    }


def to_integration_response(integration: Integration) -> IntegrationResponse:
    return IntegrationResponse(
        id=integration.id,
        type=integration.type,
        name=integration.name,
        enabled=integration.enabled,
        config=integration.config or {},
        updatedAt=integration.updated_at,
    )


class IntegrationService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = IntegrationRepository()

    def get_integrations(self) -> list[Integration]:
        """Stored integrations, with any missing default added (disabled)"""
        existing = {i.id for i in self.repo.get_integrations(self.db)}
        missing = [
            Integration(
                id=default["id"],
                type=default["type"],
                name=default["name"],
                enabled=False,
                config=dict(default["config"]),
            )
            for default in DEFAULT_INTEGRATIONS
            if default["id"] not in existing
        ]
        if missing:
            logger.info(f"🔧 Seeding {len(missing)} default integrations")
            self.repo.add_integrations(self.db, missing)
        return self.repo.get_integrations(self.db)

    def update_integration(self, integration_id: str, data: IntegrationUpdate) -> Integration:
        integration = self.repo.get_integration(self.db, integration_id)
        if not integration:
            raise HTTPException(status_code=404, detail="Integration not found")

        updates = {}
        if data.enabled is not None:
            updates["enabled"] = data.enabled
        if data.name is not None:
            updates["name"] = data.name
        if data.config is not None or data.messageTemplate is not None:
            # Reassign a fresh dict so SQLAlchemy sees the JSON column change
            config = dict(integration.config or {})
            config.update(data.config or {})
            if data.messageTemplate is not None:
                config["messageTemplate"] = data.messageTemplate
            updates["config"] = config

        logger.info(f"🔧 Updating integration {integration_id}: {sorted(updates)}")
        return self.repo.update_integration(self.db, integration, **updates)

    def build_fanout(self, email_config: Optional[ProviderConfig] = None) -> "IntegrationFanout":
        return IntegrationFanout(self.repo.get_enabled_integrations(self.db), email_config)


class IntegrationFanout:
    """Publishes a fired reminder to every enabled integration"""

    def __init__(
        self,
        integrations: list[Integration],
        email_config: Optional[ProviderConfig] = None,
        http_client: Optional[httpx.Client] = None,
        trello_key: Optional[str] = TRELLO_API_KEY,
        trello_token: Optional[str] = TRELLO_API_TOKEN,
    ):
        self.integrations = [i for i in integrations if i.enabled]
        self.email_config = email_config
        self.http_client = http_client
        self.trello_key = trello_key
        self.trello_token = trello_token

    def publish(self, license, decision: NotificationDecision) -> int:
        """Deliver to each enabled integration; returns how many deliveries succeeded"""
        if not self.integrations:
            return 0

        values = template_values(license, decision)
        delivered = 0
        for integration in self.integrations:
            config = integration.config or {}
            message = render_template(config.get("messageTemplate", DEFAULT_MESSAGE_TEMPLATE), values)
            try:
                if self._deliver(integration, config, message, license, decision):
                    delivered += 1
            except Exception as e:
                logger.error(
                    f"❌ Integration '{integration.name}' failed for license {license.id}: {e}"
                )
        return delivered

    def _deliver(self, integration: Integration, config: dict, message: str, license, decision) -> bool:
        if integration.type == "slack":
            if not config.get("url"):
                logger.warning(f"⚠️ Slack integration '{integration.name}' has no webhook URL, skipping")
                return False
            self._post(config["url"], {"text": message})
            logger.info(f"💬 Slack reminder sent for {license.software_name}")
            return True

        if integration.type == "webhook":
            if not config.get("url"):
                logger.warning(f"⚠️ Webhook integration '{integration.name}' has no URL, skipping")
                return False
            self._post(
                config["url"],
                {
                    "event": "license_expiring",
                    "message": message,
                    "licenseId": license.id,
                    "software_name": license.software_name,
                    "renewal_date": license.renewal_date.isoformat(),
                    "amount": license.amount,
                    "currency": license.currency,
                    "responsible_email": license.responsible_email,
                    "renewal_url": license.renewal_url,
                    "urgency": decision.urgency_level,
                    "days_until_renewal": decision.days_until_renewal,
                },
            )
            logger.info(f"🔗 Webhook reminder sent for {license.software_name}")
            return True

        if integration.type == "email":
            recipient = config.get("emailRecipient")
            if not recipient:
                logger.warning(f"⚠️ Email integration '{integration.name}' has no recipient, skipping")
                return False
            if self.email_config is None:
                logger.warning(f"⚠️ Email integration '{integration.name}' enabled but no email provider configured")
                return False
            send_license_reminder_email(
                self.email_config,
                to=recipient,
                title=decision.title,
                body=message,
                software_name=license.software_name,
                renewal_date=decision.data.get("renewal_date", ""),
                urgency_level=decision.urgency_level,
                renewal_url=license.renewal_url,
            )
            logger.info(f"📧 Integration email sent to {recipient} for {license.software_name}")
            return True

        if integration.type == "trello":
            if not config.get("trelloBoardId") or not config.get("trelloListId"):
                logger.warning(f"⚠️ Trello integration '{integration.name}' is missing board/list IDs, skipping")
                return False
            if not self.trello_key or not self.trello_token:
                logger.warning("⚠️ TRELLO_API_KEY / TRELLO_API_TOKEN not configured, skipping Trello card")
                return False
            self._post(
                TRELLO_CARDS_URL,
                {"idList": config["trelloListId"], "name": message, "desc": license.renewal_url or ""},
                params={"key": self.trello_key, "token": self.trello_token},
            )
            logger.info(f"📌 Trello card created for {license.software_name}")
            return True

        if integration.type == "google_sheets":
            # Sheets sync happens through explicit import/export
            return False

        logger.warning(f"⚠️ Unknown integration type: {integration.type}, skipping")
        return False

    def _post(self, url: str, payload: dict, params: Optional[dict] = None) -> None:
        if self.http_client is not None:
            response = self.http_client.post(url, json=payload, params=params)
            response.raise_for_status()
            return

        with httpx.Client(timeout=10.0) as client:
            response = client.post(url, json=payload, params=params)
            response.raise_for_status()
