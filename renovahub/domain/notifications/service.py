"""Notification service - event pushes, manual/scheduled expiration checks and stats"""

import logging
from datetime import date, datetime, timezone
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...config import NOTIFICATION_HORIZON_DAYS, SWEEP_MAX_LICENSES
from ...email_service import ProviderConfig, get_email_settings, provider_config_from_settings
from ...models import License, User
from ..integrations.service import IntegrationService
from ..licenses.repository import LicenseRepository, SqlLicenseStore
from ..users.repository import UserRepository
from .channels import (
    CompositeDispatcher,
    EmailDispatcher,
    FirebasePushDispatcher,
    SqlNotificationLedger,
    SqlUserDirectory,
    send_push,
)
from .sweep import NotificationOutcome, check_license, sweep
from .thresholds import REMINDER_DAYS, format_renewal_date

logger = logging.getLogger(__name__)

TEST_TITLE = "🧪 Notificación de Prueba - RenovaHub"
TEST_BODY = "Esta es una notificación de prueba del sistema. ¡Todo funciona correctamente!"

_EVENT_MESSAGES = {
    "license_created": (
        "🆕 Nueva Licencia Asignada",
        "Se te ha asignado la licencia de {software_name}. Vence el {renewal_date}.",
        "license_assigned",
        "License creation notification sent",
    ),
    "license_updated": (
        "📝 Licencia Actualizada",
        "La licencia de {software_name} ha sido actualizada. Nueva fecha de vencimiento: {renewal_date}.",
        "license_updated",
        "License update notification sent",
    ),
}


class NotificationService:
    """
    Service layer for notifications.

    `firebase_app` is None when Firebase is not configured; pushes are then
    skipped and only email/integrations deliver.
    """

    def __init__(self, db: Session, firebase_app=None):
        self.db = db
        self.firebase_app = firebase_app
        self.license_repo = LicenseRepository()
        self.user_repo = UserRepository()

    def _email_config(self) -> Optional[ProviderConfig]:
        return provider_config_from_settings(get_email_settings(self.db))

    def _build_collaborators(self):
        email_config = self._email_config()
        dispatchers = [EmailDispatcher(email_config)]
        if self.firebase_app is not None:
            dispatchers.insert(0, FirebasePushDispatcher(self.firebase_app))

        directory = SqlUserDirectory(self.db, include_email=email_config is not None)
        dispatcher = CompositeDispatcher(dispatchers)
        ledger = SqlNotificationLedger(self.db)
        fanout = IntegrationService(self.db).build_fanout(email_config)
        return directory, dispatcher, ledger, fanout

    def _push(self, tokens: list[str], title: str, body: str, data: dict):
        if self.firebase_app is None:
            logger.warning("⚠️ Firebase not configured, push notification skipped")
            raise HTTPException(status_code=503, detail="Push notifications are not configured")
        return send_push(tokens, title, body, data, app=self.firebase_app)

    # ------------------------------------------------------------------
    # Expiration checks
    # ------------------------------------------------------------------

    def check_license_expiration(self, license: License, today: Optional[date] = None) -> NotificationOutcome:
        directory, dispatcher, ledger, fanout = self._build_collaborators()
        return check_license(license, today or date.today(), directory, dispatcher, ledger, fanout)

    def run_license_check(self, today: Optional[date] = None) -> dict:
        """Sweep the licenses a reminder can fire for today (reminder days and past due)"""
        today = today or date.today()
        store = SqlLicenseStore(self.db, limit=SWEEP_MAX_LICENSES, reminder_days=REMINDER_DAYS)
        licenses = store.fetch_due(
            today, NOTIFICATION_HORIZON_DAYS
        )
        directory, dispatcher, ledger, fanout = self._build_collaborators()
        outcomes = sweep(licenses, today, directory, dispatcher, ledger, fanout)

        return {
            "message": "License check completed",
            "totalLicensesChecked": len(licenses),
            "totalNotificationsSent": sum(o.success_count for o in outcomes if o.sent),
            "results": [o.to_dict() for o in outcomes],
        }

    # ------------------------------------------------------------------
    # Event pushes
    # ------------------------------------------------------------------

    def notify_license_event(self, event: str, license_id: Optional[str], today: Optional[date] = None) -> dict:
        """Push a created/updated notice to the responsible user, then run its expiration check"""
        if not license_id:
            raise HTTPException(status_code=400, detail="licenseId is required")

        license = self.license_repo.get_license_by_id(self.db, license_id)
        if not license:
            raise HTTPException(status_code=404, detail="License not found")

        user = self.user_repo.get_user_by_email(self.db, license.responsible_email)
        if not user:
            raise HTTPException(status_code=404, detail="Responsible user not found")

        title, body_template, data_type, message = _EVENT_MESSAGES[event]
        expiration = self.check_license_expiration(license, today)

        tokens = [t.token for t in user.push_tokens]
        if not tokens:
            return {
                "message": "No FCM tokens available for user",
                "expirationCheck": expiration.to_dict(),
            }

        body = body_template.format(
            software_name=license.software_name,
            renewal_date=format_renewal_date(license.renewal_date),
        )
        result = self._push(
            tokens,
            title,
            body,
            {"type": data_type, "licenseId": license.id, "software_name": license.software_name},
        )
        logger.info(f"📱 {event} push for {license.software_name} to {user.email}: {result.success_count} ok")

        return {
            "message": message,
            "successCount": result.success_count,
            "failureCount": result.failure_count,
            "expirationCheck": expiration.to_dict(),
        }

    def send_test_notification(self, user_uid: Optional[str] = None, message: Optional[str] = None) -> dict:
        """Test push to one user (by Firebase UID) or to every user with tokens"""
        if user_uid:
            user = self.user_repo.get_user_by_uid(self.db, user_uid)
            if not user:
                raise HTTPException(status_code=404, detail="User not found")
            users = [user]
        else:
            users = self.user_repo.get_users_with_tokens(self.db)

        tokens = [t.token for u in users for t in u.push_tokens]
        if not tokens:
            return {"message": "No FCM tokens available"}

        result = self._push(
            tokens,
            TEST_TITLE,
            message or TEST_BODY,
            {"type": "test_notification", "timestamp": datetime.now(timezone.utc).isoformat()},
        )
        return {
            "message": "Test notification sent",
            "successCount": result.success_count,
            "failureCount": result.failure_count,
            "totalTokens": len(tokens),
        }

    def get_stats(self, today: Optional[date] = None) -> dict:
        today = today or date.today()
        users: list[User] = self.user_repo.get_users(self.db)

        tokens_by_user = {u.email: len(u.push_tokens) for u in users if u.push_tokens}
        total_tokens = sum(tokens_by_user.values())

        total_licenses = self.license_repo.count_active(self.db)
        expiring = self.license_repo.count_due(self.db, today, NOTIFICATION_HORIZON_DAYS)

        return {
            "fcmStats": {
                "totalTokens": total_tokens,
                "usersWithTokens": len(tokens_by_user),
                "totalUsers": len(users),
                "tokensByUser": tokens_by_user,
            },
            "licenseStats": {
                "totalLicenses": total_licenses,
                "expiringLicenses": expiring,
                "healthyLicenses": total_licenses - expiring,
            },
            "lastUpdated": datetime.now(timezone.utc).isoformat(),
        }


def run_license_sweep(db: Session, firebase_app=None, today: Optional[date] = None) -> dict:
    """Entry point shared by the API and the scheduled worker"""
    return NotificationService(db, firebase_app).run_license_check(today)
