"""Database-backed directory and ledger, FCM and email dispatchers"""

import logging
from datetime import date
from typing import Optional, Sequence

from firebase_admin import messaging
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...email_service import ProviderConfig, send_license_reminder_email
from ...models import NotificationDelivery, User
from .sweep import DeliveryEndpoints, Dispatcher, DispatchResult, NotificationEvent

logger = logging.getLogger(__name__)

# FCM multicast accepts at most 500 tokens per call
FCM_MULTICAST_LIMIT = 500


class SqlUserDirectory:
    """Resolve a responsible email to the user's push tokens (and email, when enabled)"""

    def __init__(self, db: Session, include_email: bool = False):
        self.db = db
        self.include_email = include_email

    def lookup(self, email: str) -> Optional[DeliveryEndpoints]:
        user = self.db.query(User).filter(User.email == email).first()
        if not user:
            return None
        return DeliveryEndpoints(
            email=user.email,
            push_tokens=[t.token for t in user.push_tokens],
            emails=[user.email] if self.include_email else [],
        )


def send_push(
    tokens: Sequence[str], title: str, body: str, data: Optional[dict] = None, app=None
) -> DispatchResult:
    """Multicast a push notification, chunked to the FCM limit"""
    result = DispatchResult()
    tokens = list(tokens)
    for start in range(0, len(tokens), FCM_MULTICAST_LIMIT):
        chunk = tokens[start : start + FCM_MULTICAST_LIMIT]
        message = messaging.MulticastMessage(
            notification=messaging.Notification(title=title, body=body),
            data={k: str(v) for k, v in (data or {}).items()},
            tokens=chunk,
        )
        response = messaging.send_each_for_multicast(message, app=app)
        result += DispatchResult(response.success_count, response.failure_count)
    return result


class FirebasePushDispatcher:
    def __init__(self, app=None):
        self.app = app

    def dispatch(self, event: NotificationEvent) -> DispatchResult:
        tokens = event.recipients.push_tokens
        if not tokens:
            return DispatchResult()
        result = send_push(tokens, event.title, event.body, event.data, app=self.app)
        logger.info(
            f"📱 Push for license {event.decision.license_id}: "
            f"{result.success_count} ok, {result.failure_count} failed"
        )
        return result


class EmailDispatcher:
    def __init__(self, config: Optional[ProviderConfig]):
        self.config = config

    def dispatch(self, event: NotificationEvent) -> DispatchResult:
        emails = event.recipients.emails
        if not emails or self.config is None:
            return DispatchResult()

        decision = event.decision
        try:
            send_license_reminder_email(
                self.config,
                to=emails,
                title=decision.title,
                body=decision.body,
                software_name=decision.software_name,
                renewal_date=decision.data.get("renewal_date", ""),
                urgency_level=decision.urgency_level,
                renewal_url=decision.data.get("renewal_url") or None,
            )
        except Exception as e:
            logger.error(f"❌ Reminder email failed for license {decision.license_id}: {e}")
            return DispatchResult(failure_count=len(emails))
        return DispatchResult(success_count=len(emails))


class CompositeDispatcher:
    """
    Fan one event out to several channels and add up the counts.

    A channel that raises is logged and counted as one failure; the remaining
    channels still run.
    """

    def __init__(self, dispatchers: Sequence[Dispatcher]):
        self.dispatchers = list(dispatchers)

    def dispatch(self, event: NotificationEvent) -> DispatchResult:
        total = DispatchResult()
        for dispatcher in self.dispatchers:
            try:
                total += dispatcher.dispatch(event)
            except Exception as e:
                logger.error(
                    f"❌ {type(dispatcher).__name__} failed for license {event.decision.license_id}: {e}"
                )
                total += DispatchResult(failure_count=1)
        return total


class SqlNotificationLedger:
    """Per (license, tier, day) delivery record backed by notification_deliveries"""

    def __init__(self, db: Session):
        self.db = db

    def already_sent(self, license_id: str, urgency_level: str, day: date) -> bool:
        return (
            self.db.query(NotificationDelivery.id)
            .filter(
                NotificationDelivery.license_id == license_id,
                NotificationDelivery.urgency_level == urgency_level,
                NotificationDelivery.sent_on == day,
            )
            .first()
            is not None
        )

    def record(self, license_id: str, urgency_level: str, day: date, result: DispatchResult) -> bool:
        self.db.add(
            NotificationDelivery(
                license_id=license_id,
                urgency_level=urgency_level,
                sent_on=day,
                success_count=result.success_count,
                failure_count=result.failure_count,
            )
        )
        try:
            self.db.commit()
        except IntegrityError:
            # Another sweep recorded the same reminder first
            self.db.rollback()
            return False
        return True
