"""
Renewal reminder sweep.

Evaluates reminder thresholds for a batch of licenses and delivers the ones
that fire. Storage, user directory, delivery and the optional dedup ledger
are passed in by the caller, so the same code runs from the API and from the
arq cron job.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Optional, Protocol, Sequence

from .thresholds import NotificationDecision, decide

logger = logging.getLogger(__name__)

REASON_NO_THRESHOLD = "No notification threshold reached"
REASON_INACTIVE = "License is not active"
REASON_USER_NOT_FOUND = "Responsible user not found"
REASON_NO_ENDPOINTS = "No delivery endpoints available"
REASON_ALREADY_SENT = "Already notified today"


@dataclass
class DeliveryEndpoints:
    """Where a user can be reached"""

    email: str
    push_tokens: list[str] = field(default_factory=list)
    emails: list[str] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.push_tokens and not self.emails


@dataclass
class NotificationEvent:
    """A decision bound to its recipients, ready to hand to a dispatcher"""

    decision: NotificationDecision
    recipients: DeliveryEndpoints

    @property
    def title(self) -> str:
        return self.decision.title

    @property
    def body(self) -> str:
        return self.decision.body

    @property
    def data(self) -> dict:
        return self.decision.data


@dataclass
class DispatchResult:
    success_count: int = 0
    failure_count: int = 0

    def __add__(self, other: "DispatchResult") -> "DispatchResult":
        return DispatchResult(
            self.success_count + other.success_count,
            self.failure_count + other.failure_count,
        )


@dataclass
class NotificationOutcome:
    license_id: str
    software_name: str
    days_until_renewal: Optional[int] = None
    urgency_level: Optional[str] = None
    sent: bool = False
    success_count: int = 0
    failure_count: int = 0
    reason: Optional[str] = None
    error: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "licenseId": self.license_id,
            "software_name": self.software_name,
            "daysUntilRenewal": self.days_until_renewal,
            "urgencyLevel": self.urgency_level,
            "sent": self.sent,
            "count": self.success_count,
            "failures": self.failure_count,
            "reason": self.reason,
            "error": self.error,
        }


class UserDirectory(Protocol):
    def lookup(self, email: str) -> Optional[DeliveryEndpoints]: ...


class Dispatcher(Protocol):
    def dispatch(self, event: NotificationEvent) -> DispatchResult: ...


class NotificationLedger(Protocol):
    def already_sent(self, license_id: str, urgency_level: str, day: date) -> bool: ...

    def record(
        self, license_id: str, urgency_level: str, day: date, result: DispatchResult
    ) -> bool: ...


class IntegrationFanout(Protocol):
    def publish(self, license, decision: NotificationDecision) -> int: ...


def check_license(
    license,
    today: date,
    directory: UserDirectory,
    dispatcher: Dispatcher,
    ledger: Optional[NotificationLedger] = None,
    fanout: Optional[IntegrationFanout] = None,
) -> NotificationOutcome:
    """Evaluate and deliver the expiration reminder for a single license"""
    outcome = NotificationOutcome(license_id=str(license.id), software_name=license.software_name)

    decision = decide(license, today)
    if decision is None:
        outcome.reason = REASON_INACTIVE if license.status != "active" else REASON_NO_THRESHOLD
        return outcome

    outcome.days_until_renewal = decision.days_until_renewal
    outcome.urgency_level = decision.urgency_level

    if ledger is not None and ledger.already_sent(outcome.license_id, decision.urgency_level, today):
        outcome.reason = REASON_ALREADY_SENT
        return outcome

    published = fanout.publish(license, decision) if fanout is not None else 0
    result = DispatchResult()

    try:
        recipients = directory.lookup(license.responsible_email)
        if recipients is None:
            logger.info(f"ℹ️ {REASON_USER_NOT_FOUND}: {license.responsible_email}")
            outcome.reason = REASON_USER_NOT_FOUND
        elif recipients.is_empty:
            logger.info(f"ℹ️ {REASON_NO_ENDPOINTS} for {license.responsible_email}")
            outcome.reason = REASON_NO_ENDPOINTS
        else:
            result = dispatcher.dispatch(NotificationEvent(decision=decision, recipients=recipients))
            outcome.sent = True
            outcome.success_count = result.success_count
            outcome.failure_count = result.failure_count
    finally:
        # Integrations count as delivered too, so a failed lookup or dispatch
        # never re-posts them later the same day
        if ledger is not None and (outcome.sent or published):
            if not ledger.record(outcome.license_id, decision.urgency_level, today, result):
                logger.warning(
                    f"⚠️ Concurrent sweep already recorded {decision.urgency_level} for license {outcome.license_id}"
                )

    return outcome


def sweep(
    licenses: Sequence,
    today: date,
    directory: UserDirectory,
    dispatcher: Dispatcher,
    ledger: Optional[NotificationLedger] = None,
    fanout: Optional[IntegrationFanout] = None,
) -> list[NotificationOutcome]:
    """
    Run check_license over every license, one outcome per license, in order.

    A failure on one license is recorded on its outcome and the sweep moves on.
    """
    outcomes = []
    for license in licenses:
        try:
            outcome = check_license(license, today, directory, dispatcher, ledger, fanout)
        except Exception as e:
            logger.error(f"❌ Reminder check failed for license {license.id}: {e}")
            outcome = NotificationOutcome(
                license_id=str(license.id),
                software_name=license.software_name,
                error=str(e),
            )
        outcomes.append(outcome)

    sent = sum(1 for o in outcomes if o.sent)
    logger.info(f"📊 Renewal sweep for {today.isoformat()}: {len(outcomes)} checked, {sent} sent")
    return outcomes
