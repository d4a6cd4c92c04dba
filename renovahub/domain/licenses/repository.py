"""License repository - Database operations for licenses"""

import logging
from datetime import date, timedelta
from typing import Optional, Sequence

from sqlalchemy import func
from sqlalchemy.orm import Session

from ...models import License

logger = logging.getLogger(__name__)


class LicenseRepository:
    """Repository for license database operations"""

    @staticmethod
    def get_licenses(db: Session) -> list[License]:
        """All licenses, by renewal date then source sheet"""
        return (
            db.query(License)
            .order_by(License.renewal_date.asc(), License.source_sheet.asc(), License.software_name.asc())
            .all()
        )

    @staticmethod
    def get_licenses_by_name(db: Session) -> list[License]:
        """All licenses ordered by software name (export order)"""
        return db.query(License).order_by(License.software_name.asc()).all()

    @staticmethod
    def get_license_by_id(db: Session, license_id: str) -> Optional[License]:
        return db.query(License).filter(License.id == license_id).first()

    @staticmethod
    def create_license(db: Session, **license_data) -> License:
        license = License(**license_data)
        db.add(license)
        db.commit()
        db.refresh(license)
        return license

    @staticmethod
    def bulk_create_licenses(db: Session, rows: list[dict]) -> int:
        """Insert all rows in one transaction"""
        db.add_all([License(**row) for row in rows])
        db.commit()
        return len(rows)

    @staticmethod
    def update_license(db: Session, license: License, **updates) -> License:
        for key, value in updates.items():
            if hasattr(license, key):
                setattr(license, key, value)

        db.commit()
        db.refresh(license)
        return license

    @staticmethod
    def delete_license(db: Session, license: License) -> None:
        db.delete(license)
        db.commit()

    @staticmethod
    def batch_delete_licenses(db: Session, license_ids: list[str]) -> int:
        deleted_count = (
            db.query(License)
            .filter(License.id.in_(license_ids))
            .delete(synchronize_session=False)
        )
        db.commit()
        return deleted_count

    @staticmethod
    def get_due_licenses(db: Session, today: date, horizon_days: int) -> list[License]:
        """Active licenses renewing on or before today + horizon (past-due included)"""
        return (
            db.query(License)
            .filter(
                License.status == "active",
                License.renewal_date <= today + timedelta(days=horizon_days),
            )
            .order_by(License.renewal_date.asc())
            .all()
        )

    @staticmethod
    def get_licenses_renewing_on(db: Session, renewal_dates: list[date]) -> list[License]:
        """Active licenses whose renewal date is one of the given days"""
        if not renewal_dates:
            return []
        return (
            db.query(License)
            .filter(License.status == "active", License.renewal_date.in_(renewal_dates))
            .order_by(License.renewal_date.asc())
            .all()
        )

    @staticmethod
    def get_past_due_licenses(db: Session, today: date, limit: Optional[int] = None) -> list[License]:
        """Active licenses due today or earlier, most recently due first"""
        query = (
            db.query(License)
            .filter(License.status == "active", License.renewal_date <= today)
            .order_by(License.renewal_date.desc())
        )
        if limit:
            query = query.limit(limit)
        return query.all()

    @staticmethod
    def count_active(db: Session) -> int:
        return db.query(func.count(License.id)).filter(License.status == "active").scalar()

    @staticmethod
    def count_due(db: Session, today: date, horizon_days: int) -> int:
        return (
            db.query(func.count(License.id))
            .filter(
                License.status == "active",
                License.renewal_date <= today + timedelta(days=horizon_days),
            )
            .scalar()
        )

    @staticmethod
    def amount_by_currency(db: Session) -> dict[str, float]:
        rows = (
            db.query(License.currency, func.sum(License.amount))
            .filter(License.status == "active")
            .group_by(License.currency)
            .all()
        )
        return {currency: float(total or 0) for currency, total in rows}


class SqlLicenseStore:
    """
    License query capability handed to the reminder sweep.

    Licenses sitting exactly on a reminder day are always returned, since that
    reminder only fires once. `limit` bounds the past-due licenses only, which
    re-fire every day; the most recently due are kept when it truncates.
    """

    def __init__(self, db: Session, limit: Optional[int] = None, reminder_days: Sequence[int] = ()):
        self.db = db
        self.limit = limit
        self.reminder_days = tuple(reminder_days)

    def fetch_due(self, today: date, horizon_days: int = 30) -> list[License]:
        reminder_dates = [
            today + timedelta(days=days) for days in self.reminder_days if 0 < days <= horizon_days
        ]
        on_reminder_day = LicenseRepository.get_licenses_renewing_on(self.db, reminder_dates)

        past_due = LicenseRepository.get_past_due_licenses(
            self.db, today, self.limit + 1 if self.limit else None
        )
        if self.limit and len(past_due) > self.limit:
            logger.warning(
                f"⚠️ More than {self.limit} past-due licenses, only the {self.limit} most recently due are checked"
            )
            past_due = past_due[: self.limit]

        return list(reversed(past_due)) + on_reminder_day
