"""License service - Business logic for license operations"""

import csv
import logging
from datetime import date
from io import StringIO
from typing import Optional

from dateutil.relativedelta import relativedelta
from fastapi import HTTPException, Response
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from ...models import License
from .importer import EXPORT_HEADERS, license_export_row, normalize_row, read_csv_rows
from .repository import LicenseRepository
from .schemas import LicenseCreate, LicenseResponse, LicenseSummary, LicenseUpdate
from .urgency import URGENCY_STATUSES, classify, days_until_renewal, urgency_label

logger = logging.getLogger(__name__)

# LicenseUpdate field -> License column
FIELD_MAP = {
    "softwareName": "software_name",
    "renewalDate": "renewal_date",
    "amount": "amount",
    "currency": "currency",
    "responsibleEmail": "responsible_email",
    "renewalUrl": "renewal_url",
    "status": "status",
    "sourceSheet": "source_sheet",
}

# Optional columns a PATCH with null clears
NULLABLE_FIELDS = {"renewalUrl", "sourceSheet"}


def to_response(license: License, today: Optional[date] = None) -> LicenseResponse:
    """Serialize a license with urgency recomputed for today"""
    today = today or date.today()
    urgency = classify(license.renewal_date, today)
    return LicenseResponse(
        id=license.id,
        softwareName=license.software_name,
        renewalDate=license.renewal_date,
        amount=license.amount,
        currency=license.currency,
        responsibleEmail=license.responsible_email,
        renewalUrl=license.renewal_url,
        status=license.status,
        sourceSheet=license.source_sheet,
        urgency=urgency,
        urgencyLabel=urgency_label(urgency),
        daysUntilRenewal=days_until_renewal(license.renewal_date, today),
        createdAt=license.created_at,
        updatedAt=license.updated_at,
    )


class LicenseService:
    """Service layer for license business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = LicenseRepository()

    def get_licenses(self) -> list[License]:
        return self.repo.get_licenses(self.db)

    def get_license(self, license_id: str) -> License:
        license = self.repo.get_license_by_id(self.db, license_id)
        if not license:
            raise HTTPException(status_code=404, detail="License not found")
        return license

    def create_license(self, data: LicenseCreate) -> License:
        logger.info(f"📥 Creating license {data.softwareName} for {data.responsibleEmail}")
        return self.repo.create_license(
            self.db,
            software_name=data.softwareName,
            renewal_date=data.renewalDate,
            amount=data.amount,
            currency=data.currency,
            responsible_email=data.responsibleEmail,
            renewal_url=data.renewalUrl,
            status=data.status,
            source_sheet=data.sourceSheet,
        )

    def update_license(self, license_id: str, data: LicenseUpdate) -> License:
        license = self.get_license(license_id)
        updates = {
            FIELD_MAP[field]: value
            for field, value in data.model_dump(exclude_unset=True).items()
            if value is not None or field in NULLABLE_FIELDS
        }
        return self.repo.update_license(self.db, license, **updates)

    def renew_license(self, license_id: str) -> License:
        """Mark as renewed: push the renewal date one year out and reactivate"""
        license = self.get_license(license_id)
        # relativedelta clamps Feb 29 to Feb 28 in non-leap years
        new_date = license.renewal_date + relativedelta(years=1)
        logger.info(
            f"🔄 Renewing license {license.id} ({license.software_name}): "
            f"{license.renewal_date.isoformat()} → {new_date.isoformat()}"
        )
        return self.repo.update_license(self.db, license, renewal_date=new_date, status="active")

    def delete_license(self, license_id: str) -> dict:
        license = self.get_license(license_id)
        self.repo.delete_license(self.db, license)
        return {"message": "License deleted"}

    def batch_delete_licenses(self, license_ids: list[str]) -> dict:
        if not license_ids:
            raise HTTPException(status_code=400, detail="No license IDs provided")

        deleted_count = self.repo.batch_delete_licenses(self.db, license_ids)
        return {
            "message": f"Successfully deleted {deleted_count} license(s)",
            "deletedCount": deleted_count,
        }

    def get_upcoming(self, days: int = 30, today: Optional[date] = None) -> list[License]:
        """Active licenses due within `days` (expired ones included), soonest first"""
        today = today or date.today()
        return self.repo.get_due_licenses(self.db, today, days)

    def get_summary(self, today: Optional[date] = None) -> LicenseSummary:
        today = today or date.today()
        licenses = self.repo.get_licenses(self.db)

        by_urgency = {status: 0 for status in URGENCY_STATUSES}
        active = 0
        for license in licenses:
            if license.status != "active":
                continue
            active += 1
            by_urgency[classify(license.renewal_date, today)] += 1

        return LicenseSummary(
            total=len(licenses),
            active=active,
            byUrgency=by_urgency,
            amountByCurrency=self.repo.amount_by_currency(self.db),
        )

    # Import / Export
    def import_rows(self, rows: list[dict], source_sheet: Optional[str] = None) -> dict:
        """Validate rows one at a time and insert the valid ones in a single commit"""
        valid_rows = []
        errors = []
        for raw in rows:
            values, error = normalize_row(raw, source_sheet=source_sheet)
            if error:
                errors.append(error)
                continue
            valid_rows.append(values)

        if valid_rows:
            self.repo.bulk_create_licenses(self.db, valid_rows)

        logger.info(f"✅ License import: {len(valid_rows)} imported, {len(errors)} rejected")
        return {
            "message": "Licenses imported successfully",
            "successCount": len(valid_rows),
            "errorCount": len(errors),
            "errors": errors,
        }

    def import_licenses(self, rows: list[dict]) -> dict:
        if not rows:
            raise HTTPException(status_code=400, detail="No licenses data provided")
        return self.import_rows(rows)

    def import_csv(self, content: bytes, filename: Optional[str] = None) -> dict:
        try:
            text = content.decode("utf-8")
        except UnicodeDecodeError:
            text = content.decode("latin-1")

        rows = read_csv_rows(text)
        if not rows:
            raise HTTPException(status_code=400, detail="The CSV file has no license rows")

        logger.info(f"📊 CSV import of {len(rows)} rows from {filename or 'upload'}")
        return self.import_rows(rows, source_sheet=filename)

    def export_csv(self, today: Optional[date] = None) -> Response:
        licenses = self.repo.get_licenses_by_name(self.db)
        if not licenses:
            return Response(status_code=204)

        output = StringIO()
        writer = csv.writer(output)
        writer.writerow(EXPORT_HEADERS)
        for license in licenses:
            writer.writerow(license_export_row(license))

        output.seek(0)
        filename = f"renovahub_licenses_{(today or date.today()).isoformat()}.csv"
        logger.info(f"✅ CSV export successful: {filename} ({len(licenses)} licenses)")

        return StreamingResponse(
            iter([output.getvalue()]),
            media_type="text/csv",
            headers={
                "Content-Disposition": f'attachment; filename="{filename}"',
                "Cache-Control": "no-cache",
            },
        )
