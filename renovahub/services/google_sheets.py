"""
Google Sheets import / export for licenses.

Uses the Firebase service account (FIREBASE_CLIENT_EMAIL / FIREBASE_PRIVATE_KEY),
so the spreadsheet must be shared with that account.
"""

import logging
from typing import Optional

from fastapi import HTTPException
from google.oauth2 import service_account
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError
from sqlalchemy.orm import Session

from ..config import (
    FIREBASE_CLIENT_EMAIL,
    FIREBASE_PRIVATE_KEY,
    FIREBASE_PROJECT_ID,
    GOOGLE_SHEETS_SCOPES,
)
from ..domain.licenses.importer import (
    EXPORT_HEADERS,
    license_export_row,
    normalize_row,
    sheet_row_to_dict,
)
from ..domain.licenses.repository import LicenseRepository

logger = logging.getLogger(__name__)


def get_sheets_client():
    """Sheets v4 client authorized with the service account"""
    if not FIREBASE_CLIENT_EMAIL or not FIREBASE_PRIVATE_KEY:
        logger.error("❌ Google Sheets requires FIREBASE_CLIENT_EMAIL and FIREBASE_PRIVATE_KEY")
        raise HTTPException(status_code=500, detail="Google Sheets credentials not configured")

    credentials = service_account.Credentials.from_service_account_info(
        {
            "type": "service_account",
            "project_id": FIREBASE_PROJECT_ID,
            "client_email": FIREBASE_CLIENT_EMAIL,
            "private_key": FIREBASE_PRIVATE_KEY,
            "token_uri": "https://oauth2.googleapis.com/token",
        },
        scopes=GOOGLE_SHEETS_SCOPES,
    )
    return build("sheets", "v4", credentials=credentials, cache_discovery=False)


class GoogleSheetsService:
    def __init__(self, db: Session, sheets_client):
        self.db = db
        self.sheets = sheets_client
        self.repo = LicenseRepository()

    def _sheet_names(self, spreadsheet_id: str) -> list[str]:
        metadata = self.sheets.spreadsheets().get(spreadsheetId=spreadsheet_id).execute()
        return [
            sheet["properties"]["title"]
            for sheet in metadata.get("sheets", [])
            if sheet.get("properties", {}).get("title")
        ]

    def import_spreadsheet(self, spreadsheet_id: str) -> dict:
        """
        Import every tab of a spreadsheet.

        Rows are read by column position after the header row; each license is
        tagged with the tab it came from. Valid rows from all tabs are saved
        in one commit.
        """
        try:
            sheet_names = self._sheet_names(spreadsheet_id)
        except HttpError as e:
            logger.error(f"❌ Failed to read spreadsheet {spreadsheet_id}: {e}")
            raise HTTPException(status_code=400, detail="Could not read the spreadsheet") from e

        if not sheet_names:
            return {"message": "No sheets found in the specified spreadsheet"}

        valid_rows = []
        errors = []
        imported_sheets = []

        for sheet_name in sheet_names:
            try:
                response = (
                    self.sheets.spreadsheets()
                    .values()
                    .get(spreadsheetId=spreadsheet_id, range=f"{sheet_name}!A:Z")
                    .execute()
                )
            except HttpError as e:
                logger.error(f"❌ Failed to read sheet {sheet_name}: {e}")
                errors.append(f"Failed to read sheet {sheet_name}")
                continue

            rows = response.get("values", [])
            if len(rows) <= 1:
                logger.info(f"No data found in sheet: {sheet_name}")
                continue

            sheet_count = 0
            # Row numbers are 1-based and the header occupies row 1
            for row_number, row in enumerate(rows[1:], start=2):
                values, error = normalize_row(sheet_row_to_dict(row), source_sheet=sheet_name)
                if error:
                    errors.append(f"Sheet {sheet_name}, row {row_number}: {error}")
                    continue
                valid_rows.append(values)
                sheet_count += 1

            if sheet_count:
                imported_sheets.append(sheet_name)

        if valid_rows:
            self.repo.bulk_create_licenses(self.db, valid_rows)

        logger.info(
            f"✅ Google Sheets import: {len(valid_rows)} licenses from {len(imported_sheets)} sheets, "
            f"{len(errors)} errors"
        )
        return {
            "message": "Licenses imported successfully from all sheets",
            "totalSuccessCount": len(valid_rows),
            "totalErrorCount": len(errors),
            "importedSheets": imported_sheets,
            "errors": errors,
        }

    def export_licenses(self, spreadsheet_id: str, sheet_name: Optional[str] = None) -> dict:
        """Write the header and every license to the sheet, starting at A1"""
        sheet_name = sheet_name or "Licencias"
        licenses = self.repo.get_licenses_by_name(self.db)
        if not licenses:
            logger.info(f"No licenses to export to {spreadsheet_id}")
            return {"message": "No licenses to export", "exportedCount": 0}

        values = [EXPORT_HEADERS] + [license_export_row(license) for license in licenses]

        try:
            result = (
                self.sheets.spreadsheets()
                .values()
                .update(
                    spreadsheetId=spreadsheet_id,
                    range=f"{sheet_name}!A1",
                    valueInputOption="RAW",
                    body={"values": values},
                )
                .execute()
            )
        except HttpError as e:
            logger.error(f"❌ Failed to export to spreadsheet {spreadsheet_id}: {e}")
            raise HTTPException(status_code=400, detail="Could not write to the spreadsheet") from e

        logger.info(f"✅ Exported {len(licenses)} licenses to {spreadsheet_id}/{sheet_name}")
        return {
            "message": "Licenses exported successfully",
            "exportedCount": len(licenses),
            "updatedRange": result.get("updatedRange"),
        }
