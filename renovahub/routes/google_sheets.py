import logging
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, field_validator
from sqlalchemy.orm import Session

from ..auth import require_admin
from ..database import get_db
from ..models import User
from ..services.google_sheets import GoogleSheetsService, get_sheets_client

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/google-sheets", tags=["Google Sheets"])


class SheetsImportRequest(BaseModel):
    spreadsheetId: str

    @field_validator("spreadsheetId")
    @classmethod
    def validate_spreadsheet_id(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Spreadsheet ID is required")
        return v


class SheetsExportRequest(SheetsImportRequest):
    sheetName: Optional[str] = None


def get_sheets_service(
    db: Session = Depends(get_db), sheets_client=Depends(get_sheets_client)
) -> GoogleSheetsService:
    return GoogleSheetsService(db, sheets_client)


@router.post("/import")
async def import_from_google_sheets(
    data: SheetsImportRequest,
    current_user: User = Depends(require_admin),
    service: GoogleSheetsService = Depends(get_sheets_service),
):
    logger.info(f"📊 Google Sheets import of {data.spreadsheetId} by {current_user.email}")
    return service.import_spreadsheet(data.spreadsheetId)


@router.post("/export")
async def export_to_google_sheets(
    data: SheetsExportRequest,
    current_user: User = Depends(require_admin),
    service: GoogleSheetsService = Depends(get_sheets_service),
):
    return service.export_licenses(data.spreadsheetId, data.sheetName)
