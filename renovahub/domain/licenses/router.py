"""License router - FastAPI endpoints for license operations"""

import logging

from fastapi import APIRouter, Depends, File, Query, UploadFile
from sqlalchemy.orm import Session

from ...auth import get_current_user, require_admin
from ...database import get_db
from ...models import User
from ...worker import enqueue_job
from .schemas import (
    BatchDeleteRequest,
    ImportResult,
    LicenseCreate,
    LicenseImportRequest,
    LicenseResponse,
    LicenseSummary,
    LicenseUpdate,
)
from .service import LicenseService, to_response

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/licenses", tags=["Licenses"])


def get_license_service(db: Session = Depends(get_db)) -> LicenseService:
    """Dependency injection for LicenseService"""
    return LicenseService(db)


# ============================================================================
# LISTINGS
# ============================================================================


@router.get("", response_model=list[LicenseResponse])
async def get_licenses(
    current_user: User = Depends(get_current_user),
    service: LicenseService = Depends(get_license_service),
):
    """All licenses by renewal date, with urgency recomputed for today"""
    return [to_response(license) for license in service.get_licenses()]


@router.get("/upcoming", response_model=list[LicenseResponse])
async def get_upcoming_licenses(
    days: int = Query(30, ge=0, le=365),
    current_user: User = Depends(get_current_user),
    service: LicenseService = Depends(get_license_service),
):
    """Dashboard list: active licenses due within `days`, expired ones included"""
    return [to_response(license) for license in service.get_upcoming(days)]


@router.get("/summary", response_model=LicenseSummary)
async def get_license_summary(
    current_user: User = Depends(get_current_user),
    service: LicenseService = Depends(get_license_service),
):
    return service.get_summary()


# ============================================================================
# IMPORT / EXPORT
# ============================================================================


@router.get("/export")
async def export_licenses_csv(
    current_user: User = Depends(get_current_user),
    service: LicenseService = Depends(get_license_service),
):
    """Export all licenses as CSV (204 when there is nothing to export)"""
    return service.export_csv()


@router.post("/import", response_model=ImportResult)
async def import_licenses(
    data: LicenseImportRequest,
    current_user: User = Depends(require_admin),
    service: LicenseService = Depends(get_license_service),
):
    """Bulk import from JSON; invalid rows are reported, valid ones saved"""
    logger.info(f"📥 JSON import of {len(data.licenses)} licenses by {current_user.email}")
    return service.import_licenses(data.licenses)


@router.post("/import/csv", response_model=ImportResult)
async def import_licenses_csv(
    file: UploadFile = File(...),
    current_user: User = Depends(require_admin),
    service: LicenseService = Depends(get_license_service),
):
    content = await file.read()
    return service.import_csv(content, filename=file.filename)


@router.post("/batch-delete")
async def batch_delete_licenses(
    data: BatchDeleteRequest,
    current_user: User = Depends(require_admin),
    service: LicenseService = Depends(get_license_service),
):
    return service.batch_delete_licenses(data.licenseIds)


# ============================================================================
# CORE CRUD OPERATIONS
# ============================================================================


@router.post("", response_model=LicenseResponse)
async def create_license(
    data: LicenseCreate,
    current_user: User = Depends(get_current_user),
    service: LicenseService = Depends(get_license_service),
):
    license = service.create_license(data)

    # The assignment email goes out from the worker; a queue outage must not fail the create
    try:
        await enqueue_job("send_license_assigned_task", license.id)
    except Exception as e:
        logger.warning(f"⚠️ Failed to queue license assigned email: {e}")

    return to_response(license)


@router.get("/{license_id}", response_model=LicenseResponse)
async def get_license(
    license_id: str,
    current_user: User = Depends(get_current_user),
    service: LicenseService = Depends(get_license_service),
):
    return to_response(service.get_license(license_id))


@router.patch("/{license_id}", response_model=LicenseResponse)
async def update_license(
    license_id: str,
    data: LicenseUpdate,
    current_user: User = Depends(get_current_user),
    service: LicenseService = Depends(get_license_service),
):
    return to_response(service.update_license(license_id, data))


@router.post("/{license_id}/renew", response_model=LicenseResponse)
async def renew_license(
    license_id: str,
    current_user: User = Depends(get_current_user),
    service: LicenseService = Depends(get_license_service),
):
    """Mark a license as renewed for another year"""
    return to_response(service.renew_license(license_id))


@router.delete("/{license_id}")
async def delete_license(
    license_id: str,
    current_user: User = Depends(get_current_user),
    service: LicenseService = Depends(get_license_service),
):
    return service.delete_license(license_id)
