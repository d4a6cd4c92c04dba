"""Notification router"""

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ...auth import get_current_user, require_admin, resolve_role_name
from ...config import ADMIN_ROLE_NAME
from ...database import get_db
from ...firebase import get_firebase_app_or_none
from ...models import User
from .schemas import NotificationRequest
from .service import NotificationService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/notifications", tags=["Notifications"])

# Broadcast-style requests are restricted to administrators
ADMIN_NOTIFICATION_TYPES = {"license_check", "test_notification"}


def get_notification_service(
    db: Session = Depends(get_db), firebase_app=Depends(get_firebase_app_or_none)
) -> NotificationService:
    """Dependency injection for NotificationService"""
    return NotificationService(db, firebase_app=firebase_app)


@router.post("/send")
async def send_notification(
    data: NotificationRequest,
    current_user: User = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service),
):
    if data.type in ADMIN_NOTIFICATION_TYPES and resolve_role_name(current_user) != ADMIN_ROLE_NAME:
        raise HTTPException(status_code=403, detail="Administrator role required")

    logger.info(f"🔔 Notification request '{data.type}' from {current_user.email}")

    if data.type == "license_check":
        return service.run_license_check()
    if data.type == "test_notification":
        return service.send_test_notification(data.userId, data.message)
    return service.notify_license_event(data.type, data.licenseId)


@router.get("/stats")
async def get_notification_stats(
    current_user: User = Depends(require_admin),
    service: NotificationService = Depends(get_notification_service),
):
    return service.get_stats()
