"""Integration router"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import get_current_user, require_admin
from ...database import get_db
from ...models import User
from .schemas import IntegrationResponse, IntegrationUpdate
from .service import IntegrationService, to_integration_response

router = APIRouter(prefix="/integrations", tags=["Integrations"])


def get_integration_service(db: Session = Depends(get_db)) -> IntegrationService:
    return IntegrationService(db)


@router.get("", response_model=list[IntegrationResponse])
async def get_integrations(
    current_user: User = Depends(get_current_user),
    service: IntegrationService = Depends(get_integration_service),
):
    """All integrations; defaults are created (disabled) on first read"""
    return [to_integration_response(i) for i in service.get_integrations()]


@router.put("/{integration_id}", response_model=IntegrationResponse)
async def update_integration(
    integration_id: str,
    data: IntegrationUpdate,
    current_user: User = Depends(require_admin),
    service: IntegrationService = Depends(get_integration_service),
):
    return to_integration_response(service.update_integration(integration_id, data))
