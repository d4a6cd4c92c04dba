"""Integration schemas"""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel


class IntegrationUpdate(BaseModel):
    enabled: Optional[bool] = None
    name: Optional[str] = None
    # Merged into the stored config (url, emailRecipient, trelloBoardId, trelloListId, ...)
    config: Optional[dict[str, Any]] = None
    messageTemplate: Optional[str] = None


class IntegrationResponse(BaseModel):
    id: str
    type: str
    name: str
    enabled: bool
    config: dict[str, Any]
    updatedAt: Optional[datetime] = None
