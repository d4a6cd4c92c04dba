"""License domain schemas - Pydantic models for validation"""

from datetime import date, datetime
from typing import Any, Optional

from pydantic import BaseModel, field_validator


class LicenseCreate(BaseModel):
    """Schema for the interactive create form (amount must be present, not necessarily > 0)"""

    softwareName: str
    renewalDate: date
    amount: float
    currency: str = "USD"
    responsibleEmail: str
    renewalUrl: Optional[str] = None
    status: str = "active"
    sourceSheet: Optional[str] = None

    @field_validator("softwareName", "responsibleEmail")
    @classmethod
    def validate_not_blank(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Field cannot be empty")
        return v

    @field_validator("amount")
    @classmethod
    def validate_amount(cls, v):
        if v < 0:
            raise ValueError("Amount cannot be negative")
        return v

    @field_validator("currency")
    @classmethod
    def normalize_currency(cls, v):
        return v.strip().upper() or "USD"


class LicenseUpdate(BaseModel):
    """Schema for the edit form"""

    softwareName: Optional[str] = None
    renewalDate: Optional[date] = None
    amount: Optional[float] = None
    currency: Optional[str] = None
    responsibleEmail: Optional[str] = None
    renewalUrl: Optional[str] = None
    status: Optional[str] = None
    sourceSheet: Optional[str] = None

    @field_validator("softwareName", "responsibleEmail")
    @classmethod
    def validate_not_blank(cls, v):
        if v is not None:
            v = v.strip()
            if not v:
                raise ValueError("Field cannot be empty")
        return v

    @field_validator("amount")
    @classmethod
    def validate_amount(cls, v):
        if v is not None and v < 0:
            raise ValueError("Amount cannot be negative")
        return v


class LicenseResponse(BaseModel):
    """License with its derived urgency"""

    id: str
    softwareName: str
    renewalDate: date
    amount: float
    currency: str
    responsibleEmail: str
    renewalUrl: Optional[str] = None
    status: str
    sourceSheet: Optional[str] = None
    urgency: str
    urgencyLabel: str
    daysUntilRenewal: int
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None


class LicenseSummary(BaseModel):
    total: int
    active: int
    byUrgency: dict[str, int]
    amountByCurrency: dict[str, float]


class BatchDeleteRequest(BaseModel):
    licenseIds: list[str]


class LicenseImportRequest(BaseModel):
    """Bulk import body; rows are validated one by one so a bad row never rejects the batch"""

    licenses: list[dict[str, Any]]


class ImportResult(BaseModel):
    message: str
    successCount: int
    errorCount: int
    errors: list[str]
