from __future__ import annotations

from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

from .common import EnumName


class RiskRead(BaseModel):
    """Risk register entry read model."""
    id: UUID = Field(..., description="Risk ID")
    tenant_id: UUID = Field(..., description="Owning tenant")
    title: str = Field(...)
    description: str = Field("")
    owner: str = Field("")
    likelihood: int = Field(..., ge=1, le=5)
    impact: int = Field(..., ge=1, le=5)
    risk_score: int = Field(..., description="likelihood x impact")
    status: EnumName = Field(..., description="Open/InProgress/Mitigated/Closed")

    class Config:
        from_attributes = True


class RiskCreate(BaseModel):
    """Create risk payload. The score is derived, never supplied."""
    title: str = Field(..., max_length=255)
    description: str = Field("")
    owner: str = Field("")
    likelihood: int = Field(..., description="1-5")
    impact: int = Field(..., description="1-5")
    mitigation_plan: str = Field("")


class RiskUpdate(BaseModel):
    """Update risk payload."""
    title: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = Field(None)
    owner: Optional[str] = Field(None)
    likelihood: Optional[int] = Field(None)
    impact: Optional[int] = Field(None)
    status: Optional[str] = Field(None)
    mitigation_plan: Optional[str] = Field(None)


class VendorRead(BaseModel):
    """Vendor read model."""
    id: UUID = Field(..., description="Vendor ID")
    tenant_id: UUID = Field(..., description="Owning tenant")
    name: str = Field(...)
    description: str = Field("")
    services: str = Field("")
    contact_email: str = Field("")
    risk_tier: EnumName = Field(..., description="Low/Medium/High/Critical")
    is_active: bool = Field(...)

    class Config:
        from_attributes = True


class VendorCreate(BaseModel):
    """Create vendor payload."""
    name: str = Field(..., max_length=255)
    description: str = Field("")
    services: str = Field("")
    contact_email: str = Field("")
    contact_phone: str = Field("")
    risk_tier: Optional[str] = Field(None, description="Defaults to Medium")


class VendorUpdate(BaseModel):
    """Update vendor payload."""
    name: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = Field(None)
    services: Optional[str] = Field(None)
    contact_email: Optional[str] = Field(None)
    risk_tier: Optional[str] = Field(None)
    is_active: Optional[bool] = Field(None)


class VendorRiskCreate(BaseModel):
    """Vendor risk assessment payload."""
    risk_description: str = Field("")
    likelihood: int = Field(..., description="1-5")
    impact: int = Field(..., description="1-5")


class VendorRiskRead(BaseModel):
    """Scored vendor risk."""
    id: UUID
    vendor_id: UUID
    risk_description: str = ""
    likelihood: int
    impact: int
    risk_score: int

    class Config:
        from_attributes = True
