from __future__ import annotations

from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field


class TenantRead(BaseModel):
    """Tenant read model."""
    id: UUID = Field(..., description="Tenant ID")
    name: str = Field(..., description="Display name")
    description: str = Field("", description="Description")
    tenant_code: str = Field(..., description="Globally unique tenant code")
    is_active: bool = Field(..., description="Active flag")

    class Config:
        from_attributes = True


class TenantCreate(BaseModel):
    """Create tenant payload."""
    name: str = Field(..., max_length=255, description="Display name")
    tenant_code: str = Field(..., max_length=50, description="Globally unique tenant code")
    description: str = Field("")


class TenantUpdate(BaseModel):
    """Update tenant payload; the tenant code is immutable."""
    name: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = Field(None)
    is_active: Optional[bool] = Field(None)

