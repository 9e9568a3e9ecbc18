from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

from .common import EnumName


class FrameworkRead(BaseModel):
    """Framework read model."""
    id: UUID = Field(..., description="Framework ID")
    tenant_id: UUID = Field(..., description="Owning tenant")
    name: str = Field(..., description="Framework name")
    code: str = Field(..., description="Code (unique within tenant)")
    description: str = Field("")
    version: str = Field("1.0")
    is_active: bool = Field(...)

    class Config:
        from_attributes = True


class FrameworkCreate(BaseModel):
    """Create framework payload."""
    name: str = Field(..., max_length=255)
    code: str = Field(..., max_length=50, description="Code (unique within tenant)")
    description: str = Field("")
    version: Optional[str] = Field(None, max_length=50, description="Defaults to 1.0")


class FrameworkUpdate(BaseModel):
    """Update framework payload; omitted fields are left unchanged."""
    name: Optional[str] = Field(None, max_length=255)
    code: Optional[str] = Field(None, max_length=50)
    description: Optional[str] = Field(None)
    is_active: Optional[bool] = Field(None)


class ControlRead(BaseModel):
    """Control read model."""
    id: UUID = Field(..., description="Control ID")
    tenant_id: UUID = Field(..., description="Owning tenant")
    name: str = Field(...)
    code: str = Field(...)
    description: str = Field("")
    owner: str = Field("")
    status: EnumName = Field(..., description="NotStarted/InProgress/Completed/Failed/Archived")
    compliance_percentage: int = Field(..., ge=0, le=100)

    class Config:
        from_attributes = True


class ControlCreate(BaseModel):
    """Create control payload."""
    name: str = Field(..., max_length=255)
    code: str = Field(..., max_length=50, description="Code (unique within tenant)")
    description: str = Field("")
    owner: str = Field("")
    status: Optional[str] = Field(None, description="Defaults to NotStarted")
    compliance_percentage: int = Field(0, ge=0, le=100)


class ControlUpdate(BaseModel):
    """Update control payload."""
    name: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = Field(None)
    owner: Optional[str] = Field(None)
    status: Optional[str] = Field(None)
    compliance_percentage: Optional[int] = Field(None, ge=0, le=100)


class FrameworkControlCreate(BaseModel):
    """Map a control into a framework."""
    control_id: UUID = Field(...)
    requirement: str = Field("", description="Framework-specific requirement text")
    sequence: int = Field(0, ge=0, description="Ordering within the framework")


class FrameworkControlRead(BaseModel):
    """Control as it appears inside a framework."""
    control: ControlRead
    requirement: str
    sequence: int


class EvidenceCreate(BaseModel):
    """Submit evidence for a control."""
    control_id: UUID = Field(...)
    policy_id: Optional[UUID] = Field(None)
    title: str = Field(..., max_length=255)
    description: str = Field("")
    file_url: str = Field("")
    file_type: str = Field("")
    file_size_bytes: int = Field(0, ge=0)
    evidence_date: Optional[datetime] = Field(None)


class EvidenceRead(BaseModel):
    """Evidence read model."""
    id: UUID
    tenant_id: UUID
    control_id: UUID
    policy_id: Optional[UUID] = None
    title: str
    status: EnumName
    approved_by: Optional[str] = None
    approved_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class EvidenceReview(BaseModel):
    """Reviewer decision payload."""
    reason: str = Field("", description="Why the evidence was rejected (kept in history)")


class EvidenceAuditLogRead(BaseModel):
    """One entry of an evidence item's change history."""
    id: UUID
    evidence_id: UUID
    action: str
    details: str = ""
    changed_by: str = ""
    created_at: datetime

    class Config:
        from_attributes = True
