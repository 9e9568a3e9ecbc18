from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

from .common import EnumName


class RemediationTaskRead(BaseModel):
    """Remediation task read model."""
    id: UUID = Field(..., description="Task ID")
    tenant_id: UUID = Field(..., description="Owning tenant")
    title: str = Field(...)
    description: str = Field("")
    control_id: Optional[UUID] = Field(None, description="Null once the control is deleted")
    risk_id: Optional[UUID] = Field(None, description="Null once the risk is deleted")
    assigned_to: str = Field("")
    status: EnumName = Field(...)
    priority: EnumName = Field(...)
    due_date: Optional[datetime] = Field(None)
    completed_at: Optional[datetime] = Field(None)
    external_task_id: Optional[str] = Field(None)

    class Config:
        from_attributes = True


class RemediationTaskCreate(BaseModel):
    """Create task payload."""
    title: str = Field(..., max_length=255)
    description: str = Field("")
    control_id: Optional[UUID] = Field(None)
    risk_id: Optional[UUID] = Field(None)
    assigned_to: str = Field("")
    priority: Optional[str] = Field(None, description="Defaults to Medium")
    due_date: Optional[datetime] = Field(None)
    external_task_id: Optional[str] = Field(None)


class RemediationTaskUpdate(BaseModel):
    """Update task payload."""
    title: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = Field(None)
    assigned_to: Optional[str] = Field(None)
    status: Optional[str] = Field(None)
    priority: Optional[str] = Field(None)
    due_date: Optional[datetime] = Field(None)


class TaskNotificationCreate(BaseModel):
    """Record a notification sent for a task."""
    recipient_email: str = Field(...)
    subject: str = Field("")
    body: str = Field("")


class TaskNotificationRead(BaseModel):
    """Recorded notification."""
    id: UUID
    task_id: UUID
    recipient_email: str
    subject: str = ""
    sent_at: Optional[datetime] = None

    class Config:
        from_attributes = True
