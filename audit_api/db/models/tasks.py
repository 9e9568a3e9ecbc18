from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy import DateTime, ForeignKey, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from audit_api.db.base import AppendOnlyMixin, AuditMixin, Base, TenantMixin
from audit_api.db.models.enums import TaskPriority, TaskStatus, enum_column


class RemediationTask(AuditMixin, TenantMixin, Base):
    """
    Remediation work item. Tasks outlive the control or risk that spawned
    them: deleting either one only clears the reference.
    """
    __tablename__ = "remediation_tasks"

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    control_id: Mapped[Optional[UUID]] = mapped_column(
        Uuid, ForeignKey("controls.id", ondelete="SET NULL"), nullable=True, index=True
    )
    risk_id: Mapped[Optional[UUID]] = mapped_column(
        Uuid, ForeignKey("risks.id", ondelete="SET NULL"), nullable=True, index=True
    )
    assigned_to: Mapped[str] = mapped_column(Text, nullable=False, default="")
    status: Mapped[TaskStatus] = mapped_column(enum_column(TaskStatus), nullable=False, default=TaskStatus.Open)
    priority: Mapped[TaskPriority] = mapped_column(
        enum_column(TaskPriority), nullable=False, default=TaskPriority.Medium
    )
    due_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    external_task_id: Mapped[Optional[str]] = mapped_column(Text, nullable=True)  # e.g. Jira issue key

    control: Mapped[Optional["Control"]] = relationship("Control", lazy="raise")  # noqa: F821
    risk: Mapped[Optional["Risk"]] = relationship("Risk", lazy="raise")  # noqa: F821


class TaskNotification(AppendOnlyMixin, Base):
    """Notification sent for a remediation task."""
    __tablename__ = "task_notifications"

    task_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("remediation_tasks.id", ondelete="CASCADE"), nullable=False, index=True
    )
    recipient_email: Mapped[str] = mapped_column(Text, nullable=False)
    subject: Mapped[str] = mapped_column(Text, nullable=False, default="")
    body: Mapped[str] = mapped_column(Text, nullable=False, default="")
    sent_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    task: Mapped[RemediationTask] = relationship("RemediationTask", lazy="raise")
