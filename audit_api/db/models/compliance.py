from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
    false,
    true,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from audit_api.db.base import AppendOnlyMixin, AuditMixin, Base, TenantMixin
from audit_api.db.models.enums import ControlStatus, EvidenceStatus, enum_column


class Framework(AuditMixin, TenantMixin, Base):
    """Compliance framework (SOC 2, ISO 27001, GDPR, ...)."""
    __tablename__ = "frameworks"
    __table_args__ = (
        UniqueConstraint("tenant_id", "code", name="uq_frameworks_tenant_code"),
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    code: Mapped[str] = mapped_column(String(50), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    version: Mapped[str] = mapped_column(String(50), nullable=False, default="1.0", server_default="1.0")
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default=true())


class Control(AuditMixin, TenantMixin, Base):
    """Control in the tenant's unified control library."""
    __tablename__ = "controls"
    __table_args__ = (
        UniqueConstraint("tenant_id", "code", name="uq_controls_tenant_code"),
        CheckConstraint(
            "compliance_percentage >= 0 AND compliance_percentage <= 100",
            name="compliance_percentage_range",
        ),
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    code: Mapped[str] = mapped_column(String(50), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    owner: Mapped[str] = mapped_column(Text, nullable=False, default="")
    status: Mapped[ControlStatus] = mapped_column(
        enum_column(ControlStatus), nullable=False, default=ControlStatus.NotStarted
    )
    compliance_percentage: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


class FrameworkControl(Base):
    """Maps controls into frameworks with the framework-specific requirement text."""
    __tablename__ = "framework_controls"

    framework_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("frameworks.id", ondelete="CASCADE"), primary_key=True
    )
    control_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("controls.id", ondelete="CASCADE"), primary_key=True
    )
    requirement: Mapped[str] = mapped_column(Text, nullable=False, default="")
    sequence: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    framework: Mapped[Framework] = relationship("Framework", lazy="raise")
    control: Mapped[Control] = relationship("Control", lazy="raise")


class Policy(AuditMixin, TenantMixin, Base):
    """Policy or procedure document."""
    __tablename__ = "policies"

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    content: Mapped[str] = mapped_column(Text, nullable=False, default="")
    version: Mapped[str] = mapped_column(String(50), nullable=False, default="1.0")
    control_id: Mapped[Optional[UUID]] = mapped_column(
        Uuid, ForeignKey("controls.id", ondelete="SET NULL"), nullable=True, index=True
    )
    last_reviewed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    owner: Mapped[str] = mapped_column(Text, nullable=False, default="")
    is_approved: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default=false())

    control: Mapped[Optional[Control]] = relationship("Control", lazy="raise")


class Evidence(AuditMixin, TenantMixin, Base):
    """Evidence supporting a control's compliance."""
    __tablename__ = "evidence"

    control_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("controls.id", ondelete="CASCADE"), nullable=False, index=True
    )
    policy_id: Mapped[Optional[UUID]] = mapped_column(
        Uuid, ForeignKey("policies.id", ondelete="SET NULL"), nullable=True, index=True
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    file_url: Mapped[str] = mapped_column(Text, nullable=False, default="")
    file_type: Mapped[str] = mapped_column(Text, nullable=False, default="")
    file_size_bytes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    evidence_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    status: Mapped[EvidenceStatus] = mapped_column(
        enum_column(EvidenceStatus), nullable=False, default=EvidenceStatus.Pending
    )
    approved_by: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    approved_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    control: Mapped[Control] = relationship("Control", lazy="raise")
    policy: Mapped[Optional[Policy]] = relationship("Policy", lazy="raise")


class EvidenceAuditLog(AppendOnlyMixin, Base):
    """Discrete change event recorded against a piece of evidence."""
    __tablename__ = "evidence_audit_logs"

    evidence_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("evidence.id", ondelete="CASCADE"), nullable=False, index=True
    )
    action: Mapped[str] = mapped_column(Text, nullable=False)
    details: Mapped[str] = mapped_column(Text, nullable=False, default="")
    changed_by: Mapped[str] = mapped_column(Text, nullable=False, default="")

    evidence: Mapped[Evidence] = relationship("Evidence", lazy="raise")
