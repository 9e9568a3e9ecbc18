from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy import Boolean, CheckConstraint, DateTime, ForeignKey, Integer, String, Text, Uuid, false, true
from sqlalchemy.orm import Mapped, mapped_column, relationship

from audit_api.db.base import AuditMixin, Base, TenantMixin
from audit_api.db.models.enums import QuestionnaireStatus, QuestionType, RiskTier, enum_column


class Vendor(AuditMixin, TenantMixin, Base):
    """Third party assessed by the tenant."""
    __tablename__ = "vendors"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    services: Mapped[str] = mapped_column(Text, nullable=False, default="")
    contact_email: Mapped[str] = mapped_column(Text, nullable=False, default="")
    contact_phone: Mapped[str] = mapped_column(Text, nullable=False, default="")
    risk_tier: Mapped[RiskTier] = mapped_column(enum_column(RiskTier), nullable=False, default=RiskTier.Medium)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default=true())


class VendorQuestionnaire(AuditMixin, Base):
    """Assessment questionnaire issued to a vendor."""
    __tablename__ = "vendor_questionnaires"

    vendor_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("vendors.id", ondelete="CASCADE"), nullable=False, index=True
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    issued_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    due_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    status: Mapped[QuestionnaireStatus] = mapped_column(
        enum_column(QuestionnaireStatus), nullable=False, default=QuestionnaireStatus.Pending
    )

    vendor: Mapped[Vendor] = relationship("Vendor", lazy="raise")


class VendorQuestion(AuditMixin, Base):
    """Single question within a vendor questionnaire, ordered by sequence."""
    __tablename__ = "vendor_questions"

    questionnaire_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("vendor_questionnaires.id", ondelete="CASCADE"), nullable=False, index=True
    )
    question: Mapped[str] = mapped_column(Text, nullable=False)
    answer: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    type: Mapped[QuestionType] = mapped_column(enum_column(QuestionType), nullable=False, default=QuestionType.Text)
    sequence: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_required: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default=false())

    questionnaire: Mapped[VendorQuestionnaire] = relationship("VendorQuestionnaire", lazy="raise")


class VendorRisk(AuditMixin, Base):
    """Risk attributed to a vendor, scored like register risks."""
    __tablename__ = "vendor_risks"
    __table_args__ = (
        CheckConstraint("likelihood BETWEEN 1 AND 5", name="likelihood_range"),
        CheckConstraint("impact BETWEEN 1 AND 5", name="impact_range"),
    )

    vendor_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("vendors.id", ondelete="CASCADE"), nullable=False, index=True
    )
    risk_description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    likelihood: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    impact: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    risk_score: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    vendor: Mapped[Vendor] = relationship("Vendor", lazy="raise")
