from __future__ import annotations

from uuid import UUID

from sqlalchemy import CheckConstraint, ForeignKey, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from audit_api.db.base import AuditMixin, Base, TenantMixin
from audit_api.db.models.enums import RiskStatus, enum_column


class Risk(AuditMixin, TenantMixin, Base):
    """Entry in the tenant's risk register."""
    __tablename__ = "risks"
    __table_args__ = (
        CheckConstraint("likelihood BETWEEN 1 AND 5", name="likelihood_range"),
        CheckConstraint("impact BETWEEN 1 AND 5", name="impact_range"),
    )

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    owner: Mapped[str] = mapped_column(Text, nullable=False, default="")
    likelihood: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    impact: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    # Stored likelihood x impact, kept in sync by RiskService.
    risk_score: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    status: Mapped[RiskStatus] = mapped_column(enum_column(RiskStatus), nullable=False, default=RiskStatus.Open)
    mitigation_plan: Mapped[str] = mapped_column(Text, nullable=False, default="")


class RiskControl(Base):
    """Links risks to the controls mitigating them (no audit envelope)."""
    __tablename__ = "risk_controls"

    risk_id: Mapped[UUID] = mapped_column(Uuid, ForeignKey("risks.id", ondelete="CASCADE"), primary_key=True)
    control_id: Mapped[UUID] = mapped_column(Uuid, ForeignKey("controls.id", ondelete="CASCADE"), primary_key=True)

    risk: Mapped[Risk] = relationship("Risk", lazy="raise")
    control: Mapped["Control"] = relationship("Control", lazy="raise")  # noqa: F821
