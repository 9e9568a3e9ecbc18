from __future__ import annotations

from datetime import datetime
from typing import Any, Optional
from uuid import UUID

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, String, Text, Uuid, false, true
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from audit_api.db.base import AuditMixin, Base, TenantMixin


class Integration(AuditMixin, TenantMixin, Base):
    """External system connection (AWS, Okta, Jira, ...). Only the data is kept here."""
    __tablename__ = "integrations"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    integration_type: Mapped[str] = mapped_column(Text, nullable=False, default="")
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default=true())
    api_key: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    secret_key: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    configuration: Mapped[Optional[dict[str, Any]]] = mapped_column(
        JSON().with_variant(JSONB(), "postgresql"), nullable=True
    )
    last_sync_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)


class IntegrationEvent(AuditMixin, Base):
    """Event received from or emitted to an integration."""
    __tablename__ = "integration_events"

    integration_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("integrations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    event_type: Mapped[str] = mapped_column(Text, nullable=False)
    event_data: Mapped[str] = mapped_column(Text, nullable=False, default="")
    processed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default=false())
    processed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    integration: Mapped[Integration] = relationship("Integration", lazy="raise")
