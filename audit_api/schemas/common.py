from __future__ import annotations

import enum
import math
from datetime import datetime
from typing import Annotated, Any, Generic, List, Optional, TypeVar
from uuid import UUID

from pydantic import BaseModel, BeforeValidator, Field, computed_field

T = TypeVar("T")


def _enum_to_name(value: Any) -> Any:
    return value.name if isinstance(value, enum.Enum) else value


# Enumerations travel over the wire by member name ("NotStarted", "High", ...).
EnumName = Annotated[str, BeforeValidator(_enum_to_name)]


class Pagination(BaseModel):
    """Pagination parameters (1-based page number)."""
    page_number: int = Field(1, ge=1, description="1-based page number")
    page_size: int = Field(10, ge=1, le=100, description="Items per page")

    @property
    def offset(self) -> int:
        return (self.page_number - 1) * self.page_size


class PaginatedResult(BaseModel, Generic[T]):
    """One page of results plus totals."""
    items: List[T] = Field(default_factory=list)
    total_count: int = Field(..., ge=0)
    page_number: int = Field(..., ge=1)
    page_size: int = Field(..., ge=1)

    @computed_field  # type: ignore[misc]
    @property
    def total_pages(self) -> int:
        return math.ceil(self.total_count / self.page_size)


class MessageResponse(BaseModel):
    """Standard message response."""
    message: str = Field(..., description="Human readable message")
    details: Optional[dict] = Field(default=None, description="Optional extra data")


class TenantEcho(BaseModel):
    """Model to echo tenant context."""
    tenant_id: UUID = Field(..., description="Tenant ID extracted from request header")


class ErrorInfo(BaseModel):
    """Structured error description."""
    type: str = Field(..., description="Machine-readable error type code")
    message: str = Field(..., description="Human-readable error message")
    details: Optional[Any] = Field(default=None, description="Optional error details")


# PUBLIC_INTERFACE
class ErrorResponse(BaseModel):
    """Standardized API error envelope returned by exception handlers."""
    status: int = Field(..., description="HTTP status code")
    error: ErrorInfo = Field(..., description="Error details")
    correlation_id: Optional[str] = Field(default=None, description="Request correlation ID")
    tenant_id: Optional[str] = Field(default=None, description="Tenant ID (if available)")
    path: Optional[str] = Field(default=None, description="Request path")
    method: Optional[str] = Field(default=None, description="HTTP method")
    timestamp: datetime = Field(..., description="Error timestamp (UTC)")


def page_of(schema: type[BaseModel], rows: List[Any], total_count: int, page: Pagination) -> PaginatedResult:
    """Wrap ORM rows of one page into a PaginatedResult of the given read schema."""
    return PaginatedResult[schema](  # type: ignore[valid-type]
        items=[schema.model_validate(row) for row in rows],
        total_count=total_count,
        page_number=page.page_number,
        page_size=page.page_size,
    )
