from __future__ import annotations

import logging
from typing import Optional
from uuid import UUID

from fastapi import Header, HTTPException, Query, status

from audit_api.schemas.common import Pagination

logger = logging.getLogger(__name__)


# PUBLIC_INTERFACE
async def get_tenant_id(x_tenant_id: str | None = Header(default=None, alias="X-Tenant-ID")) -> UUID:
    """
    Extract and validate the tenant id from the X-Tenant-ID header.

    Raises:
        HTTPException: 400 Bad Request if header missing or invalid UUID.
    Returns:
        UUID: tenant identifier
    """
    if not x_tenant_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="X-Tenant-ID header is required.",
        )
    try:
        return UUID(x_tenant_id)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="X-Tenant-ID header must be a valid UUID string.",
        )


# PUBLIC_INTERFACE
async def get_actor(x_actor: str | None = Header(default=None, alias="X-Actor")) -> Optional[str]:
    """
    Free-form identity recorded in created_by/modified_by. Nothing verifies it;
    callers sitting behind an authenticating gateway are expected to set it.
    """
    return x_actor or None


# PUBLIC_INTERFACE
async def get_pagination(
    page_number: int = Query(1, ge=1, description="1-based page number"),
    page_size: int = Query(10, ge=1, le=100, description="Items per page (max 100)"),
) -> Pagination:
    """Pagination query parameters shared by every list endpoint."""
    return Pagination(page_number=page_number, page_size=page_size)
