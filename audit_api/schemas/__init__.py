"""
Public Pydantic schemas used by FastAPI routes, services, and tests.

Schemas are grouped by domain module (tenancy, compliance, risk, tasks) and
also include common reusable models such as pagination and standard responses.
Read models expose display fields only, never relationship data.
"""

from .common import MessageResponse, PaginatedResult  # noqa: F401
