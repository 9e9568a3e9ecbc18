from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from audit_api.core.deps import get_tenant_id
from audit_api.core.errors import (
    AuditApiError,
    ConflictError,
    EntityValidationError,
    NotFoundError,
    StoreUnavailableError,
)
from audit_api.core.logging import configure_logging, request_context
from audit_api.core.settings import get_app_settings
from audit_api.db.seed import seed_all
from audit_api.db.session import create_schema
from audit_api.schemas.common import ErrorInfo, ErrorResponse, MessageResponse, TenantEcho

# Routers
from audit_api.api.routes.controls import evidence_router
from audit_api.api.routes.controls import router as controls_router
from audit_api.api.routes.frameworks import router as frameworks_router
from audit_api.api.routes.risks import router as risks_router
from audit_api.api.routes.tasks import router as tasks_router
from audit_api.api.routes.tenants import router as tenants_router
from audit_api.api.routes.vendors import router as vendors_router

settings = get_app_settings()

# Configure structured logging once at import
configure_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

openapi_tags = [
    {"name": "Health", "description": "Liveness and tenant header probes."},
    {"name": "Tenants", "description": "Tenant administration."},
    {"name": "Frameworks", "description": "Compliance frameworks and their control mappings."},
    {"name": "Controls", "description": "The tenant's control library."},
    {"name": "Evidence", "description": "Evidence submission, review and history."},
    {"name": "Risks", "description": "Risk register."},
    {"name": "Vendors", "description": "Vendors and vendor risk assessments."},
    {"name": "Tasks", "description": "Remediation tasks and notifications."},
]

app = FastAPI(
    title=settings.APP_NAME,
    description=settings.APP_DESCRIPTION,
    version=settings.APP_VERSION,
    openapi_tags=openapi_tags,
)

# CORS - avoid wildcard with credentials
cors_allow_credentials = settings.CORS_ALLOW_CREDENTIALS
if settings.CORS_ORIGINS == ["*"] and cors_allow_credentials:
    logger.warning("CORS_ALLOW_CREDENTIALS=True with '*' origins is not permitted; disabling credentials.")
    cors_allow_credentials = False

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=cors_allow_credentials,
    allow_methods=settings.CORS_ALLOW_METHODS,
    allow_headers=settings.CORS_ALLOW_HEADERS,
)


@app.middleware("http")
async def request_context_middleware(request: Request, call_next):
    """
    Enrich request context with correlation_id and tenant_id for logging and error responses.
    Adds 'X-Correlation-ID' to every response.
    """
    corr = request.headers.get("X-Correlation-ID") or request.headers.get("X-Request-ID") or str(uuid4())
    tenant = request.headers.get("X-Tenant-ID")
    request.state.correlation_id = corr
    request.state.tenant_id = tenant

    with request_context(corr, tenant):
        logger.info("Incoming request %s %s", request.method, request.url.path)
        response = await call_next(request)

    response.headers["X-Correlation-ID"] = corr
    return response


def _build_error_response(
    request: Request,
    status_code: int,
    error_type: str,
    message: str,
    details: Any | None = None,
) -> JSONResponse:
    """Build a standardized ErrorResponse JSONResponse."""
    ts = datetime.now(tz=timezone.utc)
    corr = getattr(request.state, "correlation_id", None)
    tenant = getattr(request.state, "tenant_id", None)
    err = ErrorResponse(
        status=status_code,
        error=ErrorInfo(type=error_type, message=message, details=details),
        correlation_id=corr,
        tenant_id=tenant,
        path=request.url.path,
        method=request.method,
        timestamp=ts,
    )
    return JSONResponse(status_code=status_code, content=err.model_dump(mode="json"))


# Most specific first; AppendOnlyViolationError falls under EntityValidationError.
_ERROR_STATUS = (
    (NotFoundError, 404, "not_found"),
    (ConflictError, 409, "conflict"),
    (EntityValidationError, 400, "validation_error"),
    (StoreUnavailableError, 503, "store_unavailable"),
)


@app.exception_handler(AuditApiError)
async def audit_api_error_handler(request: Request, exc: AuditApiError):
    """
    Translate domain and persistence errors into the standard error envelope.
    """
    status_code, error_type = 500, "internal_error"
    for error_cls, code, kind in _ERROR_STATUS:
        if isinstance(exc, error_cls):
            status_code, error_type = code, kind
            break
    if status_code >= 500:
        logger.error("%s: %s", type(exc).__name__, exc.message)
    else:
        logger.info("%s: %s", type(exc).__name__, exc.message)
    return _build_error_response(
        request=request,
        status_code=status_code,
        error_type=error_type,
        message=exc.message,
        details=exc.details,
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    """
    Global handler for HTTPException to produce a standardized error envelope.
    """
    detail = exc.detail if isinstance(exc.detail, str) else "HTTP Error"
    return _build_error_response(
        request=request,
        status_code=exc.status_code,
        error_type="http_error",
        message=str(detail),
        details=None if isinstance(exc.detail, str) else exc.detail,
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """
    Global handler for request validation errors with a standard structure.
    """
    return _build_error_response(
        request=request,
        status_code=422,
        error_type="validation_error",
        message="Request validation failed",
        details=exc.errors(),
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    """
    Catch-all handler to avoid leaking stack traces and to return a structured error.
    """
    logger.exception("Unhandled error processing request")
    return _build_error_response(
        request=request,
        status_code=500,
        error_type="internal_error",
        message="An unexpected error occurred",
        details=None,
    )


@app.on_event("startup")
async def on_startup() -> None:
    """
    Create the schema and seed reference data on service startup when enabled.

    Both steps are opt-in via settings; failures propagate so a misconfigured
    database stops the service instead of serving errors.
    """
    if settings.CREATE_SCHEMA_ON_STARTUP:
        logger.info("Ensuring database schema")
        await create_schema()

    if settings.AUTO_SEED:
        logger.info("Running database seeding...")
        await seed_all()
        logger.info("Seeding completed.")


# Build API v1 router and include sub-routers
api_v1 = APIRouter(prefix="/api/v1")


# PUBLIC_INTERFACE
@api_v1.get(
    "/health",
    response_model=MessageResponse,
    summary="Health Check",
    tags=["Health"],
)
def health_check() -> MessageResponse:
    """
    Basic liveness health check endpoint.

    Returns:
        MessageResponse: Simple confirmation that the service is running.
    """
    return MessageResponse(message="Healthy")


# PUBLIC_INTERFACE
@api_v1.get(
    "/health/tenant",
    response_model=TenantEcho,
    summary="Tenant Health Echo",
    description="Echoes the tenant context to verify header handling.",
    tags=["Health"],
)
async def tenant_health_echo(tenant_id=Depends(get_tenant_id)) -> TenantEcho:
    """
    Echo the provided tenant ID to verify multi-tenant request handling.

    Parameters:
        X-Tenant-ID (header): UUID of the tenant.
    Returns:
        TenantEcho: The tenant_id extracted from the header.
    """
    return TenantEcho(tenant_id=tenant_id)


# Include all routers under /api/v1
api_v1.include_router(tenants_router)
api_v1.include_router(frameworks_router)
api_v1.include_router(controls_router)
api_v1.include_router(evidence_router)
api_v1.include_router(risks_router)
api_v1.include_router(vendors_router)
api_v1.include_router(tasks_router)

# Attach api_v1 to app
app.include_router(api_v1)
