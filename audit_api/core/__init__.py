"""
Core application utilities.

This package provides:
- Application-level settings (separate from DB settings)
- Structured logging with correlation/tenant context
- The error taxonomy shared by repositories, services and the HTTP layer
- Dependency helpers (tenant extraction, DB session)
"""
