"""
API route modules for the audit management service.

This package contains subrouters for:
- Tenants: tenant CRUD
- Frameworks: framework CRUD and control mapping
- Controls and Evidence: control library, evidence submission and review
- Risks and Vendors: risk register and vendor risk assessments
- Tasks: remediation tasks and their notifications

Routers are included from audit_api.api.main (under the /api/v1 prefix).
"""
