"""
Multi-tenant compliance and audit record-keeping backend.

Stores frameworks, controls, evidence, risks, vendors, remediation tasks and
integration events per tenant behind an audit-tracked, soft-deleting
repository layer.
"""
