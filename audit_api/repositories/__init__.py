"""
Repository layer for data access.

Every repository speaks the generic contract in `contract.Repository`;
`base.AuditedRepository` implements it over an AsyncSession, stamping the
audit envelope and turning deletes into logical deletes. Domain repositories
add kind-specific queries. The tenant is always passed explicitly.
"""

from .base import AuditedRepository, BaseRepository, TenantScopedRepository, translate_store_error
from .contract import Repository
from .unit_of_work import UnitOfWork

__all__ = [
    "AuditedRepository",
    "BaseRepository",
    "Repository",
    "TenantScopedRepository",
    "UnitOfWork",
    "translate_store_error",
]
