"""
Referential rules derived from the schema.

The ON DELETE clauses declared on the models' foreign keys are the single
source of truth for deletion propagation. The database applies them to
physical deletes; the repository layer reads them here to mirror the same
policy for logical (soft) deletes.
"""
from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from typing import Tuple

from .base import Base

CASCADE = "CASCADE"
SET_NULL = "SET NULL"


@dataclass(frozen=True)
class Dependent:
    """A kind holding a foreign key to some parent kind."""
    model: type
    attribute: str
    on_delete: str


# PUBLIC_INTERFACE
@lru_cache(maxsize=None)
def dependents_of(model: type) -> Tuple[Dependent, ...]:
    """
    Return every (kind, fk attribute, ON DELETE rule) pointing at `model`,
    ordered by table name for deterministic traversal.
    """
    from . import models  # noqa: F401  ensure all mappers are registered

    target = model.__table__
    found = []
    for mapper in Base.registry.mappers:
        table = mapper.local_table
        for fk in table.foreign_keys:
            if fk.column.table is not target:
                continue
            rule = (fk.ondelete or "").upper()
            if rule not in (CASCADE, SET_NULL):
                continue
            prop = mapper.get_property_by_column(fk.parent)
            found.append(Dependent(model=mapper.class_, attribute=prop.key, on_delete=rule))
    found.sort(key=lambda d: (d.model.__tablename__, d.attribute))
    return tuple(found)

