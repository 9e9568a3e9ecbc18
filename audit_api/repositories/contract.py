from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Generic, List, Optional, TypeVar
from uuid import UUID

from sqlalchemy import ColumnElement

from audit_api.db.base import AuditMixin

EntityT = TypeVar("EntityT", bound=AuditMixin)


class Repository(ABC, Generic[EntityT]):
    """
    Persistence contract for one entity kind carrying the audit envelope.

    Reads respect the soft-delete filter and run immediately. Writes are only
    staged; nothing is durable until save_changes() commits the unit of work.
    Predicates are SQLAlchemy boolean column expressions over the entity.
    """

    @abstractmethod
    async def get_by_id(self, entity_id: UUID) -> Optional[EntityT]:
        """Single visible row by primary key, or None."""

    @abstractmethod
    async def get_all(self) -> List[EntityT]:
        """All visible rows of the kind."""

    @abstractmethod
    async def find(self, *criteria: ColumnElement[bool]) -> List[EntityT]:
        """Visible rows matching every criterion."""

    @abstractmethod
    async def single_or_default(self, *criteria: ColumnElement[bool]) -> Optional[EntityT]:
        """First visible match or None. Uniqueness is not enforced."""

    @abstractmethod
    async def add(self, entity: EntityT, actor: Optional[str] = None) -> EntityT:
        """Stage an insert, stamping created_at."""

    @abstractmethod
    async def update(self, entity: EntityT, actor: Optional[str] = None) -> None:
        """Stage a modification, stamping modified_at."""

    @abstractmethod
    async def delete(self, entity: EntityT, actor: Optional[str] = None) -> None:
        """Stage a logical delete; the row stays in storage."""

    @abstractmethod
    async def delete_by_id(self, entity_id: UUID, actor: Optional[str] = None) -> None:
        """Resolve then delete; unknown ids are a no-op."""

    @abstractmethod
    async def exists(self, *criteria: ColumnElement[bool]) -> bool:
        """Whether any visible row matches."""

    @abstractmethod
    async def count(self, *criteria: ColumnElement[bool]) -> int:
        """Number of visible rows (optionally matching criteria)."""

    @abstractmethod
    async def save_changes(self) -> int:
        """Commit all staged writes atomically; return the affected row count."""
