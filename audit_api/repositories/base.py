from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Iterable, List, Optional, Sequence, Type
from uuid import UUID, uuid4

from sqlalchemy import ColumnElement, Executable, func, inspect, select
from sqlalchemy.exc import DataError, IntegrityError, InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from audit_api.core.errors import (
    AppendOnlyViolationError,
    AuditApiError,
    ConflictError,
    EntityValidationError,
    StoreUnavailableError,
)
from audit_api.db.base import AuditMixin, utcnow
from audit_api.db.relationships import CASCADE, SET_NULL, dependents_of
from audit_api.db.session import INCLUDE_DELETED
from .contract import EntityT, Repository

logger = logging.getLogger(__name__)


def _is_unique_violation(exc: IntegrityError) -> bool:
    orig = exc.orig
    code = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if code == "23505":
        return True
    text = str(orig).lower()
    return "unique" in text or "duplicate key" in text


# PUBLIC_INTERFACE
def translate_store_error(exc: Exception) -> AuditApiError:
    """Map a SQLAlchemy/DBAPI failure onto the application's error taxonomy."""
    if isinstance(exc, IntegrityError):
        if _is_unique_violation(exc):
            return ConflictError("Duplicate key violates a uniqueness rule", details=str(exc.orig))
        return EntityValidationError("Record violates a schema constraint", details=str(exc.orig))
    if isinstance(exc, DataError):
        return EntityValidationError("Record holds a value the store rejected", details=str(exc.orig))
    if isinstance(exc, StaleDataError):
        return ConflictError("Record was modified or removed concurrently", details=str(exc))
    return StoreUnavailableError("Database is unavailable", details=str(exc))


class BaseRepository:
    """
    Base class for repositories providing common session helpers.

    Store failures raised while executing statements are translated into
    StoreUnavailableError and propagated; nothing is swallowed here.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def execute(self, statement: Executable, params: Optional[dict[str, Any]] = None):
        """Execute a SQLAlchemy statement."""
        try:
            return await self.session.execute(statement, params or {})
        except (OperationalError, InterfaceError) as exc:
            logger.error("Store unavailable while executing statement: %s", exc)
            raise translate_store_error(exc) from exc

    async def scalars(self, statement: Executable, params: Optional[dict[str, Any]] = None):
        """Execute and return scalars."""
        result = await self.execute(statement, params)
        return result.scalars()

    async def scalar_one_or_none(self, statement: Executable, params: Optional[dict[str, Any]] = None):
        """Execute and return a single scalar or None."""
        result = await self.execute(statement, params)
        return result.scalar_one_or_none()

    async def commit(self) -> None:
        """Commit the current transaction, rolling back and translating on failure."""
        try:
            await self.session.commit()
        except (IntegrityError, DataError, StaleDataError, OperationalError, InterfaceError) as exc:
            await self.session.rollback()
            error = translate_store_error(exc)
            logger.warning("Commit failed (%s): %s", type(error).__name__, error.message)
            raise error from exc

    async def save_changes(self) -> int:
        """Commit the session's staged inserts, updates and deletes as one unit of work."""
        session = self.session
        staged = (
            len(session.new)
            + len(session.deleted)
            + sum(1 for obj in session.dirty if session.is_modified(obj))
        )
        await self.commit()
        logger.debug("Committed unit of work (%d rows)", staged)
        return staged

    async def add_all(self, entities: Iterable[Any]) -> None:
        """Add multiple entities to session."""
        self.session.add_all(list(entities))

    async def add(self, entity: Any) -> None:
        """Add a single entity to session."""
        self.session.add(entity)


class AuditedRepository(BaseRepository, Repository[EntityT]):
    """
    Generic repository for any kind carrying the audit envelope.

    Stamps created/modified/deleted fields identically for every kind and
    turns deletes into logical deletes that follow the schema's ON DELETE
    rules: CASCADE dependents are soft-deleted too, SET NULL dependents lose
    their reference but survive.
    """

    model: Type[EntityT]

    def __init__(self, session: AsyncSession, model: Optional[Type[EntityT]] = None) -> None:
        super().__init__(session)
        if model is not None:
            self.model = model
        if getattr(self, "model", None) is None:
            raise TypeError(f"{type(self).__name__} needs an entity model")

    # Reads

    def _select(self, *criteria: ColumnElement[bool]):
        return select(self.model).where(*criteria)

    def _staged_deletions(self) -> tuple[ColumnElement[bool], ...]:
        # Rows soft-deleted in this session but not committed yet.
        ids = [
            obj.id
            for obj in self.session.dirty
            if isinstance(obj, self.model) and True in inspect(obj).attrs.is_deleted.history.added
        ]
        return (self.model.id.not_in(ids),) if ids else ()

    @staticmethod
    def _visible(rows: Iterable[EntityT]) -> List[EntityT]:
        # Rows staged for deletion in this session are already hidden.
        return [row for row in rows if not row.is_deleted]

    async def get_by_id(self, entity_id: UUID) -> Optional[EntityT]:
        row = await self.scalar_one_or_none(self._select(self.model.id == entity_id))
        if row is None or row.is_deleted:
            return None
        return row

    async def get_all(self) -> List[EntityT]:
        return await self.find()

    async def find(
        self,
        *criteria: ColumnElement[bool],
        order_by: Optional[Sequence[Any]] = None,
        offset: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> List[EntityT]:
        stmt = self._select(*criteria, *self._staged_deletions()).order_by(
            *(order_by if order_by is not None else (self.model.created_at, self.model.id))
        )
        if offset:
            stmt = stmt.offset(offset)
        if limit is not None:
            stmt = stmt.limit(limit)
        return self._visible(await self.scalars(stmt))

    async def single_or_default(self, *criteria: ColumnElement[bool]) -> Optional[EntityT]:
        rows = await self.find(*criteria, limit=1)
        return rows[0] if rows else None

    async def exists(self, *criteria: ColumnElement[bool]) -> bool:
        stmt = select(self.model.id).where(*criteria, *self._staged_deletions()).limit(1)
        return await self.scalar_one_or_none(stmt) is not None

    async def count(self, *criteria: ColumnElement[bool]) -> int:
        stmt = select(func.count(self.model.id)).where(*criteria, *self._staged_deletions())
        result = await self.execute(stmt)
        return int(result.scalar_one())

    # Explicit bypasses of the standing filter (audit/forensics only).

    async def get_by_id_including_deleted(self, entity_id: UUID) -> Optional[EntityT]:
        stmt = self._select(self.model.id == entity_id).execution_options(**{INCLUDE_DELETED: True})
        return await self.scalar_one_or_none(stmt)

    async def find_including_deleted(self, *criteria: ColumnElement[bool]) -> List[EntityT]:
        stmt = (
            self._select(*criteria)
            .order_by(self.model.created_at, self.model.id)
            .execution_options(**{INCLUDE_DELETED: True})
        )
        return list(await self.scalars(stmt))

    # Staged writes

    def _ensure_mutable(self, entity: AuditMixin, operation: str) -> None:
        if type(entity).__append_only__:
            raise AppendOnlyViolationError(
                f"{type(entity).__name__} records are append-only and cannot be {operation}d"
            )

    async def add(self, entity: EntityT, actor: Optional[str] = None) -> EntityT:
        if entity.id is None:
            entity.id = uuid4()
        entity.created_at = utcnow()
        if actor is not None:
            entity.created_by = actor
        if entity.is_deleted is None:
            entity.is_deleted = False
        self.session.add(entity)
        return entity

    async def update(self, entity: EntityT, actor: Optional[str] = None) -> None:
        self._ensure_mutable(entity, "update")
        entity.modified_at = utcnow()
        if actor is not None:
            entity.modified_by = actor
        self.session.add(entity)

    async def delete(self, entity: EntityT, actor: Optional[str] = None) -> None:
        self._ensure_mutable(entity, "delete")
        if entity.is_deleted:
            return
        now = utcnow()
        doomed: List[AuditMixin] = []
        await self._collect_cascade(entity, now, actor, doomed)
        nulled = 0
        for row in doomed:
            nulled += await self._null_out_references(row, now, actor)
        logger.info(
            "Soft-deleted %s %s (cascaded=%d, references nulled=%d)",
            type(entity).__name__, entity.id, len(doomed) - 1, nulled,
        )

    async def delete_by_id(self, entity_id: UUID, actor: Optional[str] = None) -> None:
        entity = await self.get_by_id(entity_id)
        if entity is not None:
            await self.delete(entity, actor)

    async def purge(self, entity: EntityT) -> None:
        """
        Stage a physical delete. The database applies the ON DELETE rules to
        dependents. Meant for retention tooling, not ordinary request paths.
        """
        await self.session.delete(entity)

    # Soft-delete propagation

    async def _collect_cascade(
        self, entity: AuditMixin, now: datetime, actor: Optional[str], doomed: List[AuditMixin]
    ) -> None:
        if entity.is_deleted:
            return
        entity.is_deleted = True
        entity.deleted_at = now
        if actor is not None:
            entity.modified_by = actor
        self.session.add(entity)
        doomed.append(entity)
        for dep in dependents_of(type(entity)):
            # Junction rows and append-only history only go away with a physical delete.
            if dep.on_delete != CASCADE or not issubclass(dep.model, AuditMixin) or dep.model.__append_only__:
                continue
            column = getattr(dep.model, dep.attribute)
            children = list(await self.scalars(select(dep.model).where(column == entity.id)))
            for child in children:
                await self._collect_cascade(child, now, actor, doomed)

    async def _null_out_references(self, entity: AuditMixin, now: datetime, actor: Optional[str]) -> int:
        nulled = 0
        for dep in dependents_of(type(entity)):
            if dep.on_delete != SET_NULL or not issubclass(dep.model, AuditMixin):
                continue
            column = getattr(dep.model, dep.attribute)
            rows = list(await self.scalars(select(dep.model).where(column == entity.id)))
            for row in rows:
                if row.is_deleted or getattr(row, dep.attribute) is None:
                    continue
                setattr(row, dep.attribute, None)
                row.modified_at = now
                if actor is not None:
                    row.modified_by = actor
                nulled += 1
        return nulled


class TenantScopedRepository(AuditedRepository[EntityT]):
    """
    Repository for kinds carrying tenant_id. The tenant is always an explicit
    argument; there is no ambient tenant.
    """

    async def get_for_tenant(self, tenant_id: UUID, entity_id: UUID) -> Optional[EntityT]:
        return await self.single_or_default(self.model.id == entity_id, self.model.tenant_id == tenant_id)

    async def list_for_tenant(
        self, tenant_id: UUID, *, offset: int = 0, limit: Optional[int] = None
    ) -> List[EntityT]:
        return await self.find(self.model.tenant_id == tenant_id, offset=offset, limit=limit)

    async def count_for_tenant(self, tenant_id: UUID) -> int:
        return await self.count(self.model.tenant_id == tenant_id)
