from __future__ import annotations

from typing import Dict, Optional, Type

from sqlalchemy.ext.asyncio import AsyncSession

from .base import AuditedRepository, BaseRepository
from .contract import EntityT


class UnitOfWork:
    """
    One transaction's worth of staged writes across entity kinds.

    All repositories handed out share the session, so a single commit()
    persists everything staged through any of them, or nothing at all.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self._repositories: Dict[type, AuditedRepository] = {}

    def repository(
        self, model: Type[EntityT], repository_cls: Optional[Type[AuditedRepository]] = None
    ) -> AuditedRepository[EntityT]:
        """Return the (cached) repository for a kind, optionally a specialised subclass."""
        repo = self._repositories.get(model)
        if repo is None or (repository_cls is not None and not isinstance(repo, repository_cls)):
            cls = repository_cls or AuditedRepository
            repo = cls(self.session, model)
            self._repositories[model] = repo
        return repo

    async def commit(self) -> int:
        """Commit everything staged; returns the number of affected rows."""
        return await BaseRepository(self.session).save_changes()

    async def rollback(self) -> None:
        """Discard everything staged since the last commit."""
        await self.session.rollback()

    async def __aenter__(self) -> "UnitOfWork":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if exc_type is not None:
            await self.rollback()
