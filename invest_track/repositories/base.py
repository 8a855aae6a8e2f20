"""
Generic async repository (Data Access Layer).

Implements the Repository pattern on top of SQLAlchemy's ``AsyncSession``.
Concrete repositories inherit from ``BaseRepository[T]`` and add
entity-specific queries.

Repositories only stage work (``add`` + ``flush``); they never commit.
Transaction boundaries belong to the service layer, which wraps each
mutating operation in :func:`invest_track.db.session.unit_of_work`.  Flushing
still surfaces ``IntegrityError`` immediately so the service can translate
it into a domain error before the unit of work rolls back.
"""

import logging
from typing import Any, Generic, List, Optional, Sequence, Type, TypeVar

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import SQLModel

logger = logging.getLogger(__name__)

ModelType = TypeVar("ModelType", bound=SQLModel)


class BaseRepository(Generic[ModelType]):
    """
    Generic CRUD repository for SQLModel entities.

    Parameters
    ----------
    model : Type[ModelType]
        The SQLModel class this repository manages.
    db : AsyncSession
        An active async database session (injected per-request).
    """

    def __init__(self, model: Type[ModelType], db: AsyncSession):
        self.model = model
        self.db = db

    async def get(self, id: Any) -> Optional[ModelType]:
        """Fetch a single entity by primary key.  Returns ``None`` if not found."""
        return await self.db.get(self.model, id)

    async def add(self, entity: ModelType) -> ModelType:
        """Stage a new entity, flush it so the DB assigns its key, and refresh it."""
        self.db.add(entity)
        await self.db.flush()
        await self.db.refresh(entity)
        return entity

    async def add_all(self, entities: Sequence[ModelType]) -> List[ModelType]:
        """
        Stage several new entities in one flush.

        The returned list preserves the input order.
        """
        self.db.add_all(entities)
        await self.db.flush()
        for entity in entities:
            await self.db.refresh(entity)
        return list(entities)

    async def save(self, entity: ModelType) -> ModelType:
        """Flush pending changes on an already-tracked entity and refresh it."""
        await self.db.flush()
        await self.db.refresh(entity)
        return entity

    async def delete(self, entity: ModelType) -> None:
        """Stage deletion of ``entity`` (ORM cascades apply)."""
        await self.db.delete(entity)
        await self.db.flush()
        logger.debug("Deleted %s", entity)
