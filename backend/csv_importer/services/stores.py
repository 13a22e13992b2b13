"""Persistence backends the import pipeline writes to."""
import logging
from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)


class ImportStore(ABC):
    """Where an import's entities end up.

    ``supports_transactions`` tells the pipeline whether it may call
    ``begin``/``commit``/``rollback``. Backends without transactions must
    make ``persist`` durable on its own.
    """

    supports_transactions: bool = True

    @abstractmethod
    async def begin(self) -> None: ...

    @abstractmethod
    async def add_batch(self, entities: Sequence[Any]) -> None: ...

    @abstractmethod
    async def persist(self) -> None: ...

    @abstractmethod
    async def commit(self) -> None: ...

    @abstractmethod
    async def rollback(self) -> None: ...


class SqlAlchemyStore(ImportStore):
    def __init__(self, session: AsyncSession, *, supports_transactions: bool = True) -> None:
        self.session = session
        self.supports_transactions = supports_transactions

    async def begin(self) -> None:
        # Join a transaction the caller already opened on this session.
        if not self.session.in_transaction():
            await self.session.begin()

    async def add_batch(self, entities: Sequence[Any]) -> None:
        self.session.add_all(entities)

    async def persist(self) -> None:
        await self.session.flush()
        if not self.supports_transactions:
            await self.session.commit()

    async def commit(self) -> None:
        await self.session.commit()

    async def rollback(self) -> None:
        await self.session.rollback()


class InMemoryStore(ImportStore):
    """List-backed store without transaction support."""

    supports_transactions = False

    def __init__(self) -> None:
        self.items: list[Any] = []
        self._staged: list[Any] = []

    async def begin(self) -> None:
        raise NotImplementedError("InMemoryStore does not support transactions")

    async def add_batch(self, entities: Sequence[Any]) -> None:
        self._staged.extend(entities)

    async def persist(self) -> None:
        self.items.extend(self._staged)
        logger.debug("InMemoryStore: persisted %d entities", len(self._staged))
        self._staged.clear()

    async def commit(self) -> None:
        raise NotImplementedError("InMemoryStore does not support transactions")

    async def rollback(self) -> None:
        raise NotImplementedError("InMemoryStore does not support transactions")
