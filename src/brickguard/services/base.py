from __future__ import annotations

import aiosqlite
import logging
from abc import ABC, abstractmethod

log = logging.getLogger("brickguard.base_service")


class BaseService(ABC):
    """Base class for SQLite-backed services.

    Every operation opens its own connection and nothing is cached, so each
    read sees what other processes wrote.
    """

    def __init__(self, sqlite_path: str) -> None:
        self._path = sqlite_path
        self._logger = logging.getLogger(f"brickguard.{self.__class__.__name__.lower()}")

    async def init(self) -> None:
        """Initialize the database schema."""
        async with aiosqlite.connect(self._path) as db:
            await self._create_tables(db)
            await db.commit()

    @abstractmethod
    async def _create_tables(self, db: aiosqlite.Connection) -> None:
        """Create the necessary database tables."""
        pass
