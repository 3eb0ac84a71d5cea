from __future__ import annotations

import json
from typing import Any, Optional, Protocol

import aiosqlite

from ..errors import HostError, LedgerCorruptError, LedgerError
from ..host.omegga import OmeggaHost
from .base import BaseService


class KeyValueStore(Protocol):
    """Namespaced JSON key-value storage. No cross-key atomicity."""

    async def get(self, key: str) -> Optional[Any]: ...

    async def set(self, key: str, value: Any) -> None: ...

    async def delete(self, key: str) -> None: ...

    async def keys(self) -> list[str]: ...

    async def wipe(self) -> None: ...


class HostKeyValueStore:
    """The plugin store Omegga keeps for each plugin."""

    def __init__(self, host: OmeggaHost) -> None:
        self._host = host

    async def get(self, key: str) -> Optional[Any]:
        try:
            return await self._host.store_get(key)
        except HostError as e:
            raise LedgerError(f"store.get {key!r} failed: {e}") from e

    async def set(self, key: str, value: Any) -> None:
        try:
            await self._host.store_set(key, value)
        except HostError as e:
            raise LedgerError(f"store.set {key!r} failed: {e}") from e

    async def delete(self, key: str) -> None:
        try:
            await self._host.store_delete(key)
        except HostError as e:
            raise LedgerError(f"store.delete {key!r} failed: {e}") from e

    async def keys(self) -> list[str]:
        try:
            return await self._host.store_keys()
        except HostError as e:
            raise LedgerError(f"store.keys failed: {e}") from e

    async def wipe(self) -> None:
        try:
            await self._host.store_wipe()
        except HostError as e:
            raise LedgerError(f"store.wipe failed: {e}") from e


class SqliteKeyValueStore(BaseService):
    """Local fallback for running without the host store."""

    def __init__(self, sqlite_path: str, namespace: str) -> None:
        super().__init__(sqlite_path)
        self._namespace = namespace

    async def _create_tables(self, db: aiosqlite.Connection) -> None:
        await db.execute(
            """
            CREATE TABLE IF NOT EXISTS ledger (
                namespace TEXT NOT NULL,
                key TEXT NOT NULL,
                value_json TEXT NOT NULL,
                updated_at INTEGER NOT NULL DEFAULT (strftime('%s','now')),
                PRIMARY KEY (namespace, key)
            )
            """
        )

    async def get(self, key: str) -> Optional[Any]:
        try:
            async with aiosqlite.connect(self._path) as db:
                async with db.execute(
                    "SELECT value_json FROM ledger WHERE namespace=? AND key=?",
                    (self._namespace, key),
                ) as cur:
                    row = await cur.fetchone()
        except aiosqlite.Error as e:
            raise LedgerError(f"ledger read {key!r} failed: {e}") from e
        if row is None:
            return None
        try:
            return json.loads(row[0])
        except ValueError as e:
            raise LedgerCorruptError(key, row[0]) from e

    async def set(self, key: str, value: Any) -> None:
        payload = json.dumps(value, separators=(",", ":"))
        try:
            async with aiosqlite.connect(self._path) as db:
                await db.execute(
                    """
                    INSERT INTO ledger (namespace, key, value_json, updated_at)
                    VALUES (?, ?, ?, strftime('%s','now'))
                    ON CONFLICT(namespace, key) DO UPDATE SET
                        value_json=excluded.value_json,
                        updated_at=strftime('%s','now')
                    """,
                    (self._namespace, key, payload),
                )
                await db.commit()
        except aiosqlite.Error as e:
            raise LedgerError(f"ledger write {key!r} failed: {e}") from e

    async def delete(self, key: str) -> None:
        try:
            async with aiosqlite.connect(self._path) as db:
                await db.execute("DELETE FROM ledger WHERE namespace=? AND key=?", (self._namespace, key))
                await db.commit()
        except aiosqlite.Error as e:
            raise LedgerError(f"ledger delete {key!r} failed: {e}") from e

    async def keys(self) -> list[str]:
        try:
            async with aiosqlite.connect(self._path) as db:
                async with db.execute(
                    "SELECT key FROM ledger WHERE namespace=? ORDER BY key", (self._namespace,)
                ) as cur:
                    rows = await cur.fetchall()
        except aiosqlite.Error as e:
            raise LedgerError(f"ledger key listing failed: {e}") from e
        return [str(r[0]) for r in rows]

    async def wipe(self) -> None:
        try:
            async with aiosqlite.connect(self._path) as db:
                cur = await db.execute("DELETE FROM ledger WHERE namespace=?", (self._namespace,))
                removed = cur.rowcount
                await db.commit()
        except aiosqlite.Error as e:
            raise LedgerError(f"ledger wipe failed: {e}") from e
        self._logger.info("Wiped %d ledger rows in namespace %s", removed, self._namespace)
