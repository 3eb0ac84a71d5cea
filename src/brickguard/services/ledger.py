from __future__ import annotations

import logging
from typing import Any, Optional
from uuid import UUID

from ..constants import BANS_PREFIX, TIMER_PREFIX, VIOLATIONS_PREFIX
from ..errors import LedgerCorruptError
from .kv_store import KeyValueStore

log = logging.getLogger("brickguard.ledger")

OwnerKey = UUID | str


def timer_key(owner_id: OwnerKey) -> str:
    return f"{TIMER_PREFIX}{owner_id}"


def violations_key(owner_id: OwnerKey) -> str:
    return f"{VIOLATIONS_PREFIX}{owner_id}"


def bans_key(owner_id: OwnerKey) -> str:
    return f"{BANS_PREFIX}{owner_id}"


class ViolationLedger:
    """Per-player timer, violation and ban bookkeeping.

    Every call goes to the store; nothing read here outlives the pass that
    read it. Values that cannot be interpreted raise ``LedgerCorruptError``
    instead of being treated as missing, so a storage glitch never erases a
    player's history.
    """

    def __init__(self, store: KeyValueStore) -> None:
        self._store = store

    async def get(self, key: str) -> Optional[Any]:
        return await self._store.get(key)

    async def set(self, key: str, value: Any) -> None:
        await self._store.set(key, value)

    async def delete(self, key: str) -> None:
        await self._store.delete(key)

    async def list_keys(self) -> list[str]:
        return await self._store.keys()

    async def wipe_all(self) -> None:
        await self._store.wipe()
        log.warning("Ledger wiped")

    # Timers hold the grace-window start as a decimal string of epoch seconds.

    async def get_timer(self, owner_id: OwnerKey) -> Optional[int]:
        key = timer_key(owner_id)
        raw = await self._store.get(key)
        if raw is None:
            return None
        if isinstance(raw, str) and raw.strip().isdecimal():
            return int(raw.strip())
        if isinstance(raw, int) and not isinstance(raw, bool) and raw >= 0:
            return raw
        raise LedgerCorruptError(key, raw)

    async def start_timer(self, owner_id: OwnerKey, now: int) -> None:
        await self._store.set(timer_key(owner_id), str(int(now)))

    async def clear_timer(self, owner_id: OwnerKey) -> None:
        await self._store.delete(timer_key(owner_id))

    async def _get_counter(self, key: str) -> int:
        raw = await self._store.get(key)
        if raw is None:
            return 0
        if isinstance(raw, bool):
            raise LedgerCorruptError(key, raw)
        if isinstance(raw, float) and raw.is_integer():
            raw = int(raw)
        if isinstance(raw, int) and raw >= 0:
            return raw
        raise LedgerCorruptError(key, raw)

    async def get_violations(self, owner_id: OwnerKey) -> int:
        return await self._get_counter(violations_key(owner_id))

    async def set_violations(self, owner_id: OwnerKey, count: int) -> None:
        await self._store.set(violations_key(owner_id), int(count))

    async def get_bans(self, owner_id: OwnerKey) -> int:
        return await self._get_counter(bans_key(owner_id))

    async def set_bans(self, owner_id: OwnerKey, count: int) -> None:
        await self._store.set(bans_key(owner_id), int(count))

    async def timer_owner_ids(self) -> list[UUID]:
        owners: list[UUID] = []
        for key in await self._store.keys():
            if not key.startswith(TIMER_PREFIX):
                continue
            suffix = key[len(TIMER_PREFIX):]
            try:
                owners.append(UUID(suffix))
            except ValueError as e:
                raise LedgerCorruptError(key, suffix) from e
        return owners

    async def forget(self, owner_id: OwnerKey) -> None:
        """Delete the timer, violation and ban records of one player."""
        for key in (timer_key(owner_id), violations_key(owner_id), bans_key(owner_id)):
            await self._store.delete(key)
        log.info("Forgot ledger records for %s", owner_id)
