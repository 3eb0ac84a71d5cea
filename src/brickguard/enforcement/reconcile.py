from __future__ import annotations

import logging
from typing import Collection
from uuid import UUID

from ..services.ledger import ViolationLedger

log = logging.getLogger("brickguard.reconcile")


class ReconciliationSweep:
    """Drops timers that no longer describe an open grace window.

    A timer survives only when its owner was warned this pass. Cleared owners
    already had their violation applied; anyone else stopped violating.
    """

    def __init__(self, ledger: ViolationLedger) -> None:
        self.ledger = ledger

    async def run(self, *, micro_owners: Collection[UUID], cleared_owners: Collection[UUID]) -> list[UUID]:
        removed: list[UUID] = []
        for owner_id in await self.ledger.timer_owner_ids():
            if owner_id in cleared_owners or owner_id not in micro_owners:
                await self.ledger.clear_timer(owner_id)
                removed.append(owner_id)
        if removed:
            log.info("Removed %d stale timers", len(removed))
        return removed
