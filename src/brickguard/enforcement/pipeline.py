from __future__ import annotations

import asyncio
import logging
import os
import time
from typing import Awaitable, Callable, Optional

from ..config import Settings
from ..host.interfaces import Host
from ..observability import ActionType, log_structured
from ..services.audit_relay import AuditRelay
from ..services.ledger import ViolationLedger
from ..services.stats import RuntimeStats
from ..snapshot.codec import SnapshotCodec
from .engine import EscalationEngine
from .models import PassResult
from .ownership import collect_violators
from .reconcile import ReconciliationSweep
from .rewriter import SnapshotRewriter

log = logging.getLogger("brickguard.pipeline")

Clock = Callable[[], float]
Sleep = Callable[[float], Awaitable[None]]


class EnforcementPipeline:
    """One enforcement pass per captured snapshot.

    Order matters: the plan is built from reads only, the restore snapshot is
    written before anything is enforced (an I/O failure leaves the world
    untouched), and the timer sweep runs last.
    """

    def __init__(
        self,
        *,
        host: Host,
        ledger: ViolationLedger,
        codec: SnapshotCodec,
        settings: Settings,
        stats: Optional[RuntimeStats] = None,
        audit: Optional[AuditRelay] = None,
        clock: Clock = time.time,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self.host = host
        self.codec = codec
        self.settings = settings
        self.stats = stats or RuntimeStats()
        self.audit = audit
        self._clock = clock
        self._sleep = sleep
        self.engine = EscalationEngine(host=host, ledger=ledger, settings=settings)
        self.rewriter = SnapshotRewriter(codec, settings.rewrite_path, settings.prohibited_marker)
        self.sweep = ReconciliationSweep(ledger)

    async def run_pass(self, path: str | os.PathLike[str]) -> PassResult:
        started = time.perf_counter()
        now = int(self._clock())
        marker = self.settings.prohibited_marker

        header = await self.codec.read_header(path)
        if not header.has_prohibited_assets(marker):
            self.stats.passes_skipped += 1
            log_structured(ActionType.PASS_SKIPPED, f"No prohibited assets in {path}", level=logging.DEBUG)
            return PassResult(path=str(path), skipped=True)

        snapshot = await self.codec.read(path)
        violators = collect_violators(snapshot, marker)
        plan = await self.engine.plan(violators, now)

        restored = await self.rewriter.write(snapshot, plan.cleared_owners)
        actions = await self.engine.apply(plan)

        if plan.cleared_owners:
            # The host drops a load issued right after a bulk clear.
            await self._sleep(self.settings.reload_delay_seconds)
            await self.host.load_bricks(self.settings.rewrite_save_name, offset=(0, 0, 0), quiet=True)

        removed = await self.sweep.run(micro_owners=plan.micro_owners, cleared_owners=plan.cleared_owners)

        result = PassResult(
            path=str(path),
            bricks_scanned=len(snapshot.bricks),
            violators=len(violators),
            warned=len(plan.micro_owners),
            cleared=len(plan.cleared_owners),
            bans_issued=sum(1 for a in actions if a.action_type in ("tempban", "permban")),
            bricks_restored=len(restored.bricks),
            timers_removed=len(removed),
            duration_ms=round((time.perf_counter() - started) * 1000, 2),
            actions=tuple(actions),
        )

        self.stats.passes_run += 1
        self.stats.owners_warned += result.warned
        self.stats.owners_cleared += result.cleared
        self.stats.bans_issued += result.bans_issued
        log_structured(ActionType.PASS, f"Checked {path}", result.to_dict())

        if self.audit is not None and actions:
            await self.audit.publish(actions)
        return result
