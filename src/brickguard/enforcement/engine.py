from __future__ import annotations

import logging
from typing import Iterable, Optional
from uuid import UUID

from ..config import Settings
from ..constants import MESSAGES, PERMANENT_BAN_DURATION, PUBLIC_OWNER_ID
from ..host.interfaces import Host
from ..services.ledger import ViolationLedger
from ..snapshot.models import Owner
from .models import ClearPlan, EnforcementAction, OwnerVerdict, PassPlan

log = logging.getLogger("brickguard.engine")


def _ban_command(owner_id: UUID, duration: str, reason: str) -> str:
    return f'Chat.Command /Ban {owner_id} {duration} "{reason}"'


class EscalationEngine:
    """Warn, clear, then ban.

    ``plan`` only reads the ledger: every timer and counter a pass depends on
    is read fresh, and a corrupt value aborts before anything is applied.
    ``apply`` then performs the plan, writing each key at most once per owner.
    """

    def __init__(self, *, host: Host, ledger: ViolationLedger, settings: Settings) -> None:
        self.host = host
        self.ledger = ledger
        self.settings = settings

    async def _online_ids(self) -> set[str]:
        players = await self.host.get_players()
        return {p.id.lower() for p in players}

    async def plan(self, violators: Iterable[Owner], now: int) -> PassPlan:
        grace = self.settings.grace_seconds
        online: Optional[set[str]] = None
        verdicts: list[OwnerVerdict] = []
        seen: set[UUID] = set()

        for owner in violators:
            if owner.id in seen or owner.id == PUBLIC_OWNER_ID:
                continue
            seen.add(owner.id)

            started = await self.ledger.get_timer(owner.id)
            if started is not None and now >= started + grace:
                verdicts.append(OwnerVerdict(owner, "clear", timer_started_at=started))
                continue
            if started is None and grace == 0:
                verdicts.append(OwnerVerdict(owner, "clear"))
                continue

            # Inside the grace window, either just opened or still running.
            if online is None:
                online = await self._online_ids()
            connected = str(owner.id).lower() in online
            if not connected and not self.settings.track_offline_players:
                log.debug("Skipping offline violator %s (%s)", owner.name, owner.id)
                continue
            verdicts.append(
                OwnerVerdict(
                    owner,
                    "warn",
                    timer_started_at=now if started is None else started,
                    start_timer=started is None,
                    notify=connected,
                )
            )

        clears: list[ClearPlan] = []
        for verdict in verdicts:
            if verdict.verdict != "clear":
                continue
            owner = verdict.owner
            violations = await self.ledger.get_violations(owner.id) + 1
            if violations <= self.settings.max_violations:
                clears.append(ClearPlan(owner, violations=violations, bans=None, action="status"))
                continue
            bans = await self.ledger.get_bans(owner.id) + 1
            clears.append(
                ClearPlan(
                    owner,
                    violations=violations,
                    bans=bans,
                    action="permban" if bans > self.settings.max_bans else "tempban",
                    remaining_bans=max(0, self.settings.max_bans - bans),
                )
            )

        return PassPlan(now=now, verdicts=tuple(verdicts), clears=tuple(clears))

    async def apply(self, plan: PassPlan) -> list[EnforcementAction]:
        actions: list[EnforcementAction] = []

        for verdict in plan.verdicts:
            if verdict.verdict != "warn":
                continue
            owner = verdict.owner
            if verdict.start_timer:
                await self.ledger.start_timer(owner.id, plan.now)
                actions.append(EnforcementAction("start_timer", owner.id, owner.name, {"at": plan.now}))
            if verdict.notify:
                self.host.whisper(str(owner.id), MESSAGES["warn"])
                actions.append(EnforcementAction("warn", owner.id, owner.name))

        for clear in plan.clears:
            actions.extend(await self._apply_clear(clear))

        return actions

    async def _apply_clear(self, clear: ClearPlan) -> list[EnforcementAction]:
        owner = clear.owner
        actions: list[EnforcementAction] = []

        self.host.broadcast(MESSAGES["clearing"].format(name=owner.name))
        # Bulk removal takes everything the owner built; the rewritten
        # snapshot puts the legitimate part back.
        self.host.clear_bricks(str(owner.id), quiet=True)
        await self.ledger.set_violations(owner.id, clear.violations)
        log.info("Clearing bricks of %s (%d violations)", owner.id, clear.violations)
        actions.append(EnforcementAction("clear", owner.id, owner.name, {"violations": clear.violations}))

        if clear.bans is None:
            self.host.whisper(
                str(owner.id),
                MESSAGES["status"].format(
                    violations=clear.violations,
                    max_violations=self.settings.max_violations,
                ),
            )
            actions.append(EnforcementAction("status", owner.id, owner.name, {"violations": clear.violations}))
            return actions

        await self.ledger.set_bans(owner.id, clear.bans)
        if clear.action == "permban":
            self.host.writeln(_ban_command(owner.id, PERMANENT_BAN_DURATION, MESSAGES["ban_permanent"]))
            log.warning("Permanently banned %s (%s) after %d bans", owner.name, owner.id, clear.bans)
            actions.append(EnforcementAction("permban", owner.id, owner.name, {"bans": clear.bans}))
        else:
            duration = f"{self.settings.ban_time:g}"
            reason = MESSAGES["ban_temporary"].format(remaining=clear.remaining_bans)
            self.host.writeln(_ban_command(owner.id, duration, reason))
            log.warning("Banned %s (%s) for %s (ban %d of %d)", owner.name, owner.id, duration, clear.bans, self.settings.max_bans)
            actions.append(
                EnforcementAction(
                    "tempban",
                    owner.id,
                    owner.name,
                    {"bans": clear.bans, "duration": duration, "remaining": clear.remaining_bans},
                )
            )
        return actions
