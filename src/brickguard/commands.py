from __future__ import annotations

import logging
from typing import Optional

from .config import Settings
from .constants import MESSAGES
from .host.interfaces import Host, Player
from .observability import ActionType, log_structured
from .services.ledger import ViolationLedger

log = logging.getLogger("brickguard.commands")


class AdminCommands:
    """``/antimicro clean <player>`` and ``/antimicro wipe confirm``.

    Authorization compares the invoking player's *name* with the configured
    allow-list. The host only reports names for commands, so a renamed
    account loses (or gains) access with its name.
    """

    def __init__(self, *, host: Host, ledger: ViolationLedger, settings: Settings) -> None:
        self.host = host
        self.ledger = ledger
        self._allowed = {name.lower() for name in settings.authorized_users}

    def is_authorized(self, player: str) -> bool:
        return player.lower() in self._allowed

    async def handle(self, player: str, args: list[str]) -> None:
        if not self.is_authorized(player):
            log.warning("Unauthorized /antimicro attempt by %s: %s", player, args)
            self.host.whisper(player, MESSAGES["not_authorized"])
            return

        sub = args[0].lower() if args else ""
        if sub == "clean":
            await self.clean(player, " ".join(args[1:]).strip())
        elif sub == "wipe":
            await self.wipe(player, confirmed=len(args) > 1 and args[1].lower() == "confirm")
        else:
            self.host.whisper(player, MESSAGES["usage"])

    async def find_player(self, query: str) -> Optional[Player]:
        """First connected player whose name starts with ``query`` (any case)."""
        needle = query.lower()
        for candidate in await self.host.get_players():
            if candidate.name.lower().startswith(needle):
                return candidate
        return None

    async def clean(self, invoker: str, query: str) -> None:
        if not query:
            self.host.whisper(invoker, MESSAGES["usage"])
            return
        target = await self.find_player(query)
        if target is None:
            self.host.whisper(invoker, MESSAGES["no_match"].format(query=query))
            return

        await self.ledger.forget(target.id)
        self.host.whisper(invoker, MESSAGES["cleaned"].format(name=target.name))
        log_structured(
            ActionType.COMMAND,
            f"{invoker} cleaned ledger records of {target.name}",
            {"command": "clean", "invoker": invoker, "target_id": target.id},
        )

    async def wipe(self, invoker: str, *, confirmed: bool) -> None:
        if not confirmed:
            self.host.whisper(invoker, MESSAGES["wipe_prompt"])
            return
        await self.ledger.wipe_all()
        self.host.whisper(invoker, MESSAGES["wiped"])
        log_structured(ActionType.COMMAND, f"{invoker} wiped the ledger", {"command": "wipe", "invoker": invoker})
