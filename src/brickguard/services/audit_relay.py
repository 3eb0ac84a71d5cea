from __future__ import annotations

import logging
from typing import Iterable, Optional

import aiohttp
import discord

from ..enforcement.models import EnforcementAction

log = logging.getLogger("brickguard.audit_relay")

COLORS = {
    "clear": 0xF1C40F,
    "tempban": 0xE67E22,
    "permban": 0xED4245,
}

TITLES = {
    "clear": "Microbricks cleared",
    "tempban": "Temporary ban issued",
    "permban": "Permanent ban issued",
}

# Discord accepts at most 10 embeds per message.
MAX_EMBEDS_PER_MESSAGE = 10


def build_embed(action: EnforcementAction) -> discord.Embed:
    embed = discord.Embed(
        title=TITLES[action.action_type],
        description=f"**{discord.utils.escape_markdown(action.owner_name)}** (`{action.owner_id}`)",
        color=COLORS[action.action_type],
    )
    for key, value in action.params.items():
        embed.add_field(name=key.replace("_", " ").title(), value=str(value), inline=True)
    return embed


class AuditRelay:
    """Mirrors clears and bans to a staff channel through a Discord webhook.

    Delivery is best effort: a failed post is logged and the pass result
    stands.
    """

    def __init__(self, webhook_url: str, username: str = "Anti-Microbrick") -> None:
        self._url = webhook_url
        self._username = username
        self._session: Optional[aiohttp.ClientSession] = None

    async def start(self) -> None:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()

    async def close(self) -> None:
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None

    async def publish(self, actions: Iterable[EnforcementAction]) -> None:
        embeds = [build_embed(a) for a in actions if a.action_type in TITLES]
        if not embeds:
            return
        await self.start()
        webhook = discord.Webhook.from_url(self._url, session=self._session)
        for i in range(0, len(embeds), MAX_EMBEDS_PER_MESSAGE):
            try:
                await webhook.send(
                    embeds=embeds[i : i + MAX_EMBEDS_PER_MESSAGE],
                    username=self._username,
                    allowed_mentions=discord.AllowedMentions.none(),
                )
            except (discord.HTTPException, aiohttp.ClientError):
                log.exception("Failed to relay enforcement actions")
                return
