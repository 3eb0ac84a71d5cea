from __future__ import annotations

import asyncio
import contextlib
import json
from uuid import UUID

from brickguard.constants import PUBLIC_OWNER_ID
from brickguard.host.interfaces import Player
from brickguard.host.omegga import OmeggaHost
from brickguard.host.rpc import RpcTransport
from brickguard.snapshot.models import Owner

ALICE = Owner(UUID("11111111-1111-1111-1111-111111111111"), "Alice", 3)
BOB = Owner(UUID("22222222-2222-2222-2222-222222222222"), "Bob", 2)
CAROL = Owner(UUID("33333333-3333-3333-3333-333333333333"), "Carol", 1)
PUBLIC = Owner(PUBLIC_OWNER_ID, "PUBLIC", 1)

ASSETS = ("PB_DefaultBrick", "PB_DefaultMicroBrick", "PB_DefaultTile", "PB_DefaultMicroWedge")
PLAIN, MICRO, TILE, MICRO_WEDGE = range(4)

NOW = 1_700_000_000

# Start of a binary save container; only the host can decode it.
BRS_BYTES = b"BRS\x0a\x00" + bytes(range(256))


def online(*owners: Owner) -> list[Player]:
    return [Player(id=str(o.id), name=o.name) for o in owners]


def run(coro):
    return asyncio.run(coro)


class HostPeer:
    """Host end of the stdio channel: answers the plugin's requests from a table.

    Methods listed in ``failing`` get an error reply; unlisted methods get a
    null result.
    """

    def __init__(self, answers=None, failing=()):
        self.reader = asyncio.StreamReader()
        self.answers = dict(answers or {})
        self.failing = set(failing)
        self.sent: list[dict] = []

    def write_line(self, line: str) -> None:
        msg = json.loads(line)
        self.sent.append(msg)
        if "id" not in msg or "method" not in msg:
            return
        reply = {"jsonrpc": "2.0", "id": msg["id"]}
        if msg["method"] in self.failing:
            reply["error"] = {"code": -32000, "message": f"{msg['method']} failed"}
        else:
            reply["result"] = self.answers.get(msg["method"])
        self.reader.feed_data((json.dumps(reply) + "\n").encode())

    def methods(self) -> list[str]:
        return [m["method"] for m in self.sent if "method" in m]


@contextlib.asynccontextmanager
async def host_session(peer: HostPeer):
    """OmeggaHost talking to ``peer`` with the transport reader running."""
    rpc = RpcTransport(peer.reader, write_line=peer.write_line)

    async def ignore(msg):
        pass

    runner = asyncio.create_task(rpc.run(ignore))
    try:
        yield OmeggaHost(rpc)
    finally:
        peer.reader.feed_eof()
        await runner
