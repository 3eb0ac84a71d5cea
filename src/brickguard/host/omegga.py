from __future__ import annotations

import logging
from typing import Any

from ..errors import HostError
from .interfaces import Player
from .rpc import RpcTransport

log = logging.getLogger("brickguard.omegga")


class OmeggaHost:
    """Host operations mapped onto Omegga's plugin RPC methods."""

    def __init__(self, rpc: RpcTransport) -> None:
        self.rpc = rpc

    def log(self, line: str) -> None:
        self.rpc.notify("log", line)

    def error(self, line: str) -> None:
        self.rpc.notify("error", line)

    def broadcast(self, line: str) -> None:
        self.rpc.notify("broadcast", line)

    def whisper(self, target: str, line: str) -> None:
        self.rpc.notify("whisper", {"target": target, "line": line})

    def writeln(self, line: str) -> None:
        self.rpc.notify("exec", line)

    def clear_bricks(self, target: str, quiet: bool = True) -> None:
        self.rpc.notify("clearBricks", {"target": target, "quiet": quiet})

    async def get_players(self) -> list[Player]:
        raw = await self.rpc.request("getPlayers")
        if not isinstance(raw, list):
            raise HostError(f"getPlayers returned {type(raw).__name__}, expected a list")
        players: list[Player] = []
        for entry in raw:
            if not isinstance(entry, dict) or "name" not in entry:
                log.warning("Skipping malformed player entry: %r", entry)
                continue
            players.append(
                Player(
                    id=str(entry.get("id", "")),
                    name=str(entry["name"]),
                    controller=str(entry.get("controller", "")),
                    state=str(entry.get("state", "")),
                )
            )
        return players

    async def load_bricks(
        self, name: str, *, offset: tuple[int, int, int] = (0, 0, 0), quiet: bool = True
    ) -> None:
        x, y, z = offset
        await self.rpc.request(
            "loadBricks",
            {"name": name, "offX": x, "offY": y, "offZ": z, "quiet": quiet},
        )

    async def emit_plugin(self, target: str, event: str, args: list[Any]) -> Any:
        return await self.rpc.request("emitPlugin", {"target": target, "event": event, "args": args})

    # Plugin store, used by HostKeyValueStore.

    async def store_get(self, key: str) -> Any:
        return await self.rpc.request("store.get", key)

    # Writes are requests so a failed write comes back as an error reply.

    async def store_set(self, key: str, value: Any) -> None:
        await self.rpc.request("store.set", [key, value])

    async def store_delete(self, key: str) -> None:
        await self.rpc.request("store.delete", key)

    async def store_keys(self) -> list[str]:
        keys = await self.rpc.request("store.keys")
        if not isinstance(keys, list):
            raise HostError(f"store.keys returned {type(keys).__name__}, expected a list")
        return [str(k) for k in keys]

    async def store_wipe(self) -> None:
        await self.rpc.request("store.wipe")

    # Save files, parsed and serialized by the host.

    async def read_save_data(self, name: str) -> Any:
        return await self.rpc.request("readSaveData", name)

    async def write_save_data(self, name: str, data: dict[str, Any]) -> None:
        await self.rpc.request("writeSaveData", [name, data])
