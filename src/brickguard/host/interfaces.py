from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol


@dataclass(frozen=True)
class Player:
    id: str
    name: str
    controller: str = ""
    state: str = ""


class Host(Protocol):
    """Outbound operations the plugin host offers.

    Fire-and-forget calls are plain methods; anything the host answers is
    awaited.
    """

    def log(self, line: str) -> None: ...

    def error(self, line: str) -> None: ...

    def broadcast(self, line: str) -> None: ...

    def whisper(self, target: str, line: str) -> None: ...

    def writeln(self, line: str) -> None: ...

    def clear_bricks(self, target: str, quiet: bool = True) -> None: ...

    async def get_players(self) -> list[Player]: ...

    async def load_bricks(
        self, name: str, *, offset: tuple[int, int, int] = (0, 0, 0), quiet: bool = True
    ) -> None: ...

    async def emit_plugin(self, target: str, event: str, args: list[Any]) -> Any: ...

    async def read_save_data(self, name: str) -> Any: ...

    async def write_save_data(self, name: str, data: dict[str, Any]) -> None: ...
