from __future__ import annotations

import asyncio
import itertools
import json
import logging
import sys
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional

from ..errors import HostError

log = logging.getLogger("brickguard.rpc")

LineWriter = Callable[[str], None]
MessageSink = Callable[["RpcMessage"], Awaitable[None]]


@dataclass(frozen=True)
class RpcMessage:
    """Inbound request (``id`` set) or notification (``id`` is None)."""

    method: str
    params: Any = None
    id: Any = None

    @property
    def is_request(self) -> bool:
        return self.id is not None

    def param_list(self) -> list[Any]:
        if self.params is None:
            return []
        if isinstance(self.params, list):
            return self.params
        return [self.params]


def _stdout_writer(line: str) -> None:
    sys.stdout.write(line + "\n")
    sys.stdout.flush()


async def open_stdin_reader() -> asyncio.StreamReader:
    loop = asyncio.get_running_loop()
    reader = asyncio.StreamReader(limit=2**24)
    await loop.connect_read_pipe(lambda: asyncio.StreamReaderProtocol(reader), sys.stdin)
    return reader


class RpcTransport:
    """Newline-delimited JSON-RPC 2.0 peer over the plugin's stdio.

    ``run`` only routes: responses resolve their pending request futures,
    requests and notifications go to the sink in arrival order.
    """

    def __init__(self, reader: asyncio.StreamReader, write_line: Optional[LineWriter] = None) -> None:
        self._reader = reader
        self._write_line = write_line or _stdout_writer
        self._ids = itertools.count(1)
        self._pending: dict[int, asyncio.Future[Any]] = {}
        self._closed = False

    def _send(self, payload: dict[str, Any]) -> None:
        if self._closed:
            raise HostError("RPC transport is closed")
        payload["jsonrpc"] = "2.0"
        self._write_line(json.dumps(payload, separators=(",", ":")))

    def notify(self, method: str, params: Any = None) -> None:
        self._send({"method": method, "params": params})

    def respond(self, id: Any, result: Any = None, error: Optional[dict[str, Any]] = None) -> None:
        payload: dict[str, Any] = {"id": id}
        if error is not None:
            payload["error"] = error
        else:
            payload["result"] = result
        self._send(payload)

    async def request(self, method: str, params: Any = None) -> Any:
        request_id = next(self._ids)
        future: asyncio.Future[Any] = asyncio.get_running_loop().create_future()
        self._pending[request_id] = future
        try:
            self._send({"method": method, "params": params, "id": request_id})
            return await future
        finally:
            self._pending.pop(request_id, None)

    def _resolve(self, msg: dict[str, Any]) -> None:
        future = self._pending.get(msg.get("id"))  # type: ignore[arg-type]
        if future is None or future.done():
            log.warning("Dropping response for unknown request id %r", msg.get("id"))
            return
        if msg.get("error") is not None:
            future.set_exception(HostError(f"host returned error: {msg['error']}"))
        else:
            future.set_result(msg.get("result"))

    async def run(self, sink: MessageSink) -> None:
        try:
            while True:
                raw = await self._reader.readline()
                if not raw:
                    break
                line = raw.decode("utf-8").strip()
                if not line:
                    continue
                try:
                    msg = json.loads(line)
                except ValueError:
                    log.warning("Ignoring malformed RPC line: %.200s", line)
                    continue
                if not isinstance(msg, dict):
                    log.warning("Ignoring non-object RPC message: %.200s", line)
                    continue

                if "method" in msg:
                    await sink(RpcMessage(method=str(msg["method"]), params=msg.get("params"), id=msg.get("id")))
                elif "id" in msg:
                    self._resolve(msg)
        finally:
            self._closed = True
            for future in self._pending.values():
                if not future.done():
                    future.set_exception(HostError("RPC transport closed while awaiting a response"))
            log.info("RPC reader stopped")
