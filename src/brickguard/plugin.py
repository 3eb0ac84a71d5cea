from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

from .commands import AdminCommands
from .config import Settings
from .constants import AUTOSAVE_EVENT, AUTOSAVE_PLUGIN, COMMAND_NAME
from .enforcement.pipeline import EnforcementPipeline
from .error_handlers import report_command_error, report_pass_error
from .host.interfaces import Host
from .host.omegga import OmeggaHost
from .host.rpc import RpcMessage, RpcTransport, open_stdin_reader
from .logging_setup import setup_logging
from .observability import ActionType, log_structured
from .services.audit_relay import AuditRelay
from .services.kv_store import HostKeyValueStore, KeyValueStore, SqliteKeyValueStore
from .services.ledger import ViolationLedger
from .services.stats import RuntimeStats
from .services.task_queue import QueuePolicy, TaskQueue
from .snapshot.codec import SnapshotCodec
from .snapshot.loader import load_codec

log = logging.getLogger("brickguard.plugin")


@dataclass
class PluginContext:
    """Everything a handler needs, built once at startup."""

    settings: Settings
    host: Host
    ledger: ViolationLedger
    codec: SnapshotCodec
    pipeline: EnforcementPipeline
    commands: AdminCommands
    stats: RuntimeStats
    audit: Optional[AuditRelay] = None


async def build_context(settings: Settings, host: OmeggaHost) -> PluginContext:
    store: KeyValueStore
    if settings.ledger_backend == "sqlite":
        sqlite_store = SqliteKeyValueStore(settings.sqlite_path, settings.ledger_namespace)
        await sqlite_store.init()
        store = sqlite_store
    else:
        store = HostKeyValueStore(host)

    ledger = ViolationLedger(store)
    codec = load_codec(settings.snapshot_codec, host=host, settings=settings)
    stats = RuntimeStats()
    audit = AuditRelay(settings.audit_webhook_url) if settings.audit_webhook_url else None
    pipeline = EnforcementPipeline(
        host=host,
        ledger=ledger,
        codec=codec,
        settings=settings,
        stats=stats,
        audit=audit,
    )
    commands = AdminCommands(host=host, ledger=ledger, settings=settings)
    return PluginContext(
        settings=settings,
        host=host,
        ledger=ledger,
        codec=codec,
        pipeline=pipeline,
        commands=commands,
        stats=stats,
        audit=audit,
    )


class AntiMicrobrickPlugin:
    """Routes host events into a single sequential worker."""

    def __init__(self, ctx: PluginContext, rpc: RpcTransport) -> None:
        self.ctx = ctx
        self.rpc = rpc
        self.queue = TaskQueue(QueuePolicy(), stats=ctx.stats)
        self._stopped = asyncio.Event()

    def resolve_save_path(self, save_path: str) -> Path:
        return Path(self.ctx.settings.host_root) / save_path

    async def dispatch(self, msg: RpcMessage) -> None:
        params = msg.param_list()

        if msg.method == "init":
            self.rpc.respond(msg.id, {"registeredCommands": [COMMAND_NAME]})
            await self.queue.enqueue(self._connect_autosave)
            log_structured(ActionType.STARTUP, "Plugin initialized", {"ledger": self.ctx.settings.ledger_backend})
            return

        if msg.method == "stop":
            self.rpc.respond(msg.id)
            self._stopped.set()
            return

        if msg.method == f"cmd:{COMMAND_NAME}":
            if msg.is_request:
                self.rpc.respond(msg.id)
            if not params:
                return
            player, args = str(params[0]), [str(a) for a in params[1:]]
            await self.queue.enqueue(lambda: self._run_command(player, args))
            return

        if msg.method == "plugin:emit":
            if msg.is_request:
                self.rpc.respond(msg.id)
            if len(params) >= 3 and params[0] == AUTOSAVE_EVENT and params[1] == AUTOSAVE_PLUGIN:
                path = self.resolve_save_path(str(params[2]))
                await self.queue.enqueue(lambda: self.check_save(path))
            return

        if msg.is_request:
            self.rpc.respond(msg.id)

    async def _connect_autosave(self) -> None:
        # The autosave plugin answers by emitting "save" events to us.
        await self.ctx.host.emit_plugin(AUTOSAVE_PLUGIN, "connect", [])
        log.info("Requested snapshots from %s", AUTOSAVE_PLUGIN)

    async def check_save(self, path: Path) -> None:
        try:
            await self.ctx.pipeline.run_pass(path)
        except Exception as e:
            self.ctx.stats.passes_failed += 1
            report_pass_error(self.ctx.host, str(path), e)

    async def _run_command(self, player: str, args: list[str]) -> None:
        try:
            await self.ctx.commands.handle(player, args)
        except Exception as e:
            report_command_error(self.ctx.host, player, " ".join(args), e)

    async def run(self) -> None:
        self.queue.start()
        reader = asyncio.create_task(self.rpc.run(self.dispatch), name="brickguard-rpc-reader")
        stopped = asyncio.create_task(self._stopped.wait(), name="brickguard-stop")
        try:
            await asyncio.wait({reader, stopped}, return_when=asyncio.FIRST_COMPLETED)
            # Queued passes may still await host responses; keep reading until they finish.
            await self.queue.stop()
        finally:
            for task in (reader, stopped):
                task.cancel()
            await asyncio.gather(reader, stopped, return_exceptions=True)
            if self.ctx.audit is not None:
                await self.ctx.audit.close()
            log_structured(
                ActionType.SHUTDOWN,
                "Plugin stopped",
                {
                    "uptime_seconds": self.ctx.stats.uptime_seconds(),
                    "passes_run": self.ctx.stats.passes_run,
                    "passes_failed": self.ctx.stats.passes_failed,
                },
            )


async def run_plugin(settings: Settings) -> None:
    reader = await open_stdin_reader()
    rpc = RpcTransport(reader)
    host = OmeggaHost(rpc)
    setup_logging(settings.log_level, host)

    ctx = await build_context(settings, host)
    await AntiMicrobrickPlugin(ctx, rpc).run()
