from __future__ import annotations

import logging

from .errors import HostError, LedgerCorruptError, LedgerError, SnapshotBoundsError, SnapshotError
from .host.interfaces import Host
from .observability import ActionType, log_structured

log = logging.getLogger("brickguard.error_handlers")

# Records already sent to the host console by hand; see HostLogHandler.
HOST_NOTIFIED = {"host_notified": True}

ERROR_MESSAGES = {
    "bounds": "snapshot references a missing dictionary entry",
    "snapshot": "snapshot could not be read or written",
    "ledger_corrupt": "stored violation record is unreadable",
    "ledger": "violation store is unavailable",
    "host": "host did not answer",
    "unexpected": "unexpected error",
}


def _classify(error: BaseException) -> str:
    # Order matters: subclasses before their bases.
    if isinstance(error, SnapshotBoundsError):
        return "bounds"
    if isinstance(error, SnapshotError):
        return "snapshot"
    if isinstance(error, LedgerCorruptError):
        return "ledger_corrupt"
    if isinstance(error, LedgerError):
        return "ledger"
    if isinstance(error, HostError):
        return "host"
    return "unexpected"


def report_pass_error(host: Host, path: str, error: BaseException) -> str:
    """Log an aborted pass and tell the host console. Returns the error kind."""
    kind = _classify(error)
    summary = f"failed to check save {path}: {ERROR_MESSAGES[kind]} ({error})"
    if kind == "unexpected":
        log.exception("Unexpected error while checking %s", path, exc_info=error, extra=HOST_NOTIFIED)
    else:
        log.error("Pass aborted for %s: %s", path, error, extra=HOST_NOTIFIED)
    log_structured(
        ActionType.PASS_FAILED,
        summary,
        {"path": path, "kind": kind, "error_type": type(error).__name__},
        level=logging.INFO,
    )
    try:
        host.error(summary)
    except HostError:
        log.warning("Could not forward pass error to host console")
    return kind


def report_command_error(host: Host, player: str, command: str, error: BaseException) -> None:
    log.exception("Command %r from %s failed", command, player, exc_info=error)
    try:
        host.whisper(player, f"Command failed: {ERROR_MESSAGES[_classify(error)]}.")
    except HostError:
        log.warning("Could not tell %s that their command failed", player)
