from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any

log = logging.getLogger("brickguard.observability")


class ActionType(Enum):
    """Event kinds for structured log lines."""
    PASS = "pass"
    PASS_SKIPPED = "pass_skipped"
    PASS_FAILED = "pass_failed"
    COMMAND = "command"
    STARTUP = "startup"
    SHUTDOWN = "shutdown"


@dataclass
class StructuredLogEntry:
    timestamp: datetime
    action: ActionType
    message: str
    details: dict[str, Any]

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["timestamp"] = self.timestamp.isoformat()
        data["action"] = self.action.value
        return data


def log_structured(
    action: ActionType,
    message: str,
    details: dict[str, Any] | None = None,
    level: int = logging.INFO,
) -> None:
    """Log one line: a readable prefix plus a compact JSON payload."""
    entry = StructuredLogEntry(
        timestamp=datetime.now(timezone.utc),
        action=action,
        message=message,
        details=details or {},
    )
    log.log(level, "[%s] %s | %s", action.value, message, json.dumps(entry.to_dict(), separators=(",", ":"), default=str))
