from __future__ import annotations

import time
from dataclasses import dataclass, field


@dataclass
class RuntimeStats:
    started_at: float = field(default_factory=time.time)
    events_enqueued: int = 0
    events_handled: int = 0
    events_failed: int = 0
    passes_run: int = 0
    passes_skipped: int = 0
    passes_failed: int = 0
    owners_warned: int = 0
    owners_cleared: int = 0
    bans_issued: int = 0

    def uptime_seconds(self) -> int:
        return int(time.time() - self.started_at)
