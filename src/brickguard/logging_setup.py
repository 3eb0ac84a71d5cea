from __future__ import annotations

import logging
import sys
from typing import Optional

from .host.interfaces import Host

FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


class HostLogHandler(logging.Handler):
    """Forwards records to the host console (errors as errors)."""

    def __init__(self, host: Host, level: int = logging.WARNING) -> None:
        super().__init__(level)
        self._host = host
        self.setFormatter(logging.Formatter("%(name)s: %(message)s"))
        self.addFilter(lambda record: not getattr(record, "host_notified", False))

    def emit(self, record: logging.LogRecord) -> None:
        try:
            line = self.format(record)
            if record.levelno >= logging.ERROR:
                self._host.error(line)
            else:
                self._host.log(line)
        except Exception:
            self.handleError(record)


def setup_logging(level: str, host: Optional[Host] = None) -> None:
    """Configure the ``brickguard`` logger tree.

    Records go to stderr; stdout carries the RPC channel and must stay clean.
    """
    root = logging.getLogger("brickguard")
    root.setLevel(level.upper())
    root.handlers.clear()
    root.propagate = False

    stream = logging.StreamHandler(sys.stderr)
    stream.setFormatter(logging.Formatter(FORMAT))
    root.addHandler(stream)

    if host is not None:
        root.addHandler(HostLogHandler(host))
