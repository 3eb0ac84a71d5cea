from __future__ import annotations

import asyncio
import logging

from dotenv import load_dotenv

from .config import load_settings
from .errors import ConfigError
from .logging_setup import setup_logging
from .plugin import run_plugin

log = logging.getLogger("brickguard.main")


def main() -> None:
    load_dotenv()
    try:
        settings = load_settings()
    except ConfigError as e:
        setup_logging("INFO")
        log.critical("Refusing to start: %s", e)
        raise SystemExit(1) from e
    setup_logging(settings.log_level)

    try:
        asyncio.run(run_plugin(settings))
    except ConfigError as e:
        log.critical("Refusing to start: %s", e)
        raise SystemExit(1) from e


if __name__ == "__main__":
    main()
