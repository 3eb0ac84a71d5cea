from __future__ import annotations

import importlib

from ..config import Settings
from ..errors import ConfigError
from .codec import JsonSnapshotCodec, SnapshotCodec
from .host_codec import HostSnapshotCodec, SaveDataHost

HOST_CODEC = "host"
JSON_CODEC = "json"


def load_codec(name: str, *, host: SaveDataHost, settings: Settings) -> SnapshotCodec:
    """Codec for ``SNAPSHOT_CODEC``: ``host``, ``json`` or ``module:attribute``.

    A ``module:attribute`` factory is called without arguments.
    """
    if name == HOST_CODEC:
        return HostSnapshotCodec(host, settings.saves_dir)
    if name == JSON_CODEC:
        return JsonSnapshotCodec()

    module_name, _, attr = name.partition(":")
    if not module_name or not attr:
        raise ConfigError(f"SNAPSHOT_CODEC must be 'host', 'json' or 'module:attribute', got {name!r}")
    try:
        factory = getattr(importlib.import_module(module_name), attr)
    except (ImportError, AttributeError) as e:
        raise ConfigError(f"cannot load snapshot codec {name!r}: {e}") from e
    return factory()
