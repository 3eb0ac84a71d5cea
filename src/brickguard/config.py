from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .constants import (
    DEFAULT_HOST_ROOT,
    DEFAULT_RELOAD_DELAY_SECONDS,
    DEFAULT_REWRITE_SAVE_NAME,
    DEFAULT_SAVES_DIR,
    PROHIBITED_MARKER,
)
from .errors import ConfigError


def _get_str(name: str, default: str) -> str:
    return os.getenv(name, "").strip() or default


def _get_float(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise ConfigError(f"{name} must be a number, got {raw!r}") from e


TRUE_TOKENS = frozenset({"1", "true", "yes", "y", "on"})
FALSE_TOKENS = frozenset({"0", "false", "no", "n", "off"})


def _get_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name, "").strip().lower()
    if not raw:
        return default
    if raw in TRUE_TOKENS:
        return True
    if raw in FALSE_TOKENS:
        return False
    raise ConfigError(f"{name} must be true or false, got {raw!r}")


def _number(doc: dict[str, Any], key: str, *, integer: bool = False) -> float:
    if key not in doc:
        raise ConfigError(f"config is missing required key {key!r}")
    value = doc[key]
    # bool is an int subclass; "true" is not a count
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigError(f"config key {key!r} must be a number, got {value!r}")
    if value < 0:
        raise ConfigError(f"config key {key!r} must not be negative")
    if integer and int(value) != value:
        raise ConfigError(f"config key {key!r} must be a whole number")
    return value


def _authorized_users(raw: Any) -> tuple[str, ...]:
    """Accept plain names or host player objects ({"id": ..., "name": ...})."""
    if raw is None:
        return ()
    if not isinstance(raw, list):
        raise ConfigError("config key 'authorized-users' must be a list")
    names: list[str] = []
    for entry in raw:
        if isinstance(entry, dict):
            entry = entry.get("name")
        if not isinstance(entry, str) or not entry.strip():
            raise ConfigError(f"invalid authorized user entry: {entry!r}")
        names.append(entry.strip())
    return tuple(names)


@dataclass(frozen=True)
class Settings:
    clear_after_minutes: float
    max_violations: int
    ban_time: float
    max_bans: int
    authorized_users: tuple[str, ...] = ()
    # When false, offline violators are neither timed nor warned until they reconnect.
    track_offline_players: bool = True

    log_level: str = "INFO"
    ledger_backend: str = "host"  # "host" | "sqlite"
    sqlite_path: str = "brickguard.sqlite3"
    ledger_namespace: str = "anti_microbrick"

    host_root: str = DEFAULT_HOST_ROOT
    saves_dir: str = DEFAULT_SAVES_DIR
    rewrite_save_name: str = DEFAULT_REWRITE_SAVE_NAME
    reload_delay_seconds: float = DEFAULT_RELOAD_DELAY_SECONDS
    prohibited_marker: str = PROHIBITED_MARKER
    snapshot_codec: str = "host"

    audit_webhook_url: str = ""

    @property
    def grace_seconds(self) -> int:
        # Fractional minutes truncate to whole seconds.
        return int(self.clear_after_minutes * 60)

    @property
    def rewrite_path(self) -> Path:
        return Path(self.saves_dir) / self.rewrite_save_name


def read_config_file(path: str | os.PathLike[str]) -> dict[str, Any]:
    try:
        with open(path, encoding="utf-8") as f:
            doc = json.load(f)
    except FileNotFoundError as e:
        raise ConfigError(f"plugin config file not found: {path}") from e
    except (OSError, ValueError) as e:
        raise ConfigError(f"failed to read plugin config {path}: {e}") from e
    if not isinstance(doc, dict):
        raise ConfigError("plugin config must be a JSON object")
    return doc


def load_settings(doc: dict[str, Any] | None = None) -> Settings:
    if doc is None:
        doc = read_config_file(_get_str("CONFIG_PATH", "config.json"))

    backend = _get_str("LEDGER_BACKEND", "host").lower()
    if backend not in {"host", "sqlite"}:
        raise ConfigError(f"LEDGER_BACKEND must be 'host' or 'sqlite', got {backend!r}")

    marker = _get_str("PROHIBITED_MARKER", PROHIBITED_MARKER)
    reload_delay = _get_float("RELOAD_DELAY_SECONDS", DEFAULT_RELOAD_DELAY_SECONDS)
    if reload_delay < 0:
        raise ConfigError("RELOAD_DELAY_SECONDS must not be negative")

    track_offline = doc.get("track-offline-players", True)
    if not isinstance(track_offline, bool):
        raise ConfigError("config key 'track-offline-players' must be true or false")

    return Settings(
        clear_after_minutes=float(_number(doc, "clear-after-minutes")),
        max_violations=int(_number(doc, "max-violations", integer=True)),
        ban_time=float(_number(doc, "ban-time")),
        max_bans=int(_number(doc, "max-bans", integer=True)),
        authorized_users=_authorized_users(doc.get("authorized-users")),
        track_offline_players=_get_bool("TRACK_OFFLINE_PLAYERS", track_offline),
        log_level=_get_str("LOG_LEVEL", "INFO"),
        ledger_backend=backend,
        sqlite_path=_get_str("SQLITE_PATH", "brickguard.sqlite3"),
        ledger_namespace=_get_str("LEDGER_NAMESPACE", "anti_microbrick"),
        host_root=_get_str("HOST_ROOT", DEFAULT_HOST_ROOT),
        saves_dir=_get_str("SAVES_DIR", DEFAULT_SAVES_DIR),
        rewrite_save_name=_get_str("REWRITE_SAVE_NAME", DEFAULT_REWRITE_SAVE_NAME),
        reload_delay_seconds=reload_delay,
        prohibited_marker=marker,
        snapshot_codec=_get_str("SNAPSHOT_CODEC", "host"),
        audit_webhook_url=_get_str("AUDIT_WEBHOOK_URL", ""),
    )
