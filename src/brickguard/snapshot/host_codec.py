from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Protocol

from ..errors import HostError, SnapshotError
from .codec import DocumentCache, PathLike, encode_snapshot, parse_header, parse_snapshot
from .models import Snapshot, SnapshotHeader

log = logging.getLogger("brickguard.snapshot.host_codec")

SAVE_SUFFIX = ".brs"
# Raw preview image bytes do not survive a JSON round trip.
DROPPED_ON_WRITE = ("preview",)


class SaveDataHost(Protocol):
    async def read_save_data(self, name: str) -> Any: ...

    async def write_save_data(self, name: str, data: dict[str, Any]) -> None: ...


class HostSnapshotCodec:
    """Binary ``.brs`` saves, decoded and encoded by the host.

    Omegga parses saves with brs-js and hands them over in the same document
    shape ``JsonSnapshotCodec`` stores, so only the transport differs. Saves
    are addressed by name relative to the host's builds directory.
    """

    def __init__(self, host: SaveDataHost, saves_dir: PathLike) -> None:
        self.host = host
        self.saves_dir = Path(os.path.normpath(saves_dir))
        self._cache = DocumentCache()

    def save_name(self, path: PathLike) -> str:
        target = Path(os.path.normpath(path))
        try:
            name = target.relative_to(self.saves_dir).as_posix()
        except ValueError as e:
            raise SnapshotError(f"snapshot {path} is outside the saves directory {self.saves_dir}") from e
        if name.endswith(SAVE_SUFFIX):
            name = name[: -len(SAVE_SUFFIX)]
        return name

    async def _fetch(self, name: str) -> dict[str, Any]:
        try:
            doc = await self.host.read_save_data(name)
        except HostError as e:
            raise SnapshotError(f"host failed to read save {name!r}: {e}") from e
        if doc is None:
            raise SnapshotError(f"host has no save named {name!r}")
        if not isinstance(doc, dict):
            raise SnapshotError(f"host returned {type(doc).__name__} for save {name!r}")
        return doc

    async def read_header(self, path: PathLike) -> SnapshotHeader:
        name = self.save_name(path)
        doc = await self._fetch(name)
        header = parse_header(doc)
        self._cache.put(name, doc)
        return header

    async def read(self, path: PathLike) -> Snapshot:
        name = self.save_name(path)
        doc = self._cache.take(name)
        if doc is None:
            doc = await self._fetch(name)
        return parse_snapshot(doc)

    async def write(self, path: PathLike, snapshot: Snapshot) -> None:
        name = self.save_name(path)
        doc = encode_snapshot(snapshot)
        for key in DROPPED_ON_WRITE:
            doc.pop(key, None)
        try:
            await self.host.write_save_data(name, doc)
        except HostError as e:
            raise SnapshotError(f"host failed to write save {name!r}: {e}") from e
        log.debug("Host wrote save %s (%d bricks)", name, len(snapshot.bricks))
