from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Optional, Protocol
from uuid import UUID

from ..errors import SnapshotError
from .models import Brick, Owner, Snapshot, SnapshotHeader

log = logging.getLogger("brickguard.snapshot.codec")

PathLike = str | os.PathLike[str]

DICTIONARY_KEYS = ("brick_assets", "brick_owners", "bricks")


class SnapshotCodec(Protocol):
    """Decode/encode capability for world snapshots.

    ``read_header`` only needs the asset and owner dictionaries, so a pass can
    stop before looking at any brick. ``read`` on the same path right after a
    header read may reuse what the header read fetched.
    """

    async def read_header(self, path: PathLike) -> SnapshotHeader: ...

    async def read(self, path: PathLike) -> Snapshot: ...

    async def write(self, path: PathLike, snapshot: Snapshot) -> None: ...


def _parse_owner(raw: Any) -> Owner:
    if not isinstance(raw, dict):
        raise SnapshotError(f"brick owner entry is not an object: {raw!r}")
    try:
        owner_id = UUID(str(raw["id"]))
    except (KeyError, ValueError) as e:
        raise SnapshotError(f"brick owner has no valid id: {raw!r}") from e
    bricks = raw.get("bricks", 0)
    if isinstance(bricks, bool) or not isinstance(bricks, int):
        raise SnapshotError(f"brick owner {owner_id} has an invalid brick count")
    return Owner(id=owner_id, name=str(raw.get("name", "")), bricks=bricks)


def _parse_index(raw: dict[str, Any], key: str) -> int:
    value = raw.get(key, 0)
    if isinstance(value, bool) or not isinstance(value, int):
        raise SnapshotError(f"brick field {key!r} is not an integer: {value!r}")
    return value


def parse_header(doc: Any) -> SnapshotHeader:
    if not isinstance(doc, dict):
        raise SnapshotError("malformed snapshot: top level is not an object")
    assets = doc.get("brick_assets")
    owners = doc.get("brick_owners", [])
    if not isinstance(assets, list) or not all(isinstance(a, str) for a in assets):
        raise SnapshotError("snapshot brick_assets must be a list of strings")
    if not isinstance(owners, list):
        raise SnapshotError("snapshot brick_owners must be a list")
    return SnapshotHeader(
        brick_assets=tuple(assets),
        brick_owners=tuple(_parse_owner(o) for o in owners),
    )


def parse_snapshot(doc: Any) -> Snapshot:
    """Snapshot from a document in the brs-js save shape."""
    header = parse_header(doc)

    raw_bricks = doc.get("bricks", [])
    if not isinstance(raw_bricks, list):
        raise SnapshotError("snapshot bricks must be a list")
    bricks: list[Brick] = []
    for raw in raw_bricks:
        if not isinstance(raw, dict):
            raise SnapshotError(f"brick entry is not an object: {raw!r}")
        bricks.append(
            Brick(
                asset_name_index=_parse_index(raw, "asset_name_index"),
                owner_index=_parse_index(raw, "owner_index"),
                data=raw,
            )
        )

    extra = {k: v for k, v in doc.items() if k not in DICTIONARY_KEYS}
    return Snapshot(header=header, bricks=tuple(bricks), extra=extra)


def encode_snapshot(snapshot: Snapshot) -> dict[str, Any]:
    doc = dict(snapshot.extra)
    doc["brick_assets"] = list(snapshot.brick_assets)
    doc["brick_owners"] = [
        {"id": str(o.id), "name": o.name, "bricks": o.bricks} for o in snapshot.brick_owners
    ]
    doc["bricks"] = [
        {**b.data, "asset_name_index": b.asset_name_index, "owner_index": b.owner_index}
        for b in snapshot.bricks
    ]
    if "brick_count" in doc:
        doc["brick_count"] = len(snapshot.bricks)
    return doc


class DocumentCache:
    """Holds the document of the last header read until the full read takes it."""

    def __init__(self) -> None:
        self._entry: Optional[tuple[str, Any]] = None

    def put(self, key: str, doc: Any) -> None:
        self._entry = (key, doc)

    def take(self, key: str) -> Optional[Any]:
        entry, self._entry = self._entry, None
        if entry is not None and entry[0] == key:
            return entry[1]
        return None


class JsonSnapshotCodec:
    """Snapshots stored as brs-js JSON documents on disk.

    JSON has no separate header, so the header read parses the whole file;
    the full read that follows reuses that parse instead of reading twice.
    """

    def __init__(self) -> None:
        self._cache = DocumentCache()

    def _load(self, path: PathLike) -> dict[str, Any]:
        try:
            with open(path, encoding="utf-8") as f:
                doc = json.load(f)
        except OSError as e:
            raise SnapshotError(f"failed to open snapshot {path}: {e}") from e
        except ValueError as e:
            raise SnapshotError(f"malformed snapshot {path}: {e}") from e
        if not isinstance(doc, dict):
            raise SnapshotError(f"malformed snapshot {path}: top level is not an object")
        return doc

    async def read_header(self, path: PathLike) -> SnapshotHeader:
        doc = self._load(path)
        header = parse_header(doc)
        self._cache.put(os.fspath(path), doc)
        return header

    async def read(self, path: PathLike) -> Snapshot:
        doc = self._cache.take(os.fspath(path))
        if doc is None:
            doc = self._load(path)
        snapshot = parse_snapshot(doc)
        log.debug(
            "Decoded %s: %d assets, %d owners, %d bricks",
            path, len(snapshot.brick_assets), len(snapshot.brick_owners), len(snapshot.bricks),
        )
        return snapshot

    async def write(self, path: PathLike, snapshot: Snapshot) -> None:
        doc = encode_snapshot(snapshot)
        target = Path(path)
        tmp = target.with_name(target.name + ".tmp")
        try:
            with open(tmp, "w", encoding="utf-8") as f:
                json.dump(doc, f, separators=(",", ":"), ensure_ascii=False)
            os.replace(tmp, target)
        except (OSError, TypeError, ValueError) as e:
            raise SnapshotError(f"failed to write snapshot {target}: {e}") from e
