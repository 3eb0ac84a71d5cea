from __future__ import annotations

import logging
import os
from typing import Collection
from uuid import UUID

from ..snapshot.codec import SnapshotCodec
from ..snapshot.models import Snapshot, is_prohibited
from .ownership import check_bounds

log = logging.getLogger("brickguard.rewriter")


class SnapshotRewriter:
    """Rebuilds what bulk removal took from cleared owners but should keep.

    The host can only remove everything an owner built, so the legitimate
    bricks of cleared owners are written to a dedicated save and loaded back.
    The path must never be one the autosave capture writes to.
    """

    def __init__(self, codec: SnapshotCodec, path: str | os.PathLike[str], marker: str) -> None:
        self.codec = codec
        self.path = path
        self.marker = marker

    def rebuild(self, snapshot: Snapshot, cleared_owners: Collection[UUID]) -> Snapshot:
        owners = snapshot.brick_owners
        kept = []
        for brick in snapshot.bricks:
            check_bounds(brick, snapshot.header)
            if brick.owner_index == 0:
                continue
            if owners[brick.owner_index - 1].id not in cleared_owners:
                continue
            if is_prohibited(snapshot.brick_assets[brick.asset_name_index], self.marker):
                continue
            kept.append(brick)
        return snapshot.with_bricks(tuple(kept))

    async def write(self, snapshot: Snapshot, cleared_owners: Collection[UUID]) -> Snapshot:
        rebuilt = self.rebuild(snapshot, cleared_owners)
        await self.codec.write(self.path, rebuilt)
        log.info("Wrote %d restorable bricks to %s", len(rebuilt.bricks), self.path)
        return rebuilt
