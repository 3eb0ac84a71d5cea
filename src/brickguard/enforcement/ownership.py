from __future__ import annotations

from typing import Optional
from uuid import UUID

from ..constants import PUBLIC_OWNER_ID
from ..errors import SnapshotBoundsError
from ..snapshot.models import Brick, Owner, Snapshot, SnapshotHeader, is_prohibited


def check_bounds(brick: Brick, header: SnapshotHeader) -> None:
    assets = len(header.brick_assets)
    if not 0 <= brick.asset_name_index < assets:
        raise SnapshotBoundsError("asset", brick.asset_name_index, assets)
    owners = len(header.brick_owners)
    # Owner indices are 1-based; 0 is "no owner".
    if not 0 <= brick.owner_index <= owners:
        raise SnapshotBoundsError("owner", brick.owner_index, owners)


def resolve_owner(brick: Brick, header: SnapshotHeader) -> Optional[Owner]:
    """Owner subject to enforcement, or None for unowned and public bricks."""
    check_bounds(brick, header)
    if brick.owner_index == 0:
        return None
    owner = header.brick_owners[brick.owner_index - 1]
    if owner.id == PUBLIC_OWNER_ID:
        return None
    return owner


def collect_violators(snapshot: Snapshot, marker: str) -> list[Owner]:
    """Distinct owners placing at least one prohibited brick, in first-seen order.

    Every brick is bounds-checked, prohibited or not, so a malformed snapshot
    fails here before any decision is made.
    """
    seen: dict[UUID, Owner] = {}
    for brick in snapshot.bricks:
        owner = resolve_owner(brick, snapshot.header)
        if owner is None or owner.id in seen:
            continue
        if is_prohibited(snapshot.brick_assets[brick.asset_name_index], marker):
            seen[owner.id] = owner
    return list(seen.values())
