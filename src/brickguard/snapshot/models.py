from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Mapping
from uuid import UUID


def is_prohibited(asset_name: str, marker: str) -> bool:
    return marker in asset_name


@dataclass(frozen=True)
class Owner:
    id: UUID
    name: str
    bricks: int = 0


@dataclass(frozen=True)
class SnapshotHeader:
    """The two dictionaries bricks index into.

    Owners are 1-indexed from a brick's point of view; owner index 0 means
    the brick has no owner.
    """

    brick_assets: tuple[str, ...]
    brick_owners: tuple[Owner, ...]

    def has_prohibited_assets(self, marker: str) -> bool:
        return any(is_prohibited(asset, marker) for asset in self.brick_assets)


@dataclass(frozen=True)
class Brick:
    asset_name_index: int
    owner_index: int
    # Geometry, color, components... carried through verbatim.
    data: Mapping[str, Any] = field(default_factory=dict, compare=False, repr=False)


@dataclass(frozen=True)
class Snapshot:
    header: SnapshotHeader
    bricks: tuple[Brick, ...]
    # Metadata and auxiliary payload (map, author, colors, components, preview...).
    extra: Mapping[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @property
    def brick_assets(self) -> tuple[str, ...]:
        return self.header.brick_assets

    @property
    def brick_owners(self) -> tuple[Owner, ...]:
        return self.header.brick_owners

    def with_bricks(self, bricks: tuple[Brick, ...]) -> Snapshot:
        return replace(self, bricks=bricks)
