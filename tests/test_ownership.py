from __future__ import annotations

import pytest

from brickguard.enforcement.ownership import collect_violators, resolve_owner
from brickguard.errors import SnapshotBoundsError
from brickguard.snapshot.models import Brick
from brickguard.testing.fakes import make_snapshot
from tests.helpers import ALICE, ASSETS, BOB, MICRO, MICRO_WEDGE, PLAIN, PUBLIC


def test_resolves_one_based_owner_index():
    snapshot = make_snapshot(ASSETS, [ALICE, BOB], [])
    assert resolve_owner(Brick(PLAIN, 1), snapshot.header) == ALICE
    assert resolve_owner(Brick(PLAIN, 2), snapshot.header) == BOB


def test_unowned_and_public_bricks_are_exempt():
    snapshot = make_snapshot(ASSETS, [PUBLIC], [])
    assert resolve_owner(Brick(MICRO, 0), snapshot.header) is None
    assert resolve_owner(Brick(MICRO, 1), snapshot.header) is None


@pytest.mark.parametrize(
    ("brick", "kind"),
    [
        (Brick(PLAIN, 3), "owner"),
        (Brick(PLAIN, -1), "owner"),
        (Brick(len(ASSETS), 1), "asset"),
        (Brick(-1, 1), "asset"),
    ],
)
def test_out_of_range_indices_raise(brick, kind):
    snapshot = make_snapshot(ASSETS, [ALICE, BOB], [])
    with pytest.raises(SnapshotBoundsError) as exc:
        resolve_owner(brick, snapshot.header)
    assert exc.value.kind == kind


def test_collects_distinct_violators_in_first_seen_order():
    snapshot = make_snapshot(
        ASSETS,
        [ALICE, BOB, PUBLIC],
        [(PLAIN, 1), (MICRO_WEDGE, 2), (MICRO, 1), (MICRO, 2), (MICRO, 3), (MICRO, 0)],
    )
    assert collect_violators(snapshot, "Micro") == [BOB, ALICE]


def test_marker_is_case_sensitive():
    snapshot = make_snapshot(("PB_microbrick",), [ALICE], [(0, 1)])
    assert collect_violators(snapshot, "Micro") == []
