from __future__ import annotations

from dataclasses import replace
from pathlib import Path

import pytest

from brickguard.config import Settings
from brickguard.services.ledger import ViolationLedger
from brickguard.testing.fakes import FakeHost, MemoryKeyValueStore
from tests.helpers import ALICE, BOB, CAROL, online


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        clear_after_minutes=5,
        max_violations=3,
        ban_time=60,
        max_bans=2,
        authorized_users=("Admin",),
        saves_dir=str(tmp_path),
        reload_delay_seconds=0,
    )


@pytest.fixture
def make_settings(settings: Settings):
    def _make(**overrides) -> Settings:
        return replace(settings, **overrides)

    return _make


@pytest.fixture
def host() -> FakeHost:
    return FakeHost(players=online(ALICE, BOB, CAROL))


@pytest.fixture
def store() -> MemoryKeyValueStore:
    return MemoryKeyValueStore()


@pytest.fixture
def ledger(store: MemoryKeyValueStore) -> ViolationLedger:
    return ViolationLedger(store)
