from __future__ import annotations

import pytest

from brickguard.constants import MESSAGES
from brickguard.enforcement.engine import EscalationEngine
from brickguard.errors import LedgerCorruptError, LedgerError
from brickguard.testing.fakes import FakeHost
from tests.helpers import ALICE, BOB, CAROL, NOW, PUBLIC, online, run


def _engine(host, ledger, settings) -> EscalationEngine:
    return EscalationEngine(host=host, ledger=ledger, settings=settings)


def test_first_violation_starts_timer_and_warns(host, store, ledger, settings):
    engine = _engine(host, ledger, settings)

    plan = run(engine.plan([ALICE], NOW))
    assert plan.micro_owners == {ALICE.id}
    assert plan.cleared_owners == frozenset()
    # Planning never writes.
    assert store.writes() == []

    actions = run(engine.apply(plan))
    assert store.data[f"ts:{ALICE.id}"] == str(NOW)
    assert host.whispers_to(ALICE.id) == [MESSAGES["warn"]]
    assert [a.action_type for a in actions] == ["start_timer", "warn"]
    assert host.cleared == []


def test_zero_grace_clears_immediately_without_timer(host, store, ledger, make_settings):
    engine = _engine(host, ledger, make_settings(clear_after_minutes=0))

    plan = run(engine.plan([ALICE], NOW))
    run(engine.apply(plan))

    assert plan.cleared_owners == {ALICE.id}
    assert plan.micro_owners == frozenset()
    assert f"ts:{ALICE.id}" not in store.data
    assert ("set", f"ts:{ALICE.id}") not in store.ops
    assert host.cleared == [str(ALICE.id)]
    assert store.data[f"violations:{ALICE.id}"] == 1


def test_running_timer_warns_again_and_keeps_start(host, store, ledger, settings):
    store.data[f"ts:{ALICE.id}"] = str(NOW - 120)
    engine = _engine(host, ledger, settings)

    plan = run(engine.plan([ALICE], NOW))
    run(engine.apply(plan))

    assert plan.micro_owners == {ALICE.id}
    assert store.data[f"ts:{ALICE.id}"] == str(NOW - 120)
    assert ("set", f"ts:{ALICE.id}") not in store.ops
    assert host.whispers_to(ALICE.id) == [MESSAGES["warn"]]
    assert host.cleared == []


def test_expired_timer_clears_owner_example_a(host, store, ledger, settings):
    store.data[f"ts:{ALICE.id}"] = str(NOW - 600)
    engine = _engine(host, ledger, settings)

    plan = run(engine.plan([ALICE], NOW))
    run(engine.apply(plan))

    assert plan.cleared_owners == {ALICE.id}
    assert store.data[f"violations:{ALICE.id}"] == 1
    assert f"bans:{ALICE.id}" not in store.data
    assert host.console == []
    assert host.broadcasts == [MESSAGES["clearing"].format(name="Alice")]
    assert host.whispers_to(ALICE.id) == [MESSAGES["status"].format(violations=1, max_violations=3)]


def test_grace_boundary_is_inclusive(host, store, ledger, settings):
    store.data[f"ts:{ALICE.id}"] = str(NOW - settings.grace_seconds)
    plan = run(_engine(host, ledger, settings).plan([ALICE], NOW))
    assert plan.cleared_owners == {ALICE.id}


def test_fractional_minutes_truncate_to_seconds(host, store, ledger, make_settings):
    settings = make_settings(clear_after_minutes=0.5083)  # 30.498 s
    assert settings.grace_seconds == 30
    store.data[f"ts:{ALICE.id}"] = str(NOW - 30)
    plan = run(_engine(host, ledger, settings).plan([ALICE], NOW))
    assert plan.cleared_owners == {ALICE.id}


def test_temporary_ban_after_max_violations_example_b(host, store, ledger, settings):
    store.data[f"ts:{ALICE.id}"] = str(NOW - 600)
    store.data[f"violations:{ALICE.id}"] = 3
    engine = _engine(host, ledger, settings)

    run(engine.apply(run(engine.plan([ALICE], NOW))))

    assert store.data[f"violations:{ALICE.id}"] == 4
    assert store.data[f"bans:{ALICE.id}"] == 1
    assert host.console == [
        f'Chat.Command /Ban {ALICE.id} 60 "{MESSAGES["ban_temporary"].format(remaining=1)}"'
    ]
    # No status whisper once bans start.
    assert host.whispers_to(ALICE.id) == []


def test_permanent_ban_after_max_bans(host, store, ledger, settings):
    store.data[f"ts:{ALICE.id}"] = str(NOW - 600)
    store.data[f"violations:{ALICE.id}"] = 9
    store.data[f"bans:{ALICE.id}"] = 2
    engine = _engine(host, ledger, settings)

    actions = run(engine.apply(run(engine.plan([ALICE], NOW))))

    assert store.data[f"bans:{ALICE.id}"] == 3
    assert host.console == [f'Chat.Command /Ban {ALICE.id} -1 "{MESSAGES["ban_permanent"]}"']
    assert [a.action_type for a in actions] == ["clear", "permban"]


def test_fractional_ban_time_is_formatted_compactly(host, store, ledger, make_settings):
    store.data[f"violations:{ALICE.id}"] = 3
    engine = _engine(host, ledger, make_settings(clear_after_minutes=0, ban_time=1.5))
    run(engine.apply(run(engine.plan([ALICE], NOW))))
    assert host.console[0].startswith(f"Chat.Command /Ban {ALICE.id} 1.5 ")


def test_each_owner_decided_once_per_pass(host, store, ledger, make_settings):
    engine = _engine(host, ledger, make_settings(clear_after_minutes=0))

    plan = run(engine.plan([ALICE, ALICE, BOB, ALICE], NOW))
    run(engine.apply(plan))

    assert host.cleared == [str(ALICE.id), str(BOB.id)]
    assert store.data[f"violations:{ALICE.id}"] == 1
    assert store.writes().count(f"violations:{ALICE.id}") == 1


def test_public_owner_is_never_enforced(host, store, ledger, make_settings):
    engine = _engine(host, ledger, make_settings(clear_after_minutes=0))
    plan = run(engine.plan([PUBLIC, BOB], NOW))

    assert PUBLIC.id not in plan.cleared_owners
    assert PUBLIC.id not in plan.micro_owners
    assert store.ops.count(("get", f"ts:{PUBLIC.id}")) == 0


def test_offline_player_is_tracked_silently_by_default(store, ledger, settings):
    host = FakeHost(players=online(BOB))
    engine = _engine(host, ledger, settings)

    plan = run(engine.plan([ALICE], NOW))
    run(engine.apply(plan))

    assert plan.micro_owners == {ALICE.id}
    assert store.data[f"ts:{ALICE.id}"] == str(NOW)
    assert host.whispers == []


def test_offline_player_left_alone_when_tracking_disabled(store, ledger, make_settings):
    host = FakeHost(players=online(BOB))
    store.data[f"ts:{ALICE.id}"] = str(NOW - 60)
    engine = _engine(host, ledger, make_settings(track_offline_players=False))

    plan = run(engine.plan([ALICE], NOW))
    run(engine.apply(plan))

    assert plan.micro_owners == frozenset()
    assert plan.cleared_owners == frozenset()
    assert host.whispers == []


def test_offline_player_with_expired_timer_is_still_cleared(store, ledger, make_settings):
    host = FakeHost(players=[])
    store.data[f"ts:{ALICE.id}"] = str(NOW - 600)
    engine = _engine(host, ledger, make_settings(track_offline_players=False))

    plan = run(engine.plan([ALICE], NOW))
    assert plan.cleared_owners == {ALICE.id}


def test_roster_queried_once_per_pass(host, ledger, settings):
    run(_engine(host, ledger, settings).plan([ALICE, BOB, CAROL], NOW))
    assert host.roster_queries == 1


def test_roster_not_queried_when_nobody_is_warned(host, ledger, make_settings):
    run(_engine(host, ledger, make_settings(clear_after_minutes=0)).plan([ALICE], NOW))
    assert host.roster_queries == 0


def test_warned_and_cleared_sets_are_disjoint(host, store, ledger, settings):
    store.data[f"ts:{ALICE.id}"] = str(NOW - 600)
    store.data[f"ts:{BOB.id}"] = str(NOW - 10)

    plan = run(_engine(host, ledger, settings).plan([ALICE, BOB, CAROL, PUBLIC], NOW))

    assert plan.cleared_owners == {ALICE.id}
    assert plan.micro_owners == {BOB.id, CAROL.id}
    assert plan.cleared_owners.isdisjoint(plan.micro_owners)


def test_corrupt_timer_aborts_before_any_action(host, store, ledger, settings):
    store.data[f"ts:{ALICE.id}"] = str(NOW - 600)
    store.data[f"ts:{BOB.id}"] = "yesterday"
    engine = _engine(host, ledger, settings)

    with pytest.raises(LedgerCorruptError):
        run(engine.plan([ALICE, BOB], NOW))
    assert host.calls == []
    assert store.writes() == []


def test_corrupt_counter_aborts_before_any_action(host, store, ledger, make_settings):
    store.data[f"violations:{ALICE.id}"] = "lots"
    engine = _engine(host, ledger, make_settings(clear_after_minutes=0))

    with pytest.raises(LedgerCorruptError):
        run(engine.plan([ALICE], NOW))
    assert host.cleared == []


def test_store_read_failure_aborts(host, store, ledger, settings):
    store.fail_on.add("get")
    with pytest.raises(LedgerError):
        run(_engine(host, ledger, settings).plan([ALICE], NOW))
    assert host.calls == []


def test_repeated_passes_inside_grace_do_not_escalate(host, store, ledger, settings):
    engine = _engine(host, ledger, settings)
    for offset in (0, 60, 120, 240):
        run(engine.apply(run(engine.plan([ALICE], NOW + offset))))

    assert store.data[f"ts:{ALICE.id}"] == str(NOW)
    assert f"violations:{ALICE.id}" not in store.data
    assert len(host.whispers_to(ALICE.id)) == 4
    assert host.cleared == []
