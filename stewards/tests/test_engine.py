import json

import pytest

from stewards.adapters.state_file import load_snapshot, persist_on_commit, save_snapshot
from stewards.clock import ManualClock
from stewards.engine import SNAPSHOT_VERSION, Guild
from stewards.errors import HandleTaken, PersistenceError, RateLimited, VetoWindowClosed
from stewards.events import EventLog
from stewards.metrics import REGISTRY
from stewards.records.events import EventType
from stewards.tests import (
    ALICE,
    BOB,
    CAROL,
    DAVE,
    DONOR,
    SAMPLE_DIGEST,
    SAMPLE_URL,
    T0,
    WALLET,
    WEEK,
)


def _sample(name, labels=None):
    return REGISTRY.get_sample_value(name, labels or {}) or 0.0


def _busy(guild):
    guild.donate(DONOR, 1_000)
    guild.sponsor_member(ALICE, DAVE, "dave")
    return guild.submit_proposal(BOB, SAMPLE_URL, SAMPLE_DIGEST, WALLET, 250)


def test_snapshot_roundtrip_preserves_every_table(funded_guild, clock, tmp_path):
    pid = _busy(funded_guild)
    funded_guild.veto_member(CAROL, DAVE)

    path = save_snapshot(funded_guild, tmp_path / "guild.json")
    restored = load_snapshot(path, clock=clock)

    assert restored.dump() == funded_guild.dump()
    assert restored.get_proposal(pid) == funded_guild.get_proposal(pid)
    assert restored.balance() == 2_000
    # Reserved handles and rate-limit state survive the reload.
    assert restored.is_handle_taken("dave")
    with pytest.raises(HandleTaken):
        restored.sponsor_member(CAROL, DAVE, "dave")
    with pytest.raises(RateLimited):
        restored.sponsor_member(ALICE, DAVE, "dave2")

    clock.advance(WEEK)
    assert restored.claim_proposal(pid) == 250


def test_snapshot_is_plain_json(funded_guild, tmp_path):
    _busy(funded_guild)
    path = save_snapshot(funded_guild, tmp_path / "nested" / "guild.json")
    data = json.loads(path.read_text())
    assert data["version"] == SNAPSHOT_VERSION
    assert set(data) == {"version", "config", "registry", "ledger", "treasury"}
    assert not list(path.parent.glob("*.tmp"))


def test_load_rejects_unknown_version(funded_guild):
    data = funded_guild.dump()
    data["version"] = SNAPSHOT_VERSION + 1
    with pytest.raises(ValueError):
        Guild.load(data)


def test_load_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_snapshot(tmp_path / "nope.json")


def test_events_are_published_in_commit_order(guild, events):
    _busy(guild)
    assert [e.etype for e in events.history()] == [
        EventType.NEW_DONATION,
        EventType.NEW_MEMBER,
        EventType.NEW_PROPOSAL,
    ]


def test_rejected_operation_publishes_nothing(guild, events):
    with pytest.raises(VetoWindowClosed):
        guild.veto_member(ALICE, BOB)
    assert events.history() == ()


def test_failing_subscriber_does_not_undo_commit(guild, events):
    seen = []

    def _boom(ev):
        raise RuntimeError("subscriber down")

    events.subscribe(_boom)
    events.subscribe(seen.append)

    assert guild.donate(DONOR, 5) == 5
    assert guild.balance() == 5
    assert len(seen) == 1


def test_unsubscribe_and_history_cap():
    log = EventLog(max_history=2)
    guild = Guild(clock=ManualClock(T0), events=log)
    seen = []
    unsubscribe = log.subscribe(seen.append)

    guild.donate(DONOR, 1)
    unsubscribe()
    guild.donate(DONOR, 2)
    guild.donate(DONOR, 3)

    assert len(seen) == 1
    assert [e.amount for e in log.history()] == [2, 3]


def test_metrics_track_operations_and_rejections(guild):
    ops_before = _sample("stewards_operations_total", {"op": "donate"})
    rej_before = _sample(
        "stewards_rejections_total", {"op": "veto_member", "code": "STEWARDS_VETO_WINDOW_CLOSED"}
    )
    donated_before = _sample("stewards_donated_amount_total")

    guild.donate(DONOR, 70)
    with pytest.raises(VetoWindowClosed):
        guild.veto_member(ALICE, BOB)

    assert _sample("stewards_operations_total", {"op": "donate"}) == ops_before + 1
    assert (
        _sample("stewards_rejections_total", {"op": "veto_member", "code": "STEWARDS_VETO_WINDOW_CLOSED"})
        == rej_before + 1
    )
    assert _sample("stewards_donated_amount_total") == donated_before + 70
    assert _sample("stewards_treasury_balance") == 70
    assert _sample("stewards_members") == 3


def test_stats(funded_guild, clock):
    _busy(funded_guild)
    s = funded_guild.stats()
    assert s["balance"] == 2_000
    assert s["members"] == 4
    assert s["full_members"] == 3
    assert (s["proposals"], s["open_proposals"], s["claimable_proposals"]) == (1, 1, 0)

    clock.advance(WEEK)
    s = funded_guild.stats()
    assert s["full_members"] == 4
    assert (s["open_proposals"], s["claimable_proposals"]) == (0, 1)


def test_guild_without_founders_has_no_one_to_act(clock):
    guild = Guild(clock=clock)
    assert guild.list_members() == []
    assert guild.donate(DONOR, 10) == 10


def test_snapshot_follows_every_commit(guild, tmp_path):
    path = tmp_path / "live.json"
    persist_on_commit(guild, path)

    guild.donate(DONOR, 10)
    assert json.loads(path.read_text())["treasury"]["balance"] == 10
    guild.sponsor_member(ALICE, DAVE, "dave")
    assert json.loads(path.read_text()) == guild.dump()

    # Rejected operations do not rewrite the file.
    before = path.read_text()
    with pytest.raises(RateLimited):
        guild.sponsor_member(ALICE, DAVE, "dave2")
    assert path.read_text() == before


def test_failed_snapshot_write_reaches_the_caller(guild, events, tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory")
    remove = persist_on_commit(guild, blocker / "state.json")

    with pytest.raises(PersistenceError) as ei:
        guild.donate(DONOR, 5)
    assert ei.value.details["op"] == "donate"
    assert events.history() == ()

    remove()
    assert guild.donate(DONOR, 1) == 6
    assert [e.amount for e in events.history()] == [1]
