import pytest

from stewards.errors import (
    DuplicateProposal,
    InsufficientFunds,
    InvalidRequest,
    NotAMember,
    NotYetClaimable,
    NotYetFull,
    ProposalNotFound,
    RateLimited,
    VetoWindowClosed,
)
from stewards.records.events import EventType, NewProposal, ProposalClaimed, ProposalVetoed
from stewards.records.proposal import derive_proposal_id, pack_url, to_digest
from stewards.tests import (
    ALICE,
    BOB,
    CAROL,
    DAVE,
    DAY,
    DONOR,
    SAMPLE_DIGEST,
    SAMPLE_URL,
    T0,
    WALLET,
    WEEK,
    addr,
)

UNKNOWN_ID = "0x" + "11" * 32


def _submit(guild, caller=ALICE, value=100, url=SAMPLE_URL):
    return guild.submit_proposal(caller, url, SAMPLE_DIGEST, WALLET, value)


def test_submit_records_proposal_under_derived_id(funded_guild, captured):
    pid = _submit(funded_guild)

    expected = derive_proposal_id(ALICE, pack_url(SAMPLE_URL), to_digest(SAMPLE_DIGEST), WALLET, 100, T0)
    assert pid == expected

    p = funded_guild.get_proposal(pid)
    assert p.exists
    assert (p.sponsor, p.wallet, p.value, p.time_submitted) == (ALICE, WALLET, 100, T0)
    assert p.digest == bytes.fromhex("ab" * 32)
    assert funded_guild.get_member(ALICE).last_action_time == T0
    assert captured == [NewProposal(timestamp=T0, sponsor=ALICE, proposal_id=pid)]


def test_value_must_be_strictly_below_balance(guild):
    guild.donate(DONOR, 100)
    with pytest.raises(InsufficientFunds) as ei:
        guild.submit_proposal(ALICE, SAMPLE_URL, SAMPLE_DIGEST, WALLET, 100)
    assert ei.value.details == {"requested": 100, "balance": 100}
    # The failed attempt did not use ALICE's weekly action.
    assert guild.get_member(ALICE).last_action_time == 0

    guild.donate(DONOR, 1)
    pid = guild.submit_proposal(ALICE, SAMPLE_URL, SAMPLE_DIGEST, WALLET, 100)
    assert guild.get_proposal(pid).value == 100


def test_submit_requires_full_member(funded_guild, clock):
    with pytest.raises(NotAMember):
        _submit(funded_guild, caller=addr(77))
    funded_guild.sponsor_member(ALICE, DAVE, "dave")
    with pytest.raises(NotYetFull):
        _submit(funded_guild, caller=DAVE)


def test_submit_rejects_bad_payloads(funded_guild):
    with pytest.raises(InvalidRequest):
        _submit(funded_guild, value=-1)
    with pytest.raises(InvalidRequest):
        funded_guild.submit_proposal(ALICE, SAMPLE_URL, "0x1234", WALLET, 1)
    with pytest.raises(InvalidRequest):
        _submit(funded_guild, url="x" * 129)
    with pytest.raises(InvalidRequest):
        funded_guild.submit_proposal(ALICE, SAMPLE_URL, SAMPLE_DIGEST, "not-an-address", 1)


def test_same_tick_resubmission_collides(make_guild, clock):
    # Without a cooldown the same member can resubmit instantly; the id
    # still includes the timestamp, so only a same-tick repeat collides.
    guild = make_guild(action_cooldown_seconds=0)
    guild.donate(DONOR, 1_000)

    first = _submit(guild)
    with pytest.raises(DuplicateProposal) as ei:
        _submit(guild)
    assert ei.value.details["proposal_id"] == first

    clock.advance(1)
    second = _submit(guild)
    assert second != first
    assert len(guild.list_proposals()) == 2


def test_same_tick_resubmission_hits_cooldown_first(funded_guild):
    _submit(funded_guild)
    with pytest.raises(RateLimited):
        _submit(funded_guild)


# ── veto ────────────────────────────────────────────────────────────────────


def test_any_full_member_can_veto_inside_window(funded_guild, clock, captured):
    pid = _submit(funded_guild, caller=ALICE)

    clock.advance(WEEK - 1)
    funded_guild.veto_proposal(BOB, pid)

    assert funded_guild.get_proposal(pid).value == 0
    assert funded_guild.get_proposal(pid).exists
    assert captured[-1] == ProposalVetoed(timestamp=T0 + WEEK - 1, vetoer=BOB, proposal_id=pid)
    # Vetoing does not spend the vetoer's weekly action.
    assert funded_guild.get_member(BOB).last_action_time == 0


def test_veto_fails_once_window_has_elapsed(funded_guild, clock):
    pid = _submit(funded_guild)
    clock.advance(WEEK)
    with pytest.raises(VetoWindowClosed):
        funded_guild.veto_proposal(BOB, pid)
    assert funded_guild.get_proposal(pid).value == 100


def test_veto_requires_full_member(funded_guild):
    pid = _submit(funded_guild)
    with pytest.raises(NotAMember):
        funded_guild.veto_proposal(addr(5), pid)
    funded_guild.sponsor_member(BOB, DAVE, "dave")
    with pytest.raises(NotYetFull):
        funded_guild.veto_proposal(DAVE, pid)


def test_sponsor_may_veto_own_proposal_and_veto_is_idempotent(funded_guild, clock):
    pid = _submit(funded_guild)
    funded_guild.veto_proposal(ALICE, pid)
    clock.advance(DAY)
    funded_guild.veto_proposal(CAROL, pid)
    assert funded_guild.get_proposal(pid).value == 0


def test_veto_of_unknown_id_is_judged_against_zero_record(funded_guild):
    # time_submitted of the default record is 0, and a full caller implies
    # now >= one window, so the window check always rejects an unknown id.
    with pytest.raises(VetoWindowClosed) as ei:
        funded_guild.veto_proposal(BOB, UNKNOWN_ID)
    assert ei.value.details["started_at"] == 0
    assert not funded_guild.get_proposal(UNKNOWN_ID).exists


def test_veto_of_unknown_id_raises_not_found_when_strict(make_guild):
    guild = make_guild(require_existing_proposal=True)
    with pytest.raises(ProposalNotFound):
        guild.veto_proposal(BOB, UNKNOWN_ID)


# ── claim ───────────────────────────────────────────────────────────────────


def test_claim_waits_for_window_then_pays_exactly_once(funded_guild, clock, events):
    pid = _submit(funded_guild, value=250)

    clock.advance(WEEK - 1)
    with pytest.raises(NotYetClaimable) as ei:
        funded_guild.claim_proposal(pid)
    assert ei.value.details["claimable_at"] == T0 + WEEK

    clock.advance(1)
    assert funded_guild.claim_proposal(pid) == 250
    assert funded_guild.balance() == 750
    assert funded_guild.pool.paid_to(WALLET) == 250

    assert funded_guild.claim_proposal(pid) == 0
    assert funded_guild.balance() == 750
    assert funded_guild.pool.paid_to(WALLET) == 250

    claimed = events.history(EventType.PROPOSAL_CLAIMED)
    assert claimed == (ProposalClaimed(timestamp=T0 + WEEK, proposal_id=pid, value=250),)


def test_claim_needs_no_membership(funded_guild, clock):
    # claim_proposal takes no caller at all: anyone may trigger the release.
    pid = _submit(funded_guild, value=10)
    clock.advance(WEEK)
    assert funded_guild.claim_proposal(pid) == 10


def test_vetoed_proposal_claim_is_silent_noop(funded_guild, clock, events):
    pid = _submit(funded_guild, value=300)
    clock.advance(3 * DAY)
    funded_guild.veto_proposal(CAROL, pid)

    clock.set(T0 + 8 * DAY)
    assert funded_guild.claim_proposal(pid) == 0
    assert funded_guild.balance() == 1_000
    assert events.history(EventType.PROPOSAL_CLAIMED) == ()


def test_veto_after_claim_is_rejected_and_value_stays_zero(funded_guild, clock):
    pid = _submit(funded_guild)
    clock.advance(WEEK)
    funded_guild.claim_proposal(pid)
    with pytest.raises(VetoWindowClosed):
        funded_guild.veto_proposal(BOB, pid)
    assert funded_guild.get_proposal(pid).value == 0


def test_claim_of_unknown_id_is_noop(funded_guild):
    assert funded_guild.claim_proposal(UNKNOWN_ID) == 0
    assert funded_guild.balance() == 1_000


def test_claim_that_treasury_cannot_cover_changes_nothing(funded_guild, clock):
    p1 = _submit(funded_guild, caller=ALICE, value=600)
    p2 = _submit(funded_guild, caller=BOB, value=600)

    clock.advance(WEEK)
    assert funded_guild.claim_proposal(p1) == 600
    with pytest.raises(InsufficientFunds):
        funded_guild.claim_proposal(p2)
    assert funded_guild.get_proposal(p2).value == 600
    assert funded_guild.balance() == 400

    funded_guild.donate(DONOR, 200)
    assert funded_guild.claim_proposal(p2) == 600
    assert funded_guild.balance() == 0


def test_value_never_increases(funded_guild, clock):
    pid = _submit(funded_guild, value=120)
    seen = [funded_guild.get_proposal(pid).value]

    clock.advance(DAY)
    funded_guild.veto_proposal(BOB, pid)
    seen.append(funded_guild.get_proposal(pid).value)

    clock.advance(WEEK)
    funded_guild.claim_proposal(pid)
    seen.append(funded_guild.get_proposal(pid).value)

    assert seen == sorted(seen, reverse=True)
    assert seen[-1] == 0


def test_donations_feed_the_treasury(guild, captured):
    assert guild.donate(DONOR, 40) == 40
    assert guild.donate(addr(1), 2) == 42
    assert [e.etype for e in captured] == [EventType.NEW_DONATION, EventType.NEW_DONATION]
    assert captured[1].to_dict() == {
        "etype": "NewDonation",
        "timestamp": T0,
        "donor": addr(1),
        "amount": 2,
    }
    with pytest.raises(InvalidRequest):
        guild.donate(DONOR, 0)
