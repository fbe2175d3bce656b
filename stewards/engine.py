from __future__ import annotations

"""
Guild engine: the single serializing access point
--------------------------------------------------

`Guild` owns the membership registry, the proposal ledger and the treasury
pool, and exposes the six mutating operations plus read-only views:

    operation         caller constraint              emits
    ───────────────   ────────────────────────────   ───────────────────────────
    sponsor_member    full member, cooldown elapsed  NewMember
    veto_member       full member                    MemberVetoed
    submit_proposal   full member, cooldown elapsed  NewProposal
    veto_proposal     full member                    ProposalVetoed
    claim_proposal    anyone                         ProposalClaimed (if value > 0)
    donate            anyone                         NewDonation

Every operation takes the engine lock, reads `now` exactly once from the
injected clock, and either commits completely or raises a StewardsError
before writing anything. Commit hooks (see `add_commit_hook`) and event
subscribers run while the lock is still held, so both observe transitions
in commit order. A failing commit hook surfaces as PersistenceError; the
in-memory transition stays applied and its events are not published.

Usage:
    cfg = GuildConfig(founders=[Founder(principal=alice, handle="alice")])
    guild = Guild(cfg, clock=ManualClock(1_700_000_000))
    guild.donate(bob, 1_000)
    guild.sponsor_member(alice, carol, "carol")
"""

import logging
from threading import RLock
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, TypeVar, Union

from stewards import metrics
from stewards.clock import Clock, SystemClock
from stewards.config import GuildConfig, from_dict as config_from_dict
from stewards.errors import PersistenceError, StewardsError
from stewards.events import EventLog
from stewards.records.events import Event, NewDonation
from stewards.records.member import Member, Principal, to_handle, to_principal
from stewards.records.proposal import Proposal, ProposalId, to_digest, to_proposal_id, to_url
from stewards.registry.membership import MembershipRegistry
from stewards.treasury.ledger import ProposalLedger
from stewards.treasury.pool import TreasuryPool

log = logging.getLogger(__name__)

T = TypeVar("T")

SNAPSHOT_VERSION = 1

PrincipalLike = Union[str, bytes]
CommitHook = Callable[["Guild"], None]


class Guild:
    def __init__(
        self,
        config: Optional[GuildConfig] = None,
        *,
        clock: Optional[Clock] = None,
        events: Optional[EventLog] = None,
        admit_founders: bool = True,
    ) -> None:
        self.config = config or GuildConfig()
        self.config.validate()
        self.clock: Clock = clock or SystemClock()
        self.events = events or EventLog()
        self._lock = RLock()
        self._commit_hooks: List[CommitHook] = []

        self.registry = MembershipRegistry(self.config.windows, self.config.compat)
        self.pool = TreasuryPool()
        self.ledger = ProposalLedger(
            self.config.windows, self.config.compat, self.registry, self.pool
        )

        if admit_founders:
            for f in self.config.founders:
                self.registry.admit_founder(to_principal(f.principal), to_handle(f.handle))
        metrics.set_state(balance=self.pool.balance, members=self.registry.member_count())

    # --- transition plumbing ---

    def add_commit_hook(self, fn: CommitHook) -> Callable[[], None]:
        """
        Run `fn(guild)` after every committed transition, still under the
        engine lock and before events are published. Returns a callable that
        removes the hook again.
        """
        with self._lock:
            self._commit_hooks.append(fn)

        def _remove() -> None:
            with self._lock:
                if fn in self._commit_hooks:
                    self._commit_hooks.remove(fn)

        return _remove

    def _run(self, op: str, fn: Callable[[int], Tuple[T, List[Event]]]) -> T:
        with self._lock:
            now = self.clock.now()
            try:
                with metrics.time_operation(op):
                    result, events = fn(now)
            except StewardsError as e:
                metrics.record_rejection(op, e.code)
                log.debug("guild: %s rejected at %d: %s", op, now, e)
                raise
            metrics.record_operation(op)
            metrics.set_state(balance=self.pool.balance, members=self.registry.member_count())
            for hook in list(self._commit_hooks):
                try:
                    hook(self)
                except Exception as e:
                    log.exception("guild: commit hook %r failed after %s", hook, op)
                    raise PersistenceError(op, reason=str(e)) from e
            for ev in events:
                self.events.publish(ev)
        return result

    # --- membership ---

    def sponsor_member(self, caller: PrincipalLike, new_member: PrincipalLike, handle: Union[str, bytes]) -> Member:
        def _do(now: int) -> Tuple[Member, List[Event]]:
            c, m, h = to_principal(caller), to_principal(new_member), to_handle(handle)
            ev = self.registry.sponsor(c, m, h, now)
            return self.registry.get(m), [ev]

        return self._run("sponsor_member", _do)

    def veto_member(self, caller: PrincipalLike, target: PrincipalLike) -> None:
        def _do(now: int) -> Tuple[None, List[Event]]:
            ev = self.registry.veto(to_principal(caller), to_principal(target), now)
            return None, [ev]

        self._run("veto_member", _do)

    # --- proposals ---

    def submit_proposal(
        self,
        caller: PrincipalLike,
        url: Union[str, Sequence[Union[str, bytes]]],
        digest: Union[str, bytes],
        wallet: PrincipalLike,
        value: int,
    ) -> ProposalId:
        def _do(now: int) -> Tuple[ProposalId, List[Event]]:
            pid, ev = self.ledger.submit(
                to_principal(caller), to_url(url), to_digest(digest), to_principal(wallet), value, now
            )
            return pid, [ev]

        return self._run("submit_proposal", _do)

    def veto_proposal(self, caller: PrincipalLike, proposal_id: Union[str, bytes]) -> None:
        def _do(now: int) -> Tuple[None, List[Event]]:
            ev = self.ledger.veto(to_principal(caller), to_proposal_id(proposal_id), now)
            return None, [ev]

        self._run("veto_proposal", _do)

    def claim_proposal(self, proposal_id: Union[str, bytes]) -> int:
        """Returns the amount transferred; 0 for a neutralized proposal."""

        def _do(now: int) -> Tuple[int, List[Event]]:
            amount, ev = self.ledger.claim(to_proposal_id(proposal_id), now)
            if ev is None:
                return 0, []
            metrics.record_payout(amount)
            return amount, [ev]

        return self._run("claim_proposal", _do)

    # --- treasury ---

    def donate(self, donor: PrincipalLike, amount: int) -> int:
        """Returns the new treasury balance."""

        def _do(now: int) -> Tuple[int, List[Event]]:
            d = to_principal(donor)
            self.pool.credit(d, amount, timestamp=now)
            metrics.record_donation(amount)
            log.info("guild: %s donated %d at %d", d, amount, now)
            return self.pool.balance, [NewDonation(timestamp=now, donor=d, amount=amount)]

        return self._run("donate", _do)

    # --- reads ---

    def get_member(self, principal: PrincipalLike) -> Member:
        with self._lock:
            return self.registry.get(to_principal(principal))

    def is_member(self, principal: PrincipalLike) -> bool:
        return self.get_member(principal).is_member

    def is_full_member(self, principal: PrincipalLike) -> bool:
        with self._lock:
            return self.registry.is_full(to_principal(principal), self.clock.now())

    def is_handle_taken(self, handle: Union[str, bytes]) -> bool:
        with self._lock:
            return self.registry.is_handle_taken(to_handle(handle))

    def get_proposal(self, proposal_id: Union[str, bytes]) -> Proposal:
        with self._lock:
            return self.ledger.get(to_proposal_id(proposal_id))

    def list_proposals(self) -> List[Tuple[ProposalId, Proposal]]:
        with self._lock:
            return self.ledger.list()

    def list_members(self) -> List[Tuple[Principal, Member]]:
        with self._lock:
            return self.registry.list_members()

    def balance(self) -> int:
        with self._lock:
            return self.pool.balance

    def stats(self) -> Dict[str, Any]:
        with self._lock:
            now = self.clock.now()
            members = self.registry.list_members()
            proposals = self.ledger.list()
            window = self.config.windows.veto_window_seconds
            return {
                "now": now,
                "balance": self.pool.balance,
                "members": len(members),
                "full_members": sum(1 for _, m in members if now - m.time_joined >= window),
                "proposals": len(proposals),
                "open_proposals": sum(
                    1 for _, p in proposals if p.value > 0 and now - p.time_submitted < window
                ),
                "claimable_proposals": sum(
                    1 for _, p in proposals if p.value > 0 and now - p.time_submitted >= window
                ),
            }

    # --- load/save ---

    def dump(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "version": SNAPSHOT_VERSION,
                "config": self.config.to_dict(),
                "registry": self.registry.dump(),
                "ledger": self.ledger.dump(),
                "treasury": self.pool.dump(),
            }

    @classmethod
    def load(
        cls,
        data: Dict[str, Any],
        *,
        clock: Optional[Clock] = None,
        events: Optional[EventLog] = None,
    ) -> "Guild":
        version = int(data.get("version", 0))
        if version != SNAPSHOT_VERSION:
            raise ValueError(f"unsupported snapshot version {version}")
        guild = cls(
            config_from_dict(data.get("config") or {}),
            clock=clock,
            events=events,
            admit_founders=False,
        )
        guild.registry.load(data.get("registry") or {})
        guild.ledger.load(data.get("ledger") or {})
        guild.pool.load(data.get("treasury") or {})
        metrics.set_state(balance=guild.pool.balance, members=guild.registry.member_count())
        return guild


__all__ = ["Guild", "CommitHook", "SNAPSHOT_VERSION"]
