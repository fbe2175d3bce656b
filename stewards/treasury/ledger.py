from __future__ import annotations

"""
Proposal ledger
---------------

Spending proposals keyed by their content-derived id (see
`stewards.records.proposal.derive_proposal_id`).

Per-proposal state machine

    Submitted ──veto (inside window)──→ Neutralized (value = 0)
        └──────claim (after window)───→ Neutralized (value = 0)

Neutralized is absorbing: a claim after a veto, or a second claim, finds
value == 0 and is a silent no-op; a veto after a claim is rejected by the
window check. Proposals are never deleted, only neutralized, so an id can
never be reused.

Timing rules (window = veto window, one week by default):
  * veto requires   now - time_submitted <  window
  * claim requires  now - time_submitted >= window

Unknown ids resolve to the all-zero default record (time_submitted = 0).
With `compat.require_existing_proposal` enabled, vetoing an unknown id raises
ProposalNotFound instead of being judged against that default.
"""

import logging
from typing import Dict, List, Optional, Tuple

from stewards.config import CompatConfig, WindowConfig
from stewards.errors import (
    DuplicateProposal,
    InsufficientFunds,
    InvalidRequest,
    NotYetClaimable,
    ProposalNotFound,
    VetoWindowClosed,
)
from stewards.records.events import NewProposal, ProposalClaimed, ProposalVetoed
from stewards.records.member import Principal
from stewards.records.proposal import (
    ABSENT_PROPOSAL,
    UINT256_MAX,
    Proposal,
    ProposalId,
    Url,
    derive_proposal_id,
)
from stewards.registry.membership import MembershipRegistry
from stewards.treasury.pool import TreasuryPool

log = logging.getLogger(__name__)


class ProposalLedger:
    def __init__(
        self,
        windows: WindowConfig,
        compat: CompatConfig,
        registry: MembershipRegistry,
        pool: TreasuryPool,
    ) -> None:
        self.windows = windows
        self.compat = compat
        self.registry = registry
        self.pool = pool
        self._proposals: Dict[str, Proposal] = {}

    # --- reads ---

    def get(self, proposal_id: ProposalId) -> Proposal:
        """Full record, or the all-default record for unknown ids."""
        return self._proposals.get(proposal_id, ABSENT_PROPOSAL)

    def list(self) -> List[Tuple[ProposalId, Proposal]]:
        return sorted(
            ((ProposalId(k), v) for k, v in self._proposals.items()),
            key=lambda kv: (kv[1].time_submitted, kv[0]),
        )

    def __len__(self) -> int:
        return len(self._proposals)

    # --- mutations ---

    def submit(
        self,
        caller: Principal,
        url: Url,
        digest: bytes,
        wallet: Principal,
        value: int,
        now: int,
    ) -> Tuple[ProposalId, NewProposal]:
        self.registry.require_can_act(caller, now)
        if isinstance(value, bool) or not isinstance(value, int) or value < 0 or value > UINT256_MAX:
            raise InvalidRequest("value must be a non-negative integer", details={"value": str(value)})
        balance = self.pool.balance
        if value >= balance:
            raise InsufficientFunds(requested=value, balance=balance)

        pid = derive_proposal_id(caller, url, digest, wallet, value, now)
        if pid in self._proposals:
            raise DuplicateProposal(pid)

        self._proposals[pid] = Proposal(
            sponsor=caller,
            url=url,
            digest=digest,
            wallet=wallet,
            value=value,
            time_submitted=now,
        )
        self.registry.record_action(caller, now)
        log.info("ledger: %s submitted %s value=%d wallet=%s", caller, pid, value, wallet)
        return pid, NewProposal(timestamp=now, sponsor=caller, proposal_id=pid)

    def veto(self, caller: Principal, proposal_id: ProposalId, now: int) -> ProposalVetoed:
        self.registry.require_full(caller, now)
        p = self.get(proposal_id)
        if self.compat.require_existing_proposal and not p.exists:
            raise ProposalNotFound(proposal_id)
        window = self.windows.veto_window_seconds
        if now - p.time_submitted >= window:
            raise VetoWindowClosed(
                subject=proposal_id,
                started_at=p.time_submitted,
                closed_at=p.time_submitted + window,
            )

        if proposal_id in self._proposals:
            self._proposals[proposal_id] = p.neutralize()
        log.info("ledger: %s vetoed %s (value was %d)", caller, proposal_id, p.value)
        return ProposalVetoed(timestamp=now, vetoer=caller, proposal_id=proposal_id)

    def claim(self, proposal_id: ProposalId, now: int) -> Tuple[int, Optional[ProposalClaimed]]:
        """
        Pay out a matured proposal. Returns (amount_paid, event); a
        neutralized or unknown proposal past the window yields (0, None).
        """
        p = self.get(proposal_id)
        window = self.windows.veto_window_seconds
        if now - p.time_submitted < window:
            raise NotYetClaimable(proposal_id, claimable_at=p.time_submitted + window)
        if p.value == 0:
            log.debug("ledger: claim of %s is a no-op (value already 0)", proposal_id)
            return 0, None

        # pay() raises before touching the pool if the balance cannot cover it
        self.pool.pay(p.wallet, p.value, timestamp=now, ref=proposal_id)
        self._proposals[proposal_id] = p.neutralize()
        log.info("ledger: %s claimed, %d paid to %s", proposal_id, p.value, p.wallet)
        return p.value, ProposalClaimed(timestamp=now, proposal_id=proposal_id, value=p.value)

    # --- persistence ---

    def dump(self) -> Dict:
        return {"proposals": {k: v.to_dict() for k, v in sorted(self._proposals.items())}}

    def load(self, data: Dict) -> None:
        self._proposals = {
            k: Proposal.from_dict(v) for k, v in (data.get("proposals") or {}).items()
        }


__all__ = ["ProposalLedger"]
