from __future__ import annotations

"""
Treasury pool
-------------

The single fungible balance held by the guild. Donations credit it; a
successful claim debits it and credits the proposal's wallet in `paid_out`.
Nothing else moves funds.

Amounts are integer base units. Every movement appends a JournalEntry so the
history of the balance can be replayed and audited:

    balance == sum(donations) - sum(payouts)
    sum(paid_out.values()) == sum(payouts)

Locking is the engine's job; the pool itself is a plain data holder.
"""

from dataclasses import asdict, dataclass
from typing import Dict, Iterable, List, Literal

from stewards.errors import InsufficientFunds, InvalidRequest
from stewards.records.member import Principal

Amount = int
OpName = Literal["donation", "payout"]


def _ensure_positive(x: int, name: str) -> None:
    if isinstance(x, bool) or not isinstance(x, int) or x <= 0:
        raise InvalidRequest(f"{name} must be a positive integer", details={name: str(x)})


@dataclass(frozen=True)
class JournalEntry:
    seq: int
    op: OpName
    amount: Amount
    party: str        # donor for donations, wallet for payouts
    timestamp: int
    balance_after: Amount
    ref: str = ""     # proposal id for payouts

    def to_dict(self) -> Dict:
        return asdict(self)

    @staticmethod
    def from_dict(d: Dict) -> "JournalEntry":
        return JournalEntry(
            seq=int(d["seq"]),
            op=d["op"],
            amount=int(d["amount"]),
            party=str(d["party"]),
            timestamp=int(d["timestamp"]),
            balance_after=int(d["balance_after"]),
            ref=str(d.get("ref", "")),
        )


class TreasuryPool:
    def __init__(self) -> None:
        self._balance: Amount = 0
        self._paid_out: Dict[str, Amount] = {}
        self._journal: List[JournalEntry] = []

    # --- introspection ---

    @property
    def balance(self) -> Amount:
        return self._balance

    def paid_to(self, wallet: Principal) -> Amount:
        return self._paid_out.get(wallet, 0)

    def journal(self) -> Iterable[JournalEntry]:
        return tuple(self._journal)

    # --- mutations ---

    def _append(self, op: OpName, amount: Amount, party: str, timestamp: int, ref: str = "") -> JournalEntry:
        je = JournalEntry(
            seq=len(self._journal) + 1,
            op=op,
            amount=amount,
            party=party,
            timestamp=timestamp,
            balance_after=self._balance,
            ref=ref,
        )
        self._journal.append(je)
        return je

    def credit(self, donor: Principal, amount: Amount, *, timestamp: int) -> JournalEntry:
        _ensure_positive(amount, "amount")
        self._balance += amount
        return self._append("donation", amount, donor, timestamp)

    def pay(self, wallet: Principal, amount: Amount, *, timestamp: int, ref: str) -> JournalEntry:
        """Move `amount` out of the pool to `wallet`."""
        _ensure_positive(amount, "amount")
        if amount > self._balance:
            raise InsufficientFunds(
                requested=amount, balance=self._balance, message="treasury cannot cover the claim"
            )
        self._balance -= amount
        self._paid_out[wallet] = self._paid_out.get(wallet, 0) + amount
        return self._append("payout", amount, wallet, timestamp, ref)

    # --- load/save ---

    def dump(self) -> Dict:
        return {
            "balance": self._balance,
            "paid_out": dict(sorted(self._paid_out.items())),
            "journal": [je.to_dict() for je in self._journal],
        }

    def load(self, data: Dict) -> None:
        self._balance = int(data.get("balance", 0))
        self._paid_out = {str(k): int(v) for k, v in (data.get("paid_out") or {}).items()}
        self._journal = [JournalEntry.from_dict(d) for d in (data.get("journal") or [])]
        self.assert_consistent()

    def assert_consistent(self) -> None:
        donated = sum(je.amount for je in self._journal if je.op == "donation")
        paid = sum(je.amount for je in self._journal if je.op == "payout")
        if donated - paid != self._balance:
            raise ValueError(
                f"treasury invariant violated: balance={self._balance} != donations-payouts={donated - paid}"
            )
        if sum(self._paid_out.values()) != paid:
            raise ValueError("treasury invariant violated: paid_out does not match journal payouts")


__all__ = ["JournalEntry", "TreasuryPool"]
