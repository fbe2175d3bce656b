from __future__ import annotations
"""
stewards.treasury
=================

The pooled fund and the proposals that spend it.

- pool:   the single treasury balance, its journal and per-wallet payouts
- ledger: spending proposals, their veto window and exactly-once release
"""

from .ledger import ProposalLedger
from .pool import JournalEntry, TreasuryPool

__all__ = ["ProposalLedger", "JournalEntry", "TreasuryPool"]
