from __future__ import annotations
"""
stewards.records
================

Plain record types shared by the registry, the proposal ledger and the
transport layers: principals and handles, member and proposal records,
proposal id derivation, and event payloads.
"""

from .member import ZERO_PRINCIPAL, Member, Principal, to_handle, to_principal
from .proposal import Proposal, derive_proposal_id, pack_url, unpack_url

__all__ = [
    "ZERO_PRINCIPAL",
    "Member",
    "Principal",
    "to_handle",
    "to_principal",
    "Proposal",
    "derive_proposal_id",
    "pack_url",
    "unpack_url",
]
