from __future__ import annotations

"""
Notification payloads emitted after a committed state transition.

Events:
  - NewMember:       a member sponsored a new member.
  - MemberVetoed:    a provisional member was removed.
  - NewProposal:     a spending proposal was submitted.
  - ProposalVetoed:  a proposal was neutralized inside its window.
  - ProposalClaimed: a proposal's value was paid out to its wallet.
  - NewDonation:     funds were added to the treasury.

Timestamps are the engine clock's UNIX seconds at the time of the call.
"""

from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Dict, Union


class EventType(str, Enum):
    NEW_MEMBER = "NewMember"
    MEMBER_VETOED = "MemberVetoed"
    NEW_PROPOSAL = "NewProposal"
    PROPOSAL_VETOED = "ProposalVetoed"
    PROPOSAL_CLAIMED = "ProposalClaimed"
    NEW_DONATION = "NewDonation"


@dataclass(frozen=True)
class _Event:
    timestamp: int

    etype = None  # type: EventType

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["etype"] = self.etype.value
        return d


@dataclass(frozen=True)
class NewMember(_Event):
    sponsor: str
    member: str

    etype = EventType.NEW_MEMBER


@dataclass(frozen=True)
class MemberVetoed(_Event):
    vetoer: str
    member: str

    etype = EventType.MEMBER_VETOED


@dataclass(frozen=True)
class NewProposal(_Event):
    sponsor: str
    proposal_id: str

    etype = EventType.NEW_PROPOSAL


@dataclass(frozen=True)
class ProposalVetoed(_Event):
    vetoer: str
    proposal_id: str

    etype = EventType.PROPOSAL_VETOED


@dataclass(frozen=True)
class ProposalClaimed(_Event):
    proposal_id: str
    value: int

    etype = EventType.PROPOSAL_CLAIMED


@dataclass(frozen=True)
class NewDonation(_Event):
    donor: str
    amount: int

    etype = EventType.NEW_DONATION


Event = Union[NewMember, MemberVetoed, NewProposal, ProposalVetoed, ProposalClaimed, NewDonation]


__all__ = [
    "EventType",
    "Event",
    "NewMember",
    "MemberVetoed",
    "NewProposal",
    "ProposalVetoed",
    "ProposalClaimed",
    "NewDonation",
]
