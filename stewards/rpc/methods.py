from __future__ import annotations

"""
stewards.rpc.methods
--------------------

JSON-RPC style method implementations for the governance engine.

Exposed methods (bind via `make_methods`):
  • guild.sponsorMember(caller, newMember, handle)
  • guild.vetoMember(caller, target)
  • guild.submitProposal(caller, url, digest, wallet, value)
  • guild.vetoProposal(caller, proposalId)
  • guild.claimProposal(proposalId)
  • guild.donate(donor, amount)
  • guild.getMember(principal)
  • guild.getProposal(proposalId)
  • guild.getTreasury()

Design:
  - Transport-agnostic. `make_methods` returns a dict of callables that a
    JSON-RPC dispatcher can register; `build_rest_router` exposes the same
    callables as FastAPI REST endpoints.
  - All byte fields travel as 0x-hex, principals as 0x addresses. `url` may
    be a plain link (packed into four blocks) or a list of four 0x-hex blocks.
  - Caller identity is taken from the request as-is; authenticating it is
    the embedding service's job.
"""

from typing import Any, Callable, Dict, List, Optional, Union

from pydantic import BaseModel, Field, field_validator

from stewards.engine import Guild
from stewards.errors import InvalidRequest, StewardsError
from stewards.records.member import Member, handle_text
from stewards.records.proposal import Proposal, unpack_url


# ---- request models ----------------------------------------------------------


class CallerBody(BaseModel):
    caller: str = Field(..., description="Acting member address (0x + 40 hex).")


class SponsorBody(CallerBody):
    handle: str = Field(..., description="Handle for the new member (text or 0x-hex, <= 32 bytes).")


class SubmitProposalBody(CallerBody):
    url: Union[str, List[str]] = Field(
        ..., description="Link to the proposal document, or four 0x-hex 32-byte blocks."
    )
    digest: str = Field(..., description="0x-hex 32-byte digest of the proposal document.")
    wallet: str = Field(..., description="Payout address (0x + 40 hex).")
    value: int = Field(..., ge=0, description="Amount to transfer on claim (base units).")

    @field_validator("url")
    @classmethod
    def _url_shape(cls, v: Union[str, List[str]]) -> Union[str, List[str]]:
        if isinstance(v, list) and len(v) != 4:
            raise ValueError("url must be a link or exactly four blocks")
        return v


class DonateBody(BaseModel):
    donor: str = Field(..., description="Donor address (0x + 40 hex).")
    amount: int = Field(..., gt=0, description="Amount to add to the treasury (base units).")


# ---- views -------------------------------------------------------------------


def member_view(principal: str, m: Member) -> Dict[str, Any]:
    return {
        "principal": principal,
        "isMember": m.is_member,
        "sponsor": str(m.sponsor),
        "handle": "0x" + m.handle.hex(),
        "handleText": handle_text(m.handle) if m.is_member else "",
        "timeJoined": m.time_joined,
        "lastActionTime": m.last_action_time,
    }


def proposal_view(proposal_id: str, p: Proposal) -> Dict[str, Any]:
    return {
        "proposalId": proposal_id,
        "exists": p.exists,
        "sponsor": str(p.sponsor),
        "url": ["0x" + b.hex() for b in p.url],
        "link": unpack_url(p.url),
        "digest": "0x" + p.digest.hex(),
        "wallet": str(p.wallet),
        "value": p.value,
        "timeSubmitted": p.time_submitted,
    }


def _require(value: Optional[str], name: str) -> str:
    if not value:
        raise InvalidRequest(f"{name} is required")
    return value


# ---- JSON-RPC method factory ---------------------------------------------------


def make_methods(guild: Guild) -> Dict[str, Callable[..., Any]]:
    """
    Build a mapping of JSON-RPC method name -> callable.
    Each callable returns plain JSON-serializable structures and raises
    StewardsError on precondition failures.
    """

    def sponsor_member(*, caller: str, newMember: str, handle: str) -> Dict[str, Any]:
        m = guild.sponsor_member(_require(caller, "caller"), _require(newMember, "newMember"), _require(handle, "handle"))
        return member_view(newMember.lower(), m)

    def veto_member(*, caller: str, target: str) -> Dict[str, Any]:
        guild.veto_member(_require(caller, "caller"), _require(target, "target"))
        return {"vetoed": target.lower()}

    def submit_proposal(
        *, caller: str, url: Union[str, List[str]], digest: str, wallet: str, value: int
    ) -> Dict[str, Any]:
        if isinstance(value, bool) or not isinstance(value, int):
            raise InvalidRequest("value must be an integer")
        pid = guild.submit_proposal(_require(caller, "caller"), url, _require(digest, "digest"), _require(wallet, "wallet"), value)
        return proposal_view(pid, guild.get_proposal(pid))

    def veto_proposal(*, caller: str, proposalId: str) -> Dict[str, Any]:
        guild.veto_proposal(_require(caller, "caller"), _require(proposalId, "proposalId"))
        return {"vetoed": proposalId.lower()}

    def claim_proposal(*, proposalId: str) -> Dict[str, Any]:
        paid = guild.claim_proposal(_require(proposalId, "proposalId"))
        return {"proposalId": proposalId.lower(), "paid": paid}

    def donate(*, donor: str, amount: int) -> Dict[str, Any]:
        balance = guild.donate(_require(donor, "donor"), amount)
        return {"donor": donor.lower(), "amount": amount, "balance": balance}

    def get_member(*, principal: str) -> Dict[str, Any]:
        m = guild.get_member(_require(principal, "principal"))
        return member_view(principal.lower(), m)

    def get_proposal(*, proposalId: str) -> Dict[str, Any]:
        p = guild.get_proposal(_require(proposalId, "proposalId"))
        return proposal_view(proposalId.lower(), p)

    def get_treasury() -> Dict[str, Any]:
        return guild.stats()

    return {
        "guild.sponsorMember": sponsor_member,
        "guild.vetoMember": veto_member,
        "guild.submitProposal": submit_proposal,
        "guild.vetoProposal": veto_proposal,
        "guild.claimProposal": claim_proposal,
        "guild.donate": donate,
        "guild.getMember": get_member,
        "guild.getProposal": get_proposal,
        "guild.getTreasury": get_treasury,
    }


# ---- REST adapter (FastAPI) ------------------------------------------------


def build_rest_router(guild: Guild):
    """
    Return a FastAPI APIRouter exposing the same operations over REST.
    Domain errors become HTTP errors whose detail is the error's to_dict().
    """
    from fastapi import APIRouter, HTTPException

    router = APIRouter()
    methods = make_methods(guild)

    def _call(name: str, **kwargs: Any) -> Dict[str, Any]:
        try:
            return methods[name](**kwargs)
        except StewardsError as e:
            raise HTTPException(status_code=e.http_status, detail=e.to_dict()) from e

    @router.get("/members/{principal}")
    def http_get_member(principal: str):
        return _call("guild.getMember", principal=principal)

    @router.post("/members/{principal}/sponsor")
    def http_sponsor_member(principal: str, body: SponsorBody):
        return _call("guild.sponsorMember", caller=body.caller, newMember=principal, handle=body.handle)

    @router.post("/members/{principal}/veto")
    def http_veto_member(principal: str, body: CallerBody):
        return _call("guild.vetoMember", caller=body.caller, target=principal)

    @router.post("/proposals")
    def http_submit_proposal(body: SubmitProposalBody):
        return _call(
            "guild.submitProposal",
            caller=body.caller,
            url=body.url,
            digest=body.digest,
            wallet=body.wallet,
            value=body.value,
        )

    @router.get("/proposals/{proposal_id}")
    def http_get_proposal(proposal_id: str):
        return _call("guild.getProposal", proposalId=proposal_id)

    @router.post("/proposals/{proposal_id}/veto")
    def http_veto_proposal(proposal_id: str, body: CallerBody):
        return _call("guild.vetoProposal", caller=body.caller, proposalId=proposal_id)

    @router.post("/proposals/{proposal_id}/claim")
    def http_claim_proposal(proposal_id: str):
        return _call("guild.claimProposal", proposalId=proposal_id)

    @router.post("/donations")
    def http_donate(body: DonateBody):
        return _call("guild.donate", donor=body.donor, amount=body.amount)

    @router.get("/treasury")
    def http_get_treasury():
        return _call("guild.getTreasury")

    return router


__all__ = [
    "CallerBody",
    "SponsorBody",
    "SubmitProposalBody",
    "DonateBody",
    "member_view",
    "proposal_view",
    "make_methods",
    "build_rest_router",
]
