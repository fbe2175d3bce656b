from __future__ import annotations
# stewards/errors.py
"""
Error types for the stewards governance engine. Every failure except
PersistenceError is a precondition violation detected before any state is
written, so callers never observe a partial change. Errors are lightweight
and serializable, safe to surface over RPC/logs.

Exports:
- StewardsError (base)
- access failures: NotAMember, NotYetFull, RateLimited
- membership failures: AlreadyMember, HandleTaken
- window failures: VetoWindowClosed, NotYetClaimable
- ledger failures: InsufficientFunds, DuplicateProposal, ProposalNotFound
- InvalidRequest (malformed input)
- PersistenceError (a commit hook failed)
"""


import json
from typing import Any, Dict, Mapping, Optional


class StewardsError(Exception):
    """Base class for stewards domain errors."""

    code: str = "STEWARDS_ERROR"
    http_status: int = 400

    def __init__(self, message: str = "", *, details: Optional[Mapping[str, Any]] = None) -> None:
        self.message = message or self.__class__.__name__
        self.details = dict(details or {})
        super().__init__(self.__str__())

    def to_dict(self) -> Dict[str, Any]:
        return {"code": self.code, "message": self.message, "details": self.details}

    def __str__(self) -> str:  # pragma: no cover - trivial
        if self.details:
            # Keep this compact and stable for logs
            packed = json.dumps(self.details, sort_keys=True, separators=(",", ":"), default=str)
            return f"{self.code}: {self.message} [{packed}]"
        return f"{self.code}: {self.message}"


class InvalidRequest(StewardsError):
    """Malformed principal, handle, digest, url or amount."""
    code = "STEWARDS_INVALID_REQUEST"


# ── access guard ────────────────────────────────────────────────────────────


class NotAMember(StewardsError):
    """The principal has no membership record (sponsor is the zero sentinel)."""
    code = "STEWARDS_NOT_A_MEMBER"
    http_status = 403

    def __init__(self, principal: str, *, message: str = "not a member") -> None:
        super().__init__(message, details={"principal": principal})


class NotYetFull(StewardsError):
    """The caller is still inside its own provisional week."""
    code = "STEWARDS_NOT_YET_FULL"
    http_status = 403

    def __init__(self, principal: str, *, time_joined: int, full_at: int) -> None:
        super().__init__(
            "member is not yet full",
            details={"principal": principal, "time_joined": int(time_joined), "full_at": int(full_at)},
        )


class RateLimited(StewardsError):
    """The caller already sponsored or proposed within the cooldown."""
    code = "STEWARDS_RATE_LIMITED"
    http_status = 429

    def __init__(self, principal: str, *, last_action_time: int, retry_at: int) -> None:
        super().__init__(
            "one sponsor-or-propose action per cooldown period",
            details={
                "principal": principal,
                "last_action_time": int(last_action_time),
                "retry_at": int(retry_at),
            },
        )


# ── membership ──────────────────────────────────────────────────────────────


class AlreadyMember(StewardsError):
    code = "STEWARDS_ALREADY_MEMBER"
    http_status = 409

    def __init__(self, principal: str) -> None:
        super().__init__("principal is already a member", details={"principal": principal})


class HandleTaken(StewardsError):
    code = "STEWARDS_HANDLE_TAKEN"
    http_status = 409

    def __init__(self, handle: bytes) -> None:
        super().__init__("handle is already taken", details={"handle": "0x" + bytes(handle).hex()})


# ── time windows ────────────────────────────────────────────────────────────


class VetoWindowClosed(StewardsError):
    """The member admission or proposal is older than the veto window."""
    code = "STEWARDS_VETO_WINDOW_CLOSED"
    http_status = 409

    def __init__(self, *, subject: str, started_at: int, closed_at: int) -> None:
        super().__init__(
            "veto window closed",
            details={"subject": subject, "started_at": int(started_at), "closed_at": int(closed_at)},
        )


class NotYetClaimable(StewardsError):
    code = "STEWARDS_NOT_YET_CLAIMABLE"
    http_status = 409

    def __init__(self, proposal_id: str, *, claimable_at: int) -> None:
        super().__init__(
            "proposal is still inside its veto window",
            details={"proposal_id": proposal_id, "claimable_at": int(claimable_at)},
        )


# ── proposal ledger ─────────────────────────────────────────────────────────


class InsufficientFunds(StewardsError):
    """Requested value is not strictly below the treasury balance."""
    code = "STEWARDS_INSUFFICIENT_FUNDS"

    def __init__(self, *, requested: int, balance: int, message: str = "insufficient treasury funds") -> None:
        super().__init__(message, details={"requested": int(requested), "balance": int(balance)})


class DuplicateProposal(StewardsError):
    code = "STEWARDS_DUPLICATE_PROPOSAL"
    http_status = 409

    def __init__(self, proposal_id: str) -> None:
        super().__init__("proposal id already in use", details={"proposal_id": proposal_id})


class ProposalNotFound(StewardsError):
    code = "STEWARDS_PROPOSAL_NOT_FOUND"
    http_status = 404

    def __init__(self, proposal_id: str) -> None:
        super().__init__("proposal not found", details={"proposal_id": proposal_id})


# ── commit side effects ─────────────────────────────────────────────────────


class PersistenceError(StewardsError):
    """A commit hook (e.g. the snapshot writer) failed after the transition applied."""
    code = "STEWARDS_PERSISTENCE_FAILED"
    http_status = 500

    def __init__(self, op: str, *, reason: str) -> None:
        super().__init__("state change was not persisted", details={"op": op, "reason": reason})


__all__ = [
    "StewardsError",
    "InvalidRequest",
    "NotAMember",
    "NotYetFull",
    "RateLimited",
    "AlreadyMember",
    "HandleTaken",
    "VetoWindowClosed",
    "NotYetClaimable",
    "InsufficientFunds",
    "DuplicateProposal",
    "ProposalNotFound",
    "PersistenceError",
]
