from __future__ import annotations

"""
Access guard shared by the membership registry and the proposal ledger.

Two checks gate mutating actions:

  * full membership: the caller has a record and its provisional week
    (`time_joined + window`) has elapsed;
  * cooldown: the caller has not sponsored or proposed within `cooldown`
    seconds. Sponsoring and proposing draw on the same budget.

Sponsor/propose run both checks; vetoes run only the first; donate and claim
run neither. The checks are plain functions called at the top of each
operation. `record_action` must only run once the wrapped action's own checks
have passed, so a rejected action never consumes the weekly budget.
"""

import logging

from stewards.errors import NotAMember, NotYetFull, RateLimited
from stewards.records.member import Member, Principal

log = logging.getLogger(__name__)


def require_full_member(member: Member, caller: Principal, now: int, window: int) -> None:
    if not member.is_member:
        log.debug("guard: %s rejected, not a member", caller)
        raise NotAMember(caller)
    if now - member.time_joined < window:
        log.debug("guard: %s rejected, provisional until %d", caller, member.time_joined + window)
        raise NotYetFull(caller, time_joined=member.time_joined, full_at=member.time_joined + window)


def require_cooldown_elapsed(member: Member, caller: Principal, now: int, cooldown: int) -> None:
    if now - member.last_action_time < cooldown:
        log.debug("guard: %s rate limited until %d", caller, member.last_action_time + cooldown)
        raise RateLimited(
            caller,
            last_action_time=member.last_action_time,
            retry_at=member.last_action_time + cooldown,
        )


def guard_action(member: Member, caller: Principal, now: int, *, window: int, cooldown: int) -> None:
    """Checks for sponsor/propose: full membership, then cooldown."""
    require_full_member(member, caller, now, window)
    require_cooldown_elapsed(member, caller, now, cooldown)


def record_action(member: Member, now: int) -> Member:
    return member.with_action(now)


__all__ = [
    "require_full_member",
    "require_cooldown_elapsed",
    "guard_action",
    "record_action",
]
