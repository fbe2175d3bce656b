from __future__ import annotations

"""
Membership registry
-------------------

Tracks who is a member, who sponsored whom, when they joined and when they
last sponsored or proposed; enforces handle uniqueness; resolves sponsorship
and veto.

Member lifecycle

    NonMember → Admitted(provisional) → Admitted(full)
                      │                   (automatic at time_joined + window)
                      └── veto ──→ NonMember (handle stays reserved)

The registry holds plain dicts and is not locked on its own: the engine
(`stewards.engine.Guild`) serializes every call. All checks run before the
first write, so a raised error leaves the tables untouched.
"""

import logging
from typing import Dict, List, Set, Tuple

from stewards.config import CompatConfig, WindowConfig
from stewards.errors import AlreadyMember, HandleTaken, NotAMember, VetoWindowClosed
from stewards.guard import guard_action, record_action, require_full_member
from stewards.records.events import MemberVetoed, NewMember
from stewards.records.member import ABSENT_MEMBER, Member, Principal, handle_text

log = logging.getLogger(__name__)


class MembershipRegistry:
    def __init__(self, windows: WindowConfig, compat: CompatConfig) -> None:
        self.windows = windows
        self.compat = compat
        self._members: Dict[str, Member] = {}
        self._handles_taken: Set[bytes] = set()

    # --- reads ---

    def get(self, principal: Principal) -> Member:
        """Full record, or the all-default record for non-members."""
        return self._members.get(principal, ABSENT_MEMBER)

    def is_member(self, principal: Principal) -> bool:
        return self.get(principal).is_member

    def is_handle_taken(self, handle: bytes) -> bool:
        return handle in self._handles_taken

    def member_count(self) -> int:
        return len(self._members)

    def list_members(self) -> List[Tuple[Principal, Member]]:
        return [(Principal(k), v) for k, v in sorted(self._members.items())]

    def is_full(self, principal: Principal, now: int) -> bool:
        m = self.get(principal)
        return m.is_member and now - m.time_joined >= self.windows.veto_window_seconds

    # --- guard plumbing ---

    def require_full(self, caller: Principal, now: int) -> Member:
        m = self.get(caller)
        require_full_member(m, caller, now, self.windows.veto_window_seconds)
        return m

    def require_can_act(self, caller: Principal, now: int) -> Member:
        m = self.get(caller)
        guard_action(
            m,
            caller,
            now,
            window=self.windows.veto_window_seconds,
            cooldown=self.windows.action_cooldown_seconds,
        )
        return m

    def record_action(self, caller: Principal, now: int) -> None:
        self._members[caller] = record_action(self.get(caller), now)

    # --- mutations ---

    def admit_founder(self, principal: Principal, handle: bytes) -> Member:
        """
        Genesis admission: the founder sponsors itself and joins at time 0,
        which makes it a full member immediately.
        """
        if self.is_member(principal):
            raise AlreadyMember(principal)
        if handle in self._handles_taken:
            raise HandleTaken(handle)
        m = Member(sponsor=principal, handle=handle, time_joined=0, last_action_time=0)
        self._members[principal] = m
        self._handles_taken.add(handle)
        log.info("registry: founder %s admitted as %r", principal, handle_text(handle))
        return m

    def sponsor(self, caller: Principal, new_member: Principal, handle: bytes, now: int) -> NewMember:
        self.require_can_act(caller, now)
        if self.is_member(new_member):
            raise AlreadyMember(new_member)
        if handle in self._handles_taken:
            raise HandleTaken(handle)

        self._members[new_member] = Member(
            sponsor=caller, handle=handle, time_joined=now, last_action_time=0
        )
        self._handles_taken.add(handle)
        self.record_action(caller, now)
        log.info(
            "registry: %s sponsored %s as %r at %d", caller, new_member, handle_text(handle), now
        )
        return NewMember(timestamp=now, sponsor=caller, member=new_member)

    def veto(self, caller: Principal, target: Principal, now: int) -> MemberVetoed:
        self.require_full(caller, now)
        m = self.get(target)
        if not m.is_member:
            raise NotAMember(target, message="veto target is not a member")
        window = self.windows.veto_window_seconds
        if now - m.time_joined >= window:
            raise VetoWindowClosed(
                subject=target, started_at=m.time_joined, closed_at=m.time_joined + window
            )

        del self._members[target]
        if self.compat.release_handle_on_veto:
            self._handles_taken.discard(m.handle)
        else:
            log.warning(
                "registry: handle %r of vetoed member %s stays reserved",
                handle_text(m.handle),
                target,
            )
        log.info("registry: %s vetoed member %s at %d", caller, target, now)
        return MemberVetoed(timestamp=now, vetoer=caller, member=target)

    # --- persistence ---

    def dump(self) -> Dict:
        return {
            "members": {k: v.to_dict() for k, v in sorted(self._members.items())},
            "handles_taken": sorted("0x" + h.hex() for h in self._handles_taken),
        }

    def load(self, data: Dict) -> None:
        self._members = {
            k: Member.from_dict(v) for k, v in (data.get("members") or {}).items()
        }
        self._handles_taken = {
            bytes.fromhex(h[2:]) for h in (data.get("handles_taken") or [])
        }
        missing = [m.handle for m in self._members.values() if m.handle not in self._handles_taken]
        if missing:
            raise ValueError(f"snapshot inconsistent: {len(missing)} member handle(s) not marked taken")


__all__ = ["MembershipRegistry"]
