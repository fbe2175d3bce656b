from __future__ import annotations

"""
Member records and the primitive key types they use.

A principal is an address-like key (0x + 40 hex). The all-zero address is the
"not a member" sentinel: a principal is a member iff its record's sponsor is
anything else. Handles are opaque fixed-size 32-byte strings.
"""

import re
from dataclasses import dataclass, replace
from typing import Any, Dict, Mapping, NewType, Union

from stewards.errors import InvalidRequest

Principal = NewType("Principal", str)

PRINCIPAL_BYTES = 20
HANDLE_BYTES = 32

ZERO_PRINCIPAL = Principal("0x" + "00" * PRINCIPAL_BYTES)

_PRINCIPAL_RE = re.compile(r"^0x[0-9a-f]{40}$")


def to_principal(value: Union[str, bytes]) -> Principal:
    """Normalise a principal to lowercase 0x-hex; accepts raw 20-byte values."""
    if isinstance(value, (bytes, bytearray)):
        if len(value) != PRINCIPAL_BYTES:
            raise InvalidRequest(
                "principal must be 20 bytes", details={"length": len(value)}
            )
        return Principal("0x" + bytes(value).hex())
    s = str(value).strip().lower()
    if not _PRINCIPAL_RE.match(s):
        raise InvalidRequest("malformed principal", details={"principal": str(value)})
    return Principal(s)


def principal_bytes(p: Principal) -> bytes:
    return bytes.fromhex(p[2:])


def to_handle(value: Union[str, bytes]) -> bytes:
    """
    Coerce to a 32-byte handle. Text starting with 0x is read as hex, other
    text as UTF-8. Short values are right-padded with zero bytes.
    """
    if isinstance(value, (bytes, bytearray)):
        raw = bytes(value)
    else:
        s = str(value)
        if s[:2] in ("0x", "0X"):
            try:
                raw = bytes.fromhex(s[2:])
            except ValueError as e:
                raise InvalidRequest("malformed hex handle", details={"handle": s}) from e
        else:
            raw = s.encode("utf-8")
    if not raw.strip(b"\x00"):
        raise InvalidRequest("handle must not be empty")
    if len(raw) > HANDLE_BYTES:
        raise InvalidRequest(
            "handle longer than 32 bytes", details={"length": len(raw)}
        )
    return raw.ljust(HANDLE_BYTES, b"\x00")


def handle_text(handle: bytes) -> str:
    """Best-effort display form of a handle."""
    raw = handle.rstrip(b"\x00")
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError:
        return "0x" + handle.hex()


@dataclass(frozen=True)
class Member:
    sponsor: Principal = ZERO_PRINCIPAL
    handle: bytes = b"\x00" * HANDLE_BYTES
    time_joined: int = 0
    last_action_time: int = 0

    @property
    def is_member(self) -> bool:
        return self.sponsor != ZERO_PRINCIPAL

    def with_action(self, now: int) -> "Member":
        return replace(self, last_action_time=int(now))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sponsor": str(self.sponsor),
            "handle": "0x" + self.handle.hex(),
            "time_joined": self.time_joined,
            "last_action_time": self.last_action_time,
        }

    @staticmethod
    def from_dict(d: Mapping[str, Any]) -> "Member":
        return Member(
            sponsor=to_principal(d["sponsor"]),
            handle=to_handle(d["handle"]),
            time_joined=int(d["time_joined"]),
            last_action_time=int(d.get("last_action_time", 0)),
        )


# The record every unknown principal resolves to.
ABSENT_MEMBER = Member()


__all__ = [
    "Principal",
    "PRINCIPAL_BYTES",
    "HANDLE_BYTES",
    "ZERO_PRINCIPAL",
    "ABSENT_MEMBER",
    "Member",
    "to_principal",
    "principal_bytes",
    "to_handle",
    "handle_text",
]
