from __future__ import annotations

"""
Spending proposal records and deterministic proposal ids.

A proposal carries a link to the full proposal document (four 32-byte
blocks), the document's 256-bit digest, a payout wallet and a value. Its id
is `sha3_256` over the packed tuple

    sponsor(20) | url(4x32) | digest(32) | wallet(20) | value(u256) | timestamp(u256)

so resubmitting an identical payload in the same clock tick yields the same
id, while any later tick yields a fresh one.
"""

import hashlib
import re
from dataclasses import dataclass, replace
from typing import Any, Dict, Mapping, NewType, Sequence, Tuple, Union

from stewards.errors import InvalidRequest
from stewards.records.member import ZERO_PRINCIPAL, Principal, principal_bytes, to_principal

ProposalId = NewType("ProposalId", str)

URL_BLOCKS = 4
BLOCK_BYTES = 32
DIGEST_BYTES = 32
UINT256_MAX = (1 << 256) - 1

Url = Tuple[bytes, bytes, bytes, bytes]

EMPTY_URL: Url = (b"\x00" * BLOCK_BYTES,) * URL_BLOCKS  # type: ignore[assignment]
EMPTY_DIGEST = b"\x00" * DIGEST_BYTES

_ID_RE = re.compile(r"^0x[0-9a-f]{64}$")


def _hex_bytes(value: Union[str, bytes], what: str) -> bytes:
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    s = str(value)
    if s[:2] in ("0x", "0X"):
        s = s[2:]
    try:
        return bytes.fromhex(s)
    except ValueError as e:
        raise InvalidRequest(f"malformed hex {what}", details={what: str(value)}) from e


def to_proposal_id(value: Union[str, bytes]) -> ProposalId:
    if isinstance(value, (bytes, bytearray)):
        if len(value) != 32:
            raise InvalidRequest("proposal id must be 32 bytes", details={"length": len(value)})
        return ProposalId("0x" + bytes(value).hex())
    s = str(value).strip().lower()
    if not _ID_RE.match(s):
        raise InvalidRequest("malformed proposal id", details={"proposal_id": str(value)})
    return ProposalId(s)


def to_digest(value: Union[str, bytes]) -> bytes:
    raw = _hex_bytes(value, "digest")
    if len(raw) != DIGEST_BYTES:
        raise InvalidRequest("digest must be 32 bytes", details={"length": len(raw)})
    return raw


def pack_url(text: str) -> Url:
    """Split a UTF-8 link of at most 128 bytes into four zero-padded blocks."""
    raw = text.encode("utf-8")
    if len(raw) > URL_BLOCKS * BLOCK_BYTES:
        raise InvalidRequest("url longer than 128 bytes", details={"length": len(raw)})
    raw = raw.ljust(URL_BLOCKS * BLOCK_BYTES, b"\x00")
    return tuple(raw[i * BLOCK_BYTES:(i + 1) * BLOCK_BYTES] for i in range(URL_BLOCKS))  # type: ignore[return-value]


def unpack_url(blocks: Sequence[bytes]) -> str:
    return b"".join(blocks).rstrip(b"\x00").decode("utf-8", "replace")


def to_url(value: Union[str, Sequence[Union[str, bytes]]]) -> Url:
    """
    Accept either a plain link (packed with `pack_url`) or exactly four
    32-byte blocks given as bytes or 0x-hex.
    """
    if isinstance(value, str):
        return pack_url(value)
    blocks = [_hex_bytes(b, "url") for b in value]
    if len(blocks) != URL_BLOCKS or any(len(b) != BLOCK_BYTES for b in blocks):
        raise InvalidRequest("url must be four 32-byte blocks")
    return tuple(blocks)  # type: ignore[return-value]


def _u256(n: int, what: str) -> bytes:
    if n < 0 or n > UINT256_MAX:
        raise InvalidRequest(f"{what} out of uint256 range", details={what: str(n)})
    return int(n).to_bytes(32, "big")


def derive_proposal_id(
    sponsor: Principal,
    url: Url,
    digest: bytes,
    wallet: Principal,
    value: int,
    timestamp: int,
) -> ProposalId:
    """Pure function of its inputs; the timestamp stays in the hash domain."""
    h = hashlib.sha3_256()
    h.update(principal_bytes(sponsor))
    for block in url:
        h.update(block)
    h.update(digest)
    h.update(principal_bytes(wallet))
    h.update(_u256(value, "value"))
    h.update(_u256(timestamp, "timestamp"))
    return ProposalId("0x" + h.hexdigest())


@dataclass(frozen=True)
class Proposal:
    sponsor: Principal = ZERO_PRINCIPAL
    url: Url = EMPTY_URL
    digest: bytes = EMPTY_DIGEST
    wallet: Principal = ZERO_PRINCIPAL
    value: int = 0
    time_submitted: int = 0

    @property
    def exists(self) -> bool:
        return self.time_submitted != 0

    @property
    def neutralized(self) -> bool:
        return self.exists and self.value == 0

    def neutralize(self) -> "Proposal":
        return replace(self, value=0)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sponsor": str(self.sponsor),
            "url": ["0x" + b.hex() for b in self.url],
            "link": unpack_url(self.url),
            "digest": "0x" + self.digest.hex(),
            "wallet": str(self.wallet),
            "value": self.value,
            "time_submitted": self.time_submitted,
        }

    @staticmethod
    def from_dict(d: Mapping[str, Any]) -> "Proposal":
        return Proposal(
            sponsor=to_principal(d["sponsor"]),
            url=to_url(d["url"]),
            digest=to_digest(d["digest"]),
            wallet=to_principal(d["wallet"]),
            value=int(d["value"]),
            time_submitted=int(d["time_submitted"]),
        )


# The record every unknown id resolves to.
ABSENT_PROPOSAL = Proposal()


__all__ = [
    "ProposalId",
    "Url",
    "URL_BLOCKS",
    "BLOCK_BYTES",
    "ABSENT_PROPOSAL",
    "Proposal",
    "to_proposal_id",
    "to_digest",
    "to_url",
    "pack_url",
    "unpack_url",
    "derive_proposal_id",
]
