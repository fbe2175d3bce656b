from __future__ import annotations
"""
stewards test suite package.

Tiny helpers shared across the tests: deterministic addresses, a fixed
genesis timestamp and sample proposal payloads.
"""

from stewards.config import ONE_WEEK

# Genesis time for ManualClock-driven tests.
T0: int = 1_700_000_000
WEEK: int = ONE_WEEK
DAY: int = 24 * 60 * 60

SAMPLE_URL = "https://example.org/proposals/0001"
SAMPLE_DIGEST = "0x" + "ab" * 32


def addr(n: int) -> str:
    """Deterministic 20-byte address for index `n`."""
    return "0x" + format(n, "040x")


ALICE = addr(0xA11CE)
BOB = addr(0xB0B)
CAROL = addr(0xCA201)
DAVE = addr(0xDA4E)
ERIN = addr(0xE214)
DONOR = addr(0xD0)
WALLET = addr(0x3A11E7)


__all__ = [
    "T0",
    "WEEK",
    "DAY",
    "SAMPLE_URL",
    "SAMPLE_DIGEST",
    "addr",
    "ALICE",
    "BOB",
    "CAROL",
    "DAVE",
    "ERIN",
    "DONOR",
    "WALLET",
]
