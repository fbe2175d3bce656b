from __future__ import annotations
"""
stewards.registry
=================

Membership registry: sponsorship, provisional period, veto and handle
reservation.
"""

from .membership import MembershipRegistry

__all__ = ["MembershipRegistry"]
