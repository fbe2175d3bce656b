from __future__ import annotations
"""
stewards.adapters
=================

Bridges between the in-memory engine and the outside world. Currently only a
JSON snapshot file used by the CLI and for offline inspection.
"""

from .state_file import load_snapshot, persist_on_commit, save_snapshot

__all__ = ["load_snapshot", "persist_on_commit", "save_snapshot"]
