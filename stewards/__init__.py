from __future__ import annotations
"""
Stewards - membership-gated treasury governance engine.

A closed set of members admits new members by sponsorship, may veto recent
admissions or recent spending proposals, and submits proposals that release
pooled funds after a one-week waiting period. Submodules are lazily imported
to keep import time minimal.

Public surface (lazily loaded):
- config, errors, metrics, clock, guard, events
- records, registry, treasury, engine
- adapters, rpc, cli
"""


from typing import List

from .version import __version__

__all__: List[str] = [
    "__version__",
    # lazily importable subpackages/modules
    "config",
    "errors",
    "metrics",
    "clock",
    "guard",
    "events",
    "records",
    "registry",
    "treasury",
    "engine",
    "adapters",
    "rpc",
    "cli",
]

# --- Lazy module loader (PEP 562) -------------------------------------------------
import importlib


_lazy_modules = set(__all__) - {"__version__"}


def __getattr__(name: str):
    if name in _lazy_modules:
        return importlib.import_module(f".{name}", __name__)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


def __dir__():
    return sorted(set(globals().keys()) | _lazy_modules)


def get_version() -> str:
    """Return the stewards package version string."""
    return __version__
