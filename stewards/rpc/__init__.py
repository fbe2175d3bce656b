from __future__ import annotations
"""
stewards.rpc
============

Transport surfaces for the engine: JSON-RPC method table and FastAPI REST
router (see `methods`), plus mounting helpers (see `mount`).
"""

from .methods import build_rest_router, make_methods
from .mount import create_app, mount_guild, register_jsonrpc

RPC_PREFIX = "/guild"

__all__ = ["RPC_PREFIX", "build_rest_router", "make_methods", "create_app", "mount_guild", "register_jsonrpc"]
