from __future__ import annotations

"""
stewards.rpc.mount
------------------

Helpers to mount the governance RPC surface into an existing FastAPI app
and/or to register the JSON-RPC methods with your dispatcher.

Typical usage (REST):
    from fastapi import FastAPI
    from stewards.rpc.mount import mount_guild
    app = FastAPI()
    mount_guild(app, guild, prefix="/guild")

Typical usage (JSON-RPC):
    from stewards.rpc.mount import register_jsonrpc
    register_jsonrpc(dispatcher, guild)

Standalone app (metrics included):
    app = create_app(guild)
"""

from typing import Any, Protocol

from stewards import metrics
from stewards.engine import Guild
from stewards.version import __version__

from .methods import build_rest_router, make_methods


class _JsonRpcDispatcherLike(Protocol):
    """Minimal protocol to support common JSON-RPC dispatchers."""
    def add(self, method: str, func: Any) -> None: ...
    def register(self, method: str, func: Any) -> None: ...


def mount_guild(app: Any, guild: Guild, *, prefix: str = "/guild") -> None:
    """Mount the REST endpoints under `prefix` on a FastAPI app."""
    app.include_router(build_rest_router(guild), prefix=prefix, tags=["guild"])


def register_jsonrpc(dispatcher: _JsonRpcDispatcherLike, guild: Guild) -> None:
    """
    Register JSON-RPC methods on a dispatcher exposing either
    `add(name, fn)` or `register(name, fn)`.
    """
    for name, fn in make_methods(guild).items():
        if hasattr(dispatcher, "add"):
            dispatcher.add(name, fn)
        else:
            dispatcher.register(name, fn)


def create_app(guild: Guild, *, prefix: str = "/guild", metrics_path: str = "/metrics"):
    """Build a standalone FastAPI app serving the guild and its metrics."""
    from fastapi import FastAPI

    app = FastAPI(title="stewards", version=__version__)
    app.state.guild = guild
    mount_guild(app, guild, prefix=prefix)
    metrics.mount_fastapi(app, path=metrics_path)
    return app


__all__ = ["mount_guild", "register_jsonrpc", "create_app"]
