from __future__ import annotations

"""
stewards.version: package version.

Release builds stamp STEWARDS_VERSION (e.g. "0.1.0+build.42") into the
environment; the result is `stewards.__version__` and the FastAPI app
version. Snapshots carry their own SNAPSHOT_VERSION (see `stewards.engine`).
"""

import os

BASE_VERSION = "0.1.0"

__version__ = os.getenv("STEWARDS_VERSION") or BASE_VERSION


__all__ = ["__version__", "BASE_VERSION"]
