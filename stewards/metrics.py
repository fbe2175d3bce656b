from __future__ import annotations

"""
Prometheus metrics for the governance engine.

We expose counters, gauges and a histogram covering:
- operations: committed transitions by operation name
- rejections: failed preconditions by operation and error code
- funds: amounts donated and paid out, current treasury balance
- membership: current member count
- latency: time spent inside the engine's critical section

This module is dependency-light and can be mounted into any ASGI app or
FastAPI app via the helpers at the bottom.
"""


import time
from contextlib import contextmanager
from typing import Optional

from prometheus_client import (CONTENT_TYPE_LATEST, CollectorRegistry, Counter,
                               Gauge, Histogram, generate_latest)

# Use a dedicated registry so embedding apps can choose to merge or expose it directly.
REGISTRY = CollectorRegistry()

# ────────────────────────────────────────────────────────────────────────────────
# Label conventions
#   op: "sponsor_member" | "veto_member" | "submit_proposal" | "veto_proposal"
#       | "claim_proposal" | "donate"
#   code: StewardsError.code, e.g. "STEWARDS_RATE_LIMITED"
# ────────────────────────────────────────────────────────────────────────────────

OPERATIONS = Counter(
    "stewards_operations_total",
    "Committed state transitions by operation.",
    labelnames=("op",),
    registry=REGISTRY,
)

REJECTIONS = Counter(
    "stewards_rejections_total",
    "Operations rejected by a precondition, by operation and error code.",
    labelnames=("op", "code"),
    registry=REGISTRY,
)

DONATED = Counter(
    "stewards_donated_amount_total",
    "Sum of all donations (base units).",
    registry=REGISTRY,
)

PAID_OUT = Counter(
    "stewards_paid_out_amount_total",
    "Sum of all claimed proposal values (base units).",
    registry=REGISTRY,
)

TREASURY_BALANCE = Gauge(
    "stewards_treasury_balance",
    "Current treasury balance (base units).",
    registry=REGISTRY,
)

MEMBERS = Gauge(
    "stewards_members",
    "Current number of admitted members (provisional and full).",
    registry=REGISTRY,
)

_LATENCY_BUCKETS = (
    0.0001,
    0.0005,
    0.001,
    0.005,
    0.01,
    0.05,
    0.1,
    0.5,
    1.0,
)

OPERATION_SECONDS = Histogram(
    "stewards_operation_seconds",
    "Time spent inside the engine critical section, by operation.",
    labelnames=("op",),
    buckets=_LATENCY_BUCKETS,
    registry=REGISTRY,
)

# ────────────────────────────────────────────────────────────────────────────────
# Recording helpers
# ────────────────────────────────────────────────────────────────────────────────


def record_operation(op: str) -> None:
    OPERATIONS.labels(op=op).inc()


def record_rejection(op: str, code: str) -> None:
    REJECTIONS.labels(op=op, code=code).inc()


def record_donation(amount: int) -> None:
    if amount > 0:
        DONATED.inc(amount)


def record_payout(amount: int) -> None:
    if amount > 0:
        PAID_OUT.inc(amount)


def set_state(*, balance: int, members: int) -> None:
    """Refresh the snapshot gauges after a committed transition."""
    TREASURY_BALANCE.set(balance)
    MEMBERS.set(members)


@contextmanager
def time_operation(op: str):
    """Context manager to observe the duration of an engine operation."""
    start = time.perf_counter()
    try:
        yield
    finally:
        OPERATION_SECONDS.labels(op=op).observe(time.perf_counter() - start)


# ────────────────────────────────────────────────────────────────────────────────
# ASGI/FastAPI mounting helpers
# ────────────────────────────────────────────────────────────────────────────────


def render_latest(registry: Optional[CollectorRegistry] = None) -> bytes:
    return generate_latest(registry or REGISTRY)


def mount_fastapi(
    app, path: str = "/metrics", registry: Optional[CollectorRegistry] = None
) -> None:
    """
    Mount a GET {path} endpoint on a FastAPI app to serve metrics.

    Usage:
        from fastapi import FastAPI
        from stewards.metrics import mount_fastapi
        app = FastAPI()
        mount_fastapi(app)
    """
    from fastapi import Response

    reg = registry or REGISTRY

    @app.get(path, include_in_schema=False)
    def _metrics() -> Response:
        return Response(generate_latest(reg), media_type=CONTENT_TYPE_LATEST)


__all__ = [
    "REGISTRY",
    "OPERATIONS",
    "REJECTIONS",
    "DONATED",
    "PAID_OUT",
    "TREASURY_BALANCE",
    "MEMBERS",
    "OPERATION_SECONDS",
    "record_operation",
    "record_rejection",
    "record_donation",
    "record_payout",
    "set_state",
    "time_operation",
    "render_latest",
    "mount_fastapi",
]
