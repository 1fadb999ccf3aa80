"""
quorumgate.metrics
------------------

Prometheus metrics for the quorum gateway.

Tracks:
- Verification attempts per entry point (execute / verify / decode_and_verify)
  and outcome (ok or the failing error code).
- Verification latency.
- Signer-set mutations per operation.
- Forwarded call outcomes.
- Current signer count per gateway.
"""

from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from typing import Iterator, Optional

from prometheus_client import Counter, Gauge, Histogram, start_http_server

log = logging.getLogger(__name__)

_NS = "quorumgate"


def _m(name: str) -> str:
    return f"{_NS}_{name}"


VERIFICATIONS_TOTAL = Counter(
    _m("verifications_total"),
    "Quorum verifications by entry point and outcome.",
    labelnames=("entry", "outcome"),  # outcome = ok | <error code>
)

VERIFY_SECONDS = Histogram(
    _m("verify_seconds"),
    "Latency of quorum verification (recovery + membership + duplicate scan).",
    buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5),
    labelnames=("entry",),
)

SIGNER_MUTATIONS_TOTAL = Counter(
    _m("signer_mutations_total"),
    "Applied signer-set mutations.",
    labelnames=("op",),  # add | remove | swap
)

FORWARDED_CALLS_TOTAL = Counter(
    _m("forwarded_calls_total"),
    "Calls forwarded by the gateway after verification.",
    labelnames=("kind", "outcome"),  # kind = self | external ; outcome = ok | failed
)

SIGNER_COUNT = Gauge(
    _m("signer_count"),
    "Current number of authorized signers.",
    labelnames=("gateway",),  # gateway address, or "standalone"
)


def record_verification(entry: str, outcome: str) -> None:
    VERIFICATIONS_TOTAL.labels(entry=entry, outcome=outcome).inc()


def set_signer_count(gateway: str, signer_count: int) -> None:
    SIGNER_COUNT.labels(gateway=gateway).set(signer_count)


def record_mutation(op: str, gateway: str, signer_count: int) -> None:
    SIGNER_MUTATIONS_TOTAL.labels(op=op).inc()
    set_signer_count(gateway, signer_count)


def record_forward(kind: str, ok: bool) -> None:
    FORWARDED_CALLS_TOTAL.labels(kind=kind, outcome="ok" if ok else "failed").inc()


@contextmanager
def time_verify(entry: str) -> Iterator[None]:
    t0 = time.perf_counter()
    try:
        yield
    finally:
        VERIFY_SECONDS.labels(entry=entry).observe(time.perf_counter() - t0)


def start_metrics_server(port: int, addr: str = "127.0.0.1") -> None:
    """Expose /metrics over HTTP (prometheus_client's threaded server)."""
    start_http_server(port, addr=addr)
    log.info("metrics server listening", extra={"addr": addr, "port": port})


def maybe_start_metrics_server(port: Optional[int]) -> bool:
    if not port:
        return False
    start_metrics_server(port)
    return True


__all__ = [
    "VERIFICATIONS_TOTAL",
    "VERIFY_SECONDS",
    "SIGNER_MUTATIONS_TOTAL",
    "FORWARDED_CALLS_TOTAL",
    "SIGNER_COUNT",
    "record_verification",
    "set_signer_count",
    "record_mutation",
    "record_forward",
    "time_verify",
    "start_metrics_server",
    "maybe_start_metrics_server",
]
