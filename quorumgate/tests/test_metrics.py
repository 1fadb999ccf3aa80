"""
Prometheus metrics recorded by the gateway.
"""

from __future__ import annotations

from prometheus_client import REGISTRY

from quorumgate import metrics
from quorumgate.calls import encode_add_signer
from quorumgate.digest import gateway_digest
from quorumgate.gateway import ExecutionGateway
from quorumgate.utils.bytes import to_hex


def _value(name, labels=None):
    return REGISTRY.get_sample_value(name, labels or {}) or 0.0


def test_self_call_updates_mutation_and_forward_counters(gateway, keys, sign):
    adds = _value("quorumgate_signer_mutations_total", {"op": "add"})
    fwd = _value("quorumgate_forwarded_calls_total", {"kind": "self", "outcome": "ok"})

    payload = encode_add_signer(keys["dave"].address)
    d = gateway_digest(gateway.address, payload)
    gateway.execute(gateway.address, payload, sign(d, keys["alice"], keys["bob"]))

    assert _value("quorumgate_signer_mutations_total", {"op": "add"}) == adds + 1
    assert _value("quorumgate_forwarded_calls_total", {"kind": "self", "outcome": "ok"}) == fwd + 1
    assert _value("quorumgate_signer_count", {"gateway": to_hex(gateway.address)}) == 4


def test_signer_count_is_tracked_per_gateway(gateway, keys, sign):
    other = ExecutionGateway([keys["dave"].address], 1, address=b"\x99" * 20)
    payload = encode_add_signer(keys["carol"].address)
    other.execute(other.address, payload, sign(gateway_digest(other.address, payload), keys["dave"]))

    assert _value("quorumgate_signer_count", {"gateway": to_hex(other.address)}) == 2
    assert _value("quorumgate_signer_count", {"gateway": to_hex(gateway.address)}) == 3


def test_verify_latency_is_observed(gateway, keys, sign):
    before = _value("quorumgate_verify_seconds_count", {"entry": "verify"})
    d = gateway_digest(b"\x01" * 20, b"x")
    gateway.verify(d, sign(d, keys["alice"], keys["bob"]))
    assert _value("quorumgate_verify_seconds_count", {"entry": "verify"}) == before + 1


def test_metrics_server_disabled_without_port():
    assert metrics.maybe_start_metrics_server(None) is False
    assert metrics.maybe_start_metrics_server(0) is False
