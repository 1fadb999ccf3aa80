"""
quorumgate.tests.conftest
=========================

Shared fixtures: deterministic secp256k1 keys, signing helpers and a 2-of-3
gateway.

Keys are derived from labels via SHA3 so every run (and every failure message)
sees the same addresses:

    def test_quorum(keys, sign, gateway):
        a, b = keys["alice"], keys["bob"]
        gateway.verify(d, sign(d, a, b))
"""
from __future__ import annotations

import hashlib
import os
from dataclasses import dataclass
from typing import Callable, Dict

import pytest

from quorumgate.crypto.secp256k1 import N, address_from_private_key, sign_digest
from quorumgate.gateway import ExecutionGateway
from quorumgate.host import CallHost
from quorumgate.types.signature import Signature

os.environ.setdefault("PYTHONHASHSEED", "0")

LABELS = ("alice", "bob", "carol", "dave", "eve")


def _det_private_key(label: str) -> bytes:
    """sha3(label) reduced into [1, N-1]."""
    h = int.from_bytes(hashlib.sha3_256(b"quorumgate-tests|" + label.encode("utf-8")).digest(), "big")
    return (h % (N - 1) + 1).to_bytes(32, "big")


def _det_address(tag: str) -> bytes:
    return hashlib.sha3_256(tag.encode("utf-8")).digest()[:20]


@dataclass(frozen=True)
class Key:
    label: str
    sk: bytes
    address: bytes

    def signature(self, digest: bytes) -> Signature:
        v, r, s = sign_digest(digest, self.sk)
        return Signature(recovery_id=v, r=r, s=s)

    def sign(self, digest: bytes) -> bytes:
        return self.signature(digest).to_packed()


def make_key(label: str) -> Key:
    sk = _det_private_key(label)
    return Key(label=label, sk=sk, address=address_from_private_key(sk))


KEYS: Dict[str, Key] = {label: make_key(label) for label in LABELS}

GATEWAY_ADDRESS = _det_address("gateway")
TARGET_ADDRESS = _det_address("target")


@pytest.fixture(scope="session")
def keys() -> Dict[str, Key]:
    return KEYS


@pytest.fixture(scope="session")
def sign() -> Callable[..., bytes]:
    """sign(digest, *keys) -> packed signature buffer, in argument order."""

    def _sign(digest: bytes, *signers: Key) -> bytes:
        return b"".join(k.sign(digest) for k in signers)

    return _sign


@pytest.fixture()
def host() -> CallHost:
    return CallHost()


@pytest.fixture()
def gateway(keys, host) -> ExecutionGateway:
    """2-of-3 gateway over alice, bob and carol."""
    return ExecutionGateway(
        [keys["alice"].address, keys["bob"].address, keys["carol"].address],
        2,
        address=GATEWAY_ADDRESS,
        host=host,
    )
