"""
Digest schemes.

Each entry point authenticates a different byte layout:

- GATEWAY_SCHEME  keccak256(target ‖ payload)   used by ExecutionGateway
- ADAPTER_SCHEME  keccak256(payload)            used by ProofAdapter

The adapter digest binds no destination or consumer. An approval signed for
the adapter says "this payload is authentic", nothing more, and must not be
treated as authorizing any particular forwarded call. Neither scheme carries a
domain tag.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from .utils.bytes import BytesLike, b, to_address
from .utils.hash import keccak256, keccak256_concat


def gateway_digest(target: BytesLike, payload: BytesLike) -> bytes:
    """keccak256(target ‖ payload); `target` is a 20-byte address."""
    return keccak256_concat(to_address(target), b(payload))


def adapter_digest(payload: BytesLike) -> bytes:
    """keccak256(payload)."""
    return keccak256(payload)


@dataclass(frozen=True)
class DigestScheme:
    """A named digest strategy, so callers and tests can select one explicitly."""

    name: str
    build: Callable[..., bytes]

    def __call__(self, *parts: BytesLike) -> bytes:
        return self.build(*parts)


GATEWAY_SCHEME = DigestScheme("gateway", gateway_digest)
ADAPTER_SCHEME = DigestScheme("adapter", adapter_digest)


__all__ = [
    "gateway_digest",
    "adapter_digest",
    "DigestScheme",
    "GATEWAY_SCHEME",
    "ADAPTER_SCHEME",
]
