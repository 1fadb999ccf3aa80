"""
quorumgate.utils.hash
=====================

Keccak-256 (the pre-standard SHA3 variant used by Ethereum-style ledgers).
Bytes in, bytes out.

Keccak-256 is provided by pycryptodome (`Crypto.Hash.keccak`); hashlib's
`sha3_256` is *not* Keccak-256 and must not be substituted for it.
"""

from __future__ import annotations

from Crypto.Hash import keccak as _keccak

from .bytes import BytesLike
from .bytes import b as _b


def keccak256(data: BytesLike) -> bytes:
    """Keccak-256 digest (Ethereum-style)."""
    h = _keccak.new(digest_bits=256)
    h.update(_b(data))
    return h.digest()


def keccak256_concat(*chunks: BytesLike) -> bytes:
    """Keccak-256 over the plain concatenation of chunks (no length prefixes)."""
    h = _keccak.new(digest_bits=256)
    for c in chunks:
        h.update(_b(c))
    return h.digest()


__all__ = ["keccak256", "keccak256_concat"]
