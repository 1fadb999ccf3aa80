"""
quorumgate.crypto.secp256k1
===========================

Thin wrapper over `py_ecc`'s secp256k1 for the three operations the gateway
needs:

- recover_address(digest, recovery_id, r, s) -> 20-byte address
- sign_digest(digest, private_key) -> (recovery_id, r, s)
- address_from_private_key(private_key) / address_from_public_point(x, y)

Address derivation follows the Ethereum convention: the last 20 bytes of
keccak256(X ‖ Y) of the uncompressed public key (without the 0x04 prefix).

Recovery is total: malformed or non-recoverable signatures return
`ZERO_ADDRESS` instead of raising, and `ZERO_ADDRESS` is rejected as a signer
by the registry, so an invalid signature can never count toward quorum.

Accepted recovery ids are 27/28 and their raw 0/1 forms. High-s signatures are
accepted (no malleability normalisation), matching `ecrecover` semantics.
"""

from __future__ import annotations

import logging
from typing import Tuple

from py_ecc.secp256k1 import secp256k1 as _curve

from ..utils.bytes import ZERO_ADDRESS, BytesLike, b, ensure_len
from ..utils.hash import keccak256

log = logging.getLogger(__name__)

# Curve order / field prime
N: int = _curve.N
P: int = _curve.P

PRIVATE_KEY_LEN = 32
DIGEST_LEN = 32


def normalize_recovery_id(v: int) -> int:
    """Map raw 0/1 to 27/28; pass 27/28 through; anything else → -1 (invalid)."""
    if v in (0, 1):
        return v + 27
    if v in (27, 28):
        return v
    return -1


def address_from_public_point(x: int, y: int) -> bytes:
    return keccak256(x.to_bytes(32, "big") + y.to_bytes(32, "big"))[12:]


def public_point(private_key: BytesLike) -> Tuple[int, int]:
    sk = _check_private_key(private_key)
    x, y = _curve.privtopub(sk)
    return int(x), int(y)


def address_from_private_key(private_key: BytesLike) -> bytes:
    x, y = public_point(private_key)
    return address_from_public_point(x, y)


def sign_digest(digest: BytesLike, private_key: BytesLike) -> Tuple[int, int, int]:
    """
    Deterministic (RFC 6979 style) ECDSA signature over a 32-byte digest.
    Returns (recovery_id ∈ {27, 28}, r, s).
    """
    d = ensure_len(b(digest), DIGEST_LEN, name="digest")
    sk = _check_private_key(private_key)
    v, r, s = _curve.ecdsa_raw_sign(d, sk)
    return int(v), int(r), int(s)


def recover_address(digest: BytesLike, recovery_id: int, r: int, s: int) -> bytes:
    """
    Recover the signer address of (recovery_id, r, s) over `digest`.

    Pure function; never raises for bad signatures. Returns ZERO_ADDRESS when
    the signature is out of range, not on the curve, or recovers to infinity.
    """
    d = bytes(digest)
    if len(d) != DIGEST_LEN:
        return ZERO_ADDRESS
    v = normalize_recovery_id(int(recovery_id))
    if v < 0 or not (0 < r < N) or not (0 < s < N):
        return ZERO_ADDRESS
    try:
        point = _curve.ecdsa_raw_recover(d, (v, r, s))
    except ValueError as exc:
        log.debug("signature not recoverable", extra={"reason": str(exc)})
        return ZERO_ADDRESS
    # py_ecc returns False when r is not an x coordinate on the curve
    if not point:
        log.debug("signature not recoverable", extra={"reason": "r not on curve"})
        return ZERO_ADDRESS
    x, y = point
    if not x and not y:
        return ZERO_ADDRESS
    return address_from_public_point(int(x), int(y))


def _check_private_key(private_key: BytesLike) -> bytes:
    sk = ensure_len(b(private_key), PRIVATE_KEY_LEN, name="private key")
    k = int.from_bytes(sk, "big")
    if not (0 < k < N):
        raise ValueError("private key out of range for secp256k1")
    return sk


__all__ = [
    "N",
    "P",
    "normalize_recovery_id",
    "address_from_public_point",
    "address_from_private_key",
    "public_point",
    "sign_digest",
    "recover_address",
]
