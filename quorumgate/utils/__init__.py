"""Byte, hex and hash helpers shared across quorumgate."""

from __future__ import annotations

from .bytes import (
    ADDRESS_LEN,
    ZERO_ADDRESS,
    from_hex,
    to_address,
    to_checksum_address,
    to_hex,
)
from .hash import keccak256, keccak256_concat

__all__ = [
    "ADDRESS_LEN",
    "ZERO_ADDRESS",
    "from_hex",
    "to_address",
    "to_checksum_address",
    "to_hex",
    "keccak256",
    "keccak256_concat",
]
