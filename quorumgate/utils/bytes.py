"""
quorumgate.utils.bytes
======================

Lightweight helpers around byte handling:

- Hex helpers: to_hex/from_hex, 0x-prefix management
- Length guards: ensure_len
- Bytes-like normalization: b(), is_byteslike()
- Address helpers: to_address(), ZERO_ADDRESS, checksum display (EIP-55 style)

Examples
--------
>>> to_hex(b"\\x01\\x02")
'0x0102'
>>> from_hex('0xdeadbeef')
b'\\xde\\xad\\xbe\\xef'
"""

from __future__ import annotations

from typing import Union

BytesLike = Union[bytes, bytearray, memoryview]

ADDRESS_LEN = 20
WORD_LEN = 32

# Recovery sentinel; never a valid signer.
ZERO_ADDRESS = b"\x00" * ADDRESS_LEN


# -----------------------
# Basic bytes/hex helpers
# -----------------------

def is_byteslike(x: object) -> bool:
    return isinstance(x, (bytes, bytearray, memoryview))


def strip0x(s: str) -> str:
    return s[2:] if s.startswith(("0x", "0X")) else s


def to_hex(data: BytesLike, *, prefix: bool = True) -> str:
    """Return lowercase hex string of data."""
    if isinstance(data, memoryview):
        data = data.tobytes()
    elif isinstance(data, bytearray):
        data = bytes(data)
    if not isinstance(data, bytes):
        raise TypeError("to_hex expects bytes-like")
    h = data.hex()
    return f"0x{h}" if prefix else h


def from_hex(h: str) -> bytes:
    """Parse hex string with or without 0x prefix; ignores surrounding whitespace."""
    if not isinstance(h, str):
        raise TypeError("from_hex expects str")
    h = strip0x(h.strip().replace(" ", ""))
    if len(h) % 2 == 1:  # pad leading zero if odd length
        h = "0" + h
    try:
        return bytes.fromhex(h)
    except ValueError as e:
        raise ValueError(f"invalid hex string: {e}") from e


def b(x: Union[BytesLike, str]) -> bytes:
    """
    Normalize input to bytes:
    - bytes/bytearray/memoryview → bytes
    - str → if startswith '0x' parse hex, else utf-8 encode
    """
    if isinstance(x, bytes):
        return x
    if isinstance(x, bytearray):
        return bytes(x)
    if isinstance(x, memoryview):
        return x.tobytes()
    if isinstance(x, str):
        return from_hex(x) if x.startswith(("0x", "0X")) else x.encode("utf-8")
    raise TypeError(f"unsupported type for b(): {type(x)!r}")


def ensure_len(data: BytesLike, n: int, *, name: str = "bytes") -> bytes:
    data_b = b(data)
    if len(data_b) != n:
        raise ValueError(f"{name} must be length {n}, got {len(data_b)}")
    return data_b


# ---------
# Addresses
# ---------

def to_address(x: Union[BytesLike, str]) -> bytes:
    """
    Normalize an identity to 20 raw bytes. Strings must be hex (0x optional);
    plain text is never interpreted as an address.
    """
    if isinstance(x, str):
        raw = from_hex(x)
    else:
        raw = b(x)
    return ensure_len(raw, ADDRESS_LEN, name="address")


def to_checksum_address(addr: BytesLike) -> str:
    """Mixed-case hex rendering keyed by keccak256 of the lowercase hex (EIP-55)."""
    from .hash import keccak256

    hex_addr = to_hex(to_address(bytes(addr)), prefix=False)
    digest = keccak256(hex_addr.encode("ascii")).hex()
    out = []
    for ch, nib in zip(hex_addr, digest):
        out.append(ch.upper() if ch.isalpha() and int(nib, 16) >= 8 else ch)
    return "0x" + "".join(out)


def left_pad_word(data: BytesLike) -> bytes:
    """Left-pad to a 32-byte word (ABI static encoding)."""
    data_b = b(data)
    if len(data_b) > WORD_LEN:
        raise ValueError(f"value too long for a word: {len(data_b)} bytes")
    return b"\x00" * (WORD_LEN - len(data_b)) + data_b


__all__ = [
    "BytesLike",
    "ADDRESS_LEN",
    "WORD_LEN",
    "ZERO_ADDRESS",
    "is_byteslike",
    "strip0x",
    "to_hex",
    "from_hex",
    "b",
    "ensure_len",
    "to_address",
    "to_checksum_address",
    "left_pad_word",
]
