"""
Signature and SignatureBatch wire types.

Two encodings decode to the same `(recovery_id, r, s)` triple:

Packed (used by ExecutionGateway.execute / verify)
    A flat buffer of 65-byte records, each

        r (32 bytes, big-endian) ‖ s (32 bytes, big-endian) ‖ recoveryId (1 byte)

    The record count is ``len(buf) // 65``. Trailing ``len(buf) % 65`` bytes
    are ignored unless the caller asks for strict parsing.

Structured (used by ProofAdapter)
    A list of mappings ``{"r": bytes32, "s": bytes32, "recoveryId": int}``.
    ``v`` and ``recovery_id`` are accepted as aliases for ``recoveryId``.
    Byte fields may be raw bytes, 0x-hex strings, or ints. The list length is
    exact.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Iterator, Mapping, Sequence, Tuple

from ..errors import InvalidInput
from ..utils.bytes import BytesLike, b, from_hex, to_hex

SIGNATURE_LEN = 65
_WORD = 32

_RECOVERY_KEYS = ("recoveryId", "v", "recovery_id")


def input_bytes(value: object, what: str) -> bytes:
    """Coerce caller-supplied bytes. Malformed hex or a non-byte type is InvalidInput."""
    try:
        return b(value)  # type: ignore[arg-type]
    except (ValueError, TypeError) as exc:
        raise InvalidInput(f"invalid {what}: {exc}", details={"type": type(value).__name__}) from exc


@dataclass(frozen=True)
class Signature:
    """A secp256k1 ECDSA signature over a 32-byte digest."""

    recovery_id: int
    r: int
    s: int

    def __post_init__(self) -> None:
        if not (0 <= self.recovery_id <= 0xFF):
            raise InvalidInput(
                "recovery id must fit in one byte",
                details={"recovery_id": self.recovery_id},
            )
        if not (0 <= self.r < 1 << 256) or not (0 <= self.s < 1 << 256):
            raise InvalidInput("r and s must be 256-bit unsigned integers")

    @property
    def vrs(self) -> Tuple[int, int, int]:
        return (self.recovery_id, self.r, self.s)

    # -- packed ---------------------------------------------------------------

    def to_packed(self) -> bytes:
        return (
            self.r.to_bytes(_WORD, "big")
            + self.s.to_bytes(_WORD, "big")
            + bytes([self.recovery_id])
        )

    @classmethod
    def from_packed(cls, record: BytesLike) -> "Signature":
        raw = input_bytes(record, "packed signature")
        if len(raw) != SIGNATURE_LEN:
            raise InvalidInput(
                f"packed signature must be {SIGNATURE_LEN} bytes",
                details={"length": len(raw)},
            )
        return cls(
            recovery_id=raw[64],
            r=int.from_bytes(raw[0:32], "big"),
            s=int.from_bytes(raw[32:64], "big"),
        )

    # -- structured -----------------------------------------------------------

    def to_dict(self, *, hex_fields: bool = False) -> dict:
        r = self.r.to_bytes(_WORD, "big")
        s = self.s.to_bytes(_WORD, "big")
        if hex_fields:
            return {"r": to_hex(r), "s": to_hex(s), "recoveryId": self.recovery_id}
        return {"r": r, "s": s, "recoveryId": self.recovery_id}

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "Signature":
        if not isinstance(d, Mapping):
            raise InvalidInput("structured signature must be a mapping")
        try:
            r = _word(d["r"], "r")
            s = _word(d["s"], "s")
        except KeyError as exc:
            raise InvalidInput(f"structured signature missing field {exc.args[0]!r}") from exc
        for key in _RECOVERY_KEYS:
            if key in d:
                v = _small_int(d[key], key)
                break
        else:
            raise InvalidInput("structured signature missing field 'recoveryId'")
        return cls(recovery_id=v, r=r, s=s)


class SignatureBatch(Sequence[Signature]):
    """Ordered, immutable sequence of signatures."""

    __slots__ = ("_items",)

    def __init__(self, items: Iterable[Signature] = ()) -> None:
        self._items: Tuple[Signature, ...] = tuple(items)

    def __getitem__(self, idx):  # type: ignore[override]
        return self._items[idx]

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Signature]:
        return iter(self._items)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, SignatureBatch):
            return self._items == other._items
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._items)

    def __repr__(self) -> str:
        return f"SignatureBatch({len(self._items)} signature(s))"

    @classmethod
    def from_packed(cls, buf: BytesLike, *, strict: bool = False) -> "SignatureBatch":
        """
        Split a packed buffer into ``len(buf) // 65`` signatures.

        With ``strict=True`` a length that is not an exact multiple of 65 is
        rejected with InvalidInput instead of silently dropping the tail.
        """
        raw = input_bytes(buf, "packed signatures")
        count, rem = divmod(len(raw), SIGNATURE_LEN)
        if strict and rem:
            raise InvalidInput(
                "packed signature buffer length is not a multiple of 65",
                details={"length": len(raw), "trailing": rem},
            )
        return cls(
            Signature.from_packed(raw[i * SIGNATURE_LEN : (i + 1) * SIGNATURE_LEN])
            for i in range(count)
        )

    @classmethod
    def from_structured(cls, items: Iterable[Mapping[str, Any]]) -> "SignatureBatch":
        if isinstance(items, (str, bytes, bytearray, Mapping)):
            raise InvalidInput("structured signatures must be a list of mappings")
        return cls(Signature.from_dict(d) for d in items)

    def to_packed(self) -> bytes:
        return b"".join(s.to_packed() for s in self._items)

    def to_structured(self, *, hex_fields: bool = False) -> list:
        return [s.to_dict(hex_fields=hex_fields) for s in self._items]


# ---------------------------------------------------------------------------
# field coercion
# ---------------------------------------------------------------------------


def _word(v: Any, name: str) -> int:
    if isinstance(v, bool):
        raise InvalidInput(f"{name} must be bytes32, hex or int")
    if isinstance(v, int):
        return v
    if isinstance(v, str):
        try:
            raw = from_hex(v)
        except ValueError as exc:
            raise InvalidInput(f"{name} is not valid hex") from exc
    elif isinstance(v, (bytes, bytearray, memoryview)):
        raw = b(v)
    else:
        raise InvalidInput(f"{name} must be bytes32, hex or int")
    if len(raw) > _WORD:
        raise InvalidInput(f"{name} longer than 32 bytes", details={"length": len(raw)})
    return int.from_bytes(raw, "big")


def _small_int(v: Any, name: str) -> int:
    if isinstance(v, bool):
        raise InvalidInput(f"{name} must be an integer")
    if isinstance(v, int):
        return v
    if isinstance(v, (bytes, bytearray)) and len(v) == 1:
        return v[0]
    if isinstance(v, str):
        try:
            return int(v, 0)
        except ValueError as exc:
            raise InvalidInput(f"{name} must be an integer") from exc
    raise InvalidInput(f"{name} must be an integer")


__all__ = ["SIGNATURE_LEN", "Signature", "SignatureBatch", "input_bytes"]
