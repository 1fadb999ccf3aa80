"""
Structured attestation proof.

A Proof carries the quorum signatures consumed by ProofAdapter plus optional
metadata. Only ``signatures`` binds into verification; ``network`` and any
other fields are carried through untouched and are never hashed.

Wire forms
----------
CBOR (canonical, via cbor2)::

    {
      "signatures": [{"r": bstr .size 32, "s": bstr .size 32, "recoveryId": uint}, ...],
      ? "network": tstr / uint,
      * tstr => any
    }

JSON: the same shape with 0x-hex strings for byte fields.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Union

import cbor2

from ..errors import InvalidInput
from ..utils.bytes import BytesLike, b
from .signature import SignatureBatch

NetworkId = Union[int, str]

_KNOWN_KEYS = ("signatures", "network")


@dataclass(frozen=True)
class Proof:
    signatures: SignatureBatch
    network: Optional[NetworkId] = None
    extra: Dict[str, Any] = field(default_factory=dict, compare=False)

    # ---- mapping form ----

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "Proof":
        if not isinstance(d, Mapping):
            raise InvalidInput("proof must be a mapping")
        if "signatures" not in d:
            raise InvalidInput("proof missing 'signatures'")
        sigs = d["signatures"]
        if not isinstance(sigs, (list, tuple)):
            raise InvalidInput("proof 'signatures' must be a list")
        network = d.get("network")
        if network is not None and (
            isinstance(network, bool) or not isinstance(network, (int, str))
        ):
            raise InvalidInput("proof 'network' must be an int or string")
        extra = {str(k): v for k, v in d.items() if k not in _KNOWN_KEYS}
        return cls(
            signatures=SignatureBatch.from_structured(sigs),
            network=network,
            extra=extra,
        )

    def to_dict(self, *, hex_fields: bool = False) -> Dict[str, Any]:
        out: Dict[str, Any] = dict(self.extra)
        out["signatures"] = self.signatures.to_structured(hex_fields=hex_fields)
        if self.network is not None:
            out["network"] = self.network
        return out

    # ---- CBOR ----

    def to_cbor(self) -> bytes:
        return cbor2.dumps(self.to_dict(), canonical=True)

    @classmethod
    def from_cbor(cls, data: BytesLike) -> "Proof":
        try:
            obj = cbor2.loads(b(data))
        except (cbor2.CBORDecodeError, ValueError) as exc:
            raise InvalidInput("proof is not valid CBOR") from exc
        return cls.from_dict(obj)

    # ---- JSON ----

    def to_json(self) -> str:
        return json.dumps(self.to_dict(hex_fields=True), sort_keys=True)

    @classmethod
    def from_json(cls, text: str) -> "Proof":
        try:
            obj = json.loads(text)
        except json.JSONDecodeError as exc:
            raise InvalidInput("proof is not valid JSON") from exc
        return cls.from_dict(obj)


def coerce_proof(proof: Union["Proof", Mapping[str, Any], BytesLike, str]) -> Proof:
    """Accept a Proof, a mapping, CBOR bytes or a JSON string."""
    if isinstance(proof, Proof):
        return proof
    if isinstance(proof, Mapping):
        return Proof.from_dict(proof)
    if isinstance(proof, (bytes, bytearray, memoryview)):
        return Proof.from_cbor(proof)
    if isinstance(proof, str):
        return Proof.from_json(proof)
    raise InvalidInput(f"unsupported proof type: {type(proof).__name__}")


__all__ = ["NetworkId", "Proof", "coerce_proof"]
