"""
Proof adapter: attest to the authenticity of an opaque cross-chain payload.

``decode_and_verify(network_hint, payload, proof)`` checks that a quorum of
registered signers signed ``keccak256(payload)`` and returns ``payload``
unchanged. Nothing is forwarded and nothing is transformed.

Scope boundary: the digest binds the payload only. ``network_hint`` and the
proof's ``network`` field are accepted (and logged) but do not participate in
verification, so a valid proof is not scoped to any particular chain, consumer
or downstream use. Consumers that need such scoping must encode it inside the
payload itself.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional, Union

from . import metrics
from .digest import ADAPTER_SCHEME
from .errors import InsufficientSignatures, InvalidInput, QuorumError
from .logging import trace_scope
from .types.proof import NetworkId, Proof, coerce_proof
from .types.signature import input_bytes
from .utils.bytes import BytesLike
from .verifier import SignatureVerifier

log = logging.getLogger(__name__)

ProofLike = Union[Proof, Mapping[str, Any], bytes, bytearray, str]


class ProofAdapter:
    def __init__(self, verifier: SignatureVerifier) -> None:
        self._verifier = verifier
        # one lock per registry, shared with the gateway that owns it
        self._lock = verifier.registry.lock

    def decode_and_verify(
        self,
        network_hint: Optional[NetworkId],
        payload: BytesLike,
        proof: ProofLike,
    ) -> bytes:
        with self._lock, trace_scope(entry="decode_and_verify"):
            try:
                data = input_bytes(payload, "payload")
                if not data:
                    raise InvalidInput("payload is empty")
                p = coerce_proof(proof)
                if len(p.signatures) == 0:
                    raise InvalidInput("proof carries no signatures")

                digest = ADAPTER_SCHEME(data)

                threshold = self._verifier.registry.threshold
                if len(p.signatures) < threshold:
                    raise InsufficientSignatures(len(p.signatures), threshold)

                with metrics.time_verify("decode_and_verify"):
                    self._verifier.verify(digest, p.signatures)
            except QuorumError as exc:
                metrics.record_verification("decode_and_verify", exc.code)
                log.warning("proof rejected", extra={"code": exc.code})
                raise

            metrics.record_verification("decode_and_verify", "ok")
            log.info(
                "proof verified",
                extra={
                    "network_hint": network_hint,
                    "network": p.network,
                    "signatures": len(p.signatures),
                    "payload_len": len(data),
                },
            )
            return data


__all__ = ["ProofAdapter", "ProofLike"]
