"""
Quorum signature verification.

`SignatureVerifier.verify(digest, batch)` is the single recovery / membership /
duplicate-detection loop shared by ExecutionGateway and ProofAdapter. It is
parameterized only by the digest, so each entry point chooses its own digest
scheme (see quorumgate.digest) and reuses this routine unchanged.

Checks, in order (first failure wins):

1. ``len(batch) < threshold``                      → InsufficientSignatures
2. recover the signer of each signature in batch order
3. recovered address not a registry member         → UnauthorizedSigner
4. recovered address equal to an earlier one       → DuplicateSigner

Duplicate detection compares against every previously accepted signer. It is
quadratic in batch size, which is bounded in practice by realistic quorum
sizes. Signatures beyond the threshold are accepted as long as each one is
valid, authorized and distinct.
"""

from __future__ import annotations

import logging
from typing import List

from .crypto.secp256k1 import recover_address
from .errors import DuplicateSigner, InsufficientSignatures, InvalidInput, UnauthorizedSigner
from .registry import SignerRegistry
from .types.signature import Signature, SignatureBatch, input_bytes
from .utils.bytes import BytesLike

log = logging.getLogger(__name__)


def recover_signer(digest: bytes, sig: Signature) -> bytes:
    """Pure recovery; invalid signatures yield ZERO_ADDRESS (never a member)."""
    return recover_address(digest, sig.recovery_id, sig.r, sig.s)


class SignatureVerifier:
    def __init__(self, registry: SignerRegistry) -> None:
        self._registry = registry

    @property
    def registry(self) -> SignerRegistry:
        return self._registry

    def verify(self, digest: BytesLike, batch: SignatureBatch) -> bool:
        d = input_bytes(digest, "digest")
        if len(d) != 32:
            raise InvalidInput("digest must be 32 bytes", details={"length": len(d)})

        threshold = self._registry.threshold
        if len(batch) < threshold:
            raise InsufficientSignatures(len(batch), threshold)

        accepted: List[bytes] = []
        for i, sig in enumerate(batch):
            signer = recover_signer(d, sig)
            if not self._registry.contains(signer):
                raise UnauthorizedSigner(signer, i)
            for j, prior in enumerate(accepted):
                if prior == signer:
                    raise DuplicateSigner(signer, i, j)
            accepted.append(signer)

        log.debug(
            "quorum reached",
            extra={"signatures": len(accepted), "threshold": threshold},
        )
        return True


__all__ = ["SignatureVerifier", "recover_signer"]
