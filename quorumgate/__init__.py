"""
quorumgate: threshold-signature execution gateway and proof adapter.

    from quorumgate import ExecutionGateway

    gw = ExecutionGateway([a, b, c], 2, address=GW)
    gw.execute(target, payload, packed_signatures)
"""

from __future__ import annotations

from .adapter import ProofAdapter
from .errors import (
    AlreadyMember,
    CallReverted,
    DuplicateSigner,
    ForwardedCallFailed,
    InsufficientSignatures,
    InvalidConfiguration,
    InvalidInput,
    InvalidSignatures,
    NotMember,
    QuorumError,
    Unauthorized,
    UnauthorizedSigner,
)
from .gateway import ExecutionGateway
from .registry import SignerRegistry
from .types import Proof, Signature, SignatureBatch
from .verifier import SignatureVerifier
from .version import __version__

__all__ = [
    "__version__",
    "ExecutionGateway",
    "ProofAdapter",
    "SignerRegistry",
    "SignatureVerifier",
    "Signature",
    "SignatureBatch",
    "Proof",
    "QuorumError",
    "InvalidConfiguration",
    "Unauthorized",
    "AlreadyMember",
    "NotMember",
    "InsufficientSignatures",
    "UnauthorizedSigner",
    "DuplicateSigner",
    "InvalidSignatures",
    "InvalidInput",
    "CallReverted",
    "ForwardedCallFailed",
]
