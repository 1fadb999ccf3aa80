"""Per-call wire types: signatures, signature batches and attestation proofs."""

from __future__ import annotations

from .proof import Proof, coerce_proof
from .signature import SIGNATURE_LEN, Signature, SignatureBatch

__all__ = ["SIGNATURE_LEN", "Signature", "SignatureBatch", "Proof", "coerce_proof"]
