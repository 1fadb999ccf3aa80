"""secp256k1 recovery/signing used by the verifier and the CLI."""

from __future__ import annotations

from .secp256k1 import (
    address_from_private_key,
    recover_address,
    sign_digest,
)

__all__ = ["address_from_private_key", "recover_address", "sign_digest"]
