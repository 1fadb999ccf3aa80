"""
quorumgate.errors
-----------------

Exception hierarchy for the quorum gateway.

Every check in the gateway is a synchronous precondition: the first violation
aborts the enclosing operation and the matching error below is raised to the
immediate caller. Nothing is retried internally, so every error here reports
``retryable=False``; callers resubmit a corrected request.

Design goals
~~~~~~~~~~~~
- Stable codes: upper-snake ASCII identifiers suitable for RPC/ABI surfaces.
- Safe diagnostics: ``details`` are truncated and hex-encoded so they can be
  logged or serialized without leaking large blobs.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


def _truncate(data: Any, max_len: int = 256) -> Any:
    """
    Truncate large strings/bytes for safe inclusion in diagnostics.
    Bytes are rendered as 0x-hex. Containers are shallowly summarized.
    """
    if isinstance(data, (bytes, bytearray)):
        raw = bytes(data)
        if len(raw) <= max_len:
            return "0x" + raw.hex()
        return "0x" + raw[:max_len].hex() + "..."
    if isinstance(data, str):
        if len(data) <= max_len:
            return data
        return data[:max_len] + "..."
    if isinstance(data, (list, tuple)):
        return [_truncate(x, max_len) for x in data[:16]] + (
            ["..."] if len(data) > 16 else []
        )
    if isinstance(data, dict):
        out: Dict[str, Any] = {}
        for i, (k, v) in enumerate(data.items()):
            if i >= 16:
                out["..."] = "truncated"
                break
            out[str(k)] = _truncate(v, max_len)
        return out
    return data


class QuorumError(Exception):
    """
    Base class for gateway errors.

    Attributes
    ----------
    code : str
        Stable, upper-snake ASCII identifier (e.g., 'DUPLICATE_SIGNER').
    message : str
        Human-friendly explanation (single line preferred).
    details : dict
        Structured data safe to expose in logs and RPC bridges.
    retryable : bool
        Always False for this package.
    """

    code: str = "QUORUM_ERROR"

    def __init__(
        self,
        message: str = "quorum gateway error",
        *,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details = _truncate(details or {})
        self.retryable = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details,
            "retryable": self.retryable,
        }

    def __str__(self) -> str:  # pragma: no cover - trivial
        return f"{self.code}: {self.message}"


# --- construction / administration ---------------------------------------------


class InvalidConfiguration(QuorumError):
    """Construction-time invariant violated (signer list, threshold, config values)."""

    code = "INVALID_CONFIGURATION"


class Unauthorized(QuorumError):
    """Administrative call that did not come through the gateway's verified path."""

    code = "UNAUTHORIZED"

    def __init__(self, operation: str) -> None:
        super().__init__(
            f"{operation} may only be invoked through a quorum-signed self call",
            details={"operation": operation},
        )


class AlreadyMember(QuorumError):
    code = "ALREADY_MEMBER"

    def __init__(self, identity: bytes) -> None:
        super().__init__("identity is already a signer", details={"identity": identity})


class NotMember(QuorumError):
    code = "NOT_MEMBER"

    def __init__(self, identity: bytes) -> None:
        super().__init__("identity is not a signer", details={"identity": identity})


# --- verification ------------------------------------------------------------------


class InsufficientSignatures(QuorumError):
    code = "INSUFFICIENT_SIGNATURES"

    def __init__(self, provided: int, threshold: int) -> None:
        super().__init__(
            f"{provided} signature(s) provided, threshold is {threshold}",
            details={"provided": provided, "threshold": threshold},
        )


class UnauthorizedSigner(QuorumError):
    code = "UNAUTHORIZED_SIGNER"

    def __init__(self, recovered: bytes, index: int) -> None:
        super().__init__(
            "recovered signer is not in the registry",
            details={"recovered": recovered, "index": index},
        )


class DuplicateSigner(QuorumError):
    code = "DUPLICATE_SIGNER"

    def __init__(self, recovered: bytes, index: int, first_index: int) -> None:
        super().__init__(
            "signer appears more than once in the batch",
            details={"recovered": recovered, "index": index, "first_index": first_index},
        )


class InvalidSignatures(QuorumError):
    """Aggregate verification failure at the gateway; the specific error is chained."""

    code = "INVALID_SIGNATURES"

    def __init__(self, reason: str, *, details: Optional[Dict[str, Any]] = None) -> None:
        dd: Dict[str, Any] = {"reason": reason}
        if details:
            dd.update(details)
        super().__init__("signature verification failed", details=dd)
        self.reason = reason


class InvalidInput(QuorumError):
    """Empty/malformed payloads, proofs or encoded calls."""

    code = "INVALID_INPUT"


# --- forwarding --------------------------------------------------------------------


class CallReverted(QuorumError):
    """Raised by a call-host handler to fail a forwarded call with diagnostic data."""

    code = "CALL_REVERTED"

    def __init__(self, data: bytes = b"", message: str = "call reverted") -> None:
        super().__init__(message, details={"data": data})
        self.data = bytes(data)


class ForwardedCallFailed(QuorumError):
    """The call forwarded by the gateway failed; ``revert_data`` is the callee's, verbatim."""

    code = "FORWARDED_CALL_FAILED"

    def __init__(self, target: bytes, revert_data: bytes = b"") -> None:
        super().__init__(
            "forwarded call failed",
            details={"target": target, "revert_data": revert_data},
        )
        self.target = bytes(target)
        self.revert_data = bytes(revert_data)


__all__ = [
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
