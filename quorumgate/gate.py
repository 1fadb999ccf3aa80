"""
Self-administration gate.

Registry mutators are guarded by an unforgeable capability rather than a
"caller is myself" check. The gateway mints one `AdminCapability` at
construction, hands a gate bound to it to its registry, and keeps the token
private. The only code path that presents the token is the gateway's
self-dispatch, which runs after a quorum-signed ``execute`` whose target is
the gateway's own address.
"""

from __future__ import annotations

from typing import Optional

from .errors import Unauthorized


class AdminCapability:
    """Opaque token. Compared by identity; carries no data."""

    __slots__ = ()

    def __repr__(self) -> str:
        return "<AdminCapability>"

    def __reduce__(self):
        raise TypeError("AdminCapability cannot be pickled")

    def __copy__(self):
        return self

    def __deepcopy__(self, memo):
        return self


class SelfAdministrationGate:
    __slots__ = ("_token",)

    def __init__(self, token: AdminCapability) -> None:
        if not isinstance(token, AdminCapability):
            raise TypeError("gate requires an AdminCapability")
        self._token = token

    def check(self, capability: Optional[AdminCapability], operation: str) -> None:
        """Raise Unauthorized unless `capability` is this gate's token."""
        if capability is None or capability is not self._token:
            raise Unauthorized(operation)

    def __repr__(self) -> str:
        return "<SelfAdministrationGate>"


__all__ = ["AdminCapability", "SelfAdministrationGate"]
