"""
Signer registry: the authorized signer set and the quorum threshold.

Invariants
----------
- At construction the set is non-empty and ``1 <= threshold <= len(signers)``.
- ``ZERO_ADDRESS`` (the recovery sentinel) is never a member.
- Mutations pass the SelfAdministrationGate first, then check their own
  precondition, then mutate; a failed call leaves the set untouched.

Mutations do NOT re-validate the threshold. Removing signers can leave
``threshold > len(signers)``, after which quorum is unreachable. Pass
``guard_threshold_on_removal=True`` to refuse such removals instead.
"""

from __future__ import annotations

import logging
import threading
from typing import Dict, Iterable, Optional, Tuple

from . import metrics
from .errors import AlreadyMember, InvalidConfiguration, InvalidInput, NotMember
from .events import EventKind, EventLog
from .gate import AdminCapability, SelfAdministrationGate
from .utils.bytes import ADDRESS_LEN, ZERO_ADDRESS, is_byteslike, to_hex

log = logging.getLogger(__name__)


def _as_identity(x: object) -> Optional[bytes]:
    if is_byteslike(x):
        raw = bytes(x)
        if len(raw) == ADDRESS_LEN:
            return raw
    return None


class SignerRegistry:
    def __init__(
        self,
        signers: Iterable[bytes],
        threshold: int,
        *,
        gate: SelfAdministrationGate,
        events: Optional[EventLog] = None,
        guard_threshold_on_removal: bool = False,
        metrics_label: str = "standalone",
    ) -> None:
        # dict keys: O(1) membership, insertion-ordered listing
        members: Dict[bytes, None] = {}
        for s in signers:
            ident = _as_identity(s)
            if ident is None:
                raise InvalidConfiguration(
                    "signer must be a 20-byte address", details={"signer": repr(s)}
                )
            if ident == ZERO_ADDRESS:
                raise InvalidConfiguration("the zero address cannot be a signer")
            members[ident] = None
        if not members:
            raise InvalidConfiguration("signer list is empty")
        if isinstance(threshold, bool) or not isinstance(threshold, int):
            raise InvalidConfiguration("threshold must be an integer")
        if threshold < 1:
            raise InvalidConfiguration(
                "threshold must be at least 1", details={"threshold": threshold}
            )
        if threshold > len(members):
            raise InvalidConfiguration(
                "threshold exceeds signer count",
                details={"threshold": threshold, "signers": len(members)},
            )

        self._members = members
        self._threshold = threshold
        self._gate = gate
        self._events = events if events is not None else EventLog()
        self._guard = guard_threshold_on_removal
        self._lock = threading.RLock()
        self._label = metrics_label
        metrics.set_signer_count(self._label, len(members))

    # ---------------- queries ----------------

    @property
    def threshold(self) -> int:
        return self._threshold

    @property
    def events(self) -> EventLog:
        return self._events

    @property
    def lock(self) -> threading.RLock:
        """Re-entrant lock shared by every component that reads or mutates this set."""
        return self._lock

    def signers(self) -> Tuple[bytes, ...]:
        """Current signers. Order is not part of the contract."""
        with self._lock:
            return tuple(self._members)

    def contains(self, identity: bytes) -> bool:
        return bytes(identity) in self._members

    __contains__ = contains

    def __len__(self) -> int:
        return len(self._members)

    # ---------------- mutators (capability-guarded) ----------------

    def add(self, identity: bytes, *, capability: Optional[AdminCapability] = None) -> None:
        self._gate.check(capability, "addSigner")
        ident = self._require_identity(identity)
        with self._lock:
            if ident in self._members:
                raise AlreadyMember(ident)
            self._members[ident] = None
            self._events.emit(EventKind.SIGNER_ADDED, ident)
            metrics.record_mutation("add", self._label, len(self._members))

    def remove(self, identity: bytes, *, capability: Optional[AdminCapability] = None) -> None:
        self._gate.check(capability, "removeSigner")
        ident = self._require_identity(identity)
        with self._lock:
            if ident not in self._members:
                raise NotMember(ident)
            self._check_guard(len(self._members) - 1)
            del self._members[ident]
            self._events.emit(EventKind.SIGNER_REMOVED, ident)
            metrics.record_mutation("remove", self._label, len(self._members))

    def swap(
        self,
        old: bytes,
        new: bytes,
        *,
        capability: Optional[AdminCapability] = None,
    ) -> None:
        """
        Replace `old` with `new`. `new` is inserted unconditionally; if it is
        already a member the set simply shrinks by one.
        """
        self._gate.check(capability, "swapSigner")
        old_id = self._require_identity(old)
        new_id = self._require_identity(new)
        with self._lock:
            if old_id not in self._members:
                raise NotMember(old_id)
            resulting = len(self._members) - (1 if new_id in self._members and new_id != old_id else 0)
            self._check_guard(resulting)
            del self._members[old_id]
            self._members[new_id] = None
            self._events.emit(EventKind.SIGNER_REMOVED, old_id)
            self._events.emit(EventKind.SIGNER_ADDED, new_id)
            metrics.record_mutation("swap", self._label, len(self._members))

    def snapshot(self) -> Tuple[Tuple[bytes, ...], int]:
        with self._lock:
            return tuple(self._members), self._events.mark()

    def restore(
        self,
        snap: Tuple[Tuple[bytes, ...], int],
        *,
        capability: Optional[AdminCapability] = None,
    ) -> None:
        """Roll the signer set and event log back to `snap` (used when a forwarded call fails)."""
        self._gate.check(capability, "restore")
        members, mark = snap
        with self._lock:
            self._members = dict.fromkeys(members)
            self._events.rollback(mark)
            metrics.set_signer_count(self._label, len(self._members))

    # ---------------- internals ----------------

    @staticmethod
    def _require_identity(identity: object) -> bytes:
        ident = _as_identity(identity)
        if ident is None:
            raise InvalidInput("identity must be a 20-byte address")
        if ident == ZERO_ADDRESS:
            raise InvalidInput("the zero address cannot be a signer")
        return ident

    def _check_guard(self, remaining: int) -> None:
        if self._guard and remaining < self._threshold:
            raise InvalidConfiguration(
                "mutation would leave fewer signers than the threshold",
                details={"threshold": self._threshold, "remaining": remaining},
            )

    def __repr__(self) -> str:
        return (
            f"SignerRegistry(threshold={self._threshold}, "
            f"signers=[{', '.join(to_hex(s) for s in self._members)}])"
        )


__all__ = ["SignerRegistry"]
