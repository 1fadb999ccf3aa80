"""
Signer-set change notifications.

The registry emits one `SignerEvent` per membership change (a swap emits
``SignerRemoved(old)`` then ``SignerAdded(new)``). An `EventLog` keeps the
emitted events in order and fans them out to subscribers.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List

log = logging.getLogger(__name__)


class EventKind(str, Enum):
    SIGNER_ADDED = "SignerAdded"
    SIGNER_REMOVED = "SignerRemoved"


@dataclass(frozen=True)
class SignerEvent:
    kind: EventKind
    identity: bytes

    def to_dict(self) -> dict:
        return {"name": self.kind.value, "identity": "0x" + self.identity.hex()}


Subscriber = Callable[[SignerEvent], None]


class EventLog:
    """Ordered, append-only record of emitted events with synchronous subscribers."""

    def __init__(self) -> None:
        self._events: List[SignerEvent] = []
        self._subscribers: List[Subscriber] = []

    def subscribe(self, fn: Subscriber) -> Callable[[], None]:
        """Register a subscriber; returns a callable that unsubscribes it."""
        self._subscribers.append(fn)

        def _unsubscribe() -> None:
            if fn in self._subscribers:
                self._subscribers.remove(fn)

        return _unsubscribe

    def emit(self, kind: EventKind, identity: bytes) -> SignerEvent:
        ev = SignerEvent(kind=kind, identity=bytes(identity))
        self._events.append(ev)
        log.info(kind.value, extra={"identity": ev.identity})
        for fn in list(self._subscribers):
            fn(ev)
        return ev

    def mark(self) -> int:
        return len(self._events)

    def rollback(self, mark: int) -> None:
        """Drop events recorded after `mark` (subscribers were already notified)."""
        del self._events[mark:]

    @property
    def events(self) -> List[SignerEvent]:
        return list(self._events)

    def __len__(self) -> int:
        return len(self._events)


__all__ = ["EventKind", "SignerEvent", "EventLog"]
