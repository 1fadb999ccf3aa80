"""
In-process call host.

Stands in for the execution environment that would carry a forwarded call to
its destination. Targets are registered as handlers keyed by 20-byte address:

    host = CallHost()
    host.register(vault_addr, lambda ctx: vault.handle(ctx.sender, ctx.payload))

A handler returns its return data (bytes) or raises `CallReverted(data)` to fail
the call with diagnostic data. Any other QuorumError raised by a handler also
fails the call. Calling an address with no registered handler succeeds with
empty return data, like a call to an account without code.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from .utils.bytes import BytesLike, b, to_address

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class CallContext:
    sender: bytes
    target: bytes
    payload: bytes


Handler = Callable[[CallContext], Optional[bytes]]


class CallHost:
    def __init__(self) -> None:
        self._handlers: Dict[bytes, Handler] = {}
        self._lock = threading.Lock()

    def register(self, address: BytesLike, handler: Handler) -> None:
        addr = to_address(address)
        with self._lock:
            self._handlers[addr] = handler

    def unregister(self, address: BytesLike) -> None:
        with self._lock:
            self._handlers.pop(to_address(address), None)

    def has_code(self, address: BytesLike) -> bool:
        return to_address(address) in self._handlers

    def call(self, target: BytesLike, payload: BytesLike, *, sender: BytesLike) -> bytes:
        """Dispatch a call. Exceptions raised by the handler propagate unchanged."""
        addr = to_address(target)
        with self._lock:
            handler = self._handlers.get(addr)
        if handler is None:
            log.debug("call to address without handler", extra={"callee": addr})
            return b""
        ret = handler(CallContext(sender=to_address(sender), target=addr, payload=b(payload)))
        return b(ret) if ret is not None else b""


__all__ = ["CallContext", "CallHost", "Handler"]
