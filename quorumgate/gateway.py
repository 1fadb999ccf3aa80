"""
Execution gateway: quorum-authorized call forwarding and self-administration.

    gw = ExecutionGateway([a, b, c], threshold=2, address=GW)
    gw.execute(target, payload, packed_signatures)

``execute`` authorizes a call only when a quorum of registered signers signed
``keccak256(target ‖ payload)``, then forwards ``payload`` to ``target``:

- ``target == gw.address``: the payload is decoded as an administrative call
  (see quorumgate.calls) and applied to the signer registry with the gateway's
  private AdminCapability. This is the only way the registry can change.
- any other target: the call goes through the CallHost.

A forwarded call that fails raises ForwardedCallFailed carrying the callee's
revert data verbatim, and any registry change made while it ran is rolled back.

Concurrency: every entry point runs under the registry's re-entrant lock, so requests are
processed one at a time and a forwarded call may re-enter the gateway on the
same thread. A signed request is checked against the registry as it is when the
request is processed, not when it was signed; a membership change in between
can invalidate it (or validate it).
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional, Tuple

from . import metrics
from .adapter import ProofAdapter, ProofLike
from .calls import AdminOp, decode_admin_call
from .digest import GATEWAY_SCHEME
from .errors import (
    CallReverted,
    ForwardedCallFailed,
    InvalidInput,
    InvalidSignatures,
    QuorumError,
)
from .events import EventLog
from .gate import AdminCapability, SelfAdministrationGate
from .host import CallHost
from .logging import trace_scope
from .registry import SignerRegistry
from .types.proof import NetworkId
from .types.signature import SignatureBatch, input_bytes
from .utils.bytes import BytesLike, to_address, to_hex
from .verifier import SignatureVerifier

log = logging.getLogger(__name__)


def _revert_data(exc: QuorumError) -> bytes:
    if isinstance(exc, CallReverted):
        return exc.data
    if isinstance(exc, ForwardedCallFailed):
        return exc.revert_data
    return exc.code.encode("ascii")


class ExecutionGateway:
    def __init__(
        self,
        signers: Iterable[bytes],
        threshold: int,
        *,
        address: BytesLike,
        host: Optional[CallHost] = None,
        events: Optional[EventLog] = None,
        strict_packed_length: bool = False,
        guard_threshold_on_removal: bool = False,
    ) -> None:
        try:
            self._address = to_address(address)
        except ValueError as exc:
            raise InvalidInput(f"invalid gateway address: {exc}") from exc
        # Never leaves this object.
        self._capability = AdminCapability()
        self._registry = SignerRegistry(
            signers,
            threshold,
            gate=SelfAdministrationGate(self._capability),
            events=events,
            guard_threshold_on_removal=guard_threshold_on_removal,
            metrics_label=to_hex(self._address),
        )
        self._verifier = SignatureVerifier(self._registry)
        self._host = host if host is not None else CallHost()
        self._strict = strict_packed_length
        # shared with any ProofAdapter built on this registry
        self._lock = self._registry.lock
        self._adapter = ProofAdapter(self._verifier)

    # ------------------------------------------------------------------
    # Queryable state
    # ------------------------------------------------------------------

    @property
    def address(self) -> bytes:
        return self._address

    @property
    def threshold(self) -> int:
        return self._registry.threshold

    @property
    def registry(self) -> SignerRegistry:
        return self._registry

    @property
    def events(self) -> EventLog:
        return self._registry.events

    @property
    def host(self) -> CallHost:
        return self._host

    @property
    def adapter(self) -> ProofAdapter:
        return self._adapter

    def signers(self) -> Tuple[bytes, ...]:
        return self._registry.signers()

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def verify(self, digest: BytesLike, packed_signatures: BytesLike) -> bool:
        """Verify a quorum over an arbitrary 32-byte digest. Raises the specific failure."""
        with self._lock, trace_scope(entry="verify"):
            try:
                batch = self._parse(packed_signatures)
                with metrics.time_verify("verify"):
                    ok = self._verifier.verify(digest, batch)
            except QuorumError as exc:
                metrics.record_verification("verify", exc.code)
                raise
            metrics.record_verification("verify", "ok")
            return ok

    def execute(self, target: BytesLike, payload: BytesLike, packed_signatures: BytesLike) -> None:
        """
        Verify quorum over ``keccak256(target ‖ payload)`` and forward the call.

        Raises InvalidSignatures (specific failure chained as ``__cause__``) or
        ForwardedCallFailed. Returns None once the call is accepted.
        """
        try:
            target_addr = to_address(target)
        except (ValueError, TypeError) as exc:
            raise InvalidInput(f"invalid target: {exc}") from exc
        data = input_bytes(payload, "payload")

        with self._lock, trace_scope(entry="execute", target=to_hex(target_addr)):
            batch = self._parse(packed_signatures)
            digest = GATEWAY_SCHEME(target_addr, data)
            try:
                with metrics.time_verify("execute"):
                    self._verifier.verify(digest, batch)
            except QuorumError as exc:
                metrics.record_verification("execute", exc.code)
                log.warning(
                    "execution rejected",
                    extra={"code": exc.code, "signatures": len(batch)},
                )
                raise InvalidSignatures(exc.code, details=exc.details) from exc
            metrics.record_verification("execute", "ok")

            self._forward(target_addr, data)
            log.info("execution accepted", extra={"signatures": len(batch)})

    def decode_and_verify(
        self,
        network_hint: Optional[NetworkId],
        payload: BytesLike,
        proof: ProofLike,
    ) -> bytes:
        return self._adapter.decode_and_verify(network_hint, payload, proof)

    # ------------------------------------------------------------------
    # Administrative mutators. Reachable with the capability only, i.e. via
    # execute(target=self.address, ...). Direct calls raise Unauthorized.
    # ------------------------------------------------------------------

    def add_signer(self, identity: BytesLike, *, capability: Optional[AdminCapability] = None) -> None:
        self._registry.add(identity, capability=capability)

    def remove_signer(self, identity: BytesLike, *, capability: Optional[AdminCapability] = None) -> None:
        self._registry.remove(identity, capability=capability)

    def swap_signer(
        self,
        old: BytesLike,
        new: BytesLike,
        *,
        capability: Optional[AdminCapability] = None,
    ) -> None:
        self._registry.swap(old, new, capability=capability)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _parse(self, packed_signatures: BytesLike) -> SignatureBatch:
        return SignatureBatch.from_packed(packed_signatures, strict=self._strict)

    def _forward(self, target: bytes, payload: bytes) -> None:
        kind = "self" if target == self._address else "external"
        snap = self._registry.snapshot()
        try:
            if kind == "self":
                self._dispatch_self(payload)
            else:
                self._host.call(target, payload, sender=self._address)
        except QuorumError as exc:
            self._registry.restore(snap, capability=self._capability)
            metrics.record_forward(kind, False)
            log.warning(
                "forwarded call failed",
                extra={"kind": kind, "code": exc.code},
            )
            raise ForwardedCallFailed(target, _revert_data(exc)) from exc
        except Exception:
            # unexpected handler crash: undo and surface it unchanged
            self._registry.restore(snap, capability=self._capability)
            metrics.record_forward(kind, False)
            raise
        metrics.record_forward(kind, True)

    def _dispatch_self(self, payload: bytes) -> None:
        call = decode_admin_call(payload)
        cap = self._capability
        if call.op is AdminOp.ADD_SIGNER:
            self._registry.add(call.args[0], capability=cap)
        elif call.op is AdminOp.REMOVE_SIGNER:
            self._registry.remove(call.args[0], capability=cap)
        elif call.op is AdminOp.SWAP_SIGNER:
            self._registry.swap(call.args[0], call.args[1], capability=cap)
        log.info("self call applied", extra={"op": call.op.value})

    def __repr__(self) -> str:
        return f"ExecutionGateway(address={to_hex(self._address)}, threshold={self.threshold}, signers={len(self._registry)})"


__all__ = ["ExecutionGateway"]
