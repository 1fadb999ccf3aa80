"""
Administrative call payloads.

The gateway administers its own signer set through ordinary quorum-signed
calls whose target is the gateway itself. Payloads use the familiar static
call layout:

    selector (4 bytes) ‖ arg_0 (32-byte word) ‖ arg_1 ...

where ``selector = keccak256(signature_text)[:4]`` and addresses occupy the low
20 bytes of a word with the upper 12 bytes zero.

    addSigner(address)
    removeSigner(address)
    swapSigner(address,address)

Trailing bytes after the last argument word are ignored. Everything else that
does not match (unknown selector, missing words, dirty address padding) raises
InvalidInput.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Tuple

from .errors import InvalidInput
from .utils.bytes import ADDRESS_LEN, WORD_LEN, BytesLike, b, left_pad_word, to_address
from .utils.hash import keccak256


def selector(signature_text: str) -> bytes:
    return keccak256(signature_text.encode("ascii"))[:4]


class AdminOp(str, Enum):
    ADD_SIGNER = "addSigner(address)"
    REMOVE_SIGNER = "removeSigner(address)"
    SWAP_SIGNER = "swapSigner(address,address)"

    @property
    def selector(self) -> bytes:
        return selector(self.value)

    @property
    def arity(self) -> int:
        return 2 if self is AdminOp.SWAP_SIGNER else 1


_BY_SELECTOR = {op.selector: op for op in AdminOp}


@dataclass(frozen=True)
class AdminCall:
    op: AdminOp
    args: Tuple[bytes, ...]


def _encode(op: AdminOp, *addresses: BytesLike) -> bytes:
    words = b"".join(left_pad_word(to_address(a)) for a in addresses)
    return op.selector + words


def encode_add_signer(identity: BytesLike) -> bytes:
    return _encode(AdminOp.ADD_SIGNER, identity)


def encode_remove_signer(identity: BytesLike) -> bytes:
    return _encode(AdminOp.REMOVE_SIGNER, identity)


def encode_swap_signer(old: BytesLike, new: BytesLike) -> bytes:
    return _encode(AdminOp.SWAP_SIGNER, old, new)


def decode_admin_call(payload: BytesLike) -> AdminCall:
    raw = b(payload)
    if len(raw) < 4:
        raise InvalidInput("call payload shorter than a selector", details={"length": len(raw)})
    op = _BY_SELECTOR.get(raw[:4])
    if op is None:
        raise InvalidInput("unknown administrative selector", details={"selector": raw[:4]})

    need = 4 + WORD_LEN * op.arity
    if len(raw) < need:
        raise InvalidInput(
            f"{op.value} payload too short",
            details={"length": len(raw), "expected": need},
        )
    args = []
    for i in range(op.arity):
        word = raw[4 + i * WORD_LEN : 4 + (i + 1) * WORD_LEN]
        pad, addr = word[: WORD_LEN - ADDRESS_LEN], word[WORD_LEN - ADDRESS_LEN :]
        if any(pad):
            raise InvalidInput(f"{op.value} argument {i} is not a clean address word")
        args.append(addr)
    return AdminCall(op=op, args=tuple(args))


__all__ = [
    "AdminOp",
    "AdminCall",
    "selector",
    "encode_add_signer",
    "encode_remove_signer",
    "encode_swap_signer",
    "decode_admin_call",
]
