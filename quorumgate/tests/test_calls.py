"""
Administrative call payload encoding and decoding.
"""

from __future__ import annotations

import pytest

from quorumgate.calls import (
    AdminOp,
    decode_admin_call,
    encode_add_signer,
    encode_remove_signer,
    encode_swap_signer,
    selector,
)
from quorumgate.errors import CallReverted, InvalidInput
from quorumgate.host import CallHost
from quorumgate.utils.hash import keccak256

X = bytes.fromhex("11" * 20)
Y = bytes.fromhex("22" * 20)


def test_selector_is_keccak_prefix():
    # well-known ERC-20 selector, pins keccak (not NIST SHA3)
    assert selector("transfer(address,uint256)").hex() == "a9059cbb"
    assert AdminOp.ADD_SIGNER.selector == keccak256(b"addSigner(address)")[:4]


def test_layout_is_selector_then_padded_words():
    raw = encode_swap_signer(X, Y)
    assert len(raw) == 4 + 64
    assert raw[:4] == AdminOp.SWAP_SIGNER.selector
    assert raw[4:16] == b"\x00" * 12
    assert raw[16:36] == X
    assert raw[48:68] == Y


@pytest.mark.parametrize(
    "payload,op,args",
    [
        (encode_add_signer(X), AdminOp.ADD_SIGNER, (X,)),
        (encode_remove_signer("0x" + "22" * 20), AdminOp.REMOVE_SIGNER, (Y,)),
        (encode_swap_signer(X, Y), AdminOp.SWAP_SIGNER, (X, Y)),
    ],
)
def test_decode(payload, op, args):
    call = decode_admin_call(payload)
    assert call.op is op
    assert call.args == args
    assert op.arity == len(args)


def test_trailing_bytes_after_arguments_are_ignored():
    assert decode_admin_call(encode_add_signer(X) + b"\xff" * 7).args == (X,)


@pytest.mark.parametrize(
    "payload",
    [
        b"",
        b"\x01\x02\x03",
        b"\x00\x00\x00\x00" + b"\x00" * 32,
        encode_swap_signer(X, Y)[:-1],
        AdminOp.ADD_SIGNER.selector + b"\x01" + b"\x00" * 11 + X,
    ],
)
def test_malformed_payloads_are_invalid_input(payload):
    with pytest.raises(InvalidInput):
        decode_admin_call(payload)


def test_encoder_rejects_non_address():
    with pytest.raises(ValueError):
        encode_add_signer(b"\x01" * 19)


def test_host_dispatch_register_and_unregister():
    host = CallHost()
    target, sender = b"\x0a" * 20, b"\x0b" * 20
    seen = []

    def handler(ctx):
        seen.append(ctx)
        return b"ok"

    assert not host.has_code(target)
    assert host.call(target, b"hi", sender=sender) == b""

    host.register(target, handler)
    assert host.has_code("0x" + target.hex())
    assert host.call(target, b"hi", sender=sender) == b"ok"
    assert seen[0].sender == sender and seen[0].payload == b"hi"

    host.unregister(target)
    assert not host.has_code(target)
    assert host.call(target, b"hi", sender=sender) == b""
    assert len(seen) == 1


def test_host_propagates_handler_revert():
    host = CallHost()

    def revert(ctx):
        raise CallReverted(b"nope")

    host.register(b"\x0c" * 20, revert)
    with pytest.raises(CallReverted):
        host.call(b"\x0c" * 20, b"", sender=b"\x0d" * 20)
