"""
quorumgate - developer CLI for the quorum gateway.

Commands:
  quorumgate keygen [--seed TEXT]                 Generate a secp256k1 key
  quorumgate address KEY                          Derive the signer address of KEY
  quorumgate digest PAYLOAD --target ADDR         keccak256(target ‖ payload)
  quorumgate digest PAYLOAD --adapter             keccak256(payload)
  quorumgate sign DIGEST --key K [--key K ...]    Packed r‖s‖v signatures (hex)
  quorumgate admin-call add|remove|swap ADDR...   Encode a self-administration payload
  quorumgate make-proof PAYLOAD --key K ...       Build an attestation proof (CBOR hex / JSON)
  quorumgate verify-proof PAYLOAD PROOF           Run decode_and_verify against a config
  quorumgate verify-stream                        Verify JSON-lines requests from stdin
  quorumgate show-config                          Print the effective configuration

PAYLOAD arguments starting with 0x are read as hex, anything else as UTF-8 text.

Examples:
  quorumgate keygen --seed alice
  quorumgate digest 0x1234 --target 0x5f2a...e1
  quorumgate sign 0x9c0f... --key 0x01.. --key 0x02..
  quorumgate verify-proof --config gw.toml 0x68656c6c6f a1697369676e...
"""

from __future__ import annotations

import json
import secrets
import sys
from pathlib import Path
from typing import List, Optional

import typer

from . import config as qconfig
from . import metrics
from .calls import encode_add_signer, encode_remove_signer, encode_swap_signer
from .crypto.secp256k1 import N, address_from_private_key, sign_digest
from .digest import ADAPTER_SCHEME, GATEWAY_SCHEME
from .errors import QuorumError
from .logging import configure as configure_logging
from .logging import configure_from_config
from .types.proof import Proof
from .types.signature import Signature, SignatureBatch
from .utils.bytes import b, from_hex, to_checksum_address, to_hex
from .utils.hash import keccak256
from .version import __version__

app = typer.Typer(
    name="quorumgate",
    help="Threshold-signature gateway developer tools",
    no_args_is_help=True,
    add_completion=False,
)


def _fail(msg: str) -> None:
    typer.echo(f"Error: {msg}", err=True)
    raise typer.Exit(1)


def _private_key(text: str) -> bytes:
    try:
        sk = from_hex(text)
    except ValueError as e:
        raise typer.BadParameter(f"private key is not hex: {e}") from e
    if len(sk) != 32:
        raise typer.BadParameter("private key must be 32 bytes")
    if not (1 <= int.from_bytes(sk, "big") < N):
        raise typer.BadParameter("private key out of range")
    return sk


def _payload(text: str) -> bytes:
    try:
        return b(text)
    except ValueError as e:
        raise typer.BadParameter(f"payload: {e}") from e


def _sign_all(digest: bytes, keys: List[str]) -> SignatureBatch:
    sigs = []
    for k in keys:
        v, r, s = sign_digest(digest, _private_key(k))
        sigs.append(Signature(recovery_id=v, r=r, s=s))
    return SignatureBatch(sigs)


@app.callback()
def main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log at DEBUG to stderr"),
    log_format: Optional[str] = typer.Option(
        None,
        "--log-format",
        help="text | json",
        envvar="QUORUMGATE_LOG_FORMAT",
    ),
) -> None:
    """
    quorumgate CLI: keys, digests, signatures and proofs for a quorum gateway.

    Configuration for verify-proof, verify-stream and show-config is resolved in this order:
      1. Command-line flags (--signer, --threshold, ...)
      2. Environment variables (QUORUMGATE_SIGNERS, QUORUMGATE_THRESHOLD, ...)
      3. Config file (--config or QUORUMGATE_CONFIG)
      4. Built-in defaults
    """
    if verbose:
        fmt = (log_format or "").lower()
        configure_logging(json={"json": True, "text": False}.get(fmt), level="DEBUG")


@app.command()
def version() -> None:
    """Print the package version."""
    typer.echo(__version__)


@app.command()
def keygen(
    seed: Optional[str] = typer.Option(
        None, "--seed", help="Derive deterministically from keccak256(seed) (testing only)"
    ),
    json_output: bool = typer.Option(False, "--json", help="Output JSON"),
) -> None:
    """Generate a secp256k1 private key and its signer address."""
    if seed is not None:
        sk = keccak256(seed.encode("utf-8"))
        if not (1 <= int.from_bytes(sk, "big") < N):
            _fail("seed yields an out-of-range key, pick another")
    else:
        while True:
            sk = secrets.token_bytes(32)
            if 1 <= int.from_bytes(sk, "big") < N:
                break
    addr = to_checksum_address(address_from_private_key(sk))
    if json_output:
        typer.echo(json.dumps({"private_key": to_hex(sk), "address": addr}))
    else:
        typer.echo(f"private_key: {to_hex(sk)}")
        typer.echo(f"address:     {addr}")


@app.command()
def address(key: str = typer.Argument(..., help="32-byte private key (hex)")) -> None:
    """Print the checksummed signer address for a private key."""
    typer.echo(to_checksum_address(address_from_private_key(_private_key(key))))


@app.command()
def digest(
    payload: str = typer.Argument(..., help="Call payload (0x-hex or text)"),
    target: Optional[str] = typer.Option(None, "--target", help="Target address (gateway digest)"),
    adapter: bool = typer.Option(False, "--adapter", help="Payload-only digest (proof adapter)"),
) -> None:
    """Compute the digest signers must sign."""
    data = _payload(payload)
    if adapter == (target is not None):
        _fail("pass exactly one of --target or --adapter")
    try:
        d = ADAPTER_SCHEME(data) if adapter else GATEWAY_SCHEME(target, data)
    except ValueError as e:
        _fail(str(e))
    typer.echo(to_hex(d))


@app.command()
def sign(
    digest_hex: str = typer.Argument(..., metavar="DIGEST", help="32-byte digest (hex)"),
    key: List[str] = typer.Option(..., "--key", "-k", help="Private key (repeatable)"),
) -> None:
    """Sign a digest with each key and print the concatenated packed signatures."""
    try:
        d = from_hex(digest_hex)
    except ValueError as e:
        raise typer.BadParameter(f"digest is not hex: {e}") from e
    if len(d) != 32:
        raise typer.BadParameter("digest must be 32 bytes")
    typer.echo(to_hex(_sign_all(d, key).to_packed()))


@app.command("admin-call")
def admin_call(
    op: str = typer.Argument(..., help="add | remove | swap"),
    addresses: List[str] = typer.Argument(..., help="Signer address(es)"),
) -> None:
    """Encode a self-administration payload for execute(target=<gateway>, ...)."""
    arity = {"add": 1, "remove": 1, "swap": 2}
    if op not in arity:
        _fail(f"unknown op {op!r}; expected add, remove or swap")
    if len(addresses) != arity[op]:
        _fail(f"{op} takes {arity[op]} address(es), got {len(addresses)}")
    try:
        if op == "add":
            payload = encode_add_signer(addresses[0])
        elif op == "remove":
            payload = encode_remove_signer(addresses[0])
        else:
            payload = encode_swap_signer(addresses[0], addresses[1])
    except ValueError as e:
        _fail(str(e))
    typer.echo(to_hex(payload))


@app.command("make-proof")
def make_proof(
    payload: str = typer.Argument(..., help="Payload to attest (0x-hex or text)"),
    key: List[str] = typer.Option(..., "--key", "-k", help="Private key (repeatable)"),
    network: Optional[str] = typer.Option(None, "--network", help="Informational network id"),
    json_output: bool = typer.Option(False, "--json", help="Emit JSON instead of CBOR hex"),
) -> None:
    """Sign keccak256(payload) with each key and emit a proof."""
    data = _payload(payload)
    proof = Proof(signatures=_sign_all(ADAPTER_SCHEME(data), key), network=network)
    typer.echo(proof.to_json() if json_output else to_hex(proof.to_cbor()))


def _load_config(config_path: Optional[Path], signer: List[str], threshold: Optional[int]):
    try:
        return qconfig.load(config_path, signers=signer or None, threshold=threshold)
    except QuorumError as e:
        _fail(e.message)


@app.command("verify-proof")
def verify_proof(
    payload: str = typer.Argument(..., help="Payload (0x-hex or text)"),
    proof: str = typer.Argument(..., help="Proof as CBOR hex or JSON"),
    config_path: Optional[Path] = typer.Option(
        None, "--config", help="Path to config file", envvar="QUORUMGATE_CONFIG"
    ),
    signer: List[str] = typer.Option([], "--signer", help="Signer address (repeatable)"),
    threshold: Optional[int] = typer.Option(None, "--threshold", help="Quorum threshold"),
    network: Optional[str] = typer.Option(None, "--network", help="Network hint"),
) -> None:
    """Verify a proof and print the attested payload (exit 1 on rejection)."""
    cfg = _load_config(config_path, signer, threshold)
    gw = qconfig.build_gateway(cfg)
    data = _payload(payload)
    text = proof.strip()
    try:
        proof_in = text if text.startswith("{") else from_hex(text)
    except ValueError as e:
        raise typer.BadParameter(f"proof is neither JSON nor hex: {e}") from e
    try:
        out = gw.decode_and_verify(network, data, proof_in)
    except QuorumError as e:
        _fail(f"{e.code}: {e.message}")
    typer.echo(to_hex(out))


def _stream_request(gw, line: str) -> dict:
    try:
        req = json.loads(line)
    except json.JSONDecodeError as e:
        return {"ok": False, "error": {"code": "INVALID_INPUT", "message": f"bad JSON: {e.msg}"}}
    if not isinstance(req, dict) or "payload" not in req or "proof" not in req:
        return {"ok": False, "error": {"code": "INVALID_INPUT", "message": "need 'payload' and 'proof'"}}
    proof = req["proof"]
    try:
        if isinstance(proof, str) and not proof.lstrip().startswith("{"):
            proof = from_hex(proof)
        out = gw.decode_and_verify(req.get("network"), _payload(str(req["payload"])), proof)
    except QuorumError as e:
        return {"ok": False, "error": e.to_dict()}
    except (ValueError, typer.BadParameter) as e:
        return {"ok": False, "error": {"code": "INVALID_INPUT", "message": str(e)}}
    return {"ok": True, "payload": to_hex(out)}


@app.command("verify-stream")
def verify_stream(
    config_path: Optional[Path] = typer.Option(
        None, "--config", help="Path to config file", envvar="QUORUMGATE_CONFIG"
    ),
    signer: List[str] = typer.Option([], "--signer", help="Signer address (repeatable)"),
    threshold: Optional[int] = typer.Option(None, "--threshold", help="Quorum threshold"),
) -> None:
    """
    Verify newline-delimited JSON requests from stdin against one gateway.

    Each line is {"payload": "0x..", "proof": <JSON object | CBOR hex>, "network": ...};
    each answer is {"ok": true, "payload": "0x.."} or {"ok": false, "error": {...}}.
    Logging and the metrics endpoint follow the loaded configuration.
    """
    cfg = _load_config(config_path, signer, threshold)
    configure_from_config(cfg)
    metrics.maybe_start_metrics_server(cfg.metrics_port)
    gw = qconfig.build_gateway(cfg)
    for line in sys.stdin:
        line = line.strip()
        if not line:
            continue
        typer.echo(json.dumps(_stream_request(gw, line), sort_keys=True))


@app.command("show-config")
def show_config(
    config_path: Optional[Path] = typer.Option(
        None, "--config", help="Path to config file", envvar="QUORUMGATE_CONFIG"
    ),
    signer: List[str] = typer.Option([], "--signer", help="Signer address (repeatable)"),
    threshold: Optional[int] = typer.Option(None, "--threshold", help="Quorum threshold"),
) -> None:
    """Print the effective, validated configuration as JSON."""
    cfg = _load_config(config_path, signer, threshold)
    typer.echo(json.dumps(cfg.to_dict(), indent=2, sort_keys=True))


def main() -> None:
    """Entry point for the quorumgate CLI."""
    app()


if __name__ == "__main__":
    main()
