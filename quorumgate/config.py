"""
quorumgate configuration loader.

Layered config with clear precedence:
    1) Explicit overrides passed to `load()` (highest)
    2) Environment variables (QUORUMGATE_*)
    3) Config file (TOML or JSON)
    4) Built-in defaults (lowest)

File shape (TOML)::

    address = "0x5f2a...e1"            # the gateway's own identity
    signers = ["0xaaaa...", "0xbbbb...", "0xcccc..."]
    threshold = 2
    strict_packed_length = false       # reject packed buffers with trailing bytes
    guard_threshold_on_removal = false # refuse removals that make quorum unreachable

    [logging]
    level = "INFO"
    format = "text"                    # text | json

    [metrics]
    port = 9108                        # omit to disable

Environment variables
~~~~~~~~~~~~~~~~~~~~~
QUORUMGATE_CONFIG=/path/to/quorumgate.toml
QUORUMGATE_ADDRESS=0x...
QUORUMGATE_SIGNERS=0xaaaa...,0xbbbb...
QUORUMGATE_THRESHOLD=2
QUORUMGATE_STRICT_PACKED_LENGTH=true|false
QUORUMGATE_GUARD_THRESHOLD=true|false
QUORUMGATE_LOG_LEVEL=INFO
QUORUMGATE_LOG_FORMAT=text|json
QUORUMGATE_METRICS_PORT=9108

Validation errors raise InvalidConfiguration.
"""

from __future__ import annotations

import json
import os
import tomllib
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from .errors import InvalidConfiguration
from .utils.bytes import to_address, to_hex
from .utils.hash import keccak256

# Used when no address is configured. Stable across runs so signatures over a
# self-targeted call stay valid between restarts.
DEFAULT_GATEWAY_ADDRESS = to_hex(keccak256(b"quorumgate.gateway.v1")[12:])

_LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}


def _expand(p: str | Path) -> Path:
    return Path(p).expanduser().resolve()


def _parse_bool(v: str) -> bool:
    return v.strip().lower() in {"1", "true", "t", "yes", "y", "on"}


def _split_list(v: str) -> List[str]:
    return [s.strip() for s in v.split(",") if s.strip()]


def _env_int(name: str) -> int:
    v = os.environ[name]
    try:
        return int(v, 0)
    except ValueError as e:
        raise InvalidConfiguration(f"{name} must be int, got {v!r}") from e


# ------------------------------
# Typed configuration model
# ------------------------------


@dataclass
class GatewayConfig:
    address: str = DEFAULT_GATEWAY_ADDRESS
    signers: List[str] = field(default_factory=list)
    threshold: int = 1
    strict_packed_length: bool = False
    guard_threshold_on_removal: bool = False
    log_level: str = "INFO"
    log_format: str = "text"
    metrics_port: Optional[int] = None

    def signer_addresses(self) -> List[bytes]:
        return [to_address(s) for s in self.signers]

    def gateway_address(self) -> bytes:
        return to_address(self.address)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# ------------------------------
# File loader (TOML / JSON)
# ------------------------------


def _load_file(path: Path) -> Dict[str, Any]:
    if not path.exists():
        raise InvalidConfiguration(f"config file not found: {path}")
    suffix = path.suffix.lower()
    with path.open("rb") as f:
        try:
            if suffix in {".toml", ".tml"}:
                raw = tomllib.load(f)
            elif suffix == ".json":
                raw = json.load(f)
            else:
                raise InvalidConfiguration(
                    f"unsupported config format: {suffix}. Use .toml or .json"
                )
        except (tomllib.TOMLDecodeError, json.JSONDecodeError) as e:
            raise InvalidConfiguration(f"cannot parse {path}: {e}") from e
    return _flatten(raw)


def _flatten(raw: Dict[str, Any]) -> Dict[str, Any]:
    """Map the file's [logging]/[metrics] tables onto flat GatewayConfig fields."""
    out = {k: v for k, v in raw.items() if k not in ("logging", "metrics")}
    logging_tbl = raw.get("logging") or {}
    if "level" in logging_tbl:
        out["log_level"] = logging_tbl["level"]
    if "format" in logging_tbl:
        out["log_format"] = logging_tbl["format"]
    metrics_tbl = raw.get("metrics") or {}
    if "port" in metrics_tbl:
        out["metrics_port"] = metrics_tbl["port"]
    return out


def _from_env() -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    if "QUORUMGATE_ADDRESS" in os.environ:
        out["address"] = os.environ["QUORUMGATE_ADDRESS"].strip()
    if "QUORUMGATE_SIGNERS" in os.environ:
        out["signers"] = _split_list(os.environ["QUORUMGATE_SIGNERS"])
    if "QUORUMGATE_THRESHOLD" in os.environ:
        out["threshold"] = _env_int("QUORUMGATE_THRESHOLD")
    if "QUORUMGATE_STRICT_PACKED_LENGTH" in os.environ:
        out["strict_packed_length"] = _parse_bool(os.environ["QUORUMGATE_STRICT_PACKED_LENGTH"])
    if "QUORUMGATE_GUARD_THRESHOLD" in os.environ:
        out["guard_threshold_on_removal"] = _parse_bool(os.environ["QUORUMGATE_GUARD_THRESHOLD"])
    if "QUORUMGATE_LOG_LEVEL" in os.environ:
        out["log_level"] = os.environ["QUORUMGATE_LOG_LEVEL"].strip()
    if "QUORUMGATE_LOG_FORMAT" in os.environ:
        out["log_format"] = os.environ["QUORUMGATE_LOG_FORMAT"].strip()
    if "QUORUMGATE_METRICS_PORT" in os.environ:
        out["metrics_port"] = _env_int("QUORUMGATE_METRICS_PORT")
    return out


# ------------------------------
# Main loader
# ------------------------------


def load(config_file: Optional[str | Path] = None, **overrides: Any) -> GatewayConfig:
    """
    Load the gateway configuration.

    Precedence: overrides > env > file > defaults. When `config_file` is None,
    QUORUMGATE_CONFIG is consulted.
    """
    base: Dict[str, Any] = asdict(GatewayConfig())

    path = config_file or os.environ.get("QUORUMGATE_CONFIG")
    if path:
        base.update(_load_file(_expand(path)))

    base.update(_from_env())
    base.update({k: v for k, v in overrides.items() if v is not None})

    known = set(GatewayConfig.__dataclass_fields__)
    unknown = sorted(set(base) - known)
    if unknown:
        raise InvalidConfiguration(f"unknown config keys: {', '.join(unknown)}")

    cfg = GatewayConfig(**base)
    validate(cfg)
    return cfg


def validate(cfg: GatewayConfig) -> None:
    try:
        cfg.gateway_address()
    except (ValueError, TypeError) as e:
        raise InvalidConfiguration(f"address: {e}") from e

    if not isinstance(cfg.signers, list):
        raise InvalidConfiguration("signers must be a list of addresses")
    try:
        addrs = cfg.signer_addresses()
    except (ValueError, TypeError) as e:
        raise InvalidConfiguration(f"signers: {e}") from e

    if isinstance(cfg.threshold, bool) or not isinstance(cfg.threshold, int):
        raise InvalidConfiguration("threshold must be an integer")
    if not addrs:
        raise InvalidConfiguration("signer list is empty")
    distinct = len(set(addrs))
    if not (1 <= cfg.threshold <= distinct):
        raise InvalidConfiguration(
            "threshold must be between 1 and the number of signers",
            details={"threshold": cfg.threshold, "signers": distinct},
        )

    if str(cfg.log_level).upper() not in _LOG_LEVELS:
        raise InvalidConfiguration(f"log_level must be one of {sorted(_LOG_LEVELS)}")
    if cfg.log_format not in ("text", "json"):
        raise InvalidConfiguration("log_format must be 'text' or 'json'")
    port = cfg.metrics_port
    if port is not None and (
        isinstance(port, bool) or not isinstance(port, int) or not (1 <= port <= 65535)
    ):
        raise InvalidConfiguration(f"invalid metrics port {port!r}")


def build_gateway(cfg: GatewayConfig, *, host=None):
    """Construct an ExecutionGateway from a validated config."""
    from .gateway import ExecutionGateway

    return ExecutionGateway(
        cfg.signer_addresses(),
        cfg.threshold,
        address=cfg.gateway_address(),
        host=host,
        strict_packed_length=cfg.strict_packed_length,
        guard_threshold_on_removal=cfg.guard_threshold_on_removal,
    )


__all__ = [
    "DEFAULT_GATEWAY_ADDRESS",
    "GatewayConfig",
    "load",
    "validate",
    "build_gateway",
]
