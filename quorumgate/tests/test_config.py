"""
Layered configuration: defaults < file < env < overrides.
"""

from __future__ import annotations

import json

import pytest

from quorumgate import config as qconfig
from quorumgate.errors import InvalidConfiguration
from quorumgate.gateway import ExecutionGateway

S1 = "0x" + "11" * 20
S2 = "0x" + "22" * 20
S3 = "0x" + "33" * 20


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in (
        "QUORUMGATE_CONFIG",
        "QUORUMGATE_ADDRESS",
        "QUORUMGATE_SIGNERS",
        "QUORUMGATE_THRESHOLD",
        "QUORUMGATE_STRICT_PACKED_LENGTH",
        "QUORUMGATE_GUARD_THRESHOLD",
        "QUORUMGATE_LOG_LEVEL",
        "QUORUMGATE_LOG_FORMAT",
        "QUORUMGATE_METRICS_PORT",
    ):
        monkeypatch.delenv(name, raising=False)


def _toml(tmp_path, body: str):
    p = tmp_path / "quorumgate.toml"
    p.write_text(body, encoding="utf-8")
    return p


def test_toml_file_with_nested_tables(tmp_path):
    p = _toml(
        tmp_path,
        f"""
signers = ["{S1}", "{S2}", "{S3}"]
threshold = 2
strict_packed_length = true

[logging]
level = "DEBUG"
format = "json"

[metrics]
port = 9108
""",
    )
    cfg = qconfig.load(p)
    assert cfg.signers == [S1, S2, S3]
    assert cfg.threshold == 2
    assert cfg.strict_packed_length is True
    assert cfg.guard_threshold_on_removal is False
    assert cfg.log_level == "DEBUG"
    assert cfg.log_format == "json"
    assert cfg.metrics_port == 9108
    assert cfg.address == qconfig.DEFAULT_GATEWAY_ADDRESS


def test_json_file(tmp_path):
    p = tmp_path / "gw.json"
    p.write_text(json.dumps({"signers": [S1], "threshold": 1, "address": S3}), encoding="utf-8")
    cfg = qconfig.load(p)
    assert cfg.gateway_address() == bytes.fromhex("33" * 20)


def test_env_overrides_file_and_overrides_win(tmp_path, monkeypatch):
    p = _toml(tmp_path, f'signers = ["{S1}", "{S2}"]\nthreshold = 1\n')
    monkeypatch.setenv("QUORUMGATE_THRESHOLD", "2")
    monkeypatch.setenv("QUORUMGATE_GUARD_THRESHOLD", "yes")
    cfg = qconfig.load(p)
    assert cfg.threshold == 2
    assert cfg.guard_threshold_on_removal is True

    cfg = qconfig.load(p, threshold=1)
    assert cfg.threshold == 1


def test_env_only_via_config_path_and_signer_list(tmp_path, monkeypatch):
    p = _toml(tmp_path, "threshold = 1\n")
    monkeypatch.setenv("QUORUMGATE_CONFIG", str(p))
    monkeypatch.setenv("QUORUMGATE_SIGNERS", f"{S1}, {S2} ,")
    cfg = qconfig.load()
    assert cfg.signers == [S1, S2]


@pytest.mark.parametrize(
    "overrides",
    [
        {},  # no signers
        {"signers": [S1], "threshold": 2},
        {"signers": [S1, S1], "threshold": 2},
        {"signers": [S1], "threshold": 0},
        {"signers": ["0x1234"], "threshold": 1},
        {"signers": [S1], "threshold": 1, "address": "nothex"},
        {"signers": [S1], "threshold": 1, "log_format": "xml"},
        {"signers": [S1], "threshold": 1, "log_level": "LOUD"},
        {"signers": [S1], "threshold": 1, "metrics_port": 70000},
    ],
)
def test_invalid_values_raise(overrides):
    with pytest.raises(InvalidConfiguration):
        qconfig.load(**overrides)


def test_unknown_keys_and_bad_files(tmp_path, monkeypatch):
    with pytest.raises(InvalidConfiguration):
        qconfig.load(_toml(tmp_path, f'signers = ["{S1}"]\nthreshhold = 1\n'))
    with pytest.raises(InvalidConfiguration):
        qconfig.load(tmp_path / "missing.toml")
    bad = tmp_path / "gw.yaml"
    bad.write_text("a: 1", encoding="utf-8")
    with pytest.raises(InvalidConfiguration):
        qconfig.load(bad)
    broken = tmp_path / "broken.toml"
    broken.write_text("signers = [", encoding="utf-8")
    with pytest.raises(InvalidConfiguration):
        qconfig.load(broken)
    monkeypatch.setenv("QUORUMGATE_THRESHOLD", "two")
    with pytest.raises(InvalidConfiguration):
        qconfig.load(signers=[S1])


def test_build_gateway(tmp_path):
    cfg = qconfig.load(signers=[S1, S2], threshold=2, strict_packed_length=True)
    gw = qconfig.build_gateway(cfg)
    assert isinstance(gw, ExecutionGateway)
    assert gw.threshold == 2
    assert set(gw.signers()) == {bytes.fromhex("11" * 20), bytes.fromhex("22" * 20)}
    assert gw.address == bytes.fromhex(qconfig.DEFAULT_GATEWAY_ADDRESS[2:])
    assert cfg.to_dict()["strict_packed_length"] is True
