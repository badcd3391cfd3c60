"""Tests for settings loading."""

import tempfile
from pathlib import Path

import yaml

from contract_manager.config import load_settings
from contract_manager.registry.code_inspector import RpcCodeInspector, StaticCodeInspector

ENV_VARS = [
    "CONTRACT_MANAGER_CONFIG",
    "CONTRACT_MANAGER_HOME",
    "CONTRACT_MANAGER_NETWORK",
    "CONTRACT_MANAGER_RPC_URL",
    "CONTRACT_MANAGER_CALLER",
    "CONTRACT_MANAGER_LOG_LEVEL",
]

CALLER = "0x" + "d" * 40
TOKEN = "0x" + "a" * 40


def _clear_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def _write_config(tmpdir: str, data: dict) -> Path:
    path = Path(tmpdir) / "config.yaml"
    with open(path, "w") as f:
        yaml.dump(data, f)
    return path


def test_defaults_without_config_file(monkeypatch):
    _clear_env(monkeypatch)
    with tempfile.TemporaryDirectory() as tmpdir:
        settings = load_settings(Path(tmpdir) / "missing.yaml")
        assert settings.network == "local"
        assert settings.api_keys == {}
        assert isinstance(settings.target.code_inspector(), StaticCodeInspector)


def test_load_from_yaml(monkeypatch):
    _clear_env(monkeypatch)
    with tempfile.TemporaryDirectory() as tmpdir:
        path = _write_config(
            tmpdir,
            {
                "home": tmpdir,
                "network": "local",
                "default_caller": CALLER,
                "networks": {"local": {"known_contracts": [TOKEN]}},
                "api_keys": {"secret": CALLER},
            },
        )
        settings = load_settings(path)

        assert settings.default_caller == CALLER
        assert settings.api_keys == {"secret": CALLER}
        assert settings.state_dir == Path(tmpdir) / "networks" / "local"
        assert settings.target.code_inspector().is_contract(TOKEN)


def test_network_selects_rpc_inspector(monkeypatch):
    _clear_env(monkeypatch)
    with tempfile.TemporaryDirectory() as tmpdir:
        path = _write_config(
            tmpdir,
            {"networks": {"sepolia": {"rpc_url": "http://node.test", "timeout": 3}}},
        )
        settings = load_settings(path, network="sepolia")

        assert settings.network == "sepolia"
        inspector = settings.target.code_inspector()
        assert isinstance(inspector, RpcCodeInspector)
        assert inspector.rpc_url == "http://node.test"
        inspector.close()


def test_environment_overrides(monkeypatch):
    _clear_env(monkeypatch)
    with tempfile.TemporaryDirectory() as tmpdir:
        path = _write_config(tmpdir, {"network": "local", "log_level": "INFO"})
        monkeypatch.setenv("CONTRACT_MANAGER_CONFIG", str(path))
        monkeypatch.setenv("CONTRACT_MANAGER_HOME", tmpdir)
        monkeypatch.setenv("CONTRACT_MANAGER_NETWORK", "mainnet")
        monkeypatch.setenv("CONTRACT_MANAGER_RPC_URL", "http://mainnet.test")
        monkeypatch.setenv("CONTRACT_MANAGER_CALLER", CALLER)
        monkeypatch.setenv("CONTRACT_MANAGER_LOG_LEVEL", "DEBUG")

        settings = load_settings()

        assert settings.home == Path(tmpdir)
        assert settings.network == "mainnet"
        assert settings.target.rpc_url == "http://mainnet.test"
        assert settings.default_caller == CALLER
        assert settings.log_level == "DEBUG"


def test_network_option_wins_over_environment(monkeypatch):
    _clear_env(monkeypatch)
    monkeypatch.setenv("CONTRACT_MANAGER_NETWORK", "mainnet")
    with tempfile.TemporaryDirectory() as tmpdir:
        settings = load_settings(Path(tmpdir) / "missing.yaml", network="local")
        assert settings.network == "local"
