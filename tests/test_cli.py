"""Tests for the command-line interface."""

import json
import tempfile
from pathlib import Path
from typing import Optional

import yaml
from click.testing import CliRunner

from contract_manager.cli import main
from contract_manager.registry.code_inspector import RpcCodeInspector

ENV_VARS = [
    "CONTRACT_MANAGER_CONFIG",
    "CONTRACT_MANAGER_HOME",
    "CONTRACT_MANAGER_NETWORK",
    "CONTRACT_MANAGER_RPC_URL",
    "CONTRACT_MANAGER_CALLER",
    "CONTRACT_MANAGER_LOG_LEVEL",
]

DEPLOYER = "0x" + "d" * 40
STRANGER = "0x" + "e" * 40
TOKEN = "0x" + "a" * 40
VAULT = "0x" + "b" * 40


def _write_config(tmpdir: str) -> Path:
    path = Path(tmpdir) / "config.yaml"
    with open(path, "w") as f:
        yaml.dump(
            {
                "home": tmpdir,
                "network": "local",
                "networks": {"local": {"known_contracts": [TOKEN, VAULT]}},
            },
            f,
        )
    return path


def _write_yaml(tmpdir: str, name: str, data) -> str:
    path = Path(tmpdir) / name
    with open(path, "w") as f:
        yaml.dump(data, f)
    return str(path)


def _invoke(config: Path, *args: str, caller: Optional[str] = DEPLOYER):
    options = ["--config", str(config)]
    if caller:
        options += ["--caller", caller]
    return CliRunner().invoke(main, [*options, *args], env={name: None for name in ENV_VARS})


def test_deploy_add_show():
    with tempfile.TemporaryDirectory() as tmpdir:
        config = _write_config(tmpdir)

        result = _invoke(config, "deploy", "--loop-limit", "5")
        assert result.exit_code == 0, result.output
        assert "Deployed at" in result.output
        assert (Path(tmpdir) / "networks" / "local" / "state.json").exists()

        result = _invoke(config, "add", TOKEN, "token")
        assert result.exit_code == 0, result.output
        assert "Added" in result.output

        result = _invoke(config, "show", TOKEN)
        assert result.exit_code == 0, result.output
        assert "registered" in result.output
        assert "not registered" not in result.output
        assert "token" in result.output

        result = _invoke(config, "loop-limit")
        assert result.output.strip() == "5"


def test_deploy_with_initial_data():
    with tempfile.TemporaryDirectory() as tmpdir:
        config = _write_config(tmpdir)
        initial = _write_yaml(
            tmpdir,
            "initial.yaml",
            {"loop_limit": 3, "contracts": [{"address": TOKEN, "description": "token"}]},
        )

        result = _invoke(config, "deploy", "--initial", initial)
        assert result.exit_code == 0, result.output

        result = _invoke(config, "show", TOKEN)
        assert "token" in result.output
        assert _invoke(config, "loop-limit").output.strip() == "3"


def test_deploy_twice_fails():
    with tempfile.TemporaryDirectory() as tmpdir:
        config = _write_config(tmpdir)
        assert _invoke(config, "deploy").exit_code == 0

        result = _invoke(config, "deploy")
        assert result.exit_code == 1
        assert "StateStoreError" in result.output


def test_commands_need_a_deployment():
    with tempfile.TemporaryDirectory() as tmpdir:
        config = _write_config(tmpdir)
        result = _invoke(config, "show", TOKEN)
        assert result.exit_code == 1
        assert "StateStoreError" in result.output


def test_missing_caller():
    with tempfile.TemporaryDirectory() as tmpdir:
        config = _write_config(tmpdir)
        result = _invoke(config, "deploy", caller=None)
        assert result.exit_code == 1
        assert "No caller" in result.output


def test_unauthorized_caller():
    with tempfile.TemporaryDirectory() as tmpdir:
        config = _write_config(tmpdir)
        _invoke(config, "deploy")

        result = _invoke(config, "add", TOKEN, "token", caller=STRANGER)
        assert result.exit_code == 1
        assert "Unauthorized" in result.output

        result = _invoke(config, "show", TOKEN)
        assert "not registered" in result.output


def test_non_contract_and_malformed_addresses():
    with tempfile.TemporaryDirectory() as tmpdir:
        config = _write_config(tmpdir)
        _invoke(config, "deploy")

        result = _invoke(config, "add", STRANGER, "plain account")
        assert result.exit_code == 1
        assert "NonContractAddress" in result.output

        result = _invoke(config, "add", "0x1234", "short")
        assert result.exit_code == 1
        assert "Invalid input" in result.output


def test_batch_commands():
    with tempfile.TemporaryDirectory() as tmpdir:
        config = _write_config(tmpdir)
        _invoke(config, "deploy")

        batch = _write_yaml(
            tmpdir,
            "batch.yaml",
            [{"address": TOKEN, "description": "token"}, {"address": VAULT, "description": "vault"}],
        )
        result = _invoke(config, "add-batch", batch)
        assert result.exit_code == 0, result.output
        assert result.output.count("Added") == 2

        updates = _write_yaml(
            tmpdir,
            "updates.yaml",
            {"contracts": [{"address": TOKEN, "description": "token v2"}]},
        )
        result = _invoke(config, "update-batch", updates)
        assert result.exit_code == 0, result.output
        assert "DescriptionUpdated" in result.output

        removals = _write_yaml(tmpdir, "removals.yaml", [TOKEN, VAULT])
        result = _invoke(config, "remove-batch", removals)
        assert result.exit_code == 0, result.output
        assert result.output.count("Removed") == 2


def test_loop_limit_enforced_from_cli():
    with tempfile.TemporaryDirectory() as tmpdir:
        config = _write_config(tmpdir)
        _invoke(config, "deploy")

        assert _invoke(config, "set-loop-limit", "1").exit_code == 0
        batch = _write_yaml(
            tmpdir,
            "batch.yaml",
            [{"address": TOKEN, "description": "token"}, {"address": VAULT, "description": "vault"}],
        )
        result = _invoke(config, "add-batch", batch)
        assert result.exit_code == 1
        assert "LoopLimitExceeded" in result.output

        result = _invoke(config, "show", TOKEN)
        assert "not registered" in result.output


def test_grant_manager_and_roles():
    with tempfile.TemporaryDirectory() as tmpdir:
        config = _write_config(tmpdir)
        _invoke(config, "deploy")

        assert "No roles" in _invoke(config, "roles", STRANGER).output

        result = _invoke(config, "grant-manager", STRANGER)
        assert result.exit_code == 0, result.output
        assert "RoleGranted" in result.output

        result = _invoke(config, "grant-manager", STRANGER)
        assert "Nothing changed" in result.output

        result = _invoke(config, "roles", STRANGER)
        assert "CONTRACT_MANAGER" in result.output
        assert "DEFAULT_ADMIN_ROLE" not in result.output

        result = _invoke(config, "add", TOKEN, "token", caller=STRANGER)
        assert result.exit_code == 0, result.output


def test_update_and_remove():
    with tempfile.TemporaryDirectory() as tmpdir:
        config = _write_config(tmpdir)
        _invoke(config, "deploy")

        result = _invoke(config, "update", TOKEN, "nothing here")
        assert result.exit_code == 1
        assert "NotFound" in result.output

        _invoke(config, "add", TOKEN, "token")
        assert _invoke(config, "update", TOKEN, "token v2").exit_code == 0
        assert "token v2" in _invoke(config, "show", TOKEN).output

        assert _invoke(config, "remove", TOKEN).exit_code == 0
        assert "not registered" in _invoke(config, "show", TOKEN).output


def test_events_command():
    with tempfile.TemporaryDirectory() as tmpdir:
        config = _write_config(tmpdir)
        _invoke(config, "deploy")
        _invoke(config, "add", TOKEN, "token")
        _invoke(config, "remove", TOKEN)

        result = _invoke(config, "events", "--format", "json", "--address", TOKEN)
        assert result.exit_code == 0, result.output
        events = json.loads(result.output)
        assert [e["event"] for e in events] == ["Added", "Removed"]

        result = _invoke(config, "events", "--event", "Removed")
        assert result.exit_code == 0, result.output
        assert "Events (1)" in result.output


def test_events_limit_must_be_positive():
    with tempfile.TemporaryDirectory() as tmpdir:
        config = _write_config(tmpdir)
        _invoke(config, "deploy")

        result = _invoke(config, "events", "--limit", "-1")
        assert result.exit_code == 2

        result = _invoke(config, "events", "--format", "json", "--limit", "1")
        assert len(json.loads(result.output)) == 1


def test_rpc_inspector_closed_after_each_command(monkeypatch):
    closed = []
    monkeypatch.setattr(RpcCodeInspector, "close", lambda self: closed.append(self.rpc_url))
    with tempfile.TemporaryDirectory() as tmpdir:
        config = Path(tmpdir) / "config.yaml"
        with open(config, "w") as f:
            yaml.dump({"home": tmpdir, "networks": {"sepolia": {"rpc_url": "http://node.test"}}}, f)

        assert _invoke(config, "--network", "sepolia", "deploy").exit_code == 0
        assert _invoke(config, "--network", "sepolia", "show", TOKEN).exit_code == 0
        assert closed == ["http://node.test", "http://node.test"]
