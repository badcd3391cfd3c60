"""Settings for the CLI and the HTTP API.

Values come from an optional YAML file, then environment variables:

- ``CONTRACT_MANAGER_CONFIG``    -- config file (default ``~/.contract_manager/config.yaml``)
- ``CONTRACT_MANAGER_HOME``      -- state root (default ``~/.contract_manager``)
- ``CONTRACT_MANAGER_NETWORK``   -- target network (default ``local``)
- ``CONTRACT_MANAGER_RPC_URL``   -- RPC URL override for the target network
- ``CONTRACT_MANAGER_CALLER``    -- default caller address for the CLI
- ``CONTRACT_MANAGER_LOG_LEVEL`` -- logging level (default ``WARNING``)

Example config::

    network: sepolia
    default_caller: "0x..."
    networks:
      local:
        known_contracts: ["0x..."]
      sepolia:
        rpc_url: https://rpc.sepolia.org
        timeout: 15
    api_keys:
      change-me: "0x..."
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import yaml

from contract_manager.registry.code_inspector import (
    CodeInspector,
    RpcCodeInspector,
    StaticCodeInspector,
)

DEFAULT_HOME = Path.home() / ".contract_manager"
DEFAULT_NETWORK = "local"


@dataclass
class NetworkConfig:
    """Where a network's contracts live and how to inspect them."""

    name: str
    rpc_url: str = ""
    known_contracts: list[str] = field(default_factory=list)
    timeout: float = 10.0

    def code_inspector(self) -> CodeInspector:
        """RPC-backed inspector if an RPC URL is configured, else the static set."""
        if self.rpc_url:
            return RpcCodeInspector(self.rpc_url, timeout=self.timeout)
        return StaticCodeInspector(self.known_contracts)


@dataclass
class Settings:
    home: Path = DEFAULT_HOME
    network: str = DEFAULT_NETWORK
    networks: dict[str, NetworkConfig] = field(default_factory=dict)
    default_caller: str = ""
    api_keys: dict[str, str] = field(default_factory=dict)
    log_level: str = "WARNING"

    @property
    def target(self) -> NetworkConfig:
        return self.networks.get(self.network) or NetworkConfig(name=self.network)

    @property
    def state_dir(self) -> Path:
        return self.home / "networks" / self.network


def _network_from_dict(name: str, data: dict[str, Any]) -> NetworkConfig:
    return NetworkConfig(
        name=name,
        rpc_url=data.get("rpc_url", "") or "",
        known_contracts=list(data.get("known_contracts", []) or []),
        timeout=float(data.get("timeout", 10.0)),
    )


def load_settings(path: Optional[str | Path] = None, network: Optional[str] = None) -> Settings:
    """Load settings from YAML and the environment.

    ``network`` (e.g. a CLI option) wins over both.
    """
    config_path = Path(
        path or os.environ.get("CONTRACT_MANAGER_CONFIG", DEFAULT_HOME / "config.yaml")
    ).expanduser()

    data: dict[str, Any] = {}
    if config_path.exists():
        with open(config_path) as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ValueError(f"{config_path}: expected a mapping at the top level")

    settings = Settings(
        home=Path(data.get("home", DEFAULT_HOME)).expanduser(),
        network=data.get("network", DEFAULT_NETWORK),
        networks={
            name: _network_from_dict(name, cfg or {})
            for name, cfg in (data.get("networks") or {}).items()
        },
        default_caller=data.get("default_caller", "") or "",
        api_keys={str(k): str(v) for k, v in (data.get("api_keys") or {}).items()},
        log_level=str(data.get("log_level", "WARNING")),
    )

    env = os.environ
    if env.get("CONTRACT_MANAGER_HOME"):
        settings.home = Path(env["CONTRACT_MANAGER_HOME"]).expanduser()
    if env.get("CONTRACT_MANAGER_NETWORK"):
        settings.network = env["CONTRACT_MANAGER_NETWORK"]
    if network:
        settings.network = network
    if env.get("CONTRACT_MANAGER_CALLER"):
        settings.default_caller = env["CONTRACT_MANAGER_CALLER"]
    if env.get("CONTRACT_MANAGER_LOG_LEVEL"):
        settings.log_level = env["CONTRACT_MANAGER_LOG_LEVEL"]
    if env.get("CONTRACT_MANAGER_RPC_URL"):
        target = settings.target
        target.rpc_url = env["CONTRACT_MANAGER_RPC_URL"]
        settings.networks[settings.network] = target

    return settings


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
