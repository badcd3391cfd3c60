"""Deployment tooling: create a registry for a network and reopen it later.

An initial data set is a YAML file::

    loop_limit: 100
    contracts:
      - address: "0x..."
        description: "Token"
      - address: "0x..."
        description: "Vault"

Both keys are optional; an empty registry is a valid deployment.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import yaml

from contract_manager.config import Settings
from contract_manager.events.journal import EventJournal
from contract_manager.registry.code_inspector import CodeInspector
from contract_manager.registry.contract_registry import ContractRegistry
from contract_manager.registry.events import Receipt
from contract_manager.registry.store import StateStore

logger = logging.getLogger(__name__)

DEFAULT_LOOP_LIMIT = 100


@dataclass
class InitialData:
    addresses: list[str] = field(default_factory=list)
    descriptions: list[str] = field(default_factory=list)
    loop_limit: Optional[int] = None


@dataclass
class Deployment:
    registry: ContractRegistry
    receipt: Receipt
    network: str
    state_path: Path


def parse_initial_data(data: Any) -> InitialData:
    """Turn a parsed YAML document into constructor arguments."""
    if data is None:
        return InitialData()
    if isinstance(data, list):
        data = {"contracts": data}
    if not isinstance(data, dict):
        raise ValueError("Initial data must be a mapping or a list of contracts")

    initial = InitialData(loop_limit=data.get("loop_limit"))
    for item in data.get("contracts") or []:
        if not isinstance(item, dict) or "address" not in item:
            raise ValueError(f"Each contract needs an 'address': {item!r}")
        initial.addresses.append(str(item["address"]))
        initial.descriptions.append(str(item.get("description", "")))
    return initial


def load_initial_data(path: str | Path) -> InitialData:
    with open(path) as f:
        return parse_initial_data(yaml.safe_load(f))


def deploy_registry(
    settings: Settings,
    deployer: str,
    initial: Optional[InitialData] = None,
    loop_limit: Optional[int] = None,
    code_inspector: Optional[CodeInspector] = None,
) -> Deployment:
    """Deploy a registry to the configured network and persist it.

    ``loop_limit`` wins over the one in ``initial``; both default to
    :data:`DEFAULT_LOOP_LIMIT`.
    """
    initial = initial or InitialData()
    if loop_limit is None:
        loop_limit = initial.loop_limit if initial.loop_limit is not None else DEFAULT_LOOP_LIMIT

    store = StateStore(settings.state_dir)
    journal = EventJournal(settings.state_dir)
    inspector = code_inspector or settings.target.code_inspector()
    logger.info(f"Deploying contract registry to network '{settings.network}'")
    try:
        registry, receipt = ContractRegistry.deploy(
            deployer,
            initial.addresses,
            initial.descriptions,
            loop_limit,
            code_inspector=inspector,
            store=store,
            listeners=[journal.record],
        )
    except Exception:
        if code_inspector is None:
            inspector.close()
        raise
    logger.info(f"Contract registry deployed at {store.state_path}")
    return Deployment(
        registry=registry,
        receipt=receipt,
        network=settings.network,
        state_path=store.state_path,
    )


def open_registry(
    settings: Settings, code_inspector: Optional[CodeInspector] = None
) -> ContractRegistry:
    """Reopen the registry deployed on the configured network, journal attached.

    The caller owns the returned registry and closes it when done.
    """
    store = StateStore(settings.state_dir)
    state = store.load()
    registry = ContractRegistry(
        code_inspector or settings.target.code_inspector(), state=state, store=store
    )
    registry.subscribe(EventJournal(settings.state_dir).record)
    return registry


def open_journal(settings: Settings) -> EventJournal:
    return EventJournal(settings.state_dir)
