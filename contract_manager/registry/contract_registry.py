"""The contract registry.

Tracks known contract addresses, each with a description and an existence
flag, under a two-tier role model:

- ``Role.ADMIN`` may change the loop limit and grant the manager role.
- ``Role.MANAGER`` may add, update and remove entries.

Every public operation runs under the instance lock and is all-or-nothing:
per-item checks run against a staging overlay, and only when every item
passes is the overlay committed, persisted and announced to listeners.

With a store attached, the store is the source of truth: reads refresh
from the snapshot, and mutations hold the store's file lock while they
reload, stage, save and notify, so handles in other processes never
overwrite each other's commits.

Example::

    inspector = StaticCodeInspector([token, vault])
    registry, _ = ContractRegistry.deploy(deployer, [], [], 10, code_inspector=inspector)
    registry.add_contracts_in_batch(deployer, [token, vault], ["token", "vault"])
    registry.contract_details(token)  # ContractDetails(description="token", exists=True)
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager, nullcontext
from typing import Callable, Iterator, Optional, Sequence

from contract_manager.auth.models import Role, RoleGrants
from contract_manager.auth.permissions import has_role, require_role
from contract_manager.registry.addresses import is_zero_address, normalize_address
from contract_manager.registry.code_inspector import CodeInspector
from contract_manager.registry.errors import (
    ArrayLengthMismatch,
    ContractAlreadyExists,
    LoopLimitExceeded,
    NonContractAddress,
    NotFound,
    RegistryError,
    StateStoreError,
    ZeroAddressNotAllowed,
)
from contract_manager.registry.events import (
    ContractAdded,
    ContractDescriptionUpdated,
    ContractRemoved,
    LoopLimitUpdated,
    Receipt,
    RegistryEvent,
    RoleGranted,
)
from contract_manager.registry.models import ABSENT, ContractDetails, RegistryState
from contract_manager.registry.store import StateStore

logger = logging.getLogger(__name__)

Listener = Callable[[Receipt], None]

# Pending per-address changes of the call in progress. A staged ABSENT
# entry means the address is removed on commit.
Staging = dict[str, ContractDetails]


def _check_loop_limit(value: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"Loop limit must be an integer, got {value!r}")
    if value < 0:
        raise ValueError(f"Loop limit must not be negative, got {value}")
    return value


def _check_description(value: str) -> str:
    if not isinstance(value, str):
        raise ValueError(f"Description must be a string, got {type(value).__name__}")
    return value


class ContractRegistry:
    """Authorized registry of contract addresses."""

    def __init__(
        self,
        code_inspector: CodeInspector,
        *,
        state: Optional[RegistryState] = None,
        store: Optional[StateStore] = None,
    ) -> None:
        self._lock = threading.RLock()
        self._code_inspector = code_inspector
        self._store = store
        self._listeners: list[Listener] = []
        self._apply(state or RegistryState())

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def deploy(
        cls,
        deployer: str,
        addresses: Sequence[str] = (),
        descriptions: Sequence[str] = (),
        loop_limit: int = 0,
        *,
        code_inspector: CodeInspector,
        store: Optional[StateStore] = None,
        listeners: Sequence[Listener] = (),
    ) -> tuple[ContractRegistry, Receipt]:
        """Create a registry seeded with an initial set of contracts.

        The deployer is granted both roles, the loop limit is set, and the
        initial pairs go through the batch-add checks. If any check fails
        nothing is persisted and the error propagates.
        """
        deployer = normalize_address(deployer)
        loop_limit = _check_loop_limit(loop_limit)

        roles = RoleGrants()
        events: list[RegistryEvent] = []
        for role in (Role.ADMIN, Role.MANAGER):
            roles.grant(role, deployer)
            events.append(RoleGranted(role=role, account=deployer, sender=deployer))
        events.append(LoopLimitUpdated(old_limit=0, new_limit=loop_limit))

        registry = cls(code_inspector, state=RegistryState(loop_limit=loop_limit, roles=roles))
        for listener in listeners:
            registry.subscribe(listener)

        with store.lock() if store is not None else nullcontext():
            if store is not None and store.exists():
                raise StateStoreError(f"A registry is already deployed at {store.state_path}")
            with registry._call("deploy"):
                staged: Staging = {}
                events.extend(registry._stage_add_batch(staged, addresses, descriptions))
                registry._store = store
                receipt = registry._commit(Receipt("deploy", deployer, events), staged)
        return registry, receipt

    @classmethod
    def open(cls, store: StateStore, code_inspector: CodeInspector) -> ContractRegistry:
        """Load a previously deployed registry from ``store``."""
        return cls(code_inspector, state=store.load(), store=store)

    def close(self) -> None:
        """Release the code inspector's resources."""
        self._code_inspector.close()

    # ------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------

    def subscribe(self, listener: Listener) -> None:
        with self._lock:
            self._listeners.append(listener)

    def unsubscribe(self, listener: Listener) -> None:
        with self._lock:
            self._listeners.remove(listener)

    # ------------------------------------------------------------------
    # Read accessors
    # ------------------------------------------------------------------

    def contract_details(self, address: str) -> ContractDetails:
        """Return the entry for ``address``; the default entry if absent."""
        address = normalize_address(address)
        with self._lock:
            self._refresh()
            return self._entries.get(address, ABSENT)

    @property
    def loop_limit(self) -> int:
        with self._lock:
            self._refresh()
            return self._loop_limit

    def has_role(self, role: Role, account: str) -> bool:
        with self._lock:
            self._refresh()
            return has_role(self._roles, role, normalize_address(account))

    def role_members(self, role: Role) -> list[str]:
        with self._lock:
            self._refresh()
            return self._roles.holders(role)

    # ------------------------------------------------------------------
    # Entry mutations (manager)
    # ------------------------------------------------------------------

    def add_contract(self, caller: str, address: str, description: str) -> Receipt:
        with self._call("add_contract"):
            caller = self._authorize(caller, Role.MANAGER)
            staged: Staging = {}
            event = self._stage_add(staged, address, description)
            return self._commit(Receipt("add_contract", caller, [event]), staged)

    def add_contracts_in_batch(
        self, caller: str, addresses: Sequence[str], descriptions: Sequence[str]
    ) -> Receipt:
        with self._call("add_contracts_in_batch"):
            caller = self._authorize(caller, Role.MANAGER)
            staged: Staging = {}
            events = self._stage_add_batch(staged, addresses, descriptions)
            return self._commit(Receipt("add_contracts_in_batch", caller, events), staged)

    def update_contract_description(
        self, caller: str, address: str, new_description: str
    ) -> Receipt:
        with self._call("update_contract_description"):
            caller = self._authorize(caller, Role.MANAGER)
            staged: Staging = {}
            event = self._stage_update(staged, address, new_description)
            return self._commit(Receipt("update_contract_description", caller, [event]), staged)

    def update_contracts_descriptions_in_batch(
        self, caller: str, addresses: Sequence[str], new_descriptions: Sequence[str]
    ) -> Receipt:
        with self._call("update_contracts_descriptions_in_batch"):
            caller = self._authorize(caller, Role.MANAGER)
            addresses, new_descriptions = list(addresses), list(new_descriptions)
            self._check_batch(len(addresses), len(new_descriptions))
            staged: Staging = {}
            events: list[RegistryEvent] = [
                self._stage_update(staged, address, description)
                for address, description in zip(addresses, new_descriptions)
            ]
            return self._commit(
                Receipt("update_contracts_descriptions_in_batch", caller, events), staged
            )

    def remove_contract(self, caller: str, address: str) -> Receipt:
        with self._call("remove_contract"):
            caller = self._authorize(caller, Role.MANAGER)
            staged: Staging = {}
            event = self._stage_remove(staged, address)
            return self._commit(Receipt("remove_contract", caller, [event]), staged)

    def remove_contracts_in_batch(self, caller: str, addresses: Sequence[str]) -> Receipt:
        with self._call("remove_contracts_in_batch"):
            caller = self._authorize(caller, Role.MANAGER)
            addresses = list(addresses)
            self._check_batch(len(addresses))
            staged: Staging = {}
            events: list[RegistryEvent] = [self._stage_remove(staged, a) for a in addresses]
            return self._commit(Receipt("remove_contracts_in_batch", caller, events), staged)

    # ------------------------------------------------------------------
    # Administration (admin)
    # ------------------------------------------------------------------

    def set_loop_limit(self, caller: str, new_limit: int) -> Receipt:
        with self._call("set_loop_limit"):
            caller = self._authorize(caller, Role.ADMIN)
            new_limit = _check_loop_limit(new_limit)
            event = LoopLimitUpdated(old_limit=self._loop_limit, new_limit=new_limit)
            return self._commit(
                Receipt("set_loop_limit", caller, [event]), {}, loop_limit=new_limit
            )

    def grant_manager_role(self, caller: str, account: str) -> Receipt:
        """Grant ``Role.MANAGER`` to ``account``. Granting it twice is a no-op."""
        with self._call("grant_manager_role"):
            caller = self._authorize(caller, Role.ADMIN)
            account = normalize_address(account)
            roles = self._roles.copy()
            if not roles.grant(Role.MANAGER, account):
                return Receipt("grant_manager_role", caller)
            event = RoleGranted(role=Role.MANAGER, account=account, sender=caller)
            return self._commit(Receipt("grant_manager_role", caller, [event]), {}, roles=roles)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @contextmanager
    def _call(self, operation: str) -> Iterator[None]:
        with self._lock:
            store = self._store
            with store.lock() if store is not None else nullcontext():
                self._refresh()
                try:
                    yield
                except RegistryError as exc:
                    logger.debug(f"{operation} rejected: {exc.code}: {exc}")
                    raise

    def _apply(self, state: RegistryState) -> None:
        self._entries = {
            address: details for address, details in state.entries.items() if details.exists
        }
        self._loop_limit = _check_loop_limit(state.loop_limit)
        self._roles = state.roles.copy()

    def _refresh(self) -> None:
        if self._store is not None:
            self._apply(self._store.load())

    def _authorize(self, caller: str, role: Role) -> str:
        caller = normalize_address(caller)
        require_role(self._roles, role, caller)
        return caller

    def _check_batch(self, size: int, paired_size: Optional[int] = None) -> None:
        if paired_size is not None and size != paired_size:
            raise ArrayLengthMismatch(size, paired_size)
        if size > self._loop_limit:
            raise LoopLimitExceeded(size, self._loop_limit)

    def _current(self, staged: Staging, address: str) -> ContractDetails:
        if address in staged:
            return staged[address]
        return self._entries.get(address, ABSENT)

    def _stage_add(self, staged: Staging, address: str, description: str) -> ContractAdded:
        address = normalize_address(address)
        description = _check_description(description)
        if is_zero_address(address):
            raise ZeroAddressNotAllowed()
        if not self._code_inspector.is_contract(address):
            raise NonContractAddress(address)
        if self._current(staged, address).exists:
            raise ContractAlreadyExists(address)
        staged[address] = ContractDetails(description=description, exists=True)
        return ContractAdded(address=address, description=description)

    def _stage_add_batch(
        self, staged: Staging, addresses: Sequence[str], descriptions: Sequence[str]
    ) -> list[RegistryEvent]:
        addresses, descriptions = list(addresses), list(descriptions)
        self._check_batch(len(addresses), len(descriptions))
        return [
            self._stage_add(staged, address, description)
            for address, description in zip(addresses, descriptions)
        ]

    def _stage_update(
        self, staged: Staging, address: str, new_description: str
    ) -> ContractDescriptionUpdated:
        address = normalize_address(address)
        new_description = _check_description(new_description)
        current = self._current(staged, address)
        if not current.exists:
            raise NotFound(address)
        staged[address] = ContractDetails(description=new_description, exists=True)
        return ContractDescriptionUpdated(
            address=address,
            old_description=current.description,
            new_description=new_description,
        )

    def _stage_remove(self, staged: Staging, address: str) -> ContractRemoved:
        address = normalize_address(address)
        if not self._current(staged, address).exists:
            raise NotFound(address)
        staged[address] = ABSENT
        return ContractRemoved(address=address)

    def _commit(
        self,
        receipt: Receipt,
        staged: Staging,
        *,
        loop_limit: Optional[int] = None,
        roles: Optional[RoleGrants] = None,
    ) -> Receipt:
        entries = dict(self._entries)
        for address, details in staged.items():
            if details.exists:
                entries[address] = details
            else:
                entries.pop(address, None)
        new_limit = self._loop_limit if loop_limit is None else loop_limit
        new_roles = self._roles if roles is None else roles

        if self._store is not None:
            self._store.save(RegistryState(entries=entries, loop_limit=new_limit, roles=new_roles))

        self._entries, self._loop_limit, self._roles = entries, new_limit, new_roles
        logger.info(
            f"{receipt.operation} by {receipt.caller} committed "
            f"({len(receipt.events)} events, call {receipt.call_id})"
        )
        self._notify(receipt)
        return receipt

    def _notify(self, receipt: Receipt) -> None:
        for listener in list(self._listeners):
            try:
                listener(receipt)
            except Exception as e:
                logger.warning(f"Listener error after {receipt.operation}: {e}")
