"""Notifications emitted by committed registry calls.

Events are only delivered after the call that produced them has committed;
a failed call emits nothing.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import Any, ClassVar, Optional, Union

from contract_manager.auth.models import Role


@dataclass(frozen=True)
class ContractAdded:
    address: str
    description: str
    exists: bool = True

    name: ClassVar[str] = "Added"

    def args(self) -> dict[str, Any]:
        return {"address": self.address, "description": self.description, "exists": self.exists}


@dataclass(frozen=True)
class ContractDescriptionUpdated:
    address: str
    old_description: str
    new_description: str

    name: ClassVar[str] = "DescriptionUpdated"

    def args(self) -> dict[str, Any]:
        return {
            "address": self.address,
            "old_description": self.old_description,
            "new_description": self.new_description,
        }


@dataclass(frozen=True)
class ContractRemoved:
    address: str
    exists: bool = False

    name: ClassVar[str] = "Removed"

    def args(self) -> dict[str, Any]:
        return {"address": self.address, "exists": self.exists}


@dataclass(frozen=True)
class LoopLimitUpdated:
    old_limit: int
    new_limit: int

    name: ClassVar[str] = "LoopLimitUpdated"

    def args(self) -> dict[str, Any]:
        return {"old_limit": self.old_limit, "new_limit": self.new_limit}


@dataclass(frozen=True)
class RoleGranted:
    role: Role
    account: str
    sender: str

    name: ClassVar[str] = "RoleGranted"

    def args(self) -> dict[str, Any]:
        return {"role": self.role.value, "account": self.account, "sender": self.sender}


RegistryEvent = Union[
    ContractAdded,
    ContractDescriptionUpdated,
    ContractRemoved,
    LoopLimitUpdated,
    RoleGranted,
]

EVENT_NAMES = [
    ContractAdded.name,
    ContractDescriptionUpdated.name,
    ContractRemoved.name,
    LoopLimitUpdated.name,
    RoleGranted.name,
]


def event_address(event: RegistryEvent) -> Optional[str]:
    """The contract or account address an event is about, if any."""
    if isinstance(event, RoleGranted):
        return event.account
    return getattr(event, "address", None)


@dataclass
class Receipt:
    """Outcome of one committed registry call, events in emission order."""

    operation: str
    caller: str
    events: list[RegistryEvent] = field(default_factory=list)
    call_id: str = field(default_factory=lambda: uuid.uuid4().hex[:16])

    def to_dict(self) -> dict[str, Any]:
        return {
            "call_id": self.call_id,
            "operation": self.operation,
            "caller": self.caller,
            "events": [{"event": e.name, "args": e.args()} for e in self.events],
        }
