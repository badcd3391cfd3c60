"""Registry data models: contract entries and the registry state snapshot."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from contract_manager.auth.models import RoleGrants

STATE_FORMAT_VERSION = "1.0"


@dataclass(frozen=True)
class ContractDetails:
    """The stored record for one address.

    The default value doubles as the "absent" entry: a removed address reads
    back exactly like one that was never added.
    """

    description: str = ""
    exists: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {"description": self.description, "exists": self.exists}


ABSENT = ContractDetails()


@dataclass
class RegistryState:
    """Everything the registry owns, in a form that can be persisted."""

    entries: dict[str, ContractDetails] = field(default_factory=dict)
    loop_limit: int = 0
    roles: RoleGrants = field(default_factory=RoleGrants)

    def to_dict(self) -> dict[str, Any]:
        return {
            "version": STATE_FORMAT_VERSION,
            "loop_limit": self.loop_limit,
            "entries": {
                address: details.description
                for address, details in sorted(self.entries.items())
                if details.exists
            },
            "roles": self.roles.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RegistryState:
        return cls(
            entries={
                address: ContractDetails(description=description, exists=True)
                for address, description in data.get("entries", {}).items()
            },
            loop_limit=int(data.get("loop_limit", 0)),
            roles=RoleGrants.from_dict(data.get("roles", {})),
        )
