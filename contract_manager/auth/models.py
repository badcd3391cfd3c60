"""Auth domain models: roles and the role grant table."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class Role(str, Enum):
    """Two-tier authorization: admin manages roles and limits, manager edits entries."""

    ADMIN = "DEFAULT_ADMIN_ROLE"
    MANAGER = "CONTRACT_MANAGER"

    @property
    def label(self) -> str:
        return {
            Role.ADMIN: "administrator",
            Role.MANAGER: "contract manager",
        }[self]


@dataclass
class RoleGrants:
    """Grant table mapping each role to the set of accounts holding it.

    Grants only ever grow: there is no revoke operation.
    """

    grants: dict[Role, set[str]] = field(default_factory=dict)

    def has(self, role: Role, account: str) -> bool:
        return account in self.grants.get(role, set())

    def grant(self, role: Role, account: str) -> bool:
        """Grant ``role`` to ``account``. Returns False if it was already held."""
        holders = self.grants.setdefault(role, set())
        if account in holders:
            return False
        holders.add(account)
        return True

    def holders(self, role: Role) -> list[str]:
        return sorted(self.grants.get(role, set()))

    def roles_of(self, account: str) -> list[Role]:
        return [role for role in Role if self.has(role, account)]

    def copy(self) -> RoleGrants:
        return RoleGrants(grants={role: set(accounts) for role, accounts in self.grants.items()})

    def to_dict(self) -> dict[str, list[str]]:
        return {role.value: self.holders(role) for role in Role if self.grants.get(role)}

    @classmethod
    def from_dict(cls, data: dict[str, list[str]]) -> RoleGrants:
        return cls(grants={Role(name): set(accounts) for name, accounts in data.items()})
