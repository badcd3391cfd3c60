"""Role checks guarding every mutating registry operation."""

from __future__ import annotations

from contract_manager.auth.models import Role, RoleGrants
from contract_manager.registry.errors import Unauthorized


def has_role(grants: RoleGrants, role: Role, account: str) -> bool:
    """Check whether ``account`` holds ``role``.

    Parameters
    ----------
    grants:
        The grant table to consult.
    role:
        The role required.
    account:
        Canonical (lower-case) account address.

    Returns
    -------
    bool
        True if the role has been granted to the account.
    """
    return grants.has(role, account)


def require_role(grants: RoleGrants, role: Role, account: str) -> None:
    """Validate that ``account`` holds ``role``.

    Raises :class:`Unauthorized` if it does not. Call it first thing in an
    operation, before any other validation::

        def set_loop_limit(self, caller, new_limit):
            require_role(self._roles, Role.ADMIN, caller)
            ...
    """
    if not has_role(grants, role, account):
        raise Unauthorized(account, role)
