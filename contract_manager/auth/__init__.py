"""Role-based write authorization for the contract registry."""

from contract_manager.auth.models import Role, RoleGrants
from contract_manager.auth.permissions import has_role, require_role

__all__ = ["Role", "RoleGrants", "has_role", "require_role"]
