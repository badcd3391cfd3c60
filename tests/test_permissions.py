"""Tests for roles and role checks."""

import pytest

from contract_manager.auth.models import Role, RoleGrants
from contract_manager.auth.permissions import has_role, require_role
from contract_manager.registry.errors import Unauthorized

ADMIN = "0x" + "1" * 40
MANAGER = "0x" + "2" * 40
STRANGER = "0x" + "3" * 40


def _grants() -> RoleGrants:
    grants = RoleGrants()
    grants.grant(Role.ADMIN, ADMIN)
    grants.grant(Role.MANAGER, ADMIN)
    grants.grant(Role.MANAGER, MANAGER)
    return grants


def test_roles_are_independent():
    grants = _grants()
    assert has_role(grants, Role.ADMIN, ADMIN)
    assert has_role(grants, Role.MANAGER, MANAGER)
    assert not has_role(grants, Role.ADMIN, MANAGER)
    assert not has_role(grants, Role.MANAGER, STRANGER)


def test_grant_reports_new_grants_only():
    grants = RoleGrants()
    assert grants.grant(Role.MANAGER, MANAGER) is True
    assert grants.grant(Role.MANAGER, MANAGER) is False
    assert grants.holders(Role.MANAGER) == [MANAGER]


def test_require_role_raises_unauthorized():
    grants = _grants()
    require_role(grants, Role.MANAGER, MANAGER)

    with pytest.raises(Unauthorized) as exc_info:
        require_role(grants, Role.ADMIN, MANAGER)
    assert exc_info.value.code == "Unauthorized"
    assert exc_info.value.to_dict()["error"] == "Unauthorized"
    assert Role.ADMIN.value in str(exc_info.value)


def test_roles_of():
    grants = _grants()
    assert grants.roles_of(ADMIN) == [Role.ADMIN, Role.MANAGER]
    assert grants.roles_of(STRANGER) == []


def test_copy_is_independent():
    grants = _grants()
    copied = grants.copy()
    copied.grant(Role.ADMIN, STRANGER)
    assert not grants.has(Role.ADMIN, STRANGER)


def test_dict_round_trip():
    grants = _grants()
    data = grants.to_dict()
    assert data == {
        "DEFAULT_ADMIN_ROLE": [ADMIN],
        "CONTRACT_MANAGER": sorted([ADMIN, MANAGER]),
    }
    assert RoleGrants.from_dict(data).to_dict() == data
