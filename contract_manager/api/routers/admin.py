"""Admin router -- loop limit and role management."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from contract_manager.api.deps import get_caller, get_registry
from contract_manager.api.models import (
    GrantManagerRequest,
    LoopLimitRequest,
    LoopLimitResponse,
    ReceiptResponse,
    RolesResponse,
)
from contract_manager.auth.models import Role
from contract_manager.registry.addresses import normalize_address
from contract_manager.registry.contract_registry import ContractRegistry

router = APIRouter(prefix="/api/admin", tags=["admin"])


@router.get("/loop-limit", response_model=LoopLimitResponse, summary="Get the loop limit")
def get_loop_limit(registry: ContractRegistry = Depends(get_registry)):
    return LoopLimitResponse(loop_limit=registry.loop_limit)


@router.put("/loop-limit", response_model=ReceiptResponse, summary="Set the loop limit")
def set_loop_limit(
    body: LoopLimitRequest,
    caller: str = Depends(get_caller),
    registry: ContractRegistry = Depends(get_registry),
):
    return ReceiptResponse.build(registry.set_loop_limit(caller, body.loop_limit))


@router.post("/managers", response_model=ReceiptResponse, summary="Grant the manager role")
def grant_manager_role(
    body: GrantManagerRequest,
    caller: str = Depends(get_caller),
    registry: ContractRegistry = Depends(get_registry),
):
    """Grant the contract manager role. Granting an already-held role is a no-op."""
    return ReceiptResponse.build(registry.grant_manager_role(caller, body.account))


@router.get("/roles/{account}", response_model=RolesResponse, summary="List an account's roles")
def get_roles(account: str, registry: ContractRegistry = Depends(get_registry)):
    return RolesResponse(
        account=normalize_address(account),
        roles=[role.value for role in Role if registry.has_role(role, account)],
    )
