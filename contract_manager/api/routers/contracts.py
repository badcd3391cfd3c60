"""Contracts router -- query and manager-only mutations of registry entries."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from contract_manager.api.deps import get_caller, get_registry
from contract_manager.api.models import (
    AddContractRequest,
    ContractBatchRequest,
    ContractDetailsResponse,
    ReceiptResponse,
    RemoveBatchRequest,
    UpdateDescriptionRequest,
)
from contract_manager.registry.addresses import normalize_address
from contract_manager.registry.contract_registry import ContractRegistry

router = APIRouter(prefix="/api/contracts", tags=["contracts"])


@router.get(
    "/{address}",
    response_model=ContractDetailsResponse,
    summary="Get contract details",
)
def get_contract(address: str, registry: ContractRegistry = Depends(get_registry)):
    """Return the entry for an address; unregistered addresses report ``exists=false``."""
    details = registry.contract_details(address)
    return ContractDetailsResponse.build(normalize_address(address), details)


@router.post(
    "",
    response_model=ReceiptResponse,
    status_code=201,
    summary="Register a contract",
)
def add_contract(
    body: AddContractRequest,
    caller: str = Depends(get_caller),
    registry: ContractRegistry = Depends(get_registry),
):
    receipt = registry.add_contract(caller, body.address, body.description)
    return ReceiptResponse.build(receipt)


@router.post(
    "/batch",
    response_model=ReceiptResponse,
    status_code=201,
    summary="Register contracts in one all-or-nothing batch",
)
def add_contracts_in_batch(
    body: ContractBatchRequest,
    caller: str = Depends(get_caller),
    registry: ContractRegistry = Depends(get_registry),
):
    receipt = registry.add_contracts_in_batch(caller, body.addresses, body.descriptions)
    return ReceiptResponse.build(receipt)


@router.put(
    "/batch",
    response_model=ReceiptResponse,
    summary="Update descriptions in one all-or-nothing batch",
)
def update_contracts_descriptions_in_batch(
    body: ContractBatchRequest,
    caller: str = Depends(get_caller),
    registry: ContractRegistry = Depends(get_registry),
):
    receipt = registry.update_contracts_descriptions_in_batch(
        caller, body.addresses, body.descriptions
    )
    return ReceiptResponse.build(receipt)


@router.post(
    "/batch/remove",
    response_model=ReceiptResponse,
    summary="Remove contracts in one all-or-nothing batch",
)
def remove_contracts_in_batch(
    body: RemoveBatchRequest,
    caller: str = Depends(get_caller),
    registry: ContractRegistry = Depends(get_registry),
):
    receipt = registry.remove_contracts_in_batch(caller, body.addresses)
    return ReceiptResponse.build(receipt)


@router.put(
    "/{address}",
    response_model=ReceiptResponse,
    summary="Update a contract description",
)
def update_contract_description(
    address: str,
    body: UpdateDescriptionRequest,
    caller: str = Depends(get_caller),
    registry: ContractRegistry = Depends(get_registry),
):
    receipt = registry.update_contract_description(caller, address, body.description)
    return ReceiptResponse.build(receipt)


@router.delete(
    "/{address}",
    response_model=ReceiptResponse,
    summary="Remove a contract",
)
def remove_contract(
    address: str,
    caller: str = Depends(get_caller),
    registry: ContractRegistry = Depends(get_registry),
):
    receipt = registry.remove_contract(caller, address)
    return ReceiptResponse.build(receipt)
