"""Pydantic models for API request/response serialization.

These mirror the registry dataclasses and provide JSON serialization for
the FastAPI endpoints.
"""

from __future__ import annotations

from dataclasses import asdict
from typing import Any

from pydantic import BaseModel, Field

from contract_manager.events.journal import JournalEntry
from contract_manager.registry.events import Receipt
from contract_manager.registry.models import ContractDetails


# ---------------------------------------------------------------------------
# Contract models
# ---------------------------------------------------------------------------


class ContractDetailsResponse(BaseModel):
    """Mirrors contract_manager.registry.models.ContractDetails."""

    address: str
    description: str = ""
    exists: bool = False

    @classmethod
    def build(cls, address: str, details: ContractDetails) -> ContractDetailsResponse:
        return cls(address=address, description=details.description, exists=details.exists)


class AddContractRequest(BaseModel):
    address: str
    description: str = ""


class UpdateDescriptionRequest(BaseModel):
    description: str


class ContractBatchRequest(BaseModel):
    """Paired arrays; lengths are checked by the registry."""

    addresses: list[str] = Field(default_factory=list)
    descriptions: list[str] = Field(default_factory=list)


class RemoveBatchRequest(BaseModel):
    addresses: list[str] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Admin models
# ---------------------------------------------------------------------------


class LoopLimitRequest(BaseModel):
    loop_limit: int = Field(ge=0)


class LoopLimitResponse(BaseModel):
    loop_limit: int


class GrantManagerRequest(BaseModel):
    account: str


class RolesResponse(BaseModel):
    account: str
    roles: list[str] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Receipts and events
# ---------------------------------------------------------------------------


class EventResponse(BaseModel):
    event: str
    args: dict[str, Any] = Field(default_factory=dict)


class ReceiptResponse(BaseModel):
    """Mirrors contract_manager.registry.events.Receipt."""

    call_id: str
    operation: str
    caller: str
    events: list[EventResponse] = Field(default_factory=list)

    @classmethod
    def build(cls, receipt: Receipt) -> ReceiptResponse:
        return cls(**receipt.to_dict())


class JournalEntryResponse(BaseModel):
    """Mirrors contract_manager.events.journal.JournalEntry."""

    id: str
    call_id: str
    timestamp: str
    caller: str
    operation: str
    event: str
    args: dict[str, Any] = Field(default_factory=dict)
    address: str = ""

    @classmethod
    def build(cls, entry: JournalEntry) -> JournalEntryResponse:
        return cls(**asdict(entry))


class ErrorResponse(BaseModel):
    error: str
    detail: str = ""
