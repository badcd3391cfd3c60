"""FastAPI dependencies: the registry instance and the calling account.

Callers authenticate with an ``X-API-Key: <raw_key>`` header; the key is
looked up in ``Settings.api_keys`` to find the address the call is made
from. Role checks happen inside the registry, not here.
"""

from __future__ import annotations

import hmac
from typing import Optional

from fastapi import Header, HTTPException, Request, status

from contract_manager.config import Settings
from contract_manager.events.journal import EventJournal
from contract_manager.registry.contract_registry import ContractRegistry


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_registry(request: Request) -> ContractRegistry:
    return request.app.state.registry


def get_journal(request: Request) -> EventJournal:
    return request.app.state.journal


def resolve_api_key(settings: Settings, raw_key: str) -> Optional[str]:
    """Return the caller address bound to ``raw_key``, or None."""
    for key, address in settings.api_keys.items():
        if hmac.compare_digest(key.encode(), raw_key.encode()):
            return address
    return None


def get_caller(
    request: Request,
    x_api_key: Optional[str] = Header(None, alias="X-API-Key"),
) -> str:
    """Dependency returning the caller address for the request.

    Raises ``401 Unauthorized`` if no valid API key is provided.
    """
    if x_api_key:
        address = resolve_api_key(get_settings(request), x_api_key)
        if address is not None:
            return address

    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Not authenticated",
        headers={"WWW-Authenticate": "API-Key"},
    )
