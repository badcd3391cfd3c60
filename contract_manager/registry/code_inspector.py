"""Code inspection: does an address hold deployed contract code?

The registry only accepts addresses that resolve to executable code in the
target network. Two inspectors are provided:

- :class:`StaticCodeInspector` answers from a fixed set of known contract
  addresses (local development, tests, air-gapped use).
- :class:`RpcCodeInspector` asks a node over JSON-RPC (``eth_getCode``).
"""

from __future__ import annotations

import itertools
import logging
from typing import Iterable, Optional, Protocol

import httpx

from contract_manager.registry.addresses import normalize_address
from contract_manager.registry.errors import CodeLookupError

logger = logging.getLogger(__name__)

EMPTY_CODE = {"", "0x", "0x0"}


class CodeInspector(Protocol):
    def is_contract(self, address: str) -> bool:
        ...

    def close(self) -> None:
        ...


class StaticCodeInspector:
    """Inspector backed by a fixed set of contract addresses."""

    def __init__(self, contracts: Iterable[str] = ()) -> None:
        self._contracts: set[str] = {normalize_address(a) for a in contracts}

    def register(self, address: str) -> str:
        """Mark ``address`` as holding code. Returns the canonical address."""
        canonical = normalize_address(address)
        self._contracts.add(canonical)
        return canonical

    def is_contract(self, address: str) -> bool:
        return normalize_address(address) in self._contracts

    def close(self) -> None:
        pass


class RpcCodeInspector:
    """Inspector that queries a JSON-RPC node with ``eth_getCode``.

    Parameters
    ----------
    rpc_url:
        HTTP(S) endpoint of the node.
    timeout:
        Request timeout in seconds.
    block:
        Block tag the code is read at.
    client:
        Optional pre-built ``httpx.Client`` (e.g. with a mock transport).
    """

    def __init__(
        self,
        rpc_url: str,
        timeout: float = 10.0,
        block: str = "latest",
        client: Optional[httpx.Client] = None,
    ) -> None:
        self.rpc_url = rpc_url
        self.block = block
        self._client = client or httpx.Client(timeout=timeout)
        self._ids = itertools.count(1)

    def close(self) -> None:
        self._client.close()

    def get_code(self, address: str) -> str:
        """Return the hex-encoded code stored at ``address``."""
        payload = {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": "eth_getCode",
            "params": [normalize_address(address), self.block],
        }
        try:
            resp = self._client.post(self.rpc_url, json=payload)
            resp.raise_for_status()
            data = resp.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise CodeLookupError(f"eth_getCode request to {self.rpc_url} failed: {exc}") from exc

        if "error" in data:
            raise CodeLookupError(f"eth_getCode returned an error: {data['error']}")
        result = data.get("result")
        if not isinstance(result, str):
            raise CodeLookupError(f"eth_getCode returned no result: {data}")
        return result

    def is_contract(self, address: str) -> bool:
        code = self.get_code(address)
        logger.debug(f"eth_getCode {address}: {len(code)} hex chars")
        return code.lower() not in EMPTY_CODE
