"""Registry errors.

Every rule violation aborts the whole call. Each error carries a stable
``code`` that front ends (CLI, HTTP API) report as the failure reason.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from contract_manager.auth.models import Role


class RegistryError(Exception):
    """Base class for all registry failures."""

    code = "RegistryError"

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.code, "detail": str(self)}


class Unauthorized(RegistryError):
    code = "Unauthorized"

    def __init__(self, account: str, role: Role) -> None:
        self.account = account
        self.role = role
        super().__init__(f"Account {account} is missing role {role.value}")


class ZeroAddressNotAllowed(RegistryError):
    code = "ZeroAddressNotAllowed"

    def __init__(self) -> None:
        super().__init__("The zero address is not allowed")


class NonContractAddress(RegistryError):
    code = "NonContractAddress"

    def __init__(self, address: str) -> None:
        self.address = address
        super().__init__(f"Address {address} has no deployed code")


class ContractAlreadyExists(RegistryError):
    code = "ContractAlreadyExists"

    def __init__(self, address: str) -> None:
        self.address = address
        super().__init__(f"Contract {address} is already registered")


class NotFound(RegistryError):
    code = "NotFound"

    def __init__(self, address: str) -> None:
        self.address = address
        super().__init__(f"Contract {address} is not registered")


class ArrayLengthMismatch(RegistryError):
    code = "ArrayLengthMismatch"

    def __init__(self, addresses: int, descriptions: int) -> None:
        self.addresses = addresses
        self.descriptions = descriptions
        super().__init__(
            f"Got {addresses} addresses but {descriptions} descriptions"
        )


class LoopLimitExceeded(RegistryError):
    code = "LoopLimitExceeded"

    def __init__(self, size: int, limit: int) -> None:
        self.size = size
        self.limit = limit
        super().__init__(f"Batch of {size} items exceeds the loop limit of {limit}")


# ------------------------------------------------------------------
# Environment failures (not registry rule violations)
# ------------------------------------------------------------------


class CodeLookupError(RegistryError):
    """The host environment could not tell whether an address holds code."""

    code = "CodeLookupError"


class StateStoreError(RegistryError):
    """The persisted registry state is missing or unreadable."""

    code = "StateStoreError"
