"""Address helpers."""

from __future__ import annotations

import re

ZERO_ADDRESS = "0x" + "0" * 40

_ADDRESS_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")


def normalize_address(address: str) -> str:
    """Return the canonical lower-case form of a hex address.

    Raises ``ValueError`` for anything that is not ``0x`` followed by 40 hex
    digits. The zero address is well formed and passes.
    """
    if not isinstance(address, str):
        raise ValueError(f"Address must be a string, got {type(address).__name__}")
    candidate = address.strip()
    if not _ADDRESS_RE.match(candidate):
        raise ValueError(f"Not a valid address: {address!r}")
    return candidate.lower()


def is_zero_address(address: str) -> bool:
    return address == ZERO_ADDRESS
