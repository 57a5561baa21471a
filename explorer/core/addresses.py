"""Account address helpers."""

from __future__ import annotations

import re

from web3 import Web3

_ADDRESS_RE = re.compile(r"^(0x)?[0-9a-fA-F]{40}$")


def is_address(value: str) -> bool:
    """Return True for a 20-byte hex address, with or without ``0x``."""
    return bool(_ADDRESS_RE.match(value or ""))


def canonical_address(value: str) -> str:
    """Return the EIP-55 checksummed form of ``value``.

    Raises:
        ValueError: If ``value`` is not a 20-byte hex address.
    """
    if not is_address(value):
        raise ValueError(f"Invalid address format: {value!r}")
    if not value.startswith("0x"):
        value = "0x" + value
    return Web3.to_checksum_address(value.lower())
