"""Bytecode canonicalization for source verification.

solc appends a metadata section (a swarm hash of the compiler metadata) to
runtime bytecode. It changes between otherwise identical compilations, so
it is cut off before two bytecodes are compared.
"""

from __future__ import annotations

import re

# bzzr0 metadata: a1 65 "bzzr0" 58 20 <32-byte hash> 00 29
METADATA_HASH_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"00a165627a7a72305820.*0029\Z"),
)


def strip_hex_prefix(code: str) -> str:
    if code.startswith("0x"):
        return code[2:]
    return code


def strip_metadata_hash(code: str) -> str:
    """Remove a trailing metadata-hash section from hex ``code``."""
    for pattern in METADATA_HASH_PATTERNS:
        code = pattern.sub("", code)
    return code


def canonicalize(code: str) -> str:
    """Comparable form of runtime bytecode: no ``0x``, no metadata hash."""
    return strip_metadata_hash(strip_hex_prefix(code))


def bytecode_matches(compiled: str, deployed: str) -> bool:
    """Case-sensitive comparison of two bytecodes after canonicalization."""
    return canonicalize(compiled) == canonicalize(deployed)
