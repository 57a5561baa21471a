"""Contract source verification."""

from explorer.verifier.bytecode import canonicalize, strip_metadata_hash  # noqa: F401
from explorer.verifier.errors import ContractVerificationError  # noqa: F401
from explorer.verifier.service import ContractVerifier  # noqa: F401

__all__ = [
    "ContractVerifier",
    "ContractVerificationError",
    "canonicalize",
    "strip_metadata_hash",
]
