"""Contract source verification.

Recompiles submitted Solidity source and matches the runtime bytecode of
the named contract against the bytecode observed on-chain. A contract is
verified at most once: the record is written in a single conditional
update and never flips back to unverified.
"""

from __future__ import annotations

import dataclasses
import logging
import time
from datetime import datetime, timezone

from explorer.compiler.solc import (
    CompilerError,
    CompilerTimeout,
    SourceCompiler,
    parse_semantic_version,
    unit_key,
)
from explorer.core.addresses import canonical_address
from explorer.core.types import ContractRecord
from explorer.store.contracts import ContractStore
from explorer.verifier.bytecode import canonicalize
from explorer.verifier.errors import (
    AlreadyVerified,
    BytecodeMismatch,
    CompilationFailed,
    ContractNotFound,
    ContractVerificationError,
    EmptyBytecode,
    PersistenceFailed,
    UnknownContractName,
    VersionParseFailed,
    VersionQueryFailed,
)

logger = logging.getLogger(__name__)


class ContractVerifier:
    """Verify contract source code against deployed bytecode."""

    def __init__(
        self,
        store: ContractStore,
        compiler: SourceCompiler,
        timeout: float | None = None,
    ) -> None:
        self.store = store
        self.compiler = compiler
        self.timeout = timeout

    async def verify_contract(
        self,
        address: str,
        contract_name: str,
        source_code: str,
        timeout: float | None = None,
    ) -> ContractRecord:
        """Verify ``contract_name`` from ``source_code`` against ``address``.

        Returns the updated record on success. Any failure raises a
        ``ContractVerificationError`` and leaves the stored record untouched.
        A bytecode mismatch reports the address exactly as submitted.
        """
        submitted = address
        address = canonical_address(address)
        extra = {"address": address, "contract_name": contract_name}
        start = time.perf_counter()
        logger.info("Verifying contract %s", contract_name, extra=extra)

        try:
            record = await self._verify(
                address, submitted, contract_name, source_code, timeout
            )
        except ContractVerificationError as exc:
            logger.warning(
                "Verification rejected: %s",
                exc.message,
                extra={**extra, "error_code": exc.code},
            )
            raise

        elapsed = (time.perf_counter() - start) * 1000
        logger.info(
            "Verified contract %s",
            contract_name,
            extra={**extra, "duration_ms": round(elapsed, 1)},
        )
        return record

    async def get_compiler_version(self, timeout: float | None = None) -> str:
        """Return the compiler's ``MAJOR.MINOR.PATCH+commit.<hash>`` version."""
        try:
            result = await self.compiler.version(timeout=self._timeout(timeout))
        except CompilerError as exc:
            logger.error("Compiler version query failed: %s", exc)
            raise VersionQueryFailed() from exc

        version = parse_semantic_version(result.full_version)
        if version is None:
            logger.error("Unrecognised compiler version string: %r", result.full_version)
            raise VersionParseFailed(
                f"compiler version string could not be parsed: {result.full_version!r}"
            )
        return version

    # ── Private ──────────────────────────────────────────────────────

    async def _verify(
        self,
        address: str,
        submitted: str,
        contract_name: str,
        source_code: str,
        timeout: float | None,
    ) -> ContractRecord:
        contract = await self.store.find_by_address(address)
        if contract is None:
            raise ContractNotFound()
        if contract.valid:
            raise AlreadyVerified()

        try:
            units = await self.compiler.compile(source_code, timeout=self._timeout(timeout))
        except CompilerTimeout as exc:
            logger.error("Compilation timed out: %s", exc, extra={"address": address})
            raise CompilationFailed("compilation timed out") from exc
        except CompilerError as exc:
            logger.error("Compilation failed: %s", exc, extra={"address": address})
            raise CompilationFailed() from exc

        unit = units.get(unit_key(contract_name))
        if unit is None:
            raise UnknownContractName()
        if unit.runtime_code in ("", "0x"):
            raise EmptyBytecode()

        if canonicalize(unit.runtime_code) != canonicalize(contract.bytecode):
            raise BytecodeMismatch(submitted)

        # Work on a copy so a failed write leaves the caller nothing half-updated
        verified = dataclasses.replace(
            contract,
            valid=True,
            # Set unconditionally; solc runs with --optimize by default
            optimization=True,
            contract_name=contract_name,
            source_code=unit.source,
            compiler_version=unit.compiler_version,
            updated_at=datetime.now(timezone.utc),
        )
        if not await self.store.update(verified):
            logger.error("Persisting verification failed", extra={"address": address})
            raise PersistenceFailed()
        return verified

    def _timeout(self, timeout: float | None) -> float | None:
        return self.timeout if timeout is None else timeout
