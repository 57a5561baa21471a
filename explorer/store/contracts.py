"""Contract persistence: lookup, conditional update and import."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Protocol

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from explorer.core.addresses import canonical_address
from explorer.core.types import ContractRecord
from explorer.models.contract import Contract

logger = logging.getLogger(__name__)


class ContractStore(Protocol):
    """Storage capability consumed by the verifier."""

    async def find_by_address(self, address: str) -> ContractRecord | None: ...

    async def update(self, record: ContractRecord) -> bool: ...


def canonical_bytecode(code: str) -> str:
    """Lowercase hex without ``0x``, the form bytecode is stored in."""
    code = (code or "").strip()
    if code[:2] in ("0x", "0X"):
        code = code[2:]
    return code.lower()


def _to_record(row: Contract) -> ContractRecord:
    return ContractRecord(
        address=row.address,
        bytecode=row.bytecode,
        valid=row.valid,
        optimization=row.optimization,
        contract_name=row.contract_name,
        source_code=row.source_code,
        compiler_version=row.compiler_version,
        created_at=row.created_at,
        updated_at=row.updated_at,
        version=row.version,
    )


class SqlContractStore:
    """ContractStore backed by the ``contracts`` table.

    ``update`` is a compare-and-set on the ``version`` column: the write
    only lands if the row still carries the version the caller read, so of
    two racing writers exactly one succeeds.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def find_by_address(self, address: str) -> ContractRecord | None:
        address = canonical_address(address)
        async with self._session_factory() as session:
            result = await session.execute(
                select(Contract).where(Contract.address == address)
            )
            row = result.scalar_one_or_none()
            return _to_record(row) if row is not None else None

    async def update(self, record: ContractRecord) -> bool:
        stmt = (
            update(Contract)
            .where(
                Contract.address == canonical_address(record.address),
                Contract.version == record.version,
            )
            .values(
                bytecode=record.bytecode,
                valid=record.valid,
                optimization=record.optimization,
                contract_name=record.contract_name,
                source_code=record.source_code,
                compiler_version=record.compiler_version,
                updated_at=record.updated_at,
                version=Contract.version + 1,
            )
        )
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    result = await session.execute(stmt)
        except SQLAlchemyError as exc:
            logger.error("Contract update failed: %s", exc, extra={"address": record.address})
            return False

        if result.rowcount != 1:
            logger.warning(
                "Contract update lost compare-and-set at version %d",
                record.version,
                extra={"address": record.address},
            )
            return False

        record.version += 1
        return True

    async def import_contract(self, address: str, bytecode: str) -> ContractRecord:
        """Create a contract record or refresh the bytecode of an existing one."""
        address = canonical_address(address)
        bytecode = canonical_bytecode(bytecode)

        try:
            return await self._upsert(address, bytecode)
        except IntegrityError:
            # Lost an insert race; the row exists now
            return await self._upsert(address, bytecode)

    async def _upsert(self, address: str, bytecode: str) -> ContractRecord:
        async with self._session_factory() as session:
            async with session.begin():
                result = await session.execute(
                    select(Contract).where(Contract.address == address)
                )
                row = result.scalar_one_or_none()
                if row is None:
                    row = Contract(address=address, bytecode=bytecode, version=1)
                    session.add(row)
                    logger.info("Imported contract", extra={"address": address})
                elif row.bytecode != bytecode:
                    row.bytecode = bytecode
                    row.version = row.version + 1
                    row.updated_at = datetime.now(timezone.utc)
                    logger.info("Refreshed contract bytecode", extra={"address": address})
                await session.flush()
                await session.refresh(row)
                return _to_record(row)
