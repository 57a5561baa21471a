"""Shared fixtures for the explorer test suite."""

from __future__ import annotations

import asyncio
import dataclasses
import logging
from datetime import datetime, timezone

import pytest

from explorer.api.dependencies import reset_dependencies
from explorer.compiler.solc import CompilerError, unit_key
from explorer.core.addresses import canonical_address
from explorer.core.config import get_settings
from explorer.core.database import reset_engine
from explorer.core.types import CompilationUnit, ContractRecord, SolcVersion


# ── Bytecode samples ─────────────────────────────────────────────────────────

CONTRACT_ADDRESS = "0x5aAeb6053F3E94C9b9A09f33669435E7Ef1BeAed"
OTHER_ADDRESS = "0xfB6916095ca1df60bB79Ce92cE3Ea74c37c5d359"

RUNTIME_BODY = "6080604052348015600f57600080fd5b50"
METADATA_A = "00a165627a7a72305820" + "11" * 32 + "0029"
METADATA_B = "00a165627a7a72305820" + "22" * 32 + "0029"

DEPLOYED_BYTECODE = RUNTIME_BODY + METADATA_A
COMPILED_RUNTIME = "0x" + RUNTIME_BODY + METADATA_B

SOLC_VERSION_BANNER = (
    "solc, the solidity compiler commandline interface\n"
    "Version: 0.4.24+commit.e67f0147.Linux.g++"
)

FOO_SOURCE = """\
pragma solidity ^0.4.24;

contract Foo {
    uint256 public value;

    function set(uint256 v) public {
        value = v;
    }
}
"""


# ── Fakes ────────────────────────────────────────────────────────────────────


class FakeContractStore:
    """In-memory ContractStore with the same compare-and-set update."""

    def __init__(self) -> None:
        self._records: dict[str, ContractRecord] = {}
        self.update_calls = 0
        self.fail_updates = False

    def add(self, record: ContractRecord) -> ContractRecord:
        record = dataclasses.replace(record, address=canonical_address(record.address))
        self._records[record.address] = record
        return record

    def get(self, address: str) -> ContractRecord | None:
        return self._records.get(canonical_address(address))

    async def find_by_address(self, address: str) -> ContractRecord | None:
        record = self._records.get(canonical_address(address))
        return dataclasses.replace(record) if record is not None else None

    async def update(self, record: ContractRecord) -> bool:
        self.update_calls += 1
        current = self._records.get(canonical_address(record.address))
        if self.fail_updates or current is None or current.version != record.version:
            return False
        record.version += 1
        self._records[current.address] = dataclasses.replace(record)
        return True


class FakeCompiler:
    """SourceCompiler stand-in returning canned units.

    With ``parties`` set, each ``compile`` call waits until that many calls
    are in flight, which lets tests line up racing verifications.
    """

    def __init__(
        self,
        units: dict[str, CompilationUnit] | None = None,
        error: Exception | None = None,
        full_version: str = SOLC_VERSION_BANNER,
        version_error: Exception | None = None,
        parties: int = 0,
    ) -> None:
        self.units = units or {}
        self.error = error
        self.full_version = full_version
        self.version_error = version_error
        self.parties = parties
        self.calls: list[tuple[str, float | None]] = []
        self._arrived = 0
        self._gate = asyncio.Event()

    async def compile(
        self, source: str, timeout: float | None = None
    ) -> dict[str, CompilationUnit]:
        self.calls.append((source, timeout))
        if self.parties:
            self._arrived += 1
            if self._arrived >= self.parties:
                self._gate.set()
            await self._gate.wait()
        if self.error is not None:
            raise self.error
        return {key: dataclasses.replace(unit, source=source) for key, unit in self.units.items()}

    async def version(self, timeout: float | None = None) -> SolcVersion:
        if self.version_error is not None:
            raise self.version_error
        return SolcVersion(full_version=self.full_version)


def make_unit(name: str, runtime_code: str = COMPILED_RUNTIME) -> CompilationUnit:
    return CompilationUnit(
        name=name,
        runtime_code=runtime_code,
        compiler_version="0.4.24+commit.e67f0147.Linux.g++",
    )


# ── Fixtures ─────────────────────────────────────────────────────────────────


@pytest.fixture
def unverified_record() -> ContractRecord:
    return ContractRecord(
        address=CONTRACT_ADDRESS,
        bytecode=DEPLOYED_BYTECODE,
        created_at=datetime(2019, 1, 1, tzinfo=timezone.utc),
    )


@pytest.fixture
def store(unverified_record: ContractRecord) -> FakeContractStore:
    store = FakeContractStore()
    store.add(unverified_record)
    return store


@pytest.fixture
def compiler() -> FakeCompiler:
    return FakeCompiler(units={unit_key("Foo"): make_unit("Foo")})


@pytest.fixture
def foo_source() -> str:
    return FOO_SOURCE


@pytest.fixture
def compiler_error() -> CompilerError:
    return CompilerError("Error: Expected ';' but got '}'")


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def app_database(tmp_path, monkeypatch):
    """Rebind the shared engine and cached services to a fresh SQLite file."""
    url = f"sqlite+aiosqlite:///{tmp_path / 'explorer.db'}"
    monkeypatch.setenv("EXPLORER_DATABASE_URL", url)
    monkeypatch.setenv("EXPLORER_DATABASE_AUTO_CREATE", "true")
    monkeypatch.setenv("EXPLORER_SOLC_BINARY", "solc-not-installed")
    get_settings.cache_clear()
    reset_engine()
    reset_dependencies()

    yield url

    reset_engine()
    reset_dependencies()
    get_settings.cache_clear()
