"""Shared domain types used across the explorer backend."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any


@dataclass
class ContractRecord:
    """A deployed contract as tracked by the explorer.

    ``bytecode`` is the on-chain runtime code in canonical form: lowercase
    hex without a ``0x`` prefix. ``version`` is the optimistic-concurrency
    counter checked by ``ContractStore.update``.
    """

    address: str
    bytecode: str = ""
    valid: bool = False
    optimization: bool = False
    contract_name: str = ""
    source_code: str = ""
    compiler_version: str = ""
    created_at: datetime | None = None
    updated_at: datetime | None = None
    version: int = 1

    def to_dict(self) -> dict[str, Any]:
        return {
            "address": self.address,
            "bytecode": self.bytecode,
            "valid": self.valid,
            "optimization": self.optimization,
            "contract_name": self.contract_name,
            "source_code": self.source_code,
            "compiler_version": self.compiler_version,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }


@dataclass
class CompilationUnit:
    """One compiled contract out of a (possibly multi-contract) source."""

    name: str
    runtime_code: str = ""  # 0x-prefixed
    source: str = ""
    compiler_version: str = ""


@dataclass
class SolcVersion:
    """Raw output of a compiler version query."""

    full_version: str
