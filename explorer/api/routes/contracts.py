"""Contract endpoints: read, source verification and compiler version."""

from __future__ import annotations

import logging
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel, Field

from explorer.api.dependencies import (
    get_contract_store,
    get_recaptcha,
    get_verifier,
)
from explorer.core.types import ContractRecord
from explorer.integrations.recaptcha import RecaptchaVerifier
from explorer.store.contracts import SqlContractStore
from explorer.verifier.service import ContractVerifier

logger = logging.getLogger(__name__)

router = APIRouter()

_ADDRESS_PATTERN = r"^0x[a-fA-F0-9]{40}$"


# ── Schemas ──────────────────────────────────────────────────────────────────


class VerifyContractRequest(BaseModel):
    """Source code submitted for verification."""

    address: str = Field(..., pattern=_ADDRESS_PATTERN, description="Contract address (0x...)")
    contract_name: str = Field(..., min_length=1, max_length=300)
    source_code: str = Field(..., min_length=1)
    recaptcha_token: str | None = None


class ContractResponse(BaseModel):
    """Stored contract representation."""

    address: str
    bytecode: str = ""
    valid: bool = False
    optimization: bool = False
    contract_name: str = ""
    source_code: str = ""
    compiler_version: str = ""
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_record(cls, record: ContractRecord) -> "ContractResponse":
        return cls(**record.to_dict())


class CompilerVersionResponse(BaseModel):
    version: str


# ── Routes ───────────────────────────────────────────────────────────────────


@router.get("/contracts/{address}", response_model=ContractResponse)
async def get_contract(
    address: str,
    store: SqlContractStore = Depends(get_contract_store),
) -> ContractResponse:
    """Return the stored contract at ``address``."""
    try:
        record = await store.find_by_address(address)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    if record is None:
        raise HTTPException(status_code=404, detail="contract with given address not found")
    return ContractResponse.from_record(record)


@router.post("/contracts/verify", response_model=ContractResponse)
async def verify_contract(
    body: VerifyContractRequest,
    request: Request,
    verifier: ContractVerifier = Depends(get_verifier),
    recaptcha: RecaptchaVerifier = Depends(get_recaptcha),
) -> ContractResponse:
    """Verify submitted Solidity source against the deployed bytecode."""
    remote_ip = request.client.host if request.client else None
    await recaptcha.verify(body.recaptcha_token, remote_ip=remote_ip)

    record = await verifier.verify_contract(
        body.address,
        body.contract_name,
        body.source_code,
    )
    return ContractResponse.from_record(record)


@router.get("/compiler/version", response_model=CompilerVersionResponse)
async def compiler_version(
    verifier: ContractVerifier = Depends(get_verifier),
) -> CompilerVersionResponse:
    """Return the semantic version of the configured solc."""
    return CompilerVersionResponse(version=await verifier.get_compiler_version())
