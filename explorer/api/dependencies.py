"""FastAPI dependency providers for stores and services."""

from __future__ import annotations

from fastapi import Depends

from explorer.compiler.solc import SolcCompiler, SourceCompiler
from explorer.core.config import get_settings
from explorer.core.database import get_session_factory
from explorer.integrations.recaptcha import RecaptchaVerifier
from explorer.store.contracts import SqlContractStore
from explorer.verifier.service import ContractVerifier

# Singleton instances
_compiler: SolcCompiler | None = None
_recaptcha: RecaptchaVerifier | None = None


def get_contract_store() -> SqlContractStore:
    """Contract store bound to the shared session factory."""
    return SqlContractStore(get_session_factory())


def get_compiler() -> SourceCompiler:
    """Get solc compiler singleton."""
    global _compiler
    if _compiler is None:
        _compiler = SolcCompiler.from_settings()
    return _compiler


def get_recaptcha() -> RecaptchaVerifier:
    """Get reCAPTCHA verifier singleton."""
    global _recaptcha
    if _recaptcha is None:
        _recaptcha = RecaptchaVerifier.from_settings()
    return _recaptcha


def get_verifier(
    store: SqlContractStore = Depends(get_contract_store),
    compiler: SourceCompiler = Depends(get_compiler),
) -> ContractVerifier:
    """Contract verifier wired to the store and compiler."""
    return ContractVerifier(
        store=store,
        compiler=compiler,
        timeout=get_settings().compile_timeout_seconds,
    )


def reset_dependencies() -> None:
    """Drop cached singletons (tests, after changing settings)."""
    global _compiler, _recaptcha
    _compiler = None
    _recaptcha = None
