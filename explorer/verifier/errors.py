"""Contract verification error taxonomy.

Every failure of a verification or compiler-version request is one of the
exceptions below. Each carries a stable ``code`` and the HTTP status the
API answers with.
"""

from __future__ import annotations


class ContractVerificationError(Exception):
    """Base class for verification request failures."""

    code = "VERIFICATION_FAILED"
    status_code = 400
    default_message = "Contract verification failed"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ContractNotFound(ContractVerificationError):
    code = "CONTRACT_NOT_FOUND"
    status_code = 404
    default_message = "contract with given address not found"


class AlreadyVerified(ContractVerificationError):
    code = "ALREADY_VERIFIED"
    status_code = 409
    default_message = "contract with given address is already verified"


class CompilationFailed(ContractVerificationError):
    code = "COMPILATION_ERROR"
    status_code = 422
    default_message = "error occurred while compiling source code"


class UnknownContractName(ContractVerificationError):
    code = "UNKNOWN_CONTRACT_NAME"
    status_code = 422
    default_message = "invalid contract name"


class EmptyBytecode(ContractVerificationError):
    code = "EMPTY_BYTECODE"
    status_code = 422
    default_message = "contract binary is empty"


class BytecodeMismatch(ContractVerificationError):
    code = "BYTECODE_MISMATCH"
    status_code = 422

    def __init__(self, address: str) -> None:
        self.address = address
        super().__init__(
            "the compiled result does not match the input creation bytecode "
            f"located at {address}"
        )


class PersistenceFailed(ContractVerificationError):
    code = "PERSISTENCE_FAILED"
    status_code = 409
    default_message = "error occurred while processing data"


class VersionQueryFailed(ContractVerificationError):
    code = "DEPENDENCY_ERROR"
    status_code = 502
    default_message = "error occurred while querying the compiler version"


class VersionParseFailed(ContractVerificationError):
    code = "DEPENDENCY_ERROR"
    status_code = 502
    default_message = "compiler version string could not be parsed"


class CaptchaRejected(ContractVerificationError):
    code = "CAPTCHA_REJECTED"
    status_code = 403
    default_message = "error occurred during anti-bot checking. please try again"
