"""
FHEVM SDK exceptions.

This module defines all custom exceptions raised by the orchestration layer.
ValidationError, UninitializedClientError, DecryptionAuthorizationError,
BuilderConsumedError and ConfigurationError describe caller defects and are
never retried.
"""

from typing import Any, Dict, Optional


class FhevmError(Exception):
    """Base exception for FHEVM SDK errors."""

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or "FHEVM_ERROR"
        self.details = details or {}

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"


class ValidationError(FhevmError):
    """Raised when a value fails its encrypted type's domain rule."""

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message,
            code="VALIDATION_ERROR",
            details=details,
        )


class UninitializedClientError(FhevmError):
    """Raised when a service is used before the session is ready."""

    def __init__(self, message: str = "FHEVM client not initialized. Call init() first."):
        super().__init__(
            message=message,
            code="CLIENT_NOT_INITIALIZED",
        )


class KeyFetchError(FhevmError):
    """Raised when public key material could not be retrieved after retries."""

    def __init__(
        self,
        contract_address: str,
        last_error: BaseException,
        attempts: int,
    ):
        super().__init__(
            message=f"Could not retrieve public key for {contract_address}: {last_error}",
            code="KEY_FETCH_FAILED",
            details={"contract_address": contract_address, "attempts": attempts},
        )
        self.last_error = last_error


class DecryptionAuthorizationError(FhevmError):
    """Raised when user decryption is attempted without authorization material."""

    def __init__(
        self,
        contract_address: str,
        user_address: Optional[str],
    ):
        super().__init__(
            message=f"Authorization required to decrypt for user {user_address!r} on {contract_address}",
            code="DECRYPTION_UNAUTHORIZED",
            details={"contract_address": contract_address, "user_address": user_address},
        )


class EngineError(FhevmError):
    """Raised for failures surfaced by the FHE engine."""

    def __init__(
        self,
        message: str = "FHE engine call failed",
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message,
            code="ENGINE_ERROR",
            details=details,
        )


class BuilderConsumedError(FhevmError):
    """Raised when an encrypted input builder is built or extended after build()."""

    def __init__(self, contract_address: str):
        super().__init__(
            message=f"Encrypted input for {contract_address} was already built",
            code="BUILDER_CONSUMED",
            details={"contract_address": contract_address},
        )


class ConfigurationError(FhevmError):
    """Raised when the client configuration is missing a required setting."""

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message,
            code="CONFIGURATION_ERROR",
            details=details,
        )


# Errors that indicate a caller defect rather than a transient fault
NON_RETRYABLE_ERRORS = (
    ValidationError,
    UninitializedClientError,
    DecryptionAuthorizationError,
    BuilderConsumedError,
    ConfigurationError,
)
