"""
FHEVM SDK - client-side orchestration for fully homomorphic encryption.

Encrypts typed plaintext values into payloads an FHEVM execution
environment can compute on, and decrypts results back, without the caller
touching cryptographic primitives.

Example:
    >>> from fhevm_sdk import ClientSession, get_config
    >>>
    >>> config = get_config(network="sepolia", contract_address=CONTRACT)
    >>> async with ClientSession(config, engine_factory=create_engine) as session:
    ...     payload = await session.encryption.batch(
    ...         [("uint32", 1000), ("bool", True)], CONTRACT, USER
    ...     )
    ...     tx = contract.transfer(*payload.handles, payload.input_proof)
    ...     balance = await session.decryption.decrypt_uint32(
    ...         handle, CONTRACT, USER, signature=eip712_signature
    ...     )
"""

__version__ = "1.0.0"

# Builder
from .builder import EncryptedInputBuilder

# Configuration
from .config import FhevmConfig, get_config

# Services
from .decryption import DecryptionService
from .encryption import EncryptionService

# Collaborator interfaces
from .engine import AuthorizationProvider, EngineInput, FheEngine, KeySource

# Exceptions
from .exceptions import (
    BuilderConsumedError,
    ConfigurationError,
    DecryptionAuthorizationError,
    EngineError,
    FhevmError,
    KeyFetchError,
    UninitializedClientError,
    ValidationError,
)
from .gateway import GatewayKeySource
from .keys import KeyCache
from .retry import RetryConfig, RetryExecutor

# Schemas
from .schemas import (
    DecryptionItem,
    DecryptionRequest,
    EncryptedPayload,
    EncryptedType,
    Network,
    PublicKeyRecord,
    TypedValue,
)

# Session
from .session import ClientSession, create_session
from .state import OperationState, OperationStatus

# Validation
from .validation import is_valid_address, is_valid_type, is_valid_value, validate_value

__all__ = [
    # Version
    "__version__",
    # Session
    "ClientSession",
    "create_session",
    # Config
    "FhevmConfig",
    "get_config",
    # Services
    "EncryptionService",
    "DecryptionService",
    "EncryptedInputBuilder",
    "KeyCache",
    "GatewayKeySource",
    "RetryConfig",
    "RetryExecutor",
    # Collaborators
    "FheEngine",
    "EngineInput",
    "KeySource",
    "AuthorizationProvider",
    # Schemas
    "EncryptedType",
    "Network",
    "TypedValue",
    "EncryptedPayload",
    "PublicKeyRecord",
    "DecryptionRequest",
    "DecryptionItem",
    "OperationState",
    "OperationStatus",
    # Validation
    "validate_value",
    "is_valid_value",
    "is_valid_type",
    "is_valid_address",
    # Exceptions
    "FhevmError",
    "ValidationError",
    "UninitializedClientError",
    "KeyFetchError",
    "DecryptionAuthorizationError",
    "EngineError",
    "BuilderConsumedError",
    "ConfigurationError",
]
