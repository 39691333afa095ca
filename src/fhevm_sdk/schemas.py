"""
FHEVM SDK Pydantic schemas.

This module defines the data passed between the caller, the orchestration
layer and the FHE engine.
"""

from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from .state import OperationState

# ==============================================================================
# Enums
# ==============================================================================


class EncryptedType(str, Enum):
    """Domains the FHE engine can encrypt."""

    BOOL = "bool"
    UINT8 = "uint8"
    UINT16 = "uint16"
    UINT32 = "uint32"
    UINT64 = "uint64"
    UINT128 = "uint128"
    UINT256 = "uint256"
    ADDRESS = "address"
    BYTES = "bytes"

    @property
    def bits(self) -> Optional[int]:
        """Bit width for unsigned integer types, None otherwise."""
        if self.value.startswith("uint"):
            return int(self.value[4:])
        return None

    @property
    def is_integer(self) -> bool:
        return self.bits is not None


class Network(str, Enum):
    """Deployments the SDK knows default endpoints for."""

    SEPOLIA = "sepolia"
    LOCALHOST = "localhost"
    MAINNET = "mainnet"


# ==============================================================================
# Encryption
# ==============================================================================


class TypedValue(BaseModel):
    """A raw value paired with the encrypted type it is destined for."""

    model_config = ConfigDict(frozen=True)

    type: EncryptedType = Field(..., description="Target encrypted type")
    value: Any = Field(..., description="Plaintext value")


class EncryptedPayload(BaseModel):
    """Ciphertext, proof and handles produced by the FHE engine."""

    model_config = ConfigDict(frozen=True)

    data: bytes = Field(default=b"", description="Opaque ciphertext bytes")
    handles: List[Union[bytes, str]] = Field(
        default_factory=list,
        description="References to each encrypted value, aligned with append order",
    )
    input_proof: Union[bytes, str] = Field(..., description="Proof of ciphertext well-formedness")
    metadata: Dict[str, Any] = Field(default_factory=dict, description="Encryption metadata")


# ==============================================================================
# Keys
# ==============================================================================


class PublicKeyRecord(BaseModel):
    """Cached public key material for one contract."""

    model_config = ConfigDict(frozen=True)

    contract_address: str
    key_material: Union[str, bytes]
    fetched_at: float = Field(..., description="Unix time the key was fetched")
    expires_at: float = Field(..., description="Unix time the key stops being served")

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at


# ==============================================================================
# Decryption
# ==============================================================================


class DecryptionRequest(BaseModel):
    """
    A single decryption call.

    Public requests carry no requester or signature. User requests need both.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    handle: Union[str, bytes] = Field(..., description="Ciphertext handle to decrypt")
    type: Optional[EncryptedType] = Field(
        default=None,
        description="Expected plaintext type (None returns the raw engine value)",
    )
    contract_address: str
    user_address: Optional[str] = None
    signature: Optional[str] = Field(default=None, repr=False)
    public: bool = False
    state: OperationState = Field(default_factory=OperationState, exclude=True)


class DecryptionItem(BaseModel):
    """One entry of a batch decryption."""

    handle: Union[str, bytes]
    type: EncryptedType
