"""
Interfaces of the external collaborators.

The orchestration layer never performs ciphertext math. It drives an FHE
engine, a key source and an authorization provider through the protocols
below and treats everything they return as opaque.
"""

from typing import Any, Awaitable, Callable, Optional, Protocol, Union, runtime_checkable

from .schemas import EncryptedType


@runtime_checkable
class EngineInput(Protocol):
    """Single-use encrypted input returned by FheEngine.encrypt_input."""

    def add_bool(self, value: bool) -> Any: ...
    def add8(self, value: int) -> Any: ...
    def add16(self, value: int) -> Any: ...
    def add32(self, value: int) -> Any: ...
    def add64(self, value: int) -> Any: ...
    def add128(self, value: int) -> Any: ...
    def add256(self, value: int) -> Any: ...
    def add_address(self, value: str) -> Any: ...
    def add_bytes(self, value: str) -> Any: ...

    async def encrypt(self) -> Any:
        """Return ciphertext, handles and proof (an EncryptedPayload or a mapping)."""
        ...


@runtime_checkable
class FheEngine(Protocol):
    """Homomorphic crypto instance, e.g. a wrapped fhevmjs/relayer instance."""

    def encrypt_input(
        self,
        contract_address: str,
        user_address: str,
        public_key: Optional[Union[str, bytes]] = None,
    ) -> EngineInput: ...

    async def decrypt(self, contract_address: str, handle: Union[str, bytes]) -> Any: ...


@runtime_checkable
class KeySource(Protocol):
    """Source of public key material, usually the network gateway."""

    async def fetch_public_key(self, contract_address: str) -> Union[str, bytes]: ...


@runtime_checkable
class AuthorizationProvider(Protocol):
    """
    Supplies an opaque authorization token (e.g. an EIP-712 signature)
    for a (user, contract) pair, or None when the user has not signed.
    """

    async def get_authorization(self, user_address: str, contract_address: str) -> Optional[str]: ...


EngineFactory = Callable[[Any], Awaitable[FheEngine]]


# Engine input method for each encrypted type
APPEND_METHODS = {
    EncryptedType.BOOL: "add_bool",
    EncryptedType.UINT8: "add8",
    EncryptedType.UINT16: "add16",
    EncryptedType.UINT32: "add32",
    EncryptedType.UINT64: "add64",
    EncryptedType.UINT128: "add128",
    EncryptedType.UINT256: "add256",
    EncryptedType.ADDRESS: "add_address",
    EncryptedType.BYTES: "add_bytes",
}
