"""
Encryption service.

Validates plaintext values and turns them into EncryptedPayloads through a
single-use EncryptedInputBuilder. Each call makes exactly one engine
encryption round-trip, however many values it carries.
"""

from typing import Any, Iterable, Optional

from .builder import EncryptedInputBuilder
from .engine import FheEngine
from .exceptions import ValidationError
from .keys import KeyCache
from .retry import RetryExecutor
from .schemas import EncryptedPayload, EncryptedType
from .validation import TypedValueLike, coerce_type, validate_all, validate_value


class EncryptionService:
    """Encrypts single values or batches for one (contract, user) pair per call."""

    def __init__(
        self,
        engine: FheEngine,
        key_cache: KeyCache,
        retry: Optional[RetryExecutor] = None,
        default_contract_address: Optional[str] = None,
    ):
        self._engine = engine
        self._key_cache = key_cache
        self._retry = retry or RetryExecutor()
        self._default_contract_address = default_contract_address

    def create_encrypted_input(
        self,
        contract_address: Optional[str],
        user_address: str,
    ) -> EncryptedInputBuilder:
        """Start a new single-use builder scoped to the contract and user."""
        return EncryptedInputBuilder(
            engine=self._engine,
            contract_address=self._resolve_contract(contract_address),
            user_address=user_address,
            key_cache=self._key_cache,
            retry=self._retry,
        )

    async def encrypt(
        self,
        encrypted_type: Any,
        value: Any,
        contract_address: Optional[str],
        user_address: str,
    ) -> EncryptedPayload:
        """
        Encrypt one value.

        Args:
            encrypted_type: Target type (EncryptedType or its string tag)
            value: Plaintext value
            contract_address: Contract the ciphertext is bound to (None uses the session default)
            user_address: Address allowed to submit the ciphertext

        Raises:
            ValidationError: Before any I/O, if the value or addresses are invalid
        """
        encrypted_type = coerce_type(encrypted_type)
        validate_value(value, encrypted_type)
        builder = self.create_encrypted_input(contract_address, user_address)
        builder.append(encrypted_type, value)
        return await builder.build()

    async def batch(
        self,
        items: Iterable[TypedValueLike],
        contract_address: Optional[str],
        user_address: str,
    ) -> EncryptedPayload:
        """
        Encrypt several values into one payload.

        Every item is validated before any is appended; one invalid item
        rejects the whole batch and nothing is sent.
        """
        validated = validate_all(items)
        if not validated:
            raise ValidationError("Batch is empty")
        builder = self.create_encrypted_input(contract_address, user_address)
        builder.append_many(validated)
        return await builder.build()

    async def encrypt_bool(self, value: bool, contract_address: Optional[str], user_address: str) -> EncryptedPayload:
        return await self.encrypt(EncryptedType.BOOL, value, contract_address, user_address)

    async def encrypt_uint8(self, value: int, contract_address: Optional[str], user_address: str) -> EncryptedPayload:
        return await self.encrypt(EncryptedType.UINT8, value, contract_address, user_address)

    async def encrypt_uint16(self, value: int, contract_address: Optional[str], user_address: str) -> EncryptedPayload:
        return await self.encrypt(EncryptedType.UINT16, value, contract_address, user_address)

    async def encrypt_uint32(self, value: int, contract_address: Optional[str], user_address: str) -> EncryptedPayload:
        return await self.encrypt(EncryptedType.UINT32, value, contract_address, user_address)

    async def encrypt_uint64(self, value: int, contract_address: Optional[str], user_address: str) -> EncryptedPayload:
        return await self.encrypt(EncryptedType.UINT64, value, contract_address, user_address)

    async def encrypt_uint128(self, value: int, contract_address: Optional[str], user_address: str) -> EncryptedPayload:
        return await self.encrypt(EncryptedType.UINT128, value, contract_address, user_address)

    async def encrypt_uint256(self, value: int, contract_address: Optional[str], user_address: str) -> EncryptedPayload:
        return await self.encrypt(EncryptedType.UINT256, value, contract_address, user_address)

    async def encrypt_address(self, value: str, contract_address: Optional[str], user_address: str) -> EncryptedPayload:
        return await self.encrypt(EncryptedType.ADDRESS, value, contract_address, user_address)

    async def encrypt_bytes(self, value: str, contract_address: Optional[str], user_address: str) -> EncryptedPayload:
        return await self.encrypt(EncryptedType.BYTES, value, contract_address, user_address)

    def _resolve_contract(self, contract_address: Optional[str]) -> str:
        contract = contract_address or self._default_contract_address
        if not contract:
            raise ValidationError("No contract address given and none configured")
        return contract
