"""
Encrypted input builder.

Collects typed values for one contract call and turns them into a single
EncryptedPayload with one engine round-trip. Values are validated when they
are appended, so nothing invalid ever reaches the engine.
"""

from typing import Any, Iterable, List, Mapping, Optional

from .engine import APPEND_METHODS, FheEngine
from .exceptions import BuilderConsumedError, EngineError, FhevmError, ValidationError
from .keys import KeyCache
from .logging import get_logger
from .retry import RetryExecutor
from .schemas import EncryptedPayload, EncryptedType, TypedValue
from .utils import format_address, generate_encryption_metadata
from .validation import TypedValueLike, coerce_type, is_valid_address, validate_all, validate_value

logger = get_logger(__name__)


class EncryptedInputBuilder:
    """
    Single-use accumulator of typed values scoped to (contract, user).

    Handles in the built payload are positionally aligned with append order.

    Example:
        >>> builder = session.encryption.create_encrypted_input(contract, user)
        >>> builder.add_uint32(1000).add_bool(True)
        >>> payload = await builder.build()
        >>> amount_handle, flag_handle = payload.handles
    """

    def __init__(
        self,
        engine: FheEngine,
        contract_address: str,
        user_address: str,
        key_cache: KeyCache,
        retry: Optional[RetryExecutor] = None,
    ):
        for label, address in (("contract", contract_address), ("user", user_address)):
            if not is_valid_address(address):
                raise ValidationError(
                    f"Invalid {label} address: {address!r}",
                    details={f"{label}_address": address},
                )
        self._engine = engine
        self._contract_address = contract_address
        self._user_address = user_address
        self._key_cache = key_cache
        self._retry = retry or RetryExecutor()
        self._entries: List[TypedValue] = []
        self._built = False

    @property
    def contract_address(self) -> str:
        return self._contract_address

    @property
    def user_address(self) -> str:
        return self._user_address

    @property
    def entries(self) -> List[TypedValue]:
        return list(self._entries)

    @property
    def built(self) -> bool:
        return self._built

    def __len__(self) -> int:
        return len(self._entries)

    # ==========================================================================
    # Appending
    # ==========================================================================

    def append(self, encrypted_type: Any, value: Any) -> "EncryptedInputBuilder":
        """
        Validate and append one value.

        Raises:
            ValidationError: If the value is invalid; the builder is unchanged
            BuilderConsumedError: If build() was already called
        """
        self._ensure_open()
        encrypted_type = coerce_type(encrypted_type)
        validate_value(value, encrypted_type)
        self._entries.append(TypedValue(type=encrypted_type, value=value))
        return self

    def append_many(self, items: Iterable[TypedValueLike]) -> "EncryptedInputBuilder":
        """Validate every item, then append all of them, or none."""
        self._ensure_open()
        self._entries.extend(validate_all(items))
        return self

    def add_bool(self, value: bool) -> "EncryptedInputBuilder":
        return self.append(EncryptedType.BOOL, value)

    def add_uint8(self, value: int) -> "EncryptedInputBuilder":
        return self.append(EncryptedType.UINT8, value)

    def add_uint16(self, value: int) -> "EncryptedInputBuilder":
        return self.append(EncryptedType.UINT16, value)

    def add_uint32(self, value: int) -> "EncryptedInputBuilder":
        return self.append(EncryptedType.UINT32, value)

    def add_uint64(self, value: int) -> "EncryptedInputBuilder":
        return self.append(EncryptedType.UINT64, value)

    def add_uint128(self, value: int) -> "EncryptedInputBuilder":
        return self.append(EncryptedType.UINT128, value)

    def add_uint256(self, value: int) -> "EncryptedInputBuilder":
        return self.append(EncryptedType.UINT256, value)

    def add_address(self, value: str) -> "EncryptedInputBuilder":
        return self.append(EncryptedType.ADDRESS, value)

    def add_bytes(self, value: str) -> "EncryptedInputBuilder":
        return self.append(EncryptedType.BYTES, value)

    # ==========================================================================
    # Building
    # ==========================================================================

    async def build(self) -> EncryptedPayload:
        """
        Encrypt every appended value in one engine call.

        Raises:
            BuilderConsumedError: On a second call
            ValidationError: If nothing was appended
            KeyFetchError: If the contract's public key is unavailable
            EngineError: If the engine failed on the final attempt
        """
        self._ensure_open()
        if not self._entries:
            raise ValidationError("Encrypted input has no values to encrypt")
        self._built = True

        key = await self._key_cache.get_key(self._contract_address)
        entries = list(self._entries)

        async def encrypt_input():
            try:
                engine_input = self._engine.encrypt_input(
                    self._contract_address,
                    self._user_address,
                    public_key=key.key_material,
                )
                for entry in entries:
                    getattr(engine_input, APPEND_METHODS[entry.type])(entry.value)
                return await engine_input.encrypt()
            except FhevmError:
                raise
            except Exception as e:
                raise EngineError(
                    f"Encryption failed: {e}",
                    details={"contract_address": self._contract_address},
                ) from e

        result = await self._retry.execute(
            encrypt_input,
            description=f"encrypt({len(entries)} values for {format_address(self._contract_address)})",
        )
        payload = self._to_payload(result, entries)
        logger.debug(f"Built encrypted input with {len(entries)} values for {format_address(self._contract_address)}")
        return payload

    def _to_payload(self, result: Any, entries: List[TypedValue]) -> EncryptedPayload:
        if isinstance(result, EncryptedPayload):
            payload = result
        elif isinstance(result, Mapping):
            proof = result.get("input_proof", result.get("inputProof"))
            if proof is None:
                raise EngineError("Engine returned a payload without an input proof")
            payload = EncryptedPayload(
                data=result.get("data") or b"",
                handles=list(result.get("handles") or []),
                input_proof=proof,
            )
        else:
            raise EngineError(f"Engine returned an unrecognized payload: {type(result).__name__}")

        if payload.handles and len(payload.handles) != len(entries):
            raise EngineError(
                f"Engine returned {len(payload.handles)} handles for {len(entries)} values",
                details={"contract_address": self._contract_address},
            )

        type_tag = entries[0].type.value if len(entries) == 1 else "batch"
        metadata = {**generate_encryption_metadata(type_tag, self._contract_address), **payload.metadata}
        return payload.model_copy(update={"metadata": metadata})

    def _ensure_open(self) -> None:
        if self._built:
            raise BuilderConsumedError(self._contract_address)

    def __repr__(self) -> str:
        return (
            f"EncryptedInputBuilder(contract_address={self._contract_address!r}, "
            f"values={len(self._entries)}, built={self._built})"
        )
