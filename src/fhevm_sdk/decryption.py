"""
Decryption service.

User decryption needs the requester's authorization token (e.g. an EIP-712
signature) for the (user, contract) pair and refuses to reach the engine
without one. Public decryption needs no authorization.
"""

from typing import Any, Iterable, List, Mapping, Optional, Sequence, Union

from .engine import AuthorizationProvider, FheEngine
from .exceptions import DecryptionAuthorizationError, EngineError, FhevmError, ValidationError
from .logging import get_logger
from .retry import RetryExecutor
from .schemas import DecryptionItem, DecryptionRequest, EncryptedType
from .utils import bytes_to_hex, format_address
from .validation import coerce_type, max_value

logger = get_logger(__name__)

DecryptionItemLike = Union[DecryptionItem, Sequence[Any], Mapping[str, Any]]


class DecryptionService:
    """Decrypts handles, one per call or as an all-or-nothing batch."""

    def __init__(
        self,
        engine: FheEngine,
        retry: Optional[RetryExecutor] = None,
        authorization: Optional[AuthorizationProvider] = None,
        default_contract_address: Optional[str] = None,
    ):
        self._engine = engine
        self._retry = retry or RetryExecutor()
        self._authorization = authorization
        self._default_contract_address = default_contract_address

    # ==========================================================================
    # Public API Methods
    # ==========================================================================

    async def decrypt(
        self,
        encrypted_type: Any,
        handle: Union[str, bytes],
        contract_address: Optional[str],
        user_address: str,
        signature: Optional[str] = None,
    ) -> Any:
        """
        Decrypt a handle on behalf of `user_address`.

        Args:
            encrypted_type: Expected plaintext type
            handle: Ciphertext handle
            contract_address: Contract holding the ciphertext (None uses the session default)
            user_address: Requesting user
            signature: Authorization token; fetched from the authorization provider when omitted

        Raises:
            DecryptionAuthorizationError: If no authorization is available
            EngineError: If the engine failed on the final attempt
        """
        request = DecryptionRequest(
            handle=handle,
            type=coerce_type(encrypted_type),
            contract_address=self._resolve_contract(contract_address),
            user_address=user_address,
            signature=signature,
        )
        return await self.execute(request)

    async def public(
        self,
        handle: Union[str, bytes],
        encrypted_type: Optional[Any] = None,
        contract_address: Optional[str] = None,
    ) -> Any:
        """Decrypt a publicly decryptable handle. No authorization is checked."""
        request = DecryptionRequest(
            handle=handle,
            type=coerce_type(encrypted_type) if encrypted_type is not None else None,
            contract_address=self._resolve_contract(contract_address),
            public=True,
        )
        return await self.execute(request)

    async def execute(self, request: DecryptionRequest) -> Any:
        """Run a prepared request, moving `request.state` through its lifecycle."""
        return await request.state.track(self._run(request))

    async def batch(
        self,
        items: Iterable[DecryptionItemLike],
        user_address: str,
        contract_address: Optional[str] = None,
        signature: Optional[str] = None,
    ) -> List[Any]:
        """
        Decrypt several handles for one user.

        Results are positionally aligned with `items`. Any failure fails the
        whole batch; no partial results are returned.
        """
        contract = self._resolve_contract(contract_address)
        parsed = [_to_item(item) for item in items]
        for index, item in enumerate(parsed):
            if not item.handle:
                raise ValidationError(f"Item {index}: handle must not be empty", details={"index": index})
        signature = await self._authorize(contract, user_address, signature)

        results = []
        for item in parsed:
            request = DecryptionRequest(
                handle=item.handle,
                type=item.type,
                contract_address=contract,
                user_address=user_address,
                signature=signature,
            )
            results.append(await self.execute(request))
        return results

    async def decrypt_bool(self, handle, contract_address, user_address, signature=None) -> bool:
        return await self.decrypt(EncryptedType.BOOL, handle, contract_address, user_address, signature)

    async def decrypt_uint8(self, handle, contract_address, user_address, signature=None) -> int:
        return await self.decrypt(EncryptedType.UINT8, handle, contract_address, user_address, signature)

    async def decrypt_uint16(self, handle, contract_address, user_address, signature=None) -> int:
        return await self.decrypt(EncryptedType.UINT16, handle, contract_address, user_address, signature)

    async def decrypt_uint32(self, handle, contract_address, user_address, signature=None) -> int:
        return await self.decrypt(EncryptedType.UINT32, handle, contract_address, user_address, signature)

    async def decrypt_uint64(self, handle, contract_address, user_address, signature=None) -> int:
        return await self.decrypt(EncryptedType.UINT64, handle, contract_address, user_address, signature)

    async def decrypt_uint128(self, handle, contract_address, user_address, signature=None) -> int:
        return await self.decrypt(EncryptedType.UINT128, handle, contract_address, user_address, signature)

    async def decrypt_uint256(self, handle, contract_address, user_address, signature=None) -> int:
        return await self.decrypt(EncryptedType.UINT256, handle, contract_address, user_address, signature)

    async def decrypt_address(self, handle, contract_address, user_address, signature=None) -> str:
        return await self.decrypt(EncryptedType.ADDRESS, handle, contract_address, user_address, signature)

    async def decrypt_bytes(self, handle, contract_address, user_address, signature=None) -> str:
        return await self.decrypt(EncryptedType.BYTES, handle, contract_address, user_address, signature)

    # ==========================================================================
    # Internal Methods
    # ==========================================================================

    async def _run(self, request: DecryptionRequest) -> Any:
        if not request.handle:
            raise ValidationError("Handle must not be empty")

        if not request.public:
            signature = await self._authorize(
                request.contract_address, request.user_address, request.signature
            )
            request.signature = signature

        async def decrypt_handle():
            try:
                return await self._engine.decrypt(request.contract_address, request.handle)
            except FhevmError:
                raise
            except Exception as e:
                raise EngineError(
                    f"Decryption failed: {e}",
                    details={"contract_address": request.contract_address},
                ) from e

        raw = await self._retry.execute(
            decrypt_handle,
            description=f"decrypt({format_address(request.contract_address)})",
        )
        return _coerce_result(raw, request.type)

    async def _authorize(
        self,
        contract_address: str,
        user_address: Optional[str],
        signature: Optional[str],
    ) -> str:
        if not user_address:
            raise DecryptionAuthorizationError(contract_address, user_address)
        if not signature and self._authorization is not None:
            signature = await self._authorization.get_authorization(user_address, contract_address)
        if not signature:
            logger.debug(f"No authorization for {format_address(user_address)} on {format_address(contract_address)}")
            raise DecryptionAuthorizationError(contract_address, user_address)
        return signature

    def _resolve_contract(self, contract_address: Optional[str]) -> str:
        contract = contract_address or self._default_contract_address
        if not contract:
            raise ValidationError("No contract address given and none configured")
        return contract


def _to_item(item: DecryptionItemLike) -> DecryptionItem:
    if isinstance(item, DecryptionItem):
        return item
    if isinstance(item, Mapping):
        handle = item.get("handle", item.get("value"))
        if handle is None:
            raise ValidationError("Batch items need a 'handle' (or 'value') key")
        return DecryptionItem(handle=handle, type=coerce_type(item.get("type")))
    if isinstance(item, Sequence) and not isinstance(item, (str, bytes)) and len(item) == 2:
        return DecryptionItem(handle=item[0], type=coerce_type(item[1]))
    raise ValidationError(f"Cannot interpret {item!r} as a decryption item")


def _coerce_result(raw: Any, encrypted_type: Optional[EncryptedType]) -> Any:
    """Convert the engine's raw plaintext into the Python type for `encrypted_type`."""
    if encrypted_type is None:
        return raw

    if encrypted_type == EncryptedType.BOOL:
        if isinstance(raw, bool):
            return raw
        value = _to_int(raw, encrypted_type)
        if value not in (0, 1):
            raise EngineError(f"Engine returned {raw!r} for a bool")
        return value == 1

    if encrypted_type.is_integer:
        value = _to_int(raw, encrypted_type)
        if value < 0 or value > max_value(encrypted_type):
            raise EngineError(f"Engine returned {value} for a {encrypted_type.value}")
        return value

    if isinstance(raw, (bytes, bytearray)):
        return bytes_to_hex(raw)
    return str(raw)


def _to_int(raw: Any, encrypted_type: EncryptedType) -> int:
    try:
        return int(raw, 0) if isinstance(raw, str) else int(raw)
    except (TypeError, ValueError) as e:
        raise EngineError(f"Engine returned {raw!r} for a {encrypted_type.value}") from e
