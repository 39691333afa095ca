"""
Type validation for plaintext values.

Pure, deterministic checks of a value against an encrypted type's domain.
Nothing here performs I/O; every failure raises ValidationError before the
FHE engine or the key gateway is contacted.
"""

import re
from typing import Any, Iterable, List, Mapping, Sequence, Tuple, Union

from .exceptions import ValidationError
from .schemas import EncryptedType, TypedValue

ADDRESS_PATTERN = re.compile(r"0x[0-9a-fA-F]{40}")
BYTES_PATTERN = re.compile(r"0x(?:[0-9a-fA-F]{2})*")

TypedValueLike = Union[TypedValue, Tuple[Any, Any], Mapping[str, Any]]


def is_valid_address(address: Any) -> bool:
    """Check for a 0x-prefixed 20-byte hex address."""
    return isinstance(address, str) and ADDRESS_PATTERN.fullmatch(address) is not None


def is_valid_type(encrypted_type: Any) -> bool:
    try:
        EncryptedType(encrypted_type)
    except ValueError:
        return False
    return True


def coerce_type(encrypted_type: Union[EncryptedType, str]) -> EncryptedType:
    """Resolve a type tag, raising ValidationError for unknown tags."""
    try:
        return EncryptedType(encrypted_type)
    except ValueError:
        raise ValidationError(
            f"Unsupported encrypted type: {encrypted_type!r}",
            details={"type": str(encrypted_type)},
        ) from None


def max_value(encrypted_type: EncryptedType) -> int:
    """Largest value an unsigned integer type can hold."""
    if not encrypted_type.is_integer:
        raise ValueError(f"{encrypted_type.value} is not an integer type")
    return (1 << encrypted_type.bits) - 1


def validate_value(value: Any, encrypted_type: Union[EncryptedType, str]) -> None:
    """
    Validate `value` against the domain of `encrypted_type`.

    Args:
        value: Plaintext value
        encrypted_type: Target encrypted type

    Raises:
        ValidationError: If the value is outside the type's domain
    """
    encrypted_type = coerce_type(encrypted_type)

    if encrypted_type == EncryptedType.BOOL:
        if not isinstance(value, bool):
            _reject(value, encrypted_type, "value must be a boolean")

    elif encrypted_type.is_integer:
        # bool is an int subclass; refuse it so True never encrypts as 1
        if not isinstance(value, int) or isinstance(value, bool):
            _reject(value, encrypted_type, "value must be an integer")
        upper = max_value(encrypted_type)
        if value < 0 or value > upper:
            _reject(value, encrypted_type, f"value must be between 0 and {upper}")

    elif encrypted_type == EncryptedType.ADDRESS:
        if not is_valid_address(value):
            _reject(value, encrypted_type, "value must be a 0x-prefixed 40 hex digit address")

    elif encrypted_type == EncryptedType.BYTES:
        if not isinstance(value, str) or BYTES_PATTERN.fullmatch(value) is None:
            _reject(value, encrypted_type, "value must be a 0x-prefixed hex string of even length")


def is_valid_value(value: Any, encrypted_type: Union[EncryptedType, str]) -> bool:
    try:
        validate_value(value, encrypted_type)
    except ValidationError:
        return False
    return True


def to_typed_value(item: TypedValueLike) -> TypedValue:
    """Normalize a TypedValue, an (type, value) pair or a {"type", "value"} mapping."""
    if isinstance(item, TypedValue):
        return item
    if isinstance(item, Mapping):
        if "type" not in item or "value" not in item:
            raise ValidationError("Batch items need 'type' and 'value' keys")
        return TypedValue(type=coerce_type(item["type"]), value=item["value"])
    if isinstance(item, Sequence) and not isinstance(item, str) and len(item) == 2:
        return TypedValue(type=coerce_type(item[0]), value=item[1])
    raise ValidationError(f"Cannot interpret {item!r} as a typed value")


def validate_all(items: Iterable[TypedValueLike]) -> List[TypedValue]:
    """
    Validate every item before any of them is used.

    Raises:
        ValidationError: On the first invalid item, with its index in `details`
    """
    validated = []
    for index, item in enumerate(items):
        try:
            typed = to_typed_value(item)
            validate_value(typed.value, typed.type)
        except ValidationError as e:
            raise ValidationError(
                f"Item {index}: {e.message}",
                details={**e.details, "index": index},
            ) from e
        validated.append(typed)
    return validated


def _reject(value: Any, encrypted_type: EncryptedType, reason: str) -> None:
    raise ValidationError(
        f"Invalid {encrypted_type.value} value {value!r}: {reason}",
        details={"type": encrypted_type.value},
    )
