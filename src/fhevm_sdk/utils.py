"""Address, hex and metadata helpers."""

import time
from typing import Any, Dict, Union


def format_address(address: str, chars: int = 6) -> str:
    """Shorten an address for display, e.g. 0x1234...abcdef."""
    if not address or len(address) < chars * 2:
        return address
    return f"{address[:chars]}...{address[-chars:]}"


def bytes_to_hex(value: Union[bytes, bytearray]) -> str:
    return "0x" + bytes(value).hex()


def generate_encryption_metadata(encrypted_type: str, contract_address: str) -> Dict[str, Any]:
    from . import __version__

    return {
        "type": encrypted_type,
        "contract_address": contract_address,
        "timestamp": int(time.time() * 1000),
        "version": __version__,
    }
