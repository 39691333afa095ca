"""
Public key cache.

Maps a contract address to its public key material for a bounded time.
Expiry is checked lazily on access. Concurrent lookups for a key that is
missing or expired share a single in-flight fetch.
"""

import asyncio
import time
from typing import Callable, Dict, Optional

from .engine import KeySource
from .exceptions import NON_RETRYABLE_ERRORS, KeyFetchError, ValidationError
from .logging import get_logger
from .retry import RetryExecutor
from .schemas import PublicKeyRecord
from .utils import format_address
from .validation import is_valid_address

logger = get_logger(__name__)

DEFAULT_KEY_TTL = 60 * 60


class KeyCache:
    """
    Time-bounded cache of contract public keys.

    Records are owned by the cache; callers receive immutable
    PublicKeyRecord instances.
    """

    def __init__(
        self,
        key_source: KeySource,
        ttl: float = DEFAULT_KEY_TTL,
        retry: Optional[RetryExecutor] = None,
        clock: Callable[[], float] = time.time,
    ):
        if ttl <= 0:
            raise ValueError("ttl must be positive")
        self._key_source = key_source
        self._ttl = ttl
        self._retry = retry or RetryExecutor()
        self._clock = clock
        self._records: Dict[str, PublicKeyRecord] = {}
        self._in_flight: Dict[str, asyncio.Future] = {}

    @property
    def ttl(self) -> float:
        return self._ttl

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, contract_address: str) -> bool:
        record = self._records.get(_cache_key(contract_address))
        return record is not None and not record.is_expired(self._clock())

    async def get_key(self, contract_address: str) -> PublicKeyRecord:
        """
        Return the public key record for `contract_address`.

        Serves a cached record while it is fresh; otherwise fetches, joining
        any fetch for the same contract that is already running.

        Raises:
            ValidationError: If the contract address is malformed
            KeyFetchError: If every fetch attempt failed
        """
        if not is_valid_address(contract_address):
            raise ValidationError(
                f"Invalid contract address: {contract_address!r}",
                details={"contract_address": contract_address},
            )
        key = _cache_key(contract_address)

        record = self._records.get(key)
        if record is not None:
            if not record.is_expired(self._clock()):
                logger.debug(f"Key cache hit for {format_address(contract_address)}")
                return record
            del self._records[key]
            logger.debug(f"Key for {format_address(contract_address)} expired")

        fetch = self._in_flight.get(key)
        if fetch is None:
            logger.debug(f"Key cache miss for {format_address(contract_address)}, fetching")
            fetch = asyncio.ensure_future(self._fetch(key, contract_address))
            self._in_flight[key] = fetch
            fetch.add_done_callback(lambda done, key=key: self._release(key, done))
        else:
            logger.debug(f"Joining in-flight key fetch for {format_address(contract_address)}")

        # One caller giving up must not cancel the fetch for the others
        return await asyncio.shield(fetch)

    def invalidate(self, contract_address: str) -> None:
        """Drop the record for one contract. A fetch already running is not stored."""
        key = _cache_key(contract_address)
        self._records.pop(key, None)
        self._in_flight.pop(key, None)

    def clear(self) -> None:
        """Drop every record."""
        self._records.clear()
        self._in_flight.clear()

    async def _fetch(self, key: str, contract_address: str) -> PublicKeyRecord:
        async def fetch_public_key():
            return await self._key_source.fetch_public_key(contract_address)

        try:
            key_material = await self._retry.execute(
                fetch_public_key,
                description=f"fetch_public_key({format_address(contract_address)})",
            )
        except NON_RETRYABLE_ERRORS:
            raise
        except Exception as e:
            raise KeyFetchError(contract_address, e, self._retry.config.max_attempts) from e

        now = self._clock()
        record = PublicKeyRecord(
            contract_address=contract_address,
            key_material=key_material,
            fetched_at=now,
            expires_at=now + self._ttl,
        )

        if self._in_flight.get(key) is asyncio.current_task():
            self._records[key] = record
        return record

    def _release(self, key: str, fetch: asyncio.Future) -> None:
        if self._in_flight.get(key) is fetch:
            del self._in_flight[key]


def _cache_key(contract_address: str) -> str:
    # Checksummed and lowercase spellings name the same contract
    return contract_address.lower()
