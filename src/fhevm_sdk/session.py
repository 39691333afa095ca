"""
FHEVM SDK ClientSession module.

ClientSession is the composition root: it owns the FHE engine handle, the
key cache and the configuration, and hands out encryption and decryption
services wired against them. Each session is independent; nothing is
shared between sessions in one process.
"""

import asyncio
import time
from typing import Any, Awaitable, Callable, Optional

from .config import FhevmConfig, get_config
from .decryption import DecryptionService
from .encryption import EncryptionService
from .engine import AuthorizationProvider, EngineFactory, FheEngine, KeySource
from .exceptions import EngineError, FhevmError, UninitializedClientError
from .gateway import GatewayKeySource
from .keys import KeyCache
from .logging import get_logger
from .retry import RetryConfig, RetryExecutor

logger = get_logger(__name__)


class ClientSession:
    """
    Primary entry point for the FHEVM SDK.

    Example:
        >>> session = ClientSession(get_config(contract_address=CONTRACT), engine_factory)
        >>> await session.init()
        >>> payload = await session.encryption.encrypt_uint32(42, CONTRACT, USER)
    """

    def __init__(
        self,
        config: Optional[FhevmConfig] = None,
        engine_factory: Optional[EngineFactory] = None,
        key_source: Optional[KeySource] = None,
        authorization: Optional[AuthorizationProvider] = None,
        retry_config: Optional[RetryConfig] = None,
        clock: Optional[Callable[[], float]] = None,
        sleep: Optional[Callable[[float], Awaitable[Any]]] = None,
    ):
        """
        Initialize the session. No I/O happens until init().

        Args:
            config: Frozen client configuration (default: loaded from FHEVM_* env vars)
            engine_factory: Coroutine function creating the FHE engine from the config
            key_source: Public key source (default: GatewayKeySource for the configured gateway)
            authorization: Provider of user decryption authorization tokens
            retry_config: Retry policy (default: from config retry_count / retry_backoff)
            clock: Time source for key expiry
            sleep: Coroutine used to wait between retries
        """
        if engine_factory is None:
            raise ValueError("engine_factory is required to create the FHE engine")

        self._config = config or get_config()
        self._engine_factory = engine_factory
        self._authorization = authorization

        self._owns_key_source = key_source is None
        self._key_source = key_source or GatewayKeySource.from_config(self._config)

        retry_config = retry_config or RetryConfig(
            max_attempts=self._config.retry_count,
            base_delay_seconds=self._config.retry_backoff,
        )
        self._retry = RetryExecutor(retry_config, sleep=sleep or asyncio.sleep)
        self._key_cache = KeyCache(
            self._key_source,
            ttl=self._config.key_ttl,
            retry=self._retry,
            clock=clock or time.time,
        )

        self._engine: Optional[FheEngine] = None
        self._encryption: Optional[EncryptionService] = None
        self._decryption: Optional[DecryptionService] = None
        self._init_task: Optional[asyncio.Future] = None

    async def __aenter__(self) -> "ClientSession":
        await self.init()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    # ==========================================================================
    # Lifecycle
    # ==========================================================================

    async def init(self) -> "ClientSession":
        """
        Create the engine handle and wire the services.

        Idempotent: once ready, further calls return immediately; concurrent
        calls share one engine creation. A failed init may be retried.
        """
        if self._engine is not None:
            return self

        if self._init_task is None:
            self._init_task = asyncio.ensure_future(self._create_engine())
            self._init_task.add_done_callback(self._release_init)

        # A cancelled caller leaves engine creation running for the others
        await asyncio.shield(self._init_task)
        return self

    def _release_init(self, task: asyncio.Future) -> None:
        # A failed init is dropped even when no caller awaited it
        if self._init_task is task and (task.cancelled() or task.exception() is not None):
            self._init_task = None

    def is_ready(self) -> bool:
        return self._engine is not None

    async def aclose(self) -> None:
        """Release the key source if this session created it."""
        self._key_cache.clear()
        if self._owns_key_source:
            await self._key_source.aclose()

    async def _create_engine(self) -> None:
        logger.info(
            f"Initializing FHE engine for {self._config.network.value} "
            f"(chain {self._config.resolved_chain_id()})"
        )
        try:
            engine = await self._engine_factory(self._config)
        except FhevmError:
            raise
        except Exception as e:
            raise EngineError(f"FHE engine initialization failed: {e}") from e

        contract = self._config.contract_address
        self._encryption = EncryptionService(
            engine,
            self._key_cache,
            retry=self._retry,
            default_contract_address=contract,
        )
        self._decryption = DecryptionService(
            engine,
            retry=self._retry,
            authorization=self._authorization,
            default_contract_address=contract,
        )
        self._engine = engine
        logger.info("FHE engine ready")

    # ==========================================================================
    # Accessors
    # ==========================================================================

    @property
    def config(self) -> FhevmConfig:
        return self._config

    @property
    def contract_address(self) -> str:
        return self._config.require_contract_address()

    @property
    def engine(self) -> FheEngine:
        self._ensure_ready()
        return self._engine

    @property
    def key_cache(self) -> KeyCache:
        return self._key_cache

    @property
    def encryption(self) -> EncryptionService:
        self._ensure_ready()
        return self._encryption

    @property
    def decryption(self) -> DecryptionService:
        self._ensure_ready()
        return self._decryption

    def _ensure_ready(self) -> None:
        if self._engine is None:
            raise UninitializedClientError()

    def __repr__(self) -> str:
        return (
            f"ClientSession(network={self._config.network.value!r}, "
            f"contract_address={self._config.contract_address!r}, ready={self.is_ready()})"
        )


async def create_session(
    config: Optional[FhevmConfig] = None,
    engine_factory: Optional[EngineFactory] = None,
    **kwargs,
) -> ClientSession:
    """Construct a ClientSession and wait until it is ready."""
    session = ClientSession(config, engine_factory, **kwargs)
    return await session.init()
