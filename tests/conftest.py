"""
Pytest configuration and fixtures.

This file ensures proper path setup for imports and provides test doubles
for the FHE engine, the key source and the authorization provider.
"""

import asyncio
import sys
from pathlib import Path

import pytest

# Add src directory to Python path
src_path = Path(__file__).parent.parent / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

from fhevm_sdk import ClientSession, FhevmConfig, KeyCache, RetryConfig, RetryExecutor  # noqa: E402

CONTRACT = "0x" + "a" * 40


class FakeEngineInput:
    """Encrypted input that records appended values and encodes them as identity handles."""

    def __init__(self, engine, contract_address, user_address, public_key):
        self.engine = engine
        self.contract_address = contract_address
        self.user_address = user_address
        self.public_key = public_key
        self.values = []

    def _add(self, tag, value):
        self.values.append((tag, value))
        return self

    def add_bool(self, value):
        return self._add("bool", value)

    def add8(self, value):
        return self._add("uint8", value)

    def add16(self, value):
        return self._add("uint16", value)

    def add32(self, value):
        return self._add("uint32", value)

    def add64(self, value):
        return self._add("uint64", value)

    def add128(self, value):
        return self._add("uint128", value)

    def add256(self, value):
        return self._add("uint256", value)

    def add_address(self, value):
        return self._add("address", value)

    def add_bytes(self, value):
        return self._add("bytes", value)

    async def encrypt(self):
        self.engine.encrypt_calls += 1
        if self.engine.encrypt_failures:
            raise self.engine.encrypt_failures.pop(0)
        handles = [self.engine.store_value(value) for _, value in self.values]
        return {
            "data": b"ciphertext",
            "handles": handles,
            "inputProof": "0x" + "ab" * 32,
        }


class FakeEngine:
    """In-memory FHE engine whose 'ciphertexts' are handles into a plaintext store."""

    def __init__(self):
        self.inputs = []
        self.encrypt_calls = 0
        self.encrypt_failures = []
        self.decrypt_calls = []
        self.decrypt_failures = []
        self._store = {}

    def store_value(self, value):
        handle = f"0x{len(self._store) + 1:064x}"
        self._store[handle] = value
        return handle

    @property
    def engine_calls(self):
        return len(self.inputs) + self.encrypt_calls + len(self.decrypt_calls)

    def encrypt_input(self, contract_address, user_address, public_key=None):
        engine_input = FakeEngineInput(self, contract_address, user_address, public_key)
        self.inputs.append(engine_input)
        return engine_input

    async def decrypt(self, contract_address, handle):
        self.decrypt_calls.append((contract_address, handle))
        if self.decrypt_failures:
            failure = self.decrypt_failures.pop(0)
            if failure is not None:
                raise failure
        return self._store[handle]


class CountingKeySource:
    """Key source counting fetches; `gate` holds fetches open until set."""

    def __init__(self):
        self.calls = 0
        self.failures = []
        self.gate = None

    async def fetch_public_key(self, contract_address):
        self.calls += 1
        call = self.calls
        if self.gate is not None:
            await self.gate.wait()
        if self.failures:
            raise self.failures.pop(0)
        return f"pk-{contract_address.lower()}-{call}"


class StaticAuthorization:
    def __init__(self, signature=None):
        self.signature = signature
        self.requests = []

    async def get_authorization(self, user_address, contract_address):
        self.requests.append((user_address, contract_address))
        return self.signature


class RecordedSleep:
    """Replacement for asyncio.sleep that records delays without waiting."""

    def __init__(self):
        self.delays = []

    async def __call__(self, delay):
        self.delays.append(delay)
        await asyncio.sleep(0)


class ManualClock:
    def __init__(self, now=1_700_000_000.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture
def engine():
    return FakeEngine()


@pytest.fixture
def key_source():
    return CountingKeySource()


@pytest.fixture
def sleep():
    return RecordedSleep()


@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture
def retry(sleep):
    return RetryExecutor(RetryConfig(max_attempts=3, base_delay_seconds=1.0), sleep=sleep)


@pytest.fixture
def key_cache(key_source, retry, clock):
    return KeyCache(key_source, ttl=3600, retry=retry, clock=clock)


@pytest.fixture
def config():
    return FhevmConfig(network="localhost", contract_address=CONTRACT, retry_count=3, retry_backoff=1.0)


@pytest.fixture
def authorization():
    return StaticAuthorization()


@pytest.fixture
def engine_factory(engine):
    calls = []

    async def factory(config):
        calls.append(config)
        await asyncio.sleep(0)
        return engine

    factory.calls = calls
    return factory


@pytest.fixture
def session(config, engine_factory, key_source, authorization, sleep, clock):
    return ClientSession(
        config,
        engine_factory,
        key_source=key_source,
        authorization=authorization,
        sleep=sleep,
        clock=clock,
    )
