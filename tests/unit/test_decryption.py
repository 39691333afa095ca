"""Unit tests for the decryption service and request state tracking."""

import pytest

from fhevm_sdk import (
    DecryptionAuthorizationError,
    DecryptionRequest,
    DecryptionService,
    EncryptedType,
    EngineError,
    OperationStatus,
    ValidationError,
)

CONTRACT = "0x" + "a" * 40
USER = "0x" + "b" * 40
SIGNATURE = "0x" + "1f" * 65


@pytest.fixture
def service(engine, retry, authorization):
    return DecryptionService(engine, retry=retry, authorization=authorization, default_contract_address=CONTRACT)


class TestUserDecryption:
    @pytest.mark.asyncio
    async def test_decrypt_with_signature(self, service, engine):
        handle = engine.store_value(4294967295)

        value = await service.decrypt_uint32(handle, CONTRACT, USER, signature=SIGNATURE)

        assert value == 4294967295
        assert engine.decrypt_calls == [(CONTRACT, handle)]

    @pytest.mark.asyncio
    async def test_missing_authorization_makes_no_engine_call(self, service, engine):
        handle = engine.store_value(1)

        with pytest.raises(DecryptionAuthorizationError) as exc_info:
            await service.decrypt_uint8(handle, CONTRACT, USER)

        assert exc_info.value.code == "DECRYPTION_UNAUTHORIZED"
        assert engine.decrypt_calls == []

    @pytest.mark.asyncio
    async def test_missing_user_rejected(self, service, engine):
        handle = engine.store_value(True)
        with pytest.raises(DecryptionAuthorizationError):
            await service.decrypt_bool(handle, CONTRACT, "", signature=SIGNATURE)
        assert engine.decrypt_calls == []

    @pytest.mark.asyncio
    async def test_authorization_provider_supplies_signature(self, service, engine, authorization):
        authorization.signature = SIGNATURE
        handle = engine.store_value(9)

        assert await service.decrypt_uint16(handle, None, USER) == 9
        assert authorization.requests == [(USER, CONTRACT)]

    @pytest.mark.asyncio
    async def test_public_decryption_needs_no_authorization(self, service, engine):
        handle = engine.store_value(77)

        with pytest.raises(DecryptionAuthorizationError):
            await service.decrypt_uint8(handle, CONTRACT, USER)
        assert await service.public(handle) == 77
        assert await service.public(handle, EncryptedType.UINT8, CONTRACT) == 77


class TestResultCoercion:
    @pytest.mark.asyncio
    async def test_engine_values_converted(self, service, engine):
        assert await service.decrypt_bool(engine.store_value(1), CONTRACT, USER, SIGNATURE) is True
        assert await service.decrypt_uint64(engine.store_value("0x10"), CONTRACT, USER, SIGNATURE) == 16
        assert await service.decrypt_bytes(engine.store_value(b"\xbe\xef"), CONTRACT, USER, SIGNATURE) == "0xbeef"
        assert await service.decrypt_address(engine.store_value(USER), CONTRACT, USER, SIGNATURE) == USER

    @pytest.mark.asyncio
    async def test_out_of_range_engine_value(self, service, engine):
        with pytest.raises(EngineError):
            await service.decrypt_uint8(engine.store_value(300), CONTRACT, USER, SIGNATURE)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("raw", ["not-a-number", None, [1]])
    async def test_unparseable_integer_is_engine_error(self, service, engine, raw):
        with pytest.raises(EngineError) as exc_info:
            await service.decrypt_uint8(engine.store_value(raw), CONTRACT, USER, SIGNATURE)
        assert isinstance(exc_info.value.__cause__, (TypeError, ValueError))

    @pytest.mark.asyncio
    @pytest.mark.parametrize("raw,expected", [("0", False), ("1", True), (0, False), (1, True), (False, False)])
    async def test_bool_parsed_from_engine_value(self, service, engine, raw, expected):
        assert await service.decrypt_bool(engine.store_value(raw), CONTRACT, USER, SIGNATURE) is expected

    @pytest.mark.asyncio
    @pytest.mark.parametrize("raw", ["false", "2", 2, None])
    async def test_invalid_bool_is_engine_error(self, service, engine, raw):
        with pytest.raises(EngineError):
            await service.decrypt_bool(engine.store_value(raw), CONTRACT, USER, SIGNATURE)


class TestBatch:
    @pytest.mark.asyncio
    async def test_results_align_with_items(self, service, engine):
        handles = [engine.store_value(v) for v in (True, 5, 2**100)]

        results = await service.batch(
            [(handles[0], "bool"), {"handle": handles[1], "type": "uint8"}, {"value": handles[2], "type": "uint128"}],
            USER,
            signature=SIGNATURE,
        )

        assert results == [True, 5, 2**100]

    @pytest.mark.asyncio
    async def test_failure_fails_whole_batch(self, service, engine, sleep):
        handles = [engine.store_value(v) for v in (1, 2)]
        # First item succeeds, every attempt on the second fails
        engine.decrypt_failures = [None] + [RuntimeError("bad handle")] * 3

        with pytest.raises(EngineError) as exc_info:
            await service.batch([(h, "uint8") for h in handles], USER, CONTRACT, SIGNATURE)

        assert "bad handle" in str(exc_info.value)
        assert len(engine.decrypt_calls) == 4
        assert sleep.delays == [1.0, 2.0]

    @pytest.mark.asyncio
    async def test_unauthorized_batch_makes_no_engine_call(self, service, engine):
        handles = [engine.store_value(v) for v in (1, 2)]
        with pytest.raises(DecryptionAuthorizationError):
            await service.batch([(h, "uint8") for h in handles], USER, CONTRACT)
        assert engine.decrypt_calls == []

    @pytest.mark.asyncio
    async def test_empty_handle_rejected_before_any_decryption(self, service, engine, authorization):
        handle = engine.store_value(1)

        with pytest.raises(ValidationError) as exc_info:
            await service.batch([(handle, "uint8"), ("", "uint8")], USER, CONTRACT, SIGNATURE)

        assert exc_info.value.details["index"] == 1
        assert engine.decrypt_calls == []
        assert authorization.requests == []


class TestRequestState:
    @pytest.mark.asyncio
    async def test_resolved_request(self, service, engine):
        request = DecryptionRequest(handle=engine.store_value(3), type="uint8", contract_address=CONTRACT, public=True)
        assert request.state.status == OperationStatus.PENDING

        assert await service.execute(request) == 3
        assert request.state.status == OperationStatus.RESOLVED
        assert request.state.result == 3
        assert request.state.done()

    @pytest.mark.asyncio
    async def test_failed_request(self, service, engine):
        request = DecryptionRequest(
            handle=engine.store_value(3), type="uint8", contract_address=CONTRACT, user_address=USER
        )

        with pytest.raises(DecryptionAuthorizationError):
            await service.execute(request)

        assert request.state.status == OperationStatus.FAILED
        assert isinstance(request.state.exception(), DecryptionAuthorizationError)
        assert request.state.as_dict()["status"] == "failed"

    @pytest.mark.asyncio
    async def test_request_cannot_be_replayed(self, service, engine):
        request = DecryptionRequest(handle=engine.store_value(3), contract_address=CONTRACT, public=True)
        await service.execute(request)
        with pytest.raises(RuntimeError):
            await service.execute(request)
