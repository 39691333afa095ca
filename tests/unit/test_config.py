"""Unit tests for client configuration."""

import pytest
from pydantic import ValidationError as PydanticValidationError

from fhevm_sdk import FhevmConfig, Network, get_config

CONTRACT = "0x" + "a" * 40


class TestFhevmConfig:
    def test_defaults(self, monkeypatch):
        for name in ("FHEVM_NETWORK", "FHEVM_CONTRACT_ADDRESS", "FHEVM_GATEWAY_URL", "FHEVM_RPC_URL"):
            monkeypatch.delenv(name, raising=False)
        config = FhevmConfig()

        assert config.network == Network.SEPOLIA
        assert config.resolved_chain_id() == 11155111
        assert config.resolved_gateway_url() == "https://gateway.sepolia.zama.ai"
        assert config.key_ttl == 3600.0
        assert config.retry_count == 3
        assert config.retry_backoff == 1.0

    @pytest.mark.parametrize(
        "network,gateway,chain_id",
        [
            ("localhost", "http://localhost:8545", 31337),
            ("mainnet", "https://gateway.zama.ai", 1),
        ],
    )
    def test_network_defaults(self, network, gateway, chain_id):
        config = FhevmConfig(network=network)
        assert config.resolved_gateway_url() == gateway
        assert config.resolved_chain_id() == chain_id

    def test_overrides(self):
        config = FhevmConfig(
            network="sepolia",
            rpc_url="http://rpc.internal/",
            gateway_url="http://gateway.internal/",
            chain_id=9000,
        )
        assert config.resolved_rpc_url() == "http://rpc.internal"
        assert config.resolved_gateway_url() == "http://gateway.internal"
        assert config.resolved_chain_id() == 9000

    def test_frozen(self):
        config = FhevmConfig(contract_address=CONTRACT)
        with pytest.raises(PydanticValidationError):
            config.contract_address = "0x" + "c" * 40

    def test_invalid_values(self):
        with pytest.raises(PydanticValidationError):
            FhevmConfig(contract_address="0x123")
        with pytest.raises(PydanticValidationError):
            FhevmConfig(network="ropsten")
        with pytest.raises(PydanticValidationError):
            FhevmConfig(retry_count=0)


class TestGetConfig:
    def test_env_vars(self, monkeypatch):
        monkeypatch.setenv("FHEVM_NETWORK", "localhost")
        monkeypatch.setenv("FHEVM_CONTRACT_ADDRESS", CONTRACT)
        monkeypatch.setenv("FHEVM_KEY_TTL", "120")

        config = get_config()

        assert config.network == Network.LOCALHOST
        assert config.contract_address == CONTRACT
        assert config.key_ttl == 120.0

    def test_explicit_parameters_override_env(self, monkeypatch):
        monkeypatch.setenv("FHEVM_NETWORK", "localhost")

        config = get_config(network="mainnet", retry_count=5, unknown_option=True)

        assert config.network == Network.MAINNET
        assert config.retry_count == 5
