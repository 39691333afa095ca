"""
FHEVM SDK configuration.

This module handles environment variables and client configuration.
A configuration is frozen once built; targeting another network or
contract means building a new configuration and a new session.
"""

from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import ConfigurationError
from .schemas import Network
from .validation import is_valid_address

DEFAULT_CHAIN_IDS = {
    Network.SEPOLIA: 11155111,
    Network.MAINNET: 1,
    Network.LOCALHOST: 31337,
}

DEFAULT_RPC_URLS = {
    Network.SEPOLIA: "https://ethereum-sepolia-rpc.publicnode.com",
    Network.MAINNET: "https://ethereum-rpc.publicnode.com",
    Network.LOCALHOST: "http://127.0.0.1:8545",
}

DEFAULT_GATEWAY_URLS = {
    Network.SEPOLIA: "https://gateway.sepolia.zama.ai",
    Network.LOCALHOST: "http://localhost:8545",
}
FALLBACK_GATEWAY_URL = "https://gateway.zama.ai"


class FhevmConfig(BaseSettings):
    """Configuration for an FHEVM client session."""

    network: Network = Field(
        default=Network.SEPOLIA,
        description="Deployment whose default endpoints are used",
    )
    contract_address: Optional[str] = Field(
        default=None,
        description="Default contract for key caching and encrypted inputs",
    )
    rpc_url: Optional[str] = Field(
        default=None,
        description="RPC endpoint (overrides the network default)",
    )
    gateway_url: Optional[str] = Field(
        default=None,
        description="Gateway endpoint (overrides the network default)",
    )
    chain_id: Optional[int] = Field(
        default=None,
        ge=1,
        description="Chain ID (overrides the network default)",
    )
    key_ttl: float = Field(
        default=3600.0,
        gt=0,
        description="Seconds a fetched public key is served from cache",
    )
    retry_count: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Maximum attempts for engine and gateway calls",
    )
    retry_backoff: float = Field(
        default=1.0,
        ge=0.0,
        description="Base backoff between attempts in seconds",
    )
    timeout: float = Field(
        default=30.0,
        gt=0,
        description="Gateway HTTP timeout in seconds",
    )

    model_config = SettingsConfigDict(
        env_prefix="FHEVM_",
        env_file=".env",
        extra="ignore",
        frozen=True,
    )

    @field_validator("contract_address")
    @classmethod
    def validate_contract_address(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not is_valid_address(v):
            raise ValueError("contract_address must be a 0x-prefixed 40 hex digit address")
        return v

    def resolved_chain_id(self) -> int:
        return self.chain_id or DEFAULT_CHAIN_IDS[self.network]

    def resolved_rpc_url(self) -> str:
        return (self.rpc_url or DEFAULT_RPC_URLS[self.network]).rstrip("/")

    def resolved_gateway_url(self) -> str:
        return (self.gateway_url or DEFAULT_GATEWAY_URLS.get(self.network, FALLBACK_GATEWAY_URL)).rstrip("/")

    def require_contract_address(self) -> str:
        if not self.contract_address:
            raise ConfigurationError(
                "Contract address not configured. Set FHEVM_CONTRACT_ADDRESS or pass contract_address."
            )
        return self.contract_address


def get_config(
    network: Optional[str] = None,
    contract_address: Optional[str] = None,
    rpc_url: Optional[str] = None,
    gateway_url: Optional[str] = None,
    **kwargs,
) -> FhevmConfig:
    """
    Get FHEVM configuration.

    Explicit parameters override environment variables.

    Args:
        network: Network name (overrides FHEVM_NETWORK)
        contract_address: Contract address (overrides FHEVM_CONTRACT_ADDRESS)
        rpc_url: RPC URL (overrides FHEVM_RPC_URL)
        gateway_url: Gateway URL (overrides FHEVM_GATEWAY_URL)
        **kwargs: Additional configuration options; unknown keys are ignored

    Returns:
        FhevmConfig instance
    """
    overrides = {
        "network": network,
        "contract_address": contract_address,
        "rpc_url": rpc_url,
        "gateway_url": gateway_url,
    }
    valid_fields = set(FhevmConfig.model_fields.keys())
    overrides.update({k: v for k, v in kwargs.items() if k in valid_fields})

    return FhevmConfig(**{k: v for k, v in overrides.items() if v is not None})
