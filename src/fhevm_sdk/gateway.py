"""
Gateway key source.

Fetches contract public keys from the network gateway over HTTP. Retries
and caching are handled by KeyCache; this class makes exactly one request
per call and raises on any failure.
"""

from typing import Optional, Union

import httpx

from . import __version__
from .config import FhevmConfig
from .exceptions import EngineError


class GatewayKeySource:
    """
    Key source backed by `GET {gateway_url}/keys/{contract_address}`.

    The gateway answers with JSON `{"public_key": "0x..."}`.
    """

    def __init__(
        self,
        gateway_url: str,
        timeout: float = 30.0,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self._gateway_url = gateway_url.rstrip("/")
        self._owns_client = http_client is None
        self._http_client = http_client or httpx.AsyncClient(
            base_url=self._gateway_url,
            timeout=timeout,
            headers={
                "Accept": "application/json",
                "User-Agent": f"fhevm-sdk-python/{__version__}",
            },
        )

    @classmethod
    def from_config(cls, config: FhevmConfig) -> "GatewayKeySource":
        return cls(config.resolved_gateway_url(), timeout=config.timeout)

    async def __aenter__(self) -> "GatewayKeySource":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the HTTP client if this source created it."""
        if self._owns_client:
            await self._http_client.aclose()

    async def fetch_public_key(self, contract_address: str) -> Union[str, bytes]:
        """
        Fetch the public key for a contract.

        Raises:
            httpx.HTTPError: On transport failures or non-2xx responses
            EngineError: If the gateway response carries no key
        """
        response = await self._http_client.get(f"/keys/{contract_address}")
        response.raise_for_status()

        try:
            body = response.json()
        except ValueError as e:
            raise EngineError("Gateway returned a non-JSON key response") from e

        key = None
        if isinstance(body, dict):
            key = body.get("public_key") or body.get("publicKey")
        if not key:
            raise EngineError(
                "Gateway response did not include a public key",
                details={"contract_address": contract_address},
            )
        return key

    def __repr__(self) -> str:
        return f"GatewayKeySource(gateway_url={self._gateway_url!r})"
