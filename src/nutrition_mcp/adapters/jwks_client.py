"""Client for the identity provider's published signing keys."""

from dataclasses import dataclass
from typing import Protocol

import httpx


class JwksClient(Protocol):
    """Interface for fetching a JSON Web Key Set."""

    async def fetch_keys(self) -> list[dict[str, object]]:
        """Return the raw JWK dictionaries."""


@dataclass
class HttpxJwksClient(JwksClient):
    """HTTPX-backed JWKS client."""

    jwks_url: str
    http_client: httpx.AsyncClient

    @classmethod
    def create(cls, jwks_url: str) -> "HttpxJwksClient":
        """Create a JWKS client with a managed httpx session."""
        return cls(jwks_url=jwks_url, http_client=httpx.AsyncClient())

    async def fetch_keys(self) -> list[dict[str, object]]:
        """Download the key set."""
        response = await self.http_client.get(self.jwks_url, timeout=10)
        response.raise_for_status()
        payload = response.json()
        keys = payload.get("keys") if isinstance(payload, dict) else None
        if not isinstance(keys, list):
            raise ValueError("JWKS response has no keys")
        return [key for key in keys if isinstance(key, dict)]

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()
