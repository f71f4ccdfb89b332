"""Application configuration."""

import os
from enum import StrEnum

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class SessionMode(StrEnum):
    """How the gateway keeps dispatchers between requests."""

    STATEFUL = "stateful"
    STATELESS = "stateless"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str
    supabase_service_key: str
    entra_tenant_id: str
    entra_client_id: str
    proxy_base_url: str
    entra_authority: str | None = None
    session_mode: SessionMode = SessionMode.STATEFUL
    session_idle_timeout_seconds: float | None = None
    push_keepalive_seconds: float = 15
    push_buffer_size: int = 100
    jwks_cache_ttl_seconds: int = 3600
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )

    @property
    def authority(self) -> str:
        """Return the identity provider authority without a trailing slash."""
        raw = self.entra_authority or (
            f"https://login.microsoftonline.com/{self.entra_tenant_id}"
        )
        return raw.rstrip("/")

    @property
    def issuer(self) -> str:
        """Return the expected token issuer."""
        return f"{self.authority}/v2.0"

    @property
    def jwks_url(self) -> str:
        """Return the signing key endpoint."""
        return f"{self.authority}/discovery/v2.0/keys"

    @property
    def resource(self) -> str:
        """Return the protected resource identifier."""
        return f"api://{self.entra_client_id}"

    @property
    def base_url(self) -> str:
        """Return the public base URL without a trailing slash."""
        return self.proxy_base_url.rstrip("/")

    @property
    def token_audiences(self) -> list[str]:
        """Return the audiences accepted on access tokens."""
        return [self.entra_client_id, self.resource]
