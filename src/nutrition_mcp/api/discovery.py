"""OAuth discovery documents, served without authentication."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, Request

if TYPE_CHECKING:
    from nutrition_mcp.config import Settings
    from nutrition_mcp.containers import AppContainer

router = APIRouter(prefix="/.well-known", tags=["discovery"])


def _settings(request: Request) -> Settings:
    container: AppContainer = request.app.state.container
    return container.settings


def _scopes(settings: Settings) -> list[str]:
    return ["openid", "profile", f"{settings.resource}/mcp.access"]


@router.get("/oauth-protected-resource")
async def protected_resource_metadata(request: Request) -> dict[str, object]:
    """Describe this resource and where to obtain tokens for it."""
    settings = _settings(request)
    return {
        "resource": settings.resource,
        "authorization_servers": [settings.base_url],
        "bearer_methods_supported": ["header"],
        "scopes_supported": _scopes(settings),
    }


@router.get("/oauth-authorization-server")
async def authorization_server_metadata(request: Request) -> dict[str, object]:
    """Describe the authorization proxy in front of the identity provider."""
    settings = _settings(request)
    base_url = settings.base_url
    return {
        "issuer": base_url,
        "authorization_endpoint": f"{base_url}/authorize",
        "token_endpoint": f"{base_url}/oauth/token",
        "registration_endpoint": f"{base_url}/oidc/register",
        "response_types_supported": ["code"],
        "grant_types_supported": ["authorization_code"],
        "token_endpoint_auth_methods_supported": ["client_secret_post"],
        "code_challenge_methods_supported": ["S256"],
        "scopes_supported": _scopes(settings),
    }
