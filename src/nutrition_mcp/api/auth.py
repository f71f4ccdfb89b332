"""Bearer-token authentication dependency."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from fastapi import Header, HTTPException, Request, status

from nutrition_mcp.domain.identity import CallerIdentity  # noqa: TC001
from nutrition_mcp.services.auth import AuthenticationError

if TYPE_CHECKING:
    from nutrition_mcp.config import Settings
    from nutrition_mcp.containers import AppContainer

_logger = logging.getLogger(__name__)

PROTECTED_RESOURCE_PATH = "/.well-known/oauth-protected-resource"


def challenge_header(settings: Settings, error: str | None = None) -> str:
    """Return the WWW-Authenticate value pointing at resource metadata."""
    value = (
        f'Bearer resource_metadata="{settings.base_url}{PROTECTED_RESOURCE_PATH}"'
    )
    if error:
        value += f', error="{error}"'
    return value


def _unauthorized(settings: Settings, message: str, error: str | None) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=message,
        headers={"WWW-Authenticate": challenge_header(settings, error)},
    )


async def require_identity(
    request: Request,
    authorization: str | None = Header(default=None),
) -> CallerIdentity:
    """Verify the bearer token and return the caller identity."""
    container: AppContainer = request.app.state.container
    settings = container.settings
    scheme, _, token = (authorization or "").partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise _unauthorized(settings, "Missing bearer token", None)
    try:
        return await container.token_verifier.verify(token.strip())
    except AuthenticationError as exc:
        _logger.info("Rejected bearer token: %s", exc)
        raise _unauthorized(settings, str(exc), "invalid_token") from exc
