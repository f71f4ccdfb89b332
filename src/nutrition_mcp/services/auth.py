"""Bearer token verification against the identity provider's keys."""

import logging
from dataclasses import dataclass
from typing import Protocol

import jwt
from jwt import PyJWK

from nutrition_mcp.adapters.jwks_client import JwksClient
from nutrition_mcp.domain.identity import CallerIdentity
from nutrition_mcp.services.cache import SigningKeyCache

_logger = logging.getLogger(__name__)


class AuthenticationError(Exception):
    """The bearer token is missing, malformed or not trusted."""


class TokenVerifier(Protocol):
    """Interface for turning a bearer token into a caller identity."""

    async def verify(self, token: str) -> CallerIdentity:
        """Verify a token; raise AuthenticationError when it is not valid."""


@dataclass
class JwtTokenVerifier(TokenVerifier):
    """RS256 verifier for Entra-issued access tokens.

    Signing keys are fetched from the JWKS endpoint and cached. An unknown
    ``kid`` forces one refresh so key rotation is picked up without a
    restart.
    """

    jwks_client: JwksClient
    cache: SigningKeyCache
    issuer: str
    audiences: list[str]
    cache_ttl_seconds: int = 3600

    async def verify(self, token: str) -> CallerIdentity:
        """Validate signature, audience, issuer and expiry."""
        try:
            header = jwt.get_unverified_header(token)
        except jwt.InvalidTokenError as exc:
            raise AuthenticationError("Malformed token") from exc
        kid = header.get("kid")
        if not kid:
            raise AuthenticationError("Token header missing 'kid'")

        key = await self._signing_key(str(kid))
        try:
            claims = jwt.decode(
                token,
                key,
                algorithms=["RS256"],
                audience=self.audiences,
                issuer=self.issuer,
            )
        except jwt.ExpiredSignatureError as exc:
            raise AuthenticationError("Token has expired") from exc
        except jwt.InvalidTokenError as exc:
            raise AuthenticationError(f"Invalid token: {exc}") from exc
        return identity_from_claims(claims)

    async def _signing_key(self, kid: str) -> object:
        jwk = self.cache.get(kid)
        if jwk is None:
            jwk = (await self._refresh()).get(kid)
        if jwk is None:
            raise AuthenticationError(f"Signing key {kid} not found")
        return jwk

    async def _refresh(self) -> dict[str, object]:
        try:
            raw_keys = await self.jwks_client.fetch_keys()
        except Exception as exc:
            _logger.exception("Failed to fetch signing keys")
            raise AuthenticationError("Signing keys unavailable") from exc
        keys: dict[str, object] = {}
        for raw in raw_keys:
            kid = raw.get("kid")
            if not kid:
                continue
            try:
                keys[str(kid)] = PyJWK.from_dict(raw).key
            except jwt.PyJWKError:
                _logger.warning("Skipping unusable signing key %s", kid)
        self.cache.replace(keys, self.cache_ttl_seconds)
        return keys


def identity_from_claims(claims: dict[str, object]) -> CallerIdentity:
    """Map access token claims onto a caller identity."""
    scp = claims.get("scp")
    scopes = tuple(scp.split()) if isinstance(scp, str) else ()
    client_id = claims.get("azp") or claims.get("appid") or claims.get("sub")
    subject = claims.get("sub")
    return CallerIdentity(
        subject=str(subject) if subject else None,
        scopes=scopes,
        client_id=str(client_id) if client_id else None,
        claims=dict(claims),
    )
