"""Tests for bearer token verification."""

import asyncio
import time
from dataclasses import dataclass, field

import httpx
import jwt
import pytest
from cryptography.hazmat.primitives.asymmetric import rsa
from jwt.algorithms import RSAAlgorithm

from nutrition_mcp.adapters.jwks_client import HttpxJwksClient
from nutrition_mcp.services.auth import (
    AuthenticationError,
    JwtTokenVerifier,
    identity_from_claims,
)
from nutrition_mcp.services.cache import InMemorySigningKeyCache

ISSUER = "https://login.microsoftonline.com/tenant-1/v2.0"
AUDIENCES = ["client-1", "api://client-1"]
PRIVATE_KEY = rsa.generate_private_key(public_exponent=65537, key_size=2048)


def _jwk(kid: str, private_key: rsa.RSAPrivateKey = PRIVATE_KEY) -> dict[str, object]:
    jwk = RSAAlgorithm.to_jwk(private_key.public_key(), as_dict=True)
    return {**jwk, "kid": kid, "use": "sig"}


def _token(kid: str = "k1", **overrides: object) -> str:
    now = int(time.time())
    claims: dict[str, object] = {
        "sub": "user-1",
        "aud": "api://client-1",
        "iss": ISSUER,
        "iat": now,
        "exp": now + 600,
        "scp": "mcp.access User.Read",
        "azp": "agent-app",
    }
    claims.update(overrides)
    return jwt.encode(claims, PRIVATE_KEY, algorithm="RS256", headers={"kid": kid})


@dataclass
class FakeJwksClient:
    keys: list[dict[str, object]] = field(default_factory=lambda: [_jwk("k1")])
    fetches: int = 0

    async def fetch_keys(self) -> list[dict[str, object]]:
        self.fetches += 1
        return self.keys


def _verifier(jwks_client: FakeJwksClient) -> JwtTokenVerifier:
    return JwtTokenVerifier(
        jwks_client=jwks_client,
        cache=InMemorySigningKeyCache(),
        issuer=ISSUER,
        audiences=AUDIENCES,
    )


def test_valid_token_yields_identity() -> None:
    jwks_client = FakeJwksClient()
    verifier = _verifier(jwks_client)

    identity = asyncio.run(verifier.verify(_token()))
    asyncio.run(verifier.verify(_token(aud="client-1")))

    assert identity.subject == "user-1"
    assert identity.scopes == ("mcp.access", "User.Read")
    assert identity.client_id == "agent-app"
    assert jwks_client.fetches == 1


def test_unknown_kid_refreshes_keys() -> None:
    rotated = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    jwks_client = FakeJwksClient()
    verifier = _verifier(jwks_client)
    asyncio.run(verifier.verify(_token()))

    jwks_client.keys = [_jwk("k1"), _jwk("k2", rotated)]
    token = jwt.encode(
        {"sub": "user-1", "aud": "client-1", "iss": ISSUER, "exp": time.time() + 60},
        rotated,
        algorithm="RS256",
        headers={"kid": "k2"},
    )
    identity = asyncio.run(verifier.verify(token))

    assert identity.subject == "user-1"
    assert jwks_client.fetches == 2


@pytest.mark.parametrize(
    ("token", "message"),
    [
        ("not-a-jwt", "Malformed token"),
        (_token(exp=int(time.time()) - 10), "Token has expired"),
        (_token(aud="someone-else"), "Invalid token"),
        (_token(iss="https://evil.example.com"), "Invalid token"),
        (_token(kid="k9"), "Signing key k9 not found"),
    ],
)
def test_untrusted_tokens_are_rejected(token: str, message: str) -> None:
    verifier = _verifier(FakeJwksClient())

    with pytest.raises(AuthenticationError, match=message):
        asyncio.run(verifier.verify(token))


def test_identity_from_claims_falls_back_for_client_id() -> None:
    identity = identity_from_claims({"sub": "user-1", "appid": "legacy-app"})
    anonymous = identity_from_claims({"scp": 42})

    assert identity.client_id == "legacy-app"
    assert identity.scopes == ()
    assert anonymous.subject is None
    assert anonymous.client_id is None


def test_httpx_jwks_client_fetches_keys() -> None:
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, json={"keys": [_jwk("k1"), "junk"]})

    async def fetch() -> list[dict[str, object]]:
        client = HttpxJwksClient(
            jwks_url="https://login.example.com/keys",
            http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
        )
        try:
            return await client.fetch_keys()
        finally:
            await client.close()

    keys = asyncio.run(fetch())

    assert [key["kid"] for key in keys] == ["k1"]
    assert str(requests[0].url) == "https://login.example.com/keys"


def test_httpx_jwks_client_rejects_payload_without_keys() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"error": "nope"})

    async def fetch() -> None:
        client = HttpxJwksClient(
            jwks_url="https://login.example.com/keys",
            http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
        )
        try:
            await client.fetch_keys()
        finally:
            await client.close()

    with pytest.raises(ValueError, match="no keys"):
        asyncio.run(fetch())


def test_unreachable_jwks_is_authentication_error() -> None:
    class BrokenJwksClient:
        async def fetch_keys(self) -> list[dict[str, object]]:
            raise httpx.ConnectError("down")

    verifier = JwtTokenVerifier(
        jwks_client=BrokenJwksClient(),
        cache=InMemorySigningKeyCache(),
        issuer=ISSUER,
        audiences=AUDIENCES,
    )

    with pytest.raises(AuthenticationError, match="Signing keys unavailable"):
        asyncio.run(verifier.verify(_token()))


def test_stale_key_set_is_fetched_again() -> None:
    jwks_client = FakeJwksClient()
    verifier = JwtTokenVerifier(
        jwks_client=jwks_client,
        cache=InMemorySigningKeyCache(),
        issuer=ISSUER,
        audiences=AUDIENCES,
        cache_ttl_seconds=0,
    )

    asyncio.run(verifier.verify(_token()))
    asyncio.run(verifier.verify(_token()))

    assert jwks_client.fetches == 2


def test_replacing_key_set_forgets_retired_keys() -> None:
    cache = InMemorySigningKeyCache()
    cache.replace({"k1": "old", "k2": "current"}, ttl_seconds=60)
    assert cache.get("k1") == "old"

    cache.replace({"k2": "current"}, ttl_seconds=60)

    assert cache.get("k1") is None
    assert cache.get("k2") == "current"
    assert len(cache) == 1

    cache.replace({"k2": "current"}, ttl_seconds=0)
    assert cache.get("k2") is None
    assert len(cache) == 0
