"""Signing keys held per key id until the key set goes stale."""

import time
from dataclasses import dataclass, field
from typing import Protocol


class SigningKeyCache(Protocol):
    """Holds the most recently fetched key set."""

    def get(self, kid: str) -> object | None:
        """Return the key for kid while the key set is fresh."""

    def replace(self, keys: dict[str, object], ttl_seconds: float) -> None:
        """Swap in a freshly fetched key set."""


@dataclass
class InMemorySigningKeyCache(SigningKeyCache):
    """Process-local key set; a stale set is dropped on the next read.

    Replacing the set forgets keys the provider has retired.
    """

    _keys: dict[str, object] = field(default_factory=dict)
    _expires_at: float = 0.0

    def get(self, kid: str) -> object | None:
        if time.monotonic() >= self._expires_at:
            self._keys = {}
            return None
        return self._keys.get(kid)

    def replace(self, keys: dict[str, object], ttl_seconds: float) -> None:
        self._keys = dict(keys)
        self._expires_at = time.monotonic() + ttl_seconds

    def __len__(self) -> int:
        return len(self._keys)
