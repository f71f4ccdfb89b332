"""Caller identity models."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class CallerIdentity:
    """Verified identity of the caller, as extracted from a bearer token."""

    subject: str | None
    scopes: tuple[str, ...] = ()
    client_id: str | None = None
    claims: dict[str, object] = field(default_factory=dict, compare=False)
