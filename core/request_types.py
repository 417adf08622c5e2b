"""Shared request data types."""

from dataclasses import dataclass, field
from typing import Any

import httpx


@dataclass(frozen=True)
class InboundRequest:
    """A browser request as seen by the forwarding handler."""

    method: str
    raw_path: str
    route_parameter: list[str] | None = None
    route_key: str | None = None
    query: list[tuple[str, str]] = field(default_factory=list)
    headers: dict[str, str] = field(default_factory=dict)
    body: Any = None

    def query_values(self, key: str) -> list[str]:
        """Return every value sent for ``key``, in arrival order."""
        return [value for name, value in self.query if name == key]


@dataclass(frozen=True)
class ResolvedTarget:
    """Upstream path and query for a single request."""

    upstream_path: str
    upstream_query: httpx.QueryParams


@dataclass(frozen=True)
class PreparedRequest:
    """Prepared data for an upstream request."""

    method: str
    url: str
    headers: dict[str, str]
    body: str | bytes | None


@dataclass(frozen=True)
class OutboundResponse:
    """Response relayed back to the caller."""

    status_code: int
    headers: httpx.Headers
    body_text: str = ""


@dataclass(frozen=True)
class SecretConfig:
    """Server-held upstream API key."""

    api_key: str = ""

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    def masked(self) -> str:
        if len(self.api_key) <= 10:
            return "***"
        return self.api_key[:6] + "..." + self.api_key[-4:]

    def __repr__(self) -> str:
        return f"SecretConfig(api_key={self.masked()!r})"
