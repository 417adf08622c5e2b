"""Upstream path resolution - derives the Gemini path from an inbound request."""

import re
from collections.abc import Sequence
from typing import Protocol
from urllib.parse import unquote

from core.exceptions import PathUnresolvedError
from core.request_types import InboundRequest

ROUTING_QUERY_KEY = "path"
DEFAULT_PREFIXES = ("/api/api-proxy/", "/api-proxy/", "/api/proxy/")

# A "%" not followed by two hex digits
_MALFORMED_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2})")


class PathStrategy(Protocol):
    """Produce an optional upstream path from a request."""

    routing_key: str | None

    def resolve(self, inbound: InboundRequest) -> str | None: ...


class RouteParameterStrategy:
    """Join catch-all route segments (``[...path]`` / ``[...slug]``)."""

    def __init__(self, key: str | None = None):
        self.routing_key = key

    def resolve(self, inbound: InboundRequest) -> str | None:
        if not inbound.route_parameter:
            return None
        if self.routing_key and inbound.route_key not in (None, self.routing_key):
            return None
        return "/".join(inbound.route_parameter)


class PrefixStrategy:
    """Strip a mount prefix from the raw request path."""

    routing_key = None

    def __init__(self, prefixes: Sequence[str] = DEFAULT_PREFIXES):
        # Longest first so /api/api-proxy/ wins over /api-proxy/
        self.prefixes = sorted(prefixes, key=len, reverse=True)

    def resolve(self, inbound: InboundRequest) -> str | None:
        for prefix in self.prefixes:
            if inbound.raw_path.startswith(prefix):
                return inbound.raw_path[len(prefix):]
        return None


class QueryParameterStrategy:
    """Read the path from a ``path`` query field (rewrite-style mounts)."""

    def __init__(self, key: str = ROUTING_QUERY_KEY):
        self.routing_key = key

    def resolve(self, inbound: InboundRequest) -> str | None:
        values = inbound.query_values(self.routing_key)
        if not values:
            return None
        return "/".join(values)


DEFAULT_STRATEGIES: tuple[PathStrategy, ...] = (
    RouteParameterStrategy(),
    PrefixStrategy(),
    QueryParameterStrategy(),
)


def decode_path(value: str) -> str:
    """Percent-decode a path, returning it unchanged if the encoding is malformed."""
    if _MALFORMED_ESCAPE.search(value):
        return value
    try:
        return unquote(value, errors="strict")
    except UnicodeDecodeError:
        return value


class PathResolver:
    """Try path strategies in order until one yields a non-empty path."""

    def __init__(self, strategies: Sequence[PathStrategy] = DEFAULT_STRATEGIES):
        self.strategies = tuple(strategies)

    @property
    def routing_keys(self) -> frozenset[str]:
        """Query keys used for routing, never forwarded upstream."""
        keys = {ROUTING_QUERY_KEY}
        keys.update(s.routing_key for s in self.strategies if s.routing_key)
        return frozenset(keys)

    def excluded_keys(self, inbound: InboundRequest) -> frozenset[str]:
        """Routing keys plus the key the platform used for the wildcard."""
        if inbound.route_key:
            return self.routing_keys | {inbound.route_key}
        return self.routing_keys

    def resolve(self, inbound: InboundRequest) -> str:
        for strategy in self.strategies:
            path = strategy.resolve(inbound)
            if path:
                return decode_path(path)
        raise PathUnresolvedError(
            {
                "pathname": inbound.raw_path,
                "query": _query_context(inbound.query),
            }
        )


def resolve_upstream_path(
    inbound: InboundRequest,
    strategies: Sequence[PathStrategy] = DEFAULT_STRATEGIES,
) -> str:
    """Resolve the upstream path using the given strategy order."""
    return PathResolver(strategies).resolve(inbound)


def _query_context(query: list[tuple[str, str]]) -> dict[str, str | list[str]]:
    """Collapse query pairs for error output; multi-valued keys become lists."""
    context: dict[str, str | list[str]] = {}
    for key, value in query:
        if key == "key":
            value = "***"
        existing = context.get(key)
        if existing is None:
            context[key] = value
        elif isinstance(existing, list):
            existing.append(value)
        else:
            context[key] = [existing, value]
    return context
