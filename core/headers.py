"""Header construction for upstream requests and relayed responses."""

from collections.abc import Mapping

import httpx

CORS_HEADERS: dict[str, str] = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, PUT, DELETE, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Accept, Authorization",
}

# The body is relayed as decoded text, so upstream framing no longer applies
_DROPPED_RELAY_HEADERS = frozenset(
    {"content-encoding", "content-length", "transfer-encoding", "connection"}
)

HeaderSource = Mapping[str, str] | httpx.Headers | list[tuple[str, str]]


class HeaderBuilder:
    """Build upstream request headers and caller response headers.

    Relay headers are kept as ``httpx.Headers`` so repeated fields such as
    ``Set-Cookie`` survive as separate values.
    """

    def build_upstream_headers(self, headers: Mapping[str, str]) -> dict[str, str]:
        """Fixed JSON content type plus the caller's Accept, nothing else."""
        upstream: dict[str, str] = {"Content-Type": "application/json"}
        for key, value in headers.items():
            if key.lower() == "accept":
                upstream["Accept"] = str(value)
        return upstream

    def build_relay_headers(self, headers: HeaderSource) -> httpx.Headers:
        """Copy upstream response headers, minus CORS and framing headers."""
        relayed = httpx.Headers(
            [
                (key, value)
                for key, value in httpx.Headers(headers).multi_items()
                if not key.startswith("access-control-") and key not in _DROPPED_RELAY_HEADERS
            ]
        )
        if "content-type" not in relayed:
            relayed["content-type"] = "application/json"
        return relayed

    def with_cors(self, headers: HeaderSource | None = None) -> httpx.Headers:
        """Merge CORS headers in; ours always take precedence."""
        merged = httpx.Headers(
            [
                (key, value)
                for key, value in httpx.Headers(headers or {}).multi_items()
                if not key.startswith("access-control-")
            ]
        )
        merged.update(CORS_HEADERS)
        return merged
