"""Gemini API client with explicit upstream routing.

Callers choose how requests reach the generative-language API by passing a
routing object: ``DirectRouting`` talks to the upstream origin with a key of
its own, while ``ProxyRouting`` rewrites upstream URLs onto a forwarding
mount so the key stays on the server.
"""

from typing import Any, Protocol

import httpx

from core.config import UPSTREAM_BASE_URL, Config
from core.exceptions import ConfigurationError, UpstreamConnectionError, UpstreamError
from core.transform import API_KEY_PARAM


class UpstreamRouting(Protocol):
    """Map an upstream URL to the URL and query actually requested."""

    def route(self, url: str) -> tuple[str, dict[str, str]]: ...


class DirectRouting:
    """Call the upstream origin directly, authenticating with ``key``."""

    def __init__(self, api_key: str):
        if not api_key:
            raise ConfigurationError()
        self._api_key = api_key

    def route(self, url: str) -> tuple[str, dict[str, str]]:
        return url, {API_KEY_PARAM: self._api_key}


class ProxyRouting:
    """Rewrite upstream URLs onto a forwarding mount; the proxy adds the key."""

    def __init__(self, proxy_base: str, upstream_base: str = UPSTREAM_BASE_URL):
        self.proxy_base = proxy_base.rstrip("/")
        self.upstream_base = upstream_base.rstrip("/")

    def route(self, url: str) -> tuple[str, dict[str, str]]:
        if url.startswith(self.upstream_base):
            return self.proxy_base + url[len(self.upstream_base):], {}
        return url, {}


def client_routing_for(config: Config, api_key: str = "") -> UpstreamRouting:
    """Pick the routing object configured for client-side calls."""
    if config.routing.client_mode == "proxy":
        return ProxyRouting(config.routing.proxy_base, config.upstream.base_url)
    return DirectRouting(api_key)


class GeminiClient:
    """Minimal async client for ``generateContent``."""

    def __init__(
        self,
        routing: UpstreamRouting,
        client: httpx.AsyncClient,
        upstream_base: str = UPSTREAM_BASE_URL,
        api_version: str = "v1beta",
    ) -> None:
        self._routing = routing
        self._client = client
        self._upstream_base = upstream_base.rstrip("/")
        self._api_version = api_version

    async def generate_content(self, model: str, payload: dict[str, Any]) -> dict[str, Any]:
        """POST a generateContent request and return the parsed JSON reply."""
        url, params = self._routing.route(
            f"{self._upstream_base}/{self._api_version}/models/{model}:generateContent"
        )
        try:
            response = await self._client.post(url, params=params or None, json=payload)
        except httpx.RequestError as e:
            raise UpstreamConnectionError(str(e) or type(e).__name__) from e

        if response.is_error:
            raise UpstreamError(
                f"generateContent failed with {response.status_code}",
                status_code=response.status_code,
                body=response.text,
            )
        return response.json()


PING_PAYLOAD: dict[str, Any] = {"contents": [{"parts": [{"text": "ping"}]}]}


async def ping_model(
    config: Config,
    model: str,
    api_key: str = "",
    transport: httpx.AsyncBaseTransport | None = None,
) -> dict[str, Any]:
    """Send one small generateContent call routed the way ``config`` says.

    In ``proxy`` mode the call goes through a running proxy and needs no key;
    in ``direct`` mode ``api_key`` is required.
    """
    routing = client_routing_for(config, api_key)
    async with httpx.AsyncClient(timeout=config.upstream.timeout, transport=transport) as http:
        client = GeminiClient(routing, http, upstream_base=config.upstream.base_url)
        return await client.generate_content(model, PING_PAYLOAD)
