"""Forwarding handler - turns an inbound request into one upstream call."""

import json
import time
import traceback
from typing import Any

from core.config import Config
from core.exceptions import ConfigurationError, ProxyError
from core.headers import HeaderBuilder
from core.protocols import RequestLogger
from core.request_types import InboundRequest, OutboundResponse, PreparedRequest, ResolvedTarget, SecretConfig
from core.router import PathResolver
from core.transform import build_upstream_query, build_upstream_url, serialize_body
from services.upstream import UpstreamClient
from ui.log_utils import redact_url


class ForwardingHandler:
    """Forward browser requests upstream with the server-held key injected.

    The only recovery boundary is ``handle``: every failure becomes a JSON
    error response carrying the CORS headers.
    """

    def __init__(
        self,
        config: Config,
        logger: RequestLogger,
        upstream: UpstreamClient,
        resolver: PathResolver | None = None,
        header_builder: HeaderBuilder | None = None,
    ) -> None:
        self._config = config
        self._logger = logger
        self._upstream = upstream
        self._resolver = resolver or PathResolver()
        self._headers = header_builder or HeaderBuilder()

    async def handle(self, inbound: InboundRequest, secret: SecretConfig) -> OutboundResponse:
        """Handle one request end to end. Never raises."""
        if inbound.method.upper() == "OPTIONS":
            return OutboundResponse(200, self._headers.with_cors(), "")

        route = inbound.raw_path
        try:
            if not secret.is_configured:
                raise ConfigurationError(self._config.upstream.api_key_env)
            prepared = self.prepare(inbound, secret)
            start = time.perf_counter()
            response = await self._upstream.send(prepared)
        except ProxyError as e:
            return self._error_response(route, e.status_code, e.to_payload(self._config.proxy.debug), secret)
        except Exception as e:
            payload: dict[str, Any] = {"error": "proxy request failed", "details": str(e)}
            if self._config.proxy.debug:
                payload["stack"] = traceback.format_exc()
            return self._error_response(route, 500, payload, secret)

        elapsed_ms = (time.perf_counter() - start) * 1000
        self._logger.log_forward(
            inbound.method,
            route,
            response.status_code,
            url=redact_url(prepared.url, secret.api_key),
            elapsed_ms=elapsed_ms,
        )
        if response.status_code >= 400:
            self._logger.log_error(route, response.status_code, response.body_text)

        return OutboundResponse(
            status_code=response.status_code,
            headers=self._headers.with_cors(response.headers),
            body_text=response.body_text,
        )

    def resolve(self, inbound: InboundRequest, secret: SecretConfig) -> ResolvedTarget:
        """Resolve upstream path and query; built fresh for every request."""
        path = self._resolver.resolve(inbound)
        query = build_upstream_query(
            inbound.query,
            self._resolver.excluded_keys(inbound),
            secret.api_key,
        )
        return ResolvedTarget(upstream_path=path, upstream_query=query)

    def prepare(self, inbound: InboundRequest, secret: SecretConfig) -> PreparedRequest:
        """Build the outbound request without sending it."""
        target = self.resolve(inbound, secret)
        return PreparedRequest(
            method=inbound.method.upper(),
            url=build_upstream_url(
                self._config.upstream.base_url,
                target.upstream_path,
                target.upstream_query,
            ),
            headers=self._headers.build_upstream_headers(inbound.headers),
            body=serialize_body(inbound.method, inbound.body),
        )

    def _error_response(
        self,
        route: str,
        status: int,
        payload: dict[str, Any],
        secret: SecretConfig,
    ) -> OutboundResponse:
        if secret.is_configured:
            payload = {
                key: value.replace(secret.api_key, "***") if isinstance(value, str) else value
                for key, value in payload.items()
            }
        self._logger.log_error(route, status, payload.get("details") or payload["error"])
        headers = self._headers.with_cors({"content-type": "application/json"})
        return OutboundResponse(status, headers, json.dumps(payload))
