"""FastAPI application factory."""

from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request

from api.handlers import handle_forward, handle_health
from core.config import Config
from core.headers import HeaderBuilder
from core.protocols import RequestLogger
from core.router import PathResolver, PrefixStrategy, QueryParameterStrategy, RouteParameterStrategy
from services.forwarding import ForwardingHandler
from services.upstream import UpstreamClient

# Bare mounts take the upstream path from ?path=
PROXY_MOUNTS = [
    "/api/api-proxy/{path:path}",
    "/api-proxy/{slug:path}",
    "/api/proxy/{path:path}",
    "/api/proxy",
    "/api-proxy",
]


def create_app(
    config: Config,
    logger: RequestLogger,
    transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    The forwarding handler is wired here, not in the lifespan, so hosts that
    never run lifespan events can still serve requests. The lifespan only
    closes the shared client.
    """
    limits = httpx.Limits(max_connections=100, max_keepalive_connections=20)
    upstream_client = httpx.AsyncClient(
        base_url=config.upstream.base_url,
        timeout=config.upstream.timeout,
        limits=limits,
        transport=transport,
    )
    header_builder = HeaderBuilder()
    resolver = PathResolver(
        [
            RouteParameterStrategy(),
            PrefixStrategy(config.routing.prefixes),
            QueryParameterStrategy(),
        ]
    )
    forwarding_handler = ForwardingHandler(
        config=config,
        logger=logger,
        upstream=UpstreamClient(upstream_client, header_builder),
        resolver=resolver,
        header_builder=header_builder,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        try:
            yield
        finally:
            await upstream_client.aclose()

    app = FastAPI(title="Gemini Key Proxy", version="0.1.0", lifespan=lifespan)
    app.state.forwarding_handler = forwarding_handler

    @app.get("/healthz")
    async def health():
        return await handle_health(config)

    async def proxy(request: Request):
        return await handle_forward(request, config)

    # Plain routes with no method list accept any method
    for route in PROXY_MOUNTS:
        app.add_route(route, proxy, include_in_schema=False)

    return app
