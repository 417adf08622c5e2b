"""FastAPI route handlers."""

from typing import Any

import httpx
from fastapi import Request, Response

from auth import load_secret
from core.config import Config
from core.headers import HeaderBuilder
from core.request_types import InboundRequest
from ui.log_utils import write_incoming_log

MAX_BODY_SIZE = 50 * 1024 * 1024  # 50MB


async def _read_inbound(request: Request, config: Config) -> InboundRequest | Response:
    """Convert a Starlette request into an InboundRequest, or an error Response."""
    raw_body = await request.body()
    if len(raw_body) > MAX_BODY_SIZE:
        return _to_response(
            413,
            HeaderBuilder().with_cors({"content-type": "application/json"}),
            '{"error": "Request body too large"}',
        )

    route_key, route_parameter = _route_parameter(request.path_params)
    headers = {key.lower(): value for key, value in request.headers.items()}
    query = request.query_params.multi_items()
    # Raw bytes, so bodies that are not UTF-8 reach upstream unchanged
    body = raw_body or None
    if config.proxy.debug:
        write_incoming_log(request.method, request.url.path, headers, query, body)

    return InboundRequest(
        method=request.method,
        raw_path=request.url.path,
        route_parameter=route_parameter,
        route_key=route_key,
        query=query,
        headers=headers,
        body=body,
    )


def _route_parameter(path_params: dict[str, Any]) -> tuple[str | None, list[str] | None]:
    """Split a ``{name:path}`` catch-all into its segments."""
    for key, value in path_params.items():
        segments = [segment for segment in str(value).split("/") if segment]
        return key, segments or None
    return None, None


def _to_response(status_code: int, headers: httpx.Headers, content: str) -> Response:
    """Build a Response keeping repeated headers as separate fields."""
    response = Response(content=content, status_code=status_code)
    for key, value in headers.multi_items():
        response.headers.append(key, value)
    return response


async def handle_forward(request: Request, config: Config) -> Response:
    """Forward any method on a proxy mount through the ForwardingHandler."""
    result = await _read_inbound(request, config)
    if isinstance(result, Response):
        return result

    secret = load_secret(env_var=config.upstream.api_key_env)
    forwarder = request.app.state.forwarding_handler
    outbound = await forwarder.handle(result, secret)
    return _to_response(outbound.status_code, outbound.headers, outbound.body_text)


async def handle_health(config: Config) -> dict[str, Any]:
    """Report liveness and whether the key is configured, never the key."""
    secret = load_secret(env_var=config.upstream.api_key_env)
    return {"status": "ok", "configured": secret.is_configured}
