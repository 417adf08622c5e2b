"""Request transformations - query rebuilding, body serialisation, URL assembly."""

import json
from collections.abc import Iterable
from typing import Any
from urllib.parse import quote, urlencode

import httpx

API_KEY_PARAM = "key"
BODYLESS_METHODS = frozenset({"GET", "HEAD"})

# RFC 3986 pchar plus "/"; "#", "?" and "%" are always escaped
PATH_SAFE_CHARS = "/:@!$&'()*+,;=-._~"


def build_upstream_query(
    query: Iterable[tuple[str, str]],
    excluded_keys: Iterable[str],
    api_key: str,
) -> httpx.QueryParams:
    """Copy the inbound query minus routing keys, then set the API key.

    The key parameter is set rather than appended, so a client-supplied
    ``key`` is always replaced by the server secret.
    """
    excluded = set(excluded_keys)
    params = httpx.QueryParams([(k, v) for k, v in query if k not in excluded])
    return params.set(API_KEY_PARAM, api_key)


def serialize_body(method: str, body: Any) -> str | bytes | None:
    """Return the outbound body, or None when nothing should be sent."""
    if method.upper() in BODYLESS_METHODS:
        return None
    if body is None or body == b"" or body == "":
        return None
    if isinstance(body, (str, bytes)):
        return body
    return json.dumps(body)


def build_upstream_url(base_url: str, path: str, query: httpx.QueryParams) -> str:
    """Join base origin, escaped path and encoded query."""
    url = f"{base_url.rstrip('/')}/{quote(path, safe=PATH_SAFE_CHARS)}"
    query_string = urlencode(query.multi_items())
    if query_string:
        url += f"?{query_string}"
    return url
