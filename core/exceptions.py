"""Custom exception hierarchy for the Gemini key proxy."""

import traceback
from typing import Any


class ProxyError(Exception):
    """Base exception for all proxy errors.

    Subclasses set ``status_code`` and shape the JSON body returned to the
    caller through ``to_payload``.
    """

    status_code: int = 500

    def to_payload(self, debug: bool = False) -> dict[str, Any]:
        return {"error": str(self)}


class ConfigurationError(ProxyError):
    """Raised when the upstream API key is missing from the environment."""

    status_code = 500

    def __init__(self, env_var: str = "GEMINI_API_KEY") -> None:
        super().__init__(
            f"{env_var} is not set. Check the server environment configuration."
        )
        self.env_var = env_var


class PathUnresolvedError(ProxyError):
    """Raised when no path strategy yields an upstream path.

    Attributes:
        context: Diagnostic fields echoed back to the caller
    """

    status_code = 400

    def __init__(self, context: dict[str, Any] | None = None) -> None:
        super().__init__("Invalid path")
        self.context = context or {}

    def to_payload(self, debug: bool = False) -> dict[str, Any]:
        return {"error": "Invalid path", **self.context}


class UpstreamError(ProxyError):
    """Raised when the upstream API returns an error to a client call.

    Attributes:
        message: Error message
        status_code: HTTP status code from upstream (optional)
        body: Raw upstream response text
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        body: str = "",
    ) -> None:
        super().__init__(message)
        self.status_code = status_code or 500
        self.body = body


class UpstreamConnectionError(UpstreamError):
    """Raised when the upstream cannot be reached (network, DNS, TLS, timeout)."""

    def __init__(self, message: str) -> None:
        super().__init__(message, status_code=500)

    def to_payload(self, debug: bool = False) -> dict[str, Any]:
        payload: dict[str, Any] = {"error": "proxy request failed", "details": str(self)}
        if debug:
            payload["stack"] = "".join(traceback.format_exception(self))
        return payload
