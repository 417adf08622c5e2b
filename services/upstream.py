"""HTTP forwarding to the upstream generative-language API."""

import httpx

from core.exceptions import UpstreamConnectionError
from core.headers import HeaderBuilder
from core.request_types import OutboundResponse, PreparedRequest


class UpstreamClient:
    """Issue a single buffered request upstream and shape the relay response."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        header_builder: HeaderBuilder | None = None,
    ) -> None:
        self._client = client
        self._headers = header_builder or HeaderBuilder()

    async def send(self, prepared: PreparedRequest) -> OutboundResponse:
        """Send the prepared request; transport failures become UpstreamConnectionError."""
        try:
            response = await self._client.request(
                prepared.method,
                prepared.url,
                headers=prepared.headers,
                content=prepared.body,
            )
        except httpx.TimeoutException as e:
            raise UpstreamConnectionError(f"Upstream timeout: {e}") from e
        except httpx.RequestError as e:
            raise UpstreamConnectionError(str(e) or type(e).__name__) from e

        return OutboundResponse(
            status_code=response.status_code,
            headers=self._headers.build_relay_headers(response.headers),
            body_text=response.text,
        )
