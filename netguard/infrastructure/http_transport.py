"""HTTP Transport - httpx client whose failures leave already classified.

Invariants:
    - Timeouts -> TransportError(TIMEOUT)
    - Connect failures -> CONNECTION_FAILED; dropped/broken connections -> CONNECTION_RESET
    - HTTP 5xx -> SERVER_ERROR, 4xx -> CLIENT_ERROR (raised, not returned)
    - Any other httpx transport failure -> OTHER
    - No retry here: the ResilientExecutor owns retries

Design Decisions:
    - Error kind assigned at the source; nothing downstream parses messages
    - Client injectable: tests pass httpx.MockTransport
"""

import logging

import httpx

from netguard.core.errors import ErrorKind, TransportError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 30.0


def map_httpx_error(e: httpx.HTTPError) -> TransportError:
    """Translate an httpx exception into a TransportError with its kind."""
    if isinstance(e, httpx.TimeoutException):
        return TransportError(str(e) or "request timed out", ErrorKind.TIMEOUT)
    if isinstance(e, httpx.ConnectError):
        return TransportError(str(e) or "connection failed", ErrorKind.CONNECTION_FAILED)
    if isinstance(e, (httpx.ReadError, httpx.WriteError, httpx.RemoteProtocolError)):
        return TransportError(str(e) or "connection reset", ErrorKind.CONNECTION_RESET)
    if isinstance(e, httpx.HTTPStatusError):
        return TransportError.from_status(e.response.status_code, str(e))
    return TransportError(str(e) or type(e).__name__, ErrorKind.OTHER)


class HttpTransport:
    """Thin async HTTP client that raises TransportError on failure."""

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    ):
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(timeout=timeout_seconds)

    async def request(self, method: str, url: str, **kwargs) -> httpx.Response:
        try:
            response = await self.client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            mapped = map_httpx_error(e)
            logger.debug(f"{method} {url} failed: {mapped.kind.value}")
            raise mapped from e

        if response.status_code >= 400:
            raise TransportError.from_status(
                response.status_code,
                f"{method} {url} returned {response.status_code}",
            )
        return response

    async def aclose(self) -> None:
        if self._owns_client:
            await self.client.aclose()
