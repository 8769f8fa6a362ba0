"""HTTP Transport tests - httpx failures leave as classified TransportErrors.

Tests cover:
    - Timeouts, connect failures and dropped connections map to their ErrorKind
    - 4xx/5xx responses raise with status_code preserved
    - 2xx/3xx responses are returned untouched
"""

import httpx
import pytest

from netguard.core.errors import ErrorKind, TransportError
from netguard.infrastructure.http_transport import HttpTransport, map_httpx_error


def _transport(handler):
    return HttpTransport(client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))


def _raising(exc_type):
    def handler(request):
        raise exc_type("boom", request=request)
    return handler


@pytest.mark.parametrize("exc_type,kind", [
    (httpx.ConnectTimeout, ErrorKind.TIMEOUT),
    (httpx.ReadTimeout, ErrorKind.TIMEOUT),
    (httpx.ConnectError, ErrorKind.CONNECTION_FAILED),
    (httpx.ReadError, ErrorKind.CONNECTION_RESET),
    (httpx.RemoteProtocolError, ErrorKind.CONNECTION_RESET),
    (httpx.UnsupportedProtocol, ErrorKind.OTHER),
])
async def test_httpx_errors_are_mapped(exc_type, kind):
    transport = _transport(_raising(exc_type))
    with pytest.raises(TransportError) as info:
        await transport.request("GET", "https://api.test/")
    assert info.value.kind is kind
    assert isinstance(info.value.__cause__, exc_type)


@pytest.mark.parametrize("status,kind", [
    (500, ErrorKind.SERVER_ERROR),
    (503, ErrorKind.SERVER_ERROR),
    (400, ErrorKind.CLIENT_ERROR),
    (404, ErrorKind.CLIENT_ERROR),
])
async def test_error_statuses_raise(status, kind):
    transport = _transport(lambda request: httpx.Response(status))
    with pytest.raises(TransportError) as info:
        await transport.request("POST", "https://api.test/items", json={"a": 1})
    assert info.value.kind is kind
    assert info.value.status_code == status


async def test_success_response_is_returned():
    transport = _transport(lambda request: httpx.Response(201, json={"id": 7}))
    response = await transport.request("POST", "https://api.test/items")
    assert response.status_code == 201
    assert response.json() == {"id": 7}


def test_map_status_error():
    request = httpx.Request("GET", "https://api.test/")
    response = httpx.Response(502, request=request)
    error = httpx.HTTPStatusError("bad gateway", request=request, response=response)
    mapped = map_httpx_error(error)
    assert mapped.kind is ErrorKind.SERVER_ERROR
    assert mapped.status_code == 502


async def test_aclose_leaves_injected_client_open():
    client = httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(200)))
    transport = HttpTransport(client=client)
    await transport.aclose()
    assert client.is_closed is False
    await client.aclose()
