"""Tests for HttpxTransport and the client running on top of it.

Uses httpx.MockTransport so requests go through the real httpx stack
without touching the network.
"""

import threading
from urllib.parse import parse_qs

import httpx
import pytest

from szene1_api import client, errors, signing, transport, types

BASE_URL = "http://api.test"


class RecordingHandler:
    """httpx mock handler that records requests and serves canned bodies."""

    def __init__(self, routes: dict[str, tuple[int, bytes]] | None = None):
        self.routes = routes or {}
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        for prefix, (status_code, body) in self.routes.items():
            if request.url.path.startswith(prefix):
                return httpx.Response(status_code, content=body)
        return httpx.Response(200, content=b"<response><ok>1</ok></response>")


@pytest.fixture
def handler() -> RecordingHandler:
    return RecordingHandler()


@pytest.fixture
def http_transport(handler: RecordingHandler) -> transport.HttpxTransport:
    return transport.HttpxTransport(transport=httpx.MockTransport(handler))


@pytest.fixture
def api(http_transport: transport.HttpxTransport) -> client.ApiClient:
    return client.ApiClient(
        config=types.ClientConfig(base_url=BASE_URL, api_key="K", api_secret="S"),
        transport=http_transport,
    )


# ---------------------------------------------------------------------------
# HttpxTransport
# ---------------------------------------------------------------------------


def test_send_returns_status_reason_and_body(
    http_transport: transport.HttpxTransport,
):
    result = http_transport.send("GET", f"{BASE_URL}/x/y", timeout=5.0)

    assert result == transport.TransportResponse(
        status_code=200,
        reason_phrase="OK",
        content=b"<response><ok>1</ok></response>",
    )


def test_send_returns_error_statuses_instead_of_raising(handler: RecordingHandler):
    handler.routes["/"] = (503, b"")
    http_transport = transport.HttpxTransport(transport=httpx.MockTransport(handler))

    result = http_transport.send("GET", f"{BASE_URL}/x/y", timeout=5.0)

    assert result.status_code == 503
    assert result.reason_phrase == "Service Unavailable"


def test_client_is_reused_within_a_thread(http_transport: transport.HttpxTransport):
    assert http_transport.client is http_transport.client


def test_each_thread_gets_its_own_client(http_transport: transport.HttpxTransport):
    main_client = http_transport.client
    seen: list[httpx.Client] = []

    worker = threading.Thread(target=lambda: seen.append(http_transport.client))
    worker.start()
    worker.join()

    assert seen
    assert seen[0] is not main_client


def test_context_manager_closes_client(handler: RecordingHandler):
    with transport.HttpxTransport(transport=httpx.MockTransport(handler)) as t:
        http_client = t.client

    assert http_client.is_closed


def test_closed_client_is_recreated(http_transport: transport.HttpxTransport):
    first = http_transport.client
    http_transport.close()

    assert http_transport.client is not first


# ---------------------------------------------------------------------------
# ApiClient over httpx
# ---------------------------------------------------------------------------


def test_get_request_on_the_wire(api: client.ApiClient, handler: RecordingHandler):
    api.get("test/echo", {"foo": "bar"})

    (request,) = handler.requests
    signature = signing.sign("test", "echo", "K", "S")
    assert request.method == "GET"
    assert request.url.host == "api.test"
    assert request.url.path == f"/test/echo/foo/bar/apikey/K/authsecret/{signature}"
    assert request.url.query == b""
    assert request.content == b""


def test_get_keeps_encoded_values_in_raw_path(
    api: client.ApiClient,
    handler: RecordingHandler,
):
    api.get("test/echo", {"q": "a b/c"})

    (request,) = handler.requests
    assert b"/q/a+b%2Fc/" in request.url.raw_path


def test_post_request_on_the_wire(api: client.ApiClient, handler: RecordingHandler):
    api.post("test/echo", {"foo": "bar"})

    (request,) = handler.requests
    assert request.method == "POST"
    assert request.url.path == "/test/echo"
    assert request.headers["content-type"] == "application/x-www-form-urlencoded"
    assert parse_qs(request.content.decode()) == {
        "foo": ["bar"],
        "apikey": ["K"],
        "authsecret": [signing.sign("test", "echo", "K", "S")],
    }


def test_http_error_status_maps_to_transport_error(
    api: client.ApiClient,
    handler: RecordingHandler,
):
    handler.routes["/test"] = (404, b"<html>nope</html>")

    with pytest.raises(errors.TransportError) as exc_info:
        api.get("test/echo")

    assert exc_info.value.status_code == 404
    assert exc_info.value.reason == "Not Found"


def test_connection_failure_propagates():
    def refuse(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    api = client.ApiClient(
        config=types.ClientConfig(base_url=BASE_URL),
        transport=transport.HttpxTransport(transport=httpx.MockTransport(refuse)),
    )

    with pytest.raises(httpx.ConnectError):
        api.get("test/echo")


def test_full_session_flow(api: client.ApiClient, handler: RecordingHandler):
    """Login, an authenticated call, token expiry and a fresh login."""
    handler.routes["/user/login"] = (
        200,
        b"<response><username>alice</username><userid>7</userid>"
        b"<authtoken>T1</authtoken></response>",
    )
    api.login("alice", "pw")

    handler.routes["/user/profile"] = (
        200,
        b"<response><errorcode>104</errorcode>"
        b"<errormessage>Authtoken expired</errormessage></response>",
    )
    with pytest.raises(errors.ApiError) as exc_info:
        api.get("user/profile")

    assert exc_info.value.is_invalid_token
    assert "/authtoken/T1" in handler.requests[-1].url.path
    assert not api.has_session

    session = api.login("alice", "pw")
    assert session.user_id == "7"
    assert "authtoken" not in handler.requests[-1].url.path
