import httpx
import pytest

from route_planner.config import settings
from route_planner.services.routing.dispatch_client import DispatchClient, check_health


def _client(handler, **kwargs) -> DispatchClient:
    options = {"api_token": "secret", "max_retries": 2, "backoff_seconds": 0.0}
    options.update(kwargs)
    return DispatchClient(base_url="https://dispatch.test/api", transport=httpx.MockTransport(handler), **options)


def test_get_routes_sends_rider_and_statuses():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["params"] = dict(request.url.params)
        seen["auth"] = request.headers.get("Authorization")
        return httpx.Response(200, json={"success": True, "data": {"routes": [{"id": "R1", "status": "active"}]}})

    routes = _client(handler).get_routes("rider-1", ("active", "draft"))

    assert routes == [{"id": "R1", "status": "active"}]
    assert seen["path"] == "/api/rider/routes"
    assert seen["params"] == {"riderId": "rider-1", "status": "active,draft"}
    assert seen["auth"] == "Bearer secret"


def test_get_active_orders_accepts_unwrapped_payload():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"orders": [{"id": "O1"}]})

    assert _client(handler).get_active_orders("rider-1") == [{"id": "O1"}]


def test_missing_list_defaults_to_empty():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"data": {}})

    assert _client(handler).get_active_orders("rider-1") == []


def test_server_errors_are_retried():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        if len(calls) < 3:
            return httpx.Response(503)
        return httpx.Response(200, json={"orders": []})

    assert _client(handler).get_active_orders("rider-1") == []
    assert len(calls) == 3


def test_client_errors_are_not_retried():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(404)

    with pytest.raises(httpx.HTTPStatusError):
        _client(handler).get_routes("rider-1")
    assert len(calls) == 1


def test_network_failure_becomes_connection_error():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(ConnectionError):
        _client(handler, max_retries=1).get_active_orders("rider-1")
    assert len(calls) == 2


def test_non_object_response_is_rejected():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=[1, 2, 3])

    with pytest.raises(ValueError):
        _client(handler, max_retries=0).get_active_orders("rider-1")


def test_start_route_and_complete_delivery_payloads():
    bodies = []

    def handler(request: httpx.Request) -> httpx.Response:
        bodies.append((request.method, request.url.path, request.read()))
        return httpx.Response(200, json={"success": True})

    client = _client(handler)
    client.start_route("rider-1", "R9")
    client.complete_delivery("rider-1", "SH1", cod_amount=150.0)

    assert bodies[0][0] == "POST"
    assert bodies[0][1] == "/api/rider/start-route"
    assert b'"routeId":"R9"' in bodies[0][2].replace(b" ", b"")
    assert bodies[1][1] == "/api/rider/complete-delivery"
    assert b'"codAmount":150.0' in bodies[1][2].replace(b" ", b"")


def test_complete_delivery_is_sent_once_on_timeout():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request.url.path)
        if len(calls) == 1:
            raise httpx.ReadTimeout("read timed out", request=request)
        return httpx.Response(200, json={"success": True})

    with pytest.raises(ConnectionError):
        _client(handler).complete_delivery("rider-1", "SH1", cod_amount=10.0)
    assert calls == ["/api/rider/complete-delivery"]


def test_start_route_is_not_retried_on_server_error():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request.url.path)
        return httpx.Response(503)

    with pytest.raises(httpx.HTTPStatusError):
        _client(handler).start_route("rider-1", "R9")
    assert calls == ["/api/rider/start-route"]


def test_reads_are_retried_on_timeout():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request.url.path)
        if len(calls) == 1:
            raise httpx.ReadTimeout("read timed out", request=request)
        return httpx.Response(200, json={"routes": []})

    assert _client(handler).get_routes("rider-1") == []
    assert len(calls) == 2


def test_unconfigured_base_url(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(settings, "dispatch_base_url", None)

    with pytest.raises(ValueError):
        DispatchClient()
    assert check_health() is False
