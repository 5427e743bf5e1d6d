import json

import httpx
import pytest

from fleetsim.services.routing.graphhopper_client import GraphHopperClient, check_health

ROUTE_OK = {"paths": [{"distance": 1000.0, "time": 120000, "points": "_p~iF~ps|U_ulLnnqC"}]}


def _client(handler, **kwargs) -> GraphHopperClient:
    return GraphHopperClient(
        base_url="http://graphhopper.test/",
        max_retries=kwargs.pop("max_retries", 2),
        backoff_seconds=0.0,
        transport=httpx.MockTransport(handler),
        **kwargs,
    )


def test_route_posts_profile_and_payload():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=ROUTE_OK)

    client = _client(handler, profile="bike", api_key="secret")
    data = client.route({"points": [[73.86, 18.52], [73.87, 18.53]]})

    assert data == ROUTE_OK
    request = seen[0]
    assert request.url.path == "/route"
    assert request.url.params["key"] == "secret"
    body = json.loads(request.content)
    assert body["profile"] == "bike"
    assert body["points"] == [[73.86, 18.52], [73.87, 18.53]]


def test_retries_server_errors_then_succeeds():
    calls = {"count": 0}

    def handler(request):
        calls["count"] += 1
        if calls["count"] < 3:
            return httpx.Response(503, json={"message": "busy"})
        return httpx.Response(200, json=ROUTE_OK)

    assert _client(handler).route({"points": []}) == ROUTE_OK
    assert calls["count"] == 3


def test_client_error_is_not_retried():
    calls = {"count": 0}

    def handler(request):
        calls["count"] += 1
        return httpx.Response(400, json={"message": "Point 0 is out of bounds"})

    with pytest.raises(ValueError, match="out of bounds"):
        _client(handler).route({"points": []})
    assert calls["count"] == 1


def test_server_errors_exhaust_retries():
    def handler(request):
        return httpx.Response(502)

    with pytest.raises(httpx.HTTPStatusError):
        _client(handler, max_retries=1).route({"points": []})


def test_connection_failure_becomes_connection_error():
    calls = {"count": 0}

    def handler(request):
        calls["count"] += 1
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(ConnectionError):
        _client(handler).route({"points": []})
    assert calls["count"] == 3


def test_response_without_paths_is_rejected():
    def handler(request):
        return httpx.Response(200, json={"paths": [], "message": "no route"})

    with pytest.raises(ValueError, match="no paths"):
        _client(handler).route({"points": []})


def test_missing_base_url_is_a_configuration_error(monkeypatch):
    from fleetsim.services.routing import graphhopper_client

    monkeypatch.setattr(graphhopper_client.settings, "graphhopper_base_url", None)
    with pytest.raises(ValueError):
        GraphHopperClient()


def test_check_health():
    healthy = httpx.MockTransport(lambda request: httpx.Response(200, json={"version": "9.1", "profiles": []}))
    broken = httpx.MockTransport(lambda request: httpx.Response(500))

    assert check_health("http://graphhopper.test", transport=healthy) is True
    assert check_health("http://graphhopper.test", transport=broken) is False
