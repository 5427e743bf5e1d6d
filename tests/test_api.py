import pytest
from fastapi.testclient import TestClient

from fleetsim import runtime
from fleetsim.api.routes import health as health_routes
from fleetsim.main import create_app
from fleetsim.services.geospatial import destination_point

DEPOT = (18.52, 73.86)
PICKUP = destination_point(DEPOT[0], DEPOT[1], 90.0, 0.3)
DROPOFF = destination_point(PICKUP[0], PICKUP[1], 0.0, 0.3)


class DummyGraphHopper:
    def __init__(self):
        self.payloads = []

    def route(self, payload):
        self.payloads.append(payload)
        return {
            "paths": [
                {
                    "distance": 600.0,
                    "time": 45000,
                    "points": {"type": "LineString", "coordinates": payload["points"]},
                    "points_encoded": False,
                }
            ]
        }


class DownGraphHopper:
    def route(self, payload):
        raise ConnectionError("connection refused")


@pytest.fixture
def provider(monkeypatch):
    runtime.reset_runtime()
    dummy = DummyGraphHopper()
    monkeypatch.setattr(runtime, "GraphHopperClient", lambda: dummy)
    yield dummy
    runtime.reset_runtime()


@pytest.fixture
def api_client(provider) -> TestClient:
    return TestClient(create_app())


def _add_driver_with_order(client: TestClient, driver_id: str = "D1") -> None:
    response = client.post(
        "/api/drivers",
        json={"id": driver_id, "name": "Asha", "latitude": DEPOT[0], "longitude": DEPOT[1]},
    )
    assert response.status_code == 201
    response = client.post(
        "/api/deliveries",
        json={
            "driver_id": driver_id,
            "pickup_latitude": PICKUP[0],
            "pickup_longitude": PICKUP[1],
            "delivery_latitude": DROPOFF[0],
            "delivery_longitude": DROPOFF[1],
        },
    )
    assert response.status_code == 201


def test_health(api_client, monkeypatch):
    assert api_client.get("/api/health").json()["status"] == "ok"

    monkeypatch.setattr(health_routes, "graphhopper_health_check", lambda: False)
    body = api_client.get("/api/health/graphhopper").json()
    assert body["healthy"] is False
    assert body["status"] == "unavailable"


def test_driver_crud(api_client):
    _add_driver_with_order(api_client)

    drivers = api_client.get("/api/drivers").json()
    assert [driver["id"] for driver in drivers] == ["D1"]

    duplicate = api_client.post("/api/drivers", json={"id": "D1", "name": "Ravi", "latitude": 1, "longitude": 2})
    assert duplicate.status_code == 400

    invalid = api_client.post("/api/drivers", json={"name": "Ravi", "latitude": 100, "longitude": 2})
    assert invalid.status_code == 422

    deliveries = api_client.get("/api/deliveries", params={"driver_id": "D1"}).json()
    assert len(deliveries) == 1
    assert deliveries[0]["status"] == "pending"


def test_delivery_for_unknown_driver_is_404(api_client):
    response = api_client.post(
        "/api/deliveries",
        json={
            "driver_id": "ghost",
            "pickup_latitude": 18.5,
            "pickup_longitude": 73.8,
            "delivery_latitude": 18.6,
            "delivery_longitude": 73.9,
        },
    )
    assert response.status_code == 404


def test_driver_route_visits_every_open_stop(api_client, provider):
    _add_driver_with_order(api_client)

    body = api_client.get("/api/drivers/D1/route").json()

    assert len(body["route"]) == 3
    assert body["route"][0] == [DEPOT[0], DEPOT[1]]
    assert body["fallback"] is False
    assert body["strategy"] == "direct"
    assert len(body["deliveries"]) == 1
    assert provider.payloads[-1]["optimize"] == "true"


def test_driver_route_without_orders_is_empty(api_client):
    api_client.post("/api/drivers", json={"id": "D2", "name": "Ravi", "latitude": 18.5, "longitude": 73.8})
    body = api_client.get("/api/drivers/D2/route").json()
    assert body["route"] == []
    assert body["distance"] == 0


def test_driver_route_unknown_driver(api_client):
    assert api_client.get("/api/drivers/ghost/route").status_code == 404


def test_calculate_route(api_client):
    response = api_client.post("/api/calculate-route", json={"points": [[18.52, 73.86], [18.53, 73.87]]})

    assert response.status_code == 200
    body = response.json()
    assert body["route"] == [[18.52, 73.86], [18.53, 73.87]]
    assert body["distance"] == 600.0
    assert body["duration"] == 45000
    assert body["strategy"] == "direct"
    assert body["penalty"]["total_penalty"] == 0


@pytest.mark.parametrize("points", [[[18.52, 73.86]], [[18.52, 73.86], [18.53]], [[18.52, 73.86], [99.0, 73.87]]])
def test_calculate_route_rejects_bad_points(api_client, points):
    response = api_client.post("/api/calculate-route", json={"points": points})
    assert response.status_code == 400


def test_calculate_route_falls_back_when_provider_down(monkeypatch):
    runtime.reset_runtime()
    monkeypatch.setattr(runtime, "GraphHopperClient", lambda: DownGraphHopper())
    client = TestClient(create_app())
    try:
        body = client.post("/api/calculate-route", json={"points": [[18.52, 73.86], [18.53, 73.87]]}).json()
    finally:
        runtime.reset_runtime()

    assert body["fallback"] is True
    assert body["route"] == [[18.52, 73.86], [18.53, 73.87]]
    assert body["distance"] == 0
    assert body["duration"] == 0


def test_weather_events(api_client):
    created = api_client.post(
        "/api/weather-events",
        json={"type": "storm", "latitude": 18.52, "longitude": 73.86, "radius": 2},
    )
    assert created.status_code == 201
    event = created.json()
    assert event["id"] == "W001"
    assert event["severity"] == "storm"
    assert event["active"] is True

    toggled = api_client.patch("/api/weather-events/W001/toggle").json()
    assert toggled["active"] is False
    assert api_client.get("/api/weather-events").json()[0]["active"] is False

    assert api_client.patch("/api/weather-events/W404/toggle").status_code == 404
    duplicate = api_client.post(
        "/api/weather-events",
        json={"id": "W001", "type": "fog", "latitude": 18.52, "longitude": 73.86, "radius": 1},
    )
    assert duplicate.status_code == 400
    zero_radius = api_client.post(
        "/api/weather-events",
        json={"type": "fog", "latitude": 18.52, "longitude": 73.86, "radius": 0},
    )
    assert zero_radius.status_code == 422


def test_simulation_runs_to_completion(api_client):
    _add_driver_with_order(api_client)

    started = api_client.post("/api/drivers/D1/simulation/start", json={"speed_kmh": 60})
    assert started.status_code == 200
    assert started.json()["phase"] == "en_route_to_pickup"
    assert started.json()["speed_kmh"] == 60

    state = started.json()
    for _ in range(5):
        state = api_client.post(
            "/api/drivers/D1/simulation/tick",
            json={"delta_ms": 600000, "wait_for_routes": True},
        ).json()
        if state["completed"]:
            break

    assert state["completed"] is True
    assert state["phase"] == "idle"
    assert state["position"] == pytest.approx([DROPOFF[0], DROPOFF[1]])

    metrics = api_client.get("/api/metrics").json()
    assert metrics["total_deliveries"] == 1
    assert metrics["completed_deliveries"] == 1
    assert metrics["completion_rate"] == 100.0
    assert metrics["moving_drivers"] == 0


def test_weather_event_reroutes_moving_driver(api_client):
    _add_driver_with_order(api_client)
    api_client.post("/api/drivers/D1/simulation/start")

    api_client.post(
        "/api/weather-events",
        json={"type": "traffic", "latitude": PICKUP[0], "longitude": PICKUP[1], "radius": 0.1},
    )

    state = api_client.get("/api/drivers/D1/simulation-state").json()
    assert state["reroute_count"] == 1
    assert api_client.get("/api/metrics").json()["total_reroutes"] == 1


def test_simulation_controls(api_client):
    _add_driver_with_order(api_client)
    assert api_client.post("/api/drivers/ghost/simulation/start").status_code == 404
    assert api_client.get("/api/drivers/ghost/simulation-state").status_code == 404
    idle = api_client.post("/api/drivers/D1/simulation/tick", json={"delta_ms": 100})
    assert idle.status_code == 200
    assert idle.json()["phase"] == "idle"

    api_client.post("/api/drivers/D1/simulation/start")
    speed = api_client.post("/api/drivers/D1/simulation/speed", json={"speed_kmh": 30})
    assert speed.json()["speed_kmh"] == 30
    assert api_client.post("/api/drivers/D1/simulation/speed", json={"speed_kmh": -5}).status_code == 422

    stopped = api_client.post("/api/drivers/D1/simulation/stop").json()
    assert stopped["phase"] == "idle"
    assert stopped["is_moving"] is False
    assert [state["driver_id"] for state in api_client.get("/api/simulation/drivers").json()] == ["D1"]
