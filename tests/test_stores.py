import pytest

from fleetsim.persistence.memory import InMemoryFleetStore
from fleetsim.services.hazards import HazardZoneStore


def test_hazard_ids_are_generated_and_unique():
    store = HazardZoneStore()
    first = store.create(kind="storm", latitude=18.52, longitude=73.86, radius_km=2.0)
    second = store.create(kind="traffic", latitude=18.53, longitude=73.87, radius_km=1.0)

    assert (first.zone_id, second.zone_id) == ("W001", "W002")
    assert first.severity_class == "storm"


def test_hazard_generated_id_skips_claimed_ids():
    store = HazardZoneStore()
    store.create(zone_id="W001", kind="storm", latitude=18.52, longitude=73.86, radius_km=2.0)
    assert store.create(kind="storm", latitude=18.52, longitude=73.86, radius_km=2.0).zone_id == "W002"


@pytest.mark.parametrize(
    "kwargs",
    [
        {"kind": "storm", "latitude": 18.52, "longitude": 73.86, "radius_km": 0},
        {"kind": "storm", "latitude": 91.0, "longitude": 73.86, "radius_km": 1.0},
        {"kind": " ", "latitude": 18.52, "longitude": 73.86, "radius_km": 1.0},
    ],
)
def test_hazard_validation(kwargs):
    with pytest.raises(ValueError):
        HazardZoneStore().create(**kwargs)


def test_duplicate_hazard_id_rejected():
    store = HazardZoneStore()
    store.create(zone_id="W007", kind="storm", latitude=18.52, longitude=73.86, radius_km=2.0)
    with pytest.raises(ValueError):
        store.create(zone_id="W007", kind="storm", latitude=18.52, longitude=73.86, radius_km=2.0)


def test_toggle_and_active_snapshot():
    store = HazardZoneStore()
    zone = store.create(kind="storm", latitude=18.52, longitude=73.86, radius_km=2.0)
    snapshot = store.list_active()

    toggled = store.toggle(zone.zone_id)

    assert not toggled.active
    assert store.list_active() == ()
    assert snapshot[0].active
    with pytest.raises(KeyError):
        store.toggle("W999")


def test_listeners_are_notified_and_failures_contained():
    store = HazardZoneStore()
    seen = []

    def broken(zone_id):
        raise RuntimeError("listener bug")

    store.subscribe(broken)
    store.subscribe(seen.append)
    zone = store.create(kind="storm", latitude=18.52, longitude=73.86, radius_km=2.0)
    store.toggle(zone.zone_id)
    store.unsubscribe(seen.append)
    store.toggle(zone.zone_id)

    assert seen == ["W001", "W001"]


def test_fleet_store_status_only_moves_forward():
    store = InMemoryFleetStore()
    driver = store.add_driver(name="Asha", latitude=18.52, longitude=73.86)
    delivery = store.add_delivery(
        driver_id=driver.driver_id,
        pickup_latitude=18.52,
        pickup_longitude=73.87,
        delivery_latitude=18.53,
        delivery_longitude=73.88,
    )

    assert (driver.driver_id, delivery.delivery_id) == ("D001", "O001")
    assert store.mark_order_status("O001", "picked_up").status == "picked_up"
    with pytest.raises(ValueError):
        store.mark_order_status("O001", "pending")
    assert store.deliveries_for_driver("D001")[0].status == "picked_up"
    store.mark_order_status("O001", "delivered")
    assert store.deliveries_for_driver("D001") == []


def test_fleet_store_rejects_unknown_driver_and_duplicates():
    store = InMemoryFleetStore()
    store.add_driver(driver_id="D1", name="Asha", latitude=18.52, longitude=73.86)
    with pytest.raises(ValueError):
        store.add_driver(driver_id="D1", name="Ravi", latitude=18.52, longitude=73.86)
    with pytest.raises(KeyError):
        store.add_delivery(
            driver_id="D9",
            pickup_latitude=18.52,
            pickup_longitude=73.87,
            delivery_latitude=18.53,
            delivery_longitude=73.88,
        )
    with pytest.raises(KeyError):
        store.get_driver("D9")


def test_fleet_store_returns_copies():
    store = InMemoryFleetStore()
    driver = store.add_driver(driver_id="D1", name="Asha", latitude=18.52, longitude=73.86)
    driver.latitude = 0.0
    assert store.get_driver("D1").latitude == 18.52
