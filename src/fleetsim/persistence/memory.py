"""In-memory persistence for drivers and delivery orders."""

from __future__ import annotations

import logging
import threading
from dataclasses import replace
from datetime import datetime, timezone
from typing import Iterable, Optional

from ..models.domain import Delivery, DeliveryStatus, Driver

logger = logging.getLogger(__name__)

OPEN_STATUSES: tuple[DeliveryStatus, ...] = ("pending", "picked_up")
_STATUS_ORDER: dict[str, int] = {"pending": 0, "picked_up": 1, "delivered": 2}


def _check_coordinate(latitude: float, longitude: float, label: str) -> None:
    if not (-90.0 <= latitude <= 90.0 and -180.0 <= longitude <= 180.0):
        raise ValueError(f"{label} ({latitude}, {longitude}) is not a valid coordinate.")


class InMemoryFleetStore:
    """Drivers and deliveries kept in process memory.

    Records are returned as copies; callers change them only through the
    store's methods.
    """

    def __init__(self) -> None:
        self._drivers: dict[str, Driver] = {}
        self._deliveries: dict[str, Delivery] = {}
        self._lock = threading.Lock()
        self._driver_counter = 0
        self._delivery_counter = 0

    # drivers

    def add_driver(
        self,
        *,
        name: str,
        latitude: float,
        longitude: float,
        driver_id: Optional[str] = None,
    ) -> Driver:
        if not name or not name.strip():
            raise ValueError("Driver name is required.")
        _check_coordinate(latitude, longitude, "Driver position")
        with self._lock:
            if driver_id is None:
                while True:
                    self._driver_counter += 1
                    driver_id = f"D{self._driver_counter:03d}"
                    if driver_id not in self._drivers:
                        break
            elif driver_id in self._drivers:
                raise ValueError(f"Driver '{driver_id}' already exists.")
            driver = Driver(driver_id=driver_id, name=name.strip(), latitude=latitude, longitude=longitude)
            self._drivers[driver_id] = driver
        logger.info(f"Driver {driver_id} registered at ({latitude}, {longitude})")
        return replace(driver)

    def get_driver(self, driver_id: str) -> Driver:
        with self._lock:
            driver = self._drivers.get(driver_id)
            if driver is None:
                raise KeyError(driver_id)
            return replace(driver)

    def list_drivers(self) -> list[Driver]:
        with self._lock:
            return [replace(driver) for driver in self._drivers.values()]

    # deliveries

    def add_delivery(
        self,
        *,
        pickup_latitude: float,
        pickup_longitude: float,
        delivery_latitude: float,
        delivery_longitude: float,
        driver_id: Optional[str] = None,
        delivery_id: Optional[str] = None,
    ) -> Delivery:
        _check_coordinate(pickup_latitude, pickup_longitude, "Pickup point")
        _check_coordinate(delivery_latitude, delivery_longitude, "Delivery point")
        with self._lock:
            if driver_id is not None and driver_id not in self._drivers:
                raise KeyError(driver_id)
            if delivery_id is None:
                while True:
                    self._delivery_counter += 1
                    delivery_id = f"O{self._delivery_counter:03d}"
                    if delivery_id not in self._deliveries:
                        break
            elif delivery_id in self._deliveries:
                raise ValueError(f"Delivery '{delivery_id}' already exists.")
            delivery = Delivery(
                delivery_id=delivery_id,
                driver_id=driver_id,
                pickup_latitude=pickup_latitude,
                pickup_longitude=pickup_longitude,
                delivery_latitude=delivery_latitude,
                delivery_longitude=delivery_longitude,
            )
            self._deliveries[delivery_id] = delivery
        logger.info(f"Delivery {delivery_id} created for driver {driver_id or 'unassigned'}")
        return replace(delivery)

    def get_delivery(self, delivery_id: str) -> Delivery:
        with self._lock:
            delivery = self._deliveries.get(delivery_id)
            if delivery is None:
                raise KeyError(delivery_id)
            return replace(delivery)

    def list_deliveries(self, *, driver_id: Optional[str] = None) -> list[Delivery]:
        with self._lock:
            return [
                replace(delivery)
                for delivery in self._deliveries.values()
                if driver_id is None or delivery.driver_id == driver_id
            ]

    def deliveries_for_driver(
        self, driver_id: str, statuses: Iterable[DeliveryStatus] = OPEN_STATUSES
    ) -> list[Delivery]:
        """Orders assigned to ``driver_id`` in creation order, filtered by status."""
        wanted = set(statuses)
        return [delivery for delivery in self.list_deliveries(driver_id=driver_id) if delivery.status in wanted]

    def mark_order_status(self, order_id: str, status: DeliveryStatus) -> Delivery:
        """Move an order forward; a status never goes backwards."""
        if status not in _STATUS_ORDER:
            raise ValueError(f"Unknown delivery status '{status}'.")
        with self._lock:
            delivery = self._deliveries.get(order_id)
            if delivery is None:
                raise KeyError(order_id)
            if _STATUS_ORDER[status] < _STATUS_ORDER[delivery.status]:
                raise ValueError(f"Delivery {order_id} is already {delivery.status}.")
            delivery.status = status
            delivery.updated_at = datetime.now(timezone.utc)
            updated = replace(delivery)
        logger.info(f"Delivery {order_id} is now {status}")
        return updated

