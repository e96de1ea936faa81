"""
Platform for GeoSentinel sensor integration.
This module is responsible for the nearby-risk, nearest-distance, cached-risk
and municipality sensors, all fed by the GeoSentinelCoordinator snapshot.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone

from homeassistant.components.sensor import SensorEntity, SensorDeviceClass, SensorStateClass
from homeassistant.const import UnitOfLength
from homeassistant.core import HomeAssistant
from homeassistant import config_entries
from homeassistant.helpers.entity import DeviceInfo
from homeassistant.helpers.update_coordinator import CoordinatorEntity

from .const import DOMAIN
from .coordinator import GeoSentinelCoordinator
from .models import NearbyRisk

_LOGGER = logging.getLogger(__name__)


def _risk_attributes(item: NearbyRisk) -> dict:
    return {
        "id": item.risk.id,
        "title": item.risk.title,
        "category": item.risk.category,
        "severity": item.risk.severity.value,
        "distance": round(item.distance),
    }


class GeoSentinelSensor(CoordinatorEntity[GeoSentinelCoordinator], SensorEntity):
    """Base class: unique id and device info derived from the config entry."""

    def __init__(self, coordinator: GeoSentinelCoordinator, key: str, name: str, icon: str) -> None:
        super().__init__(coordinator)
        self._attr_unique_id = f"{DOMAIN}_{coordinator.entry_id}_{key}"
        self._attr_name = f"{coordinator.entry_name} {name}"
        self._attr_icon = icon

    @property
    def device_info(self) -> DeviceInfo | None:
        return self.coordinator.get_device_info()


class NearbyRiskCountSensor(GeoSentinelSensor):
    """Number of risks inside the alert radius at the last position."""

    def __init__(self, coordinator: GeoSentinelCoordinator) -> None:
        super().__init__(coordinator, "nearby_risks", "Nearby Risks", "mdi:alert")
        self._attr_state_class = SensorStateClass.MEASUREMENT

    @property
    def native_value(self) -> int | None:
        if not self.coordinator.data.tracking_active:
            return None
        return len(self.coordinator.data.nearby_risks)

    @property
    def extra_state_attributes(self) -> dict:
        return {"risks": [_risk_attributes(item) for item in self.coordinator.data.nearby_risks]}


class NearestRiskDistanceSensor(GeoSentinelSensor):
    """Distance to the nearest risk inside the alert radius."""

    def __init__(self, coordinator: GeoSentinelCoordinator) -> None:
        super().__init__(coordinator, "nearest_risk_distance", "Nearest Risk Distance", "mdi:map-marker-distance")
        self._attr_device_class = SensorDeviceClass.DISTANCE
        self._attr_native_unit_of_measurement = UnitOfLength.METERS
        self._attr_state_class = SensorStateClass.MEASUREMENT

    @property
    def native_value(self) -> int | None:
        nearest = self.coordinator.data.nearest_risk
        if nearest is None:
            return None
        return round(nearest.distance)

    @property
    def extra_state_attributes(self) -> dict:
        nearest = self.coordinator.data.nearest_risk
        if nearest is None:
            return {}
        return _risk_attributes(nearest)


class CachedRiskCountSensor(GeoSentinelSensor):
    """Size of the in-memory risk cache, with the time of the last fetch."""

    def __init__(self, coordinator: GeoSentinelCoordinator) -> None:
        super().__init__(coordinator, "cached_risks", "Cached Risks", "mdi:database-marker")
        self._attr_state_class = SensorStateClass.MEASUREMENT

    @property
    def native_value(self) -> int:
        return self.coordinator.data.cached_risk_count

    @property
    def extra_state_attributes(self) -> dict:
        fetched = self.coordinator.data.last_fetch_time_ms
        if fetched is None:
            return {"last_fetch": None}
        return {"last_fetch": datetime.fromtimestamp(fetched / 1000, tz=timezone.utc).isoformat()}


class MunicipalitySensor(GeoSentinelSensor):
    """Municipality of the last position, when the municipality watch is on."""

    def __init__(self, coordinator: GeoSentinelCoordinator) -> None:
        super().__init__(coordinator, "municipality", "Municipality", "mdi:home-city")

    @property
    def native_value(self) -> str | None:
        return self.coordinator.data.municipality


async def async_setup_entry(
    hass: HomeAssistant,
    config_entry: config_entries.ConfigEntry,
    async_add_entities,
):
    """Add sensors for passed config_entry in HA."""
    coordinator: GeoSentinelCoordinator = config_entry.runtime_data
    async_add_entities([
        NearbyRiskCountSensor(coordinator),
        NearestRiskDistanceSensor(coordinator),
        CachedRiskCountSensor(coordinator),
        MunicipalitySensor(coordinator),
    ])
