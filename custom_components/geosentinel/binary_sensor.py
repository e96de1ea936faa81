"""
Platform for GeoSentinel binary sensor integration.
Exposes whether a risk is inside the alert radius and whether the background
cycle is running late.
"""
from __future__ import annotations

import logging

from homeassistant.components.binary_sensor import BinarySensorEntity, BinarySensorDeviceClass
from homeassistant.core import HomeAssistant
from homeassistant import config_entries
from homeassistant.helpers.entity import DeviceInfo
from homeassistant.helpers.update_coordinator import CoordinatorEntity

from .const import DOMAIN
from .coordinator import GeoSentinelCoordinator

_LOGGER = logging.getLogger(__name__)


class RiskNearbyBinarySensor(CoordinatorEntity[GeoSentinelCoordinator], BinarySensorEntity):
    """On while at least one risk is inside the alert radius."""

    _attr_device_class = BinarySensorDeviceClass.SAFETY

    def __init__(self, coordinator: GeoSentinelCoordinator) -> None:
        super().__init__(coordinator)
        self._attr_unique_id = f"{DOMAIN}_{coordinator.entry_id}_risk_nearby"
        self._attr_name = f"{coordinator.entry_name} Risk Nearby"

    @property
    def device_info(self) -> DeviceInfo | None:
        return self.coordinator.get_device_info()

    @property
    def icon(self) -> str | None:
        if self.is_on:
            return "mdi:shield-alert"
        return "mdi:shield-check"

    @property
    def is_on(self) -> bool:
        return bool(self.coordinator.data.nearby_risks)


class SlowdownBinarySensor(CoordinatorEntity[GeoSentinelCoordinator], BinarySensorEntity):
    """On when the last cycle ran later than expected."""

    _attr_device_class = BinarySensorDeviceClass.PROBLEM

    def __init__(self, coordinator: GeoSentinelCoordinator) -> None:
        super().__init__(coordinator)
        self._attr_unique_id = f"{DOMAIN}_{coordinator.entry_id}_slowed_down"
        self._attr_name = f"{coordinator.entry_name} Monitoring Slowed Down"
        self._attr_icon = "mdi:timer-alert"

    @property
    def device_info(self) -> DeviceInfo | None:
        return self.coordinator.get_device_info()

    @property
    def is_on(self) -> bool:
        return self.coordinator.data.slowdown_detected


async def async_setup_entry(
    hass: HomeAssistant,
    config_entry: config_entries.ConfigEntry,
    async_add_entities,
):
    """Add binary sensors for passed config_entry in HA."""
    coordinator: GeoSentinelCoordinator = config_entry.runtime_data
    async_add_entities([
        RiskNearbyBinarySensor(coordinator),
        SlowdownBinarySensor(coordinator),
    ])
