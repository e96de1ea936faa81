"""
Platform for GeoSentinel switch integration.
The tracking switch starts and stops a session in the selected travel mode;
the municipality switch toggles the change-of-municipality notifications.
"""
from __future__ import annotations

import logging

from homeassistant.components.switch import SwitchEntity, SwitchDeviceClass
from homeassistant.core import HomeAssistant
from homeassistant import config_entries
from homeassistant.helpers.entity import DeviceInfo
from homeassistant.helpers.update_coordinator import CoordinatorEntity

from .const import DOMAIN
from .coordinator import GeoSentinelCoordinator

_LOGGER = logging.getLogger(__name__)


class TrackingSwitch(CoordinatorEntity[GeoSentinelCoordinator], SwitchEntity):
    """
    Representation of the background tracking session.
    Turning it on resolves the selected mode and starts the cycle.
    """

    _attr_device_class = SwitchDeviceClass.SWITCH

    def __init__(self, coordinator: GeoSentinelCoordinator) -> None:
        super().__init__(coordinator)
        self._attr_unique_id = f"{DOMAIN}_{coordinator.entry_id}_tracking"
        self._attr_name = f"{coordinator.entry_name} Tracking"
        self._attr_icon = "mdi:radar"

    @property
    def device_info(self) -> DeviceInfo | None:
        return self.coordinator.get_device_info()

    @property
    def is_on(self) -> bool:
        return self.coordinator.data.tracking_active

    async def async_turn_on(self, **kwargs) -> None:
        """Turn the switch on."""
        await self.coordinator.async_start_tracking(self.coordinator.selected_mode)

    async def async_turn_off(self, **kwargs) -> None:
        """Turn the switch off."""
        await self.coordinator.async_stop_tracking()


class MunicipalityWatchSwitch(CoordinatorEntity[GeoSentinelCoordinator], SwitchEntity):
    """Enables notifications when the agent enters another municipality."""

    _attr_device_class = SwitchDeviceClass.SWITCH

    def __init__(self, coordinator: GeoSentinelCoordinator) -> None:
        super().__init__(coordinator)
        self._attr_unique_id = f"{DOMAIN}_{coordinator.entry_id}_municipality_watch"
        self._attr_name = f"{coordinator.entry_name} Municipality Watch"
        self._attr_icon = "mdi:home-city-outline"

    @property
    def device_info(self) -> DeviceInfo | None:
        return self.coordinator.get_device_info()

    @property
    def is_on(self) -> bool:
        return self.coordinator.commune_watch_enabled

    async def async_turn_on(self, **kwargs) -> None:
        await self.coordinator.async_set_commune_watch(True)

    async def async_turn_off(self, **kwargs) -> None:
        await self.coordinator.async_set_commune_watch(False)


async def async_setup_entry(
    hass: HomeAssistant,
    config_entry: config_entries.ConfigEntry,
    async_add_entities,
):
    """Add switches for passed config_entry in HA."""
    coordinator: GeoSentinelCoordinator = config_entry.runtime_data
    async_add_entities([
        TrackingSwitch(coordinator),
        MunicipalityWatchSwitch(coordinator),
    ])
