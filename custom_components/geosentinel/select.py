"""Platform for the GeoSentinel travel-mode select."""
from __future__ import annotations

import logging

from homeassistant.components.select import SelectEntity
from homeassistant.core import HomeAssistant
from homeassistant import config_entries
from homeassistant.helpers.entity import DeviceInfo
from homeassistant.helpers.update_coordinator import CoordinatorEntity

from .const import DOMAIN, MODE_LABELS, TOURNEE_TYPES
from .coordinator import GeoSentinelCoordinator

_LOGGER = logging.getLogger(__name__)


class TravelModeSelect(CoordinatorEntity[GeoSentinelCoordinator], SelectEntity):
    """
    Travel mode of the session.
    Shows the active mode while tracking, otherwise the mode used on the next start.
    """

    _attr_options = list(TOURNEE_TYPES)

    def __init__(self, coordinator: GeoSentinelCoordinator) -> None:
        super().__init__(coordinator)
        self._attr_unique_id = f"{DOMAIN}_{coordinator.entry_id}_travel_mode"
        self._attr_name = f"{coordinator.entry_name} Travel Mode"
        self._attr_icon = "mdi:walk"

    @property
    def device_info(self) -> DeviceInfo | None:
        return self.coordinator.get_device_info()

    @property
    def current_option(self) -> str | None:
        return self.coordinator.data.mode or self.coordinator.selected_mode

    @property
    def extra_state_attributes(self) -> dict:
        return {"label": MODE_LABELS.get(self.current_option)}

    async def async_select_option(self, option: str) -> None:
        await self.coordinator.async_select_mode(option)


async def async_setup_entry(
    hass: HomeAssistant,
    config_entry: config_entries.ConfigEntry,
    async_add_entities,
):
    """Add the travel-mode select for passed config_entry in HA."""
    coordinator: GeoSentinelCoordinator = config_entry.runtime_data
    async_add_entities([TravelModeSelect(coordinator)])
