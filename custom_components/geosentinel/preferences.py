"""
PreferenceStore — durable string-keyed settings shared by the foreground
(config entry, entities) and the background cycle.

Backed by a Home Assistant Store so every value survives restarts. All writes
are saved immediately; a cycle started after a stop must see the cleared keys.
"""
from __future__ import annotations

import logging
from typing import Any

from homeassistant.core import HomeAssistant
from homeassistant.helpers.storage import Store

from .const import (
    DOMAIN,
    STORAGE_VERSION,
    KEY_TOURNEE_TYPE,
    KEY_POSITION_DELAY_SECONDS,
    KEY_API_CALL_DELAY_MINUTES,
    KEY_RISK_LOAD_ZONE_KM,
    KEY_ALERT_RADIUS_METERS,
    KEY_TRACKING_START_TIME,
    KEY_LAST_TASK_RUN,
    KEY_SESSION_WARNING_SENT,
    KEY_LAST_KNOWN_COMMUNE,
    KEY_NOTIFY_COMMUNE_CHANGE,
    KEY_ACTIVE_API_URL,
    FALLBACK_MODE_SETTINGS,
    DEFAULT_MODE_SETTINGS,
)
from .models import SessionState, TourneeConfig

_LOGGER = logging.getLogger(__name__)


class PreferenceStore:
    """Key-value view over one HA Store document."""

    def __init__(self, hass: HomeAssistant, key: str, private: bool = False) -> None:
        self._store = Store(hass, STORAGE_VERSION, f"{DOMAIN}.{key}", private=private)
        self._data: dict[str, Any] = {}
        self._loaded = False

    async def async_load(self) -> None:
        """Load the document from disk. Safe to call more than once."""
        if self._loaded:
            return
        stored = await self._store.async_load()
        self._data = dict(stored) if stored else {}
        self._loaded = True

    async def async_get(self, key: str, default: Any = None) -> Any:
        await self.async_load()
        return self._data.get(key, default)

    async def async_set(self, key: str, value: Any) -> None:
        await self.async_load()
        self._data[key] = value
        await self._store.async_save(dict(self._data))

    async def async_set_many(self, values: dict[str, Any]) -> None:
        await self.async_load()
        self._data.update(values)
        await self._store.async_save(dict(self._data))

    async def async_remove(self, key: str) -> None:
        await self.async_remove_many([key])

    async def async_remove_many(self, keys: list[str]) -> None:
        await self.async_load()
        removed = [key for key in keys if self._data.pop(key, None) is not None]
        if removed:
            await self._store.async_save(dict(self._data))

    async def async_delete(self) -> None:
        """Remove the whole document from disk (config entry removed)."""
        await self._store.async_remove()
        self._data = {}
        self._loaded = False

    # ------------------------------------------------------------------
    # Typed accessors
    # ------------------------------------------------------------------

    async def async_get_int(self, key: str) -> int | None:
        value = await self.async_get(key)
        if value is None or value == "":
            return None
        try:
            return int(float(value))
        except (TypeError, ValueError):
            _LOGGER.warning("Ignoring non-numeric value %r stored under %s", value, key)
            return None

    async def async_get_float(self, key: str) -> float | None:
        value = await self.async_get(key)
        if value is None or value == "":
            return None
        try:
            return float(value)
        except (TypeError, ValueError):
            _LOGGER.warning("Ignoring non-numeric value %r stored under %s", value, key)
            return None

    async def async_get_bool(self, key: str) -> bool:
        value = await self.async_get(key)
        if isinstance(value, str):
            return value.strip().lower() in ("1", "true", "yes", "on")
        return bool(value)

    async def async_get_mode(self) -> str | None:
        """Return the persisted travel mode; None means tracking is inactive."""
        mode = await self.async_get(KEY_TOURNEE_TYPE)
        return mode or None

    async def async_load_tournee_config(self) -> TourneeConfig | None:
        """
        Build the TourneeConfig from the persisted keys.

        Returns None when no mode is persisted (tracking inactive). Missing or
        malformed parameters fall back to the mode's static defaults so this
        never fails for an active session.
        """
        mode = await self.async_get_mode()
        if mode is None:
            return None

        refresh_min, alert_m, zone_km, poll_s = FALLBACK_MODE_SETTINGS.get(mode, DEFAULT_MODE_SETTINGS)
        stored_refresh = await self.async_get_float(KEY_API_CALL_DELAY_MINUTES)
        stored_alert = await self.async_get_float(KEY_ALERT_RADIUS_METERS)
        stored_zone = await self.async_get_float(KEY_RISK_LOAD_ZONE_KM)
        stored_poll = await self.async_get_float(KEY_POSITION_DELAY_SECONDS)

        if None in (stored_refresh, stored_alert, stored_zone):
            _LOGGER.warning("Tracking parameters missing for mode %s, using defaults", mode)

        return TourneeConfig(
            mode=mode,
            search_radius_km=stored_zone if stored_zone is not None else zone_km,
            alert_radius_meters=stored_alert if stored_alert is not None else alert_m,
            refresh_interval_ms=int((stored_refresh if stored_refresh is not None else refresh_min) * 60 * 1000),
            position_poll_interval_ms=int((stored_poll if stored_poll is not None else poll_s) * 1000),
        )

    async def async_save_tournee_config(self, config: TourneeConfig) -> None:
        await self.async_set_many({
            KEY_TOURNEE_TYPE: config.mode,
            KEY_POSITION_DELAY_SECONDS: config.position_poll_interval_ms / 1000,
            KEY_API_CALL_DELAY_MINUTES: config.refresh_interval_ms / 60000,
            KEY_RISK_LOAD_ZONE_KM: config.search_radius_km,
            KEY_ALERT_RADIUS_METERS: config.alert_radius_meters,
        })

    async def async_load_session(self) -> SessionState | None:
        start = await self.async_get_int(KEY_TRACKING_START_TIME)
        if start is None:
            return None
        return SessionState(
            start_time_ms=start,
            last_run_ms=await self.async_get_int(KEY_LAST_TASK_RUN),
            warning_sent=await self.async_get_bool(KEY_SESSION_WARNING_SENT),
        )

    async def async_get_active_url(self) -> str | None:
        return await self.async_get(KEY_ACTIVE_API_URL)

    async def async_get_last_commune(self) -> str | None:
        return await self.async_get(KEY_LAST_KNOWN_COMMUNE)

    async def async_commune_watch_enabled(self) -> bool:
        return await self.async_get_bool(KEY_NOTIFY_COMMUNE_CHANGE)
