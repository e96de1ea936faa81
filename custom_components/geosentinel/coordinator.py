"""
DataUpdateCoordinator for the GeoSentinel integration.

Responsibilities:
- Act as the host scheduler of the background cycle: while tracking is
  active the update interval is the mode's position poll interval, otherwise
  it is None and nothing runs.
- Own the long-lived BackgroundTask (risk cache, dedup maps, slowdown timer).
- Start, stop and resume tracking sessions.
- Expose the last CoordinatorData snapshot to entities.
"""
from __future__ import annotations

import logging
import time
from datetime import timedelta
from typing import Callable

from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant
from homeassistant.helpers.device_registry import DeviceEntryType, DeviceInfo
from homeassistant.helpers.update_coordinator import DataUpdateCoordinator

from .background_task import BackgroundTask
from .const import (
    DOMAIN,
    VERSION,
    TOURNEE_TYPES,
    MODE_ON_FOOT,
    MODE_KEYS,
    SESSION_KEYS,
    CONF_ENTRY_NAME,
    CONF_NOTIFY_SERVICE,
    CONF_TRACKED_ENTITY,
    CONF_TOURNEE_TYPE,
    CONF_MAX_SESSION_MINUTES,
    CONF_SESSION_WARNING_MINUTES,
    DEFAULT_MAX_SESSION_MINUTES,
    DEFAULT_SESSION_WARNING_MINUTES,
    KEY_LAST_TASK_RUN,
    KEY_NOTIFY_COMMUNE_CHANGE,
    KEY_SESSION_WARNING_SENT,
    KEY_TRACKING_START_TIME,
)
from .coordinator_data import CoordinatorData
from .credentials import CredentialManager
from .mode_config import resolve_config
from .notifier import NotificationSink
from .position import EntityPositionSource
from .preferences import PreferenceStore

_LOGGER = logging.getLogger(__name__)


def _now_ms() -> int:
    return int(time.time() * 1000)


# ---------------------------------------------------------------------------
# GeoSentinelCoordinator — main coordinator
# ---------------------------------------------------------------------------

class GeoSentinelCoordinator(DataUpdateCoordinator[CoordinatorData]):
    """
    Coordinator for the GeoSentinel integration.

    Runs one proximity-alert cycle per tick. Stopping tracking sets the update
    interval to None so no further tick is scheduled.
    """

    def __init__(
        self,
        hass: HomeAssistant,
        entry: ConfigEntry,
        prefs: PreferenceStore,
        secure_store: PreferenceStore | None = None,
        now_ms: Callable[[], int] = _now_ms,
    ) -> None:
        """Initialize the coordinator from the config entry and its stores."""
        super().__init__(
            hass,
            _LOGGER,
            config_entry=entry,
            name=DOMAIN,
            update_interval=None,
        )

        options = {**entry.data, **entry.options}
        self.entry_id = entry.entry_id
        self.entry_name = options.get(CONF_ENTRY_NAME) or "GeoSentinel"
        self.prefs = prefs
        self.credentials = CredentialManager(prefs, secure_store)
        self.sink = NotificationSink(hass, options.get(CONF_NOTIFY_SERVICE))
        self.position_source = EntityPositionSource(hass, options.get(CONF_TRACKED_ENTITY))
        self._now_ms = now_ms

        self.task = BackgroundTask(
            prefs,
            self.credentials,
            self.position_source,
            self.sink,
            controller=self,
            now_ms=now_ms,
            max_session_minutes=options.get(CONF_MAX_SESSION_MINUTES, DEFAULT_MAX_SESSION_MINUTES),
            session_warning_minutes=options.get(CONF_SESSION_WARNING_MINUTES, DEFAULT_SESSION_WARNING_MINUTES),
        )

        # Mode used the next time tracking is switched on
        self.selected_mode: str = options.get(CONF_TOURNEE_TYPE) or MODE_ON_FOOT
        self.commune_watch_enabled: bool = False

        # Snapshot starts empty; entities must handle it until the first cycle
        self.data = CoordinatorData()

    # ------------------------------------------------------------------
    # HA entry point
    # ------------------------------------------------------------------

    async def _async_update_data(self) -> CoordinatorData:
        """Called on every update_interval tick. The cycle never raises."""
        return await self.task.async_run_cycle()

    # ------------------------------------------------------------------
    # Host scheduler
    # ------------------------------------------------------------------

    async def async_start_service(self, interval_ms: int) -> None:
        """Schedule the cycle every interval_ms and run one immediately."""
        self.update_interval = timedelta(milliseconds=max(interval_ms, 1000))
        _LOGGER.info("Background cycle scheduled every %ss", self.update_interval.total_seconds())
        await self.async_refresh()

    async def async_stop_service(self) -> None:
        """Stop the recurring cycle. A pending tick is cancelled."""
        self.update_interval = None
        # Also cancels the already scheduled refresh
        self.async_set_updated_data(CoordinatorData())
        _LOGGER.info("Background cycle stopped")

    # ------------------------------------------------------------------
    # Tracking lifecycle
    # ------------------------------------------------------------------

    @property
    def tracking_active(self) -> bool:
        return self.data.tracking_active

    async def async_resume(self) -> bool:
        """
        Resume a session persisted before a restart.

        Returns True when a mode was found and the cycle rescheduled. The
        session start time is kept so the lifetime guard still applies.
        """
        self.commune_watch_enabled = await self.prefs.async_commune_watch_enabled()
        config = await self.prefs.async_load_tournee_config()
        if config is None:
            return False
        self.selected_mode = config.mode
        self.update_interval = timedelta(milliseconds=max(config.position_poll_interval_ms, 1000))
        _LOGGER.info("Resuming tracking in mode %s", config.mode)
        return True

    async def async_start_tracking(self, mode: str | None = None) -> None:
        """Resolve the mode parameters, open a new session and start the cycle."""
        mode = mode or self.selected_mode
        if mode not in TOURNEE_TYPES:
            raise ValueError(f"Unknown travel mode: {mode}")

        config = await resolve_config(mode, self.prefs, self.credentials)
        await self.prefs.async_remove_many([KEY_LAST_TASK_RUN, KEY_SESSION_WARNING_SENT])
        await self.prefs.async_set(KEY_TRACKING_START_TIME, self._now_ms())
        self.task.reset()
        self.selected_mode = mode

        _LOGGER.info(
            "Tracking started: mode=%s alert=%sm zone=%skm refresh=%ss",
            mode,
            config.alert_radius_meters,
            config.search_radius_km,
            config.refresh_interval_ms / 1000,
        )
        await self.async_start_service(config.position_poll_interval_ms)

    async def async_stop_tracking(self) -> None:
        """Clear every mode and session key, then stop the cycle."""
        await self.prefs.async_remove_many(MODE_KEYS + SESSION_KEYS)
        self.task.reset()
        await self.async_stop_service()
        _LOGGER.info("Tracking stopped")

    async def async_select_mode(self, mode: str) -> None:
        """Remember the mode; an active session is restarted with it."""
        if mode not in TOURNEE_TYPES:
            raise ValueError(f"Unknown travel mode: {mode}")
        if self.tracking_active and self.data.mode != mode:
            await self.async_start_tracking(mode)
            return
        self.selected_mode = mode
        self.async_update_listeners()

    async def async_set_commune_watch(self, enabled: bool) -> None:
        await self.prefs.async_set(KEY_NOTIFY_COMMUNE_CHANGE, enabled)
        self.commune_watch_enabled = enabled
        self.async_update_listeners()

    # ------------------------------------------------------------------
    # Device info
    # ------------------------------------------------------------------

    def get_device_info(self) -> DeviceInfo:
        """Single service device grouping every entity of the entry."""
        return DeviceInfo(
            identifiers={(DOMAIN, self.entry_id)},
            name=self.entry_name,
            manufacturer="GeoSentinel",
            model="Proximity alerts",
            sw_version=VERSION,
            entry_type=DeviceEntryType.SERVICE,
        )
