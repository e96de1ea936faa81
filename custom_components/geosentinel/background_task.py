"""
BackgroundTask — one proximity-alert cycle, run on every coordinator tick.

Sequence (each step may end the cycle early):
    0. no persisted mode       → tracking inactive, nothing to do
    1. session lifetime guard  → session over, service stopped
    2. execution-health check
    3. load the mode parameters from the store
    4. acquire the current position → no fix, skip this cycle
    5. refresh the risk cache when stale or too far away
       → tracking stopped meanwhile, nothing is notified
    6. proximity check and notifications
    7. municipality change (when enabled)

Nothing raised inside a step escapes run_cycle: failures are logged and the
next step still runs.
"""
from __future__ import annotations

import dataclasses
import logging
import time
from typing import Callable, Protocol

from .const import (
    DEFAULT_MAX_SESSION_MINUTES,
    DEFAULT_SESSION_WARNING_MINUTES,
    POSITION_DESIRED_ACCURACY,
    POSITION_MAX_AGE,
    POSITION_TIMEOUT,
)
from .coordinator_data import CoordinatorData
from .credentials import CredentialManager
from .health import ExecutionHealthMonitor
from .models import Position
from .municipality import MunicipalityWatcher
from .notifier import NotificationSink
from .position import PositionError
from .preferences import PreferenceStore
from .proximity import ProximityNotifier
from .risk_cache import RiskCacheManager
from .session_guard import ServiceController, SessionLifetimeGuard

_LOGGER = logging.getLogger(__name__)


def _now_ms() -> int:
    return int(time.time() * 1000)


class PositionSource(Protocol):
    async def async_get_current_position(
        self, timeout: float, desired_accuracy: float, max_age: float
    ) -> Position: ...


class BackgroundTask:
    """Owns the in-memory cycle state (risk cache, dedup maps, slowdown timer)."""

    def __init__(
        self,
        prefs: PreferenceStore,
        credentials: CredentialManager,
        position_source: PositionSource,
        sink: NotificationSink,
        controller: ServiceController,
        now_ms: Callable[[], int] = _now_ms,
        max_session_minutes: float = DEFAULT_MAX_SESSION_MINUTES,
        session_warning_minutes: float = DEFAULT_SESSION_WARNING_MINUTES,
    ) -> None:
        self._prefs = prefs
        self._position_source = position_source
        self.cache_manager = RiskCacheManager(prefs, credentials, now_ms)
        self.proximity = ProximityNotifier(sink, now_ms)
        self.health = ExecutionHealthMonitor(prefs, sink, now_ms)
        self.session_guard = SessionLifetimeGuard(
            prefs,
            sink,
            controller,
            now_ms,
            max_duration_minutes=max_session_minutes,
            warning_lead_minutes=session_warning_minutes,
        )
        self.municipality = MunicipalityWatcher(prefs, sink)
        self.data = CoordinatorData()

    def reset(self) -> None:
        """Forget every in-memory cooldown and cached risk (new session)."""
        self.cache_manager.reset()
        self.proximity.reset()
        self.health.reset()
        self.data = CoordinatorData()

    async def async_run_cycle(self) -> CoordinatorData:
        try:
            self.data = await self._run_cycle()
        except Exception as exc:  # noqa: BLE001
            _LOGGER.error("Unexpected error in background cycle: %s", exc, exc_info=True)
        return self.data

    async def _run_cycle(self) -> CoordinatorData:
        mode = await self._prefs.async_get_mode()
        if mode is None:
            _LOGGER.debug("Tracking inactive, skipping cycle")
            return CoordinatorData()

        if await self.session_guard.async_check_max_duration():
            return CoordinatorData()

        slowed = await self.health.async_check_slowdown()
        session = await self._prefs.async_load_session()
        data = dataclasses.replace(
            self.data,
            tracking_active=True,
            mode=mode,
            slowdown_detected=slowed,
            session_start_ms=session.start_time_ms if session else None,
        )

        config = await self._prefs.async_load_tournee_config()
        if config is None:
            # Stopped between the mode check and now
            return CoordinatorData()

        try:
            position = await self._position_source.async_get_current_position(
                POSITION_TIMEOUT, POSITION_DESIRED_ACCURACY, POSITION_MAX_AGE
            )
        except PositionError as err:
            _LOGGER.warning("No position this cycle: %s", err)
            return data
        except Exception as exc:  # noqa: BLE001
            _LOGGER.error("Position source failed: %s", exc)
            return data

        _LOGGER.debug("Position: %.4f, %.4f (±%.0fm)", position.latitude, position.longitude, position.accuracy)

        if await self._prefs.async_get_mode() is None:
            _LOGGER.debug("Tracking stopped while waiting for a position")
            return CoordinatorData()

        data = dataclasses.replace(data, position=position)

        try:
            if self.cache_manager.should_refresh(position, config):
                await self.cache_manager.async_refresh(position, config)
            else:
                _LOGGER.debug("Risk cache valid (%s risks)", len(self.cache_manager.risks))
        except Exception as exc:  # noqa: BLE001
            _LOGGER.error("Risk cache step failed: %s", exc)

        if await self._prefs.async_get_mode() is None:
            _LOGGER.debug("Tracking stopped while refreshing the risk cache")
            return CoordinatorData()

        cache = self.cache_manager.cache
        data = dataclasses.replace(
            data,
            cached_risk_count=len(cache.risks),
            last_fetch_time_ms=cache.last_fetch_time_ms if cache.populated else None,
        )

        try:
            nearby = await self.proximity.async_check_proximity(
                position, cache.risks, config.alert_radius_meters
            )
            data = dataclasses.replace(data, nearby_risks=tuple(nearby))
            if nearby:
                _LOGGER.info("%s risk(s) within %.0fm", len(nearby), config.alert_radius_meters)
        except Exception as exc:  # noqa: BLE001
            _LOGGER.error("Proximity step failed: %s", exc)

        try:
            if await self.municipality.async_is_enabled():
                commune = await self.municipality.async_check_municipality_change(position)
                if commune is not None:
                    data = dataclasses.replace(data, municipality=commune)
        except Exception as exc:  # noqa: BLE001
            _LOGGER.error("Municipality step failed: %s", exc)

        return data
