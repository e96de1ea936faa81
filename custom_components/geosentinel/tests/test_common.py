"""
Shared helpers and factory functions for GeoSentinel tests.
Import from this module in each test file to avoid duplication.
"""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

from custom_components.geosentinel.const import (
    CONF_ENTRY_NAME,
    CONF_PRIMARY_URL,
    CONF_FALLBACK_URL,
    CONF_EMAIL,
    CONF_TRACKED_ENTITY,
    CONF_NOTIFY_SERVICE,
    KEY_ACTIVE_API_URL,
    KEY_ACCESS_TOKEN,
    KEY_REFRESH_TOKEN,
    MODE_BICYCLE,
)
from custom_components.geosentinel.coordinator import GeoSentinelCoordinator
from custom_components.geosentinel.credentials import CredentialManager
from custom_components.geosentinel.models import Position, Risk, Severity, TourneeConfig
from custom_components.geosentinel.preferences import PreferenceStore


BASE_URL = "https://api.example.test"

# Reference point used by most scenarios
HOME_LAT = 45.0
HOME_LNG = 6.0

# One degree of latitude in metres (Haversine with R = 6371 km)
METERS_PER_DEGREE_LAT = 111_194.93


class FakeStore:
    """In-memory stand-in for homeassistant.helpers.storage.Store."""

    def __init__(self, hass, version, key, private=False, **kwargs):
        self.key = key
        self.private = private
        self.saved: dict | None = None
        self.save_count = 0
        self.removed = False

    async def async_load(self):
        return dict(self.saved) if self.saved is not None else None

    async def async_save(self, data):
        self.saved = dict(data)
        self.save_count += 1

    async def async_remove(self):
        self.saved = None
        self.removed = True


class FakeClock:
    """Controllable epoch-millisecond clock."""

    def __init__(self, start_ms: int = 1_700_000_000_000) -> None:
        self.now = start_ms

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms

    def advance_minutes(self, minutes: float) -> None:
        self.now += int(minutes * 60 * 1000)


def make_prefs(initial: dict | None = None, key: str = "test", private: bool = False) -> PreferenceStore:
    """Build a PreferenceStore backed by a FakeStore, optionally pre-loaded."""
    with patch("custom_components.geosentinel.preferences.Store", FakeStore):
        prefs = PreferenceStore(MagicMock(), key, private=private)
    if initial is not None:
        prefs._store.saved = dict(initial)
    return prefs


def make_logged_in_prefs(**extra) -> PreferenceStore:
    values = {
        KEY_ACTIVE_API_URL: BASE_URL,
        KEY_ACCESS_TOKEN: "access-1",
        KEY_REFRESH_TOKEN: "refresh-1",
    }
    values.update(extra)
    return make_prefs(values)


def make_sink() -> MagicMock:
    sink = MagicMock()
    sink.async_send = AsyncMock()
    return sink


def sent_titles(sink: MagicMock) -> list[str]:
    return [call.args[0].title for call in sink.async_send.await_args_list]


def make_credentials(prefs: PreferenceStore | None = None, secure: PreferenceStore | None = None) -> CredentialManager:
    return CredentialManager(prefs or make_logged_in_prefs(), secure)


def make_position(lat: float = HOME_LAT, lng: float = HOME_LNG, accuracy: float = 10.0, timestamp_ms: int = 0) -> Position:
    return Position(latitude=lat, longitude=lng, accuracy=accuracy, timestamp_ms=timestamp_ms)


def offset_north(meters: float, lat: float = HOME_LAT, lng: float = HOME_LNG) -> tuple[float, float]:
    """Coordinates `meters` due north of (lat, lng)."""
    return lat + meters / METERS_PER_DEGREE_LAT, lng


def make_risk(risk_id: str = "r1", lat: float = HOME_LAT, lng: float = HOME_LNG, **kwargs) -> Risk:
    defaults = dict(
        id=risk_id,
        title=f"Risk {risk_id}",
        category="Inondation",
        severity=Severity.HIGH,
        latitude=lat,
        longitude=lng,
    )
    defaults.update(kwargs)
    return Risk(**defaults)


def make_risk_json(risk_id: str = "r1", lat: float = HOME_LAT, lng: float = HOME_LNG, **kwargs) -> dict:
    defaults = dict(
        id=risk_id,
        title=f"Risk {risk_id}",
        category="Inondation",
        severity="élevé",
        latitude=lat,
        longitude=lng,
    )
    defaults.update(kwargs)
    return defaults


def make_config(
    mode: str = MODE_BICYCLE,
    search_radius_km: float = 5.0,
    alert_radius_meters: float = 100.0,
    refresh_interval_ms: int = 3 * 60 * 1000,
    position_poll_interval_ms: int = 30 * 1000,
) -> TourneeConfig:
    return TourneeConfig(
        mode=mode,
        search_radius_km=search_radius_km,
        alert_radius_meters=alert_radius_meters,
        refresh_interval_ms=refresh_interval_ms,
        position_poll_interval_ms=position_poll_interval_ms,
    )


def make_entry_data(**kwargs) -> dict:
    defaults = {
        CONF_ENTRY_NAME: "Test Entry",
        CONF_PRIMARY_URL: BASE_URL,
        CONF_FALLBACK_URL: "",
        CONF_EMAIL: "agent@example.com",
        CONF_TRACKED_ENTITY: "device_tracker.phone",
        CONF_NOTIFY_SERVICE: "",
    }
    defaults.update(kwargs)
    return defaults


def make_entry(data: dict | None = None, options: dict | None = None) -> MagicMock:
    entry = MagicMock()
    entry.entry_id = "test_entry_id"
    entry.data = make_entry_data(**(data or {}))
    entry.options = dict(options or {})
    entry.async_on_unload = MagicMock()
    entry.add_update_listener = MagicMock(return_value=MagicMock())
    return entry


def make_coordinator(hass=None, prefs: PreferenceStore | None = None, clock: FakeClock | None = None,
                     options: dict | None = None, **entry_kwargs) -> GeoSentinelCoordinator:
    """Build a coordinator with a mocked hass and an in-memory store."""
    if hass is None:
        hass = MagicMock()
        hass.async_create_task = lambda coro: asyncio.ensure_future(coro)
    entry = make_entry(entry_kwargs, options)
    return GeoSentinelCoordinator(
        hass,
        entry,
        prefs if prefs is not None else make_logged_in_prefs(),
        now_ms=clock or FakeClock(),
    )
