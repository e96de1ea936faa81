"""
Mode configuration resolver — maps a travel mode to cadence/radius parameters.

Server-published settings win; the static table in const.py is the fallback.
The result is persisted because the background cycle only ever reads the
store.
"""
from __future__ import annotations

import logging

from .api.settings import fetch_setting_for_mode
from .const import DEFAULT_MODE_SETTINGS, FALLBACK_MODE_SETTINGS
from .credentials import CredentialManager
from .models import TourneeConfig
from .preferences import PreferenceStore

_LOGGER = logging.getLogger(__name__)


def fallback_config(mode: str) -> TourneeConfig:
    refresh_min, alert_m, zone_km, poll_s = FALLBACK_MODE_SETTINGS.get(mode, DEFAULT_MODE_SETTINGS)
    return TourneeConfig(
        mode=mode,
        search_radius_km=float(zone_km),
        alert_radius_meters=float(alert_m),
        refresh_interval_ms=refresh_min * 60 * 1000,
        position_poll_interval_ms=poll_s * 1000,
    )


async def resolve_config(
    mode: str,
    prefs: PreferenceStore,
    credentials: CredentialManager,
) -> TourneeConfig:
    """Resolve and persist the TourneeConfig for mode. Never raises on API failure."""
    config = None
    base_url = await prefs.async_get_active_url()
    if base_url:
        headers = await credentials.async_get_headers() or {"accept": "application/json"}
        setting = await fetch_setting_for_mode(base_url, headers, mode)
        if setting is not None:
            _LOGGER.info("Using server settings for %s", setting)
            config = TourneeConfig(
                mode=mode,
                search_radius_km=setting.risk_load_zone_km,
                alert_radius_meters=setting.alert_radius_meters,
                refresh_interval_ms=int(setting.api_call_delay_minutes * 60 * 1000),
                position_poll_interval_ms=int(setting.position_test_delay_seconds * 1000),
            )

    if config is None:
        _LOGGER.warning("No server settings for mode %s, using defaults", mode)
        config = fallback_config(mode)

    await prefs.async_save_tournee_config(config)
    return config
