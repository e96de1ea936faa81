"""
Active server resolution.

At login the primary server is probed first, then the fallback. The winner is
persisted so the background cycle can read it without probing again.
"""
from __future__ import annotations

import logging

from .const import KEY_ACTIVE_API_URL
from .preferences import PreferenceStore
from .requests import check_server_health

_LOGGER = logging.getLogger(__name__)


class NoServerAvailable(Exception):
    """Raised when neither the primary nor the fallback server answers."""


def normalize_url(url: str | None) -> str:
    return (url or "").strip().rstrip("/")


async def probe_servers(primary_url: str | None, fallback_url: str | None) -> tuple[str, bool]:
    """
    Return (active_url, is_fallback).

    Raises NoServerAvailable when no configured server is healthy.
    """
    primary = normalize_url(primary_url)
    fallback = normalize_url(fallback_url)

    if primary and await check_server_health(primary):
        return primary, False

    if fallback and fallback != primary and await check_server_health(fallback):
        _LOGGER.warning("Primary server unreachable, using fallback %s", fallback)
        return fallback, True

    raise NoServerAvailable("Unable to reach the GeoSentinel server")


async def resolve_active_url(
    prefs: PreferenceStore,
    primary_url: str | None,
    fallback_url: str | None,
) -> str:
    """Probe the configured servers and persist the active one."""
    url, _ = await probe_servers(primary_url, fallback_url)
    await prefs.async_set(KEY_ACTIVE_API_URL, url)
    return url
