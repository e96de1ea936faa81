"""
CredentialManager — keeps the API tokens usable by the background cycle.

Tokens live in two places: the durable preference store read on every cycle,
and a private secure store (a HA Store written with 0600 permissions). The
secure store is authoritative for the refresh token when it holds one.
"""
from __future__ import annotations

import logging

from .api.auth import get_standard_headers, logout, refresh_access_token
from .const import KEY_ACCESS_TOKEN, KEY_REFRESH_TOKEN
from .models import Credentials
from .preferences import PreferenceStore

_LOGGER = logging.getLogger(__name__)


class CredentialManager:
    """Reads, renews and clears the access/refresh token pair."""

    def __init__(self, prefs: PreferenceStore, secure_store: PreferenceStore | None = None) -> None:
        self._prefs = prefs
        self._secure = secure_store

    async def async_get_credentials(self) -> Credentials:
        refresh_token = await self._read_refresh_token()
        return Credentials(
            access_token=await self._prefs.async_get(KEY_ACCESS_TOKEN) or None,
            refresh_token=refresh_token,
        )

    async def async_get_headers(self) -> dict | None:
        """Return authorization headers, or None when no access token is stored."""
        token = await self._prefs.async_get(KEY_ACCESS_TOKEN)
        if not token:
            return None
        return get_standard_headers(token)

    async def async_store_login(self, access_token: str, refresh_token: str | None) -> None:
        """Persist a freshly obtained token pair into both stores."""
        values = {KEY_ACCESS_TOKEN: access_token}
        if refresh_token:
            values[KEY_REFRESH_TOKEN] = refresh_token
        await self._prefs.async_set_many(values)
        if self._secure is not None:
            await self._secure.async_set_many(values)

    async def async_refresh_credentials(self) -> bool:
        """
        Exchange the refresh token for a new access token.

        Returns True when a new access token was persisted. Every failure
        (no refresh token, network, non-2xx, malformed body) collapses to False
        and leaves the stored tokens untouched.
        """
        try:
            refresh_token = await self._read_refresh_token()
            if not refresh_token:
                _LOGGER.error("No refresh token stored, cannot renew the session")
                return False

            base_url = await self._prefs.async_get_active_url()
            if not base_url:
                _LOGGER.error("No active server URL stored, cannot renew the session")
                return False

            _LOGGER.debug("Refreshing access token")
            response = await refresh_access_token(base_url, refresh_token)
            if not response.access_token:
                _LOGGER.error("Refresh endpoint returned no access token")
                return False

            await self.async_store_login(response.access_token, response.refresh_token or refresh_token)
            _LOGGER.info("Access token renewed")
            return True
        except Exception as exc:  # noqa: BLE001
            _LOGGER.error("Failed to refresh access token: %s", exc)
            return False

    async def async_clear_credentials(self, tracking_active: bool) -> None:
        """
        Logout semantics.

        With an active background session only the access token is cleared so
        the cycle can still renew it; otherwise both tokens are removed.
        """
        keys = [KEY_ACCESS_TOKEN] if tracking_active else [KEY_ACCESS_TOKEN, KEY_REFRESH_TOKEN]
        await self._prefs.async_remove_many(keys)
        if self._secure is not None:
            await self._secure.async_remove_many(keys)
        if tracking_active:
            _LOGGER.info("Background tracking active, refresh token kept")

    async def _read_refresh_token(self) -> str | None:
        if self._secure is not None:
            token = await self._secure.async_get(KEY_REFRESH_TOKEN)
            if token:
                return token
        return await self._prefs.async_get(KEY_REFRESH_TOKEN) or None

    async def async_logout(self, tracking_active: bool) -> None:
        """Best-effort server-side logout, then clear the local tokens."""
        base_url = await self._prefs.async_get_active_url()
        access_token = await self._prefs.async_get(KEY_ACCESS_TOKEN)
        if base_url and access_token:
            try:
                await logout(base_url, access_token)
            except Exception as exc:  # noqa: BLE001
                _LOGGER.warning("Logout request failed: %s", exc)
        await self.async_clear_credentials(tracking_active)
