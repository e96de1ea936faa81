import logging

from homeassistant import config_entries, core
from homeassistant.const import Platform
from homeassistant.core import HomeAssistant
from homeassistant.exceptions import ConfigEntryNotReady

from .const import (
    DOMAIN,
    CONF_PRIMARY_URL,
    CONF_FALLBACK_URL,
    CONF_ACCESS_TOKEN,
    CONF_REFRESH_TOKEN,
)
from .coordinator import GeoSentinelCoordinator
from .credentials import CredentialManager
from .preferences import PreferenceStore
from .server_config import NoServerAvailable, resolve_active_url

PLATFORMS: list[Platform] = [Platform.SENSOR, Platform.BINARY_SENSOR, Platform.SWITCH, Platform.SELECT]
_LOGGER = logging.getLogger(__name__)


def _make_stores(hass: core.HomeAssistant, entry: config_entries.ConfigEntry) -> tuple[PreferenceStore, PreferenceStore]:
    prefs = PreferenceStore(hass, entry.entry_id)
    secure = PreferenceStore(hass, f"{entry.entry_id}.secure", private=True)
    return prefs, secure


async def _seed_tokens(entry: config_entries.ConfigEntry, credentials: CredentialManager) -> None:
    """Copy the tokens obtained by the config flow into the stores, once."""
    stored = await credentials.async_get_credentials()
    if stored.refresh_token or not entry.data.get(CONF_ACCESS_TOKEN):
        return
    await credentials.async_store_login(entry.data[CONF_ACCESS_TOKEN], entry.data.get(CONF_REFRESH_TOKEN))


async def async_setup(hass: core.HomeAssistant, config: dict) -> bool:
    """Set up the integration."""
    hass.data.setdefault(DOMAIN, {})
    return True


async def async_setup_entry(
    hass: core.HomeAssistant, entry: config_entries.ConfigEntry
) -> bool:
    """Set up platform from a ConfigEntry."""
    prefs, secure = _make_stores(hass, entry)
    await _seed_tokens(entry, CredentialManager(prefs, secure))

    try:
        url = await resolve_active_url(prefs, entry.data.get(CONF_PRIMARY_URL), entry.data.get(CONF_FALLBACK_URL))
    except NoServerAvailable as exc:
        raise ConfigEntryNotReady(f"Cannot reach the GeoSentinel API: {exc}") from exc
    _LOGGER.debug("Active GeoSentinel server: %s", url)

    coordinator = GeoSentinelCoordinator(hass, entry, prefs, secure)
    await coordinator.async_resume()
    await coordinator.async_config_entry_first_refresh()
    entry.runtime_data = coordinator

    entry.async_on_unload(
        entry.add_update_listener(_async_update_listener)
    )

    await hass.config_entries.async_forward_entry_setups(entry, PLATFORMS)

    return True


async def _async_update_listener(hass: HomeAssistant, config_entry):
    """Handle config options update."""
    # Reload the integration when the options change.
    await hass.config_entries.async_reload(config_entry.entry_id)


async def async_unload_entry(
    hass: core.HomeAssistant, entry: config_entries.ConfigEntry
) -> bool:
    """Unload a config entry. A persisted session resumes on the next setup."""
    return await hass.config_entries.async_unload_platforms(entry, PLATFORMS)


async def async_remove_entry(
    hass: core.HomeAssistant, entry: config_entries.ConfigEntry
) -> None:
    """Log out and drop every stored value of a removed entry."""
    prefs, secure = _make_stores(hass, entry)
    await CredentialManager(prefs, secure).async_logout(tracking_active=False)
    await prefs.async_delete()
    await secure.async_delete()
