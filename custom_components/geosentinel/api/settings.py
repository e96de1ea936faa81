"""
Low-level system settings fetching from the GeoSentinel API.

Responsible for:
- Fetching the per-mode cadence/radius settings published by the server
- Picking the row matching a travel mode
"""
import logging

from custom_components.geosentinel.const import API_TIMEOUT
from custom_components.geosentinel.models import SystemSetting
from custom_components.geosentinel.requests import make_request, ApiResponseError

_LOGGER = logging.getLogger(__name__)


async def fetch_system_settings(base_url: str, headers: dict) -> list[SystemSetting]:
    """
    Fetch all public per-mode settings.

    Corresponding CURL command:
    curl -X 'GET' '<base_url>/system-settings/public/all'
    """
    url = f"{base_url}/system-settings/public/all"
    raw_json = await make_request("GET", url, headers, timeout=API_TIMEOUT, max_attempts=1)
    if not isinstance(raw_json, list):
        raise ValueError(f"Unexpected response format for system settings: {str(raw_json)[:200]}")
    return [SystemSetting(item) for item in raw_json]


async def fetch_setting_for_mode(base_url: str, headers: dict, mode: str) -> SystemSetting | None:
    """Return the settings row for mode, or None on any error or when it is missing."""
    try:
        settings = await fetch_system_settings(base_url, headers)
    except ApiResponseError as e:
        _LOGGER.error("Error while getting system settings: %s", e)
        return None
    except TimeoutError:
        _LOGGER.warning("Timeout while getting system settings")
        return None
    except Exception as e:  # noqa: BLE001
        _LOGGER.error("Unexpected error while getting system settings: %s: %s", type(e).__name__, e)
        return None

    for setting in settings:
        if setting.tournee_type == mode:
            return setting
    _LOGGER.warning("No system setting published for mode %s", mode)
    return None
