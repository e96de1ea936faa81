"""
Low-level risk data fetching from the GeoSentinel API.

Responsible for:
- Fetching the risks located within a search radius around a coordinate
"""
import logging

from custom_components.geosentinel.const import API_TIMEOUT
from custom_components.geosentinel.models import Risk
from custom_components.geosentinel.requests import make_request

_LOGGER = logging.getLogger(__name__)


async def fetch_nearby_risks(
    base_url: str,
    headers: dict,
    latitude: float,
    longitude: float,
    radius_km: float,
) -> list[Risk]:
    """
    Fetch every risk within radius_km of (latitude, longitude).

    Errors are not swallowed here: ApiResponseError (with .status, 401 when the
    access token expired) and timeouts propagate to the cache manager which
    decides whether to refresh credentials and retry.

    Corresponding CURL command:
    curl -X 'GET' '<base_url>/risks/nearby?lat=45.0&lng=6.0&radius_km=5' \
      -H 'Authorization: Bearer <token>'
    """
    url = f"{base_url}/risks/nearby"
    params = {"lat": latitude, "lng": longitude, "radius_km": radius_km}
    _LOGGER.debug("Fetching risks around (%.4f, %.4f) within %skm", latitude, longitude, radius_km)
    raw_json = await make_request("GET", url, headers, params=params, timeout=API_TIMEOUT, max_attempts=1)

    if not raw_json:
        return []
    if not isinstance(raw_json, list):
        raise ValueError(f"Unexpected response format for nearby risks: {str(raw_json)[:200]}")

    risks = []
    for item in raw_json:
        try:
            risks.append(Risk.from_json(item))
        except (KeyError, TypeError, ValueError) as e:
            _LOGGER.warning("Skipping malformed risk record %s: %s", item.get("id") if isinstance(item, dict) else item, e)
    return risks
