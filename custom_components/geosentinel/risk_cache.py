"""
Risk cache — the set of risks last fetched around the agent and the policy
deciding when it must be fetched again.

The cache is never cleared on a failed fetch: stale risks still protect the
agent better than none.
"""
from __future__ import annotations

import dataclasses
import logging
import time
from typing import Callable

from .api.risks import fetch_nearby_risks
from .coordinator_utils import distance_meters
from .credentials import CredentialManager
from .models import Position, Risk, TourneeConfig
from .preferences import PreferenceStore
from .requests import ApiResponseError

_LOGGER = logging.getLogger(__name__)

# Kept below the search radius so risks at the edge of the fetched disk stay covered
SEARCH_MARGIN_KM = 1


def _now_ms() -> int:
    return int(time.time() * 1000)


@dataclasses.dataclass(frozen=True)
class RiskCache:
    risks: tuple[Risk, ...] = ()
    last_fetch_time_ms: int = 0
    last_fetch_position: Position | None = None

    @property
    def populated(self) -> bool:
        return self.last_fetch_position is not None


class RiskCacheManager:
    """Owns the RiskCache and its refresh policy."""

    def __init__(
        self,
        prefs: PreferenceStore,
        credentials: CredentialManager,
        now_ms: Callable[[], int] = _now_ms,
    ) -> None:
        self._prefs = prefs
        self._credentials = credentials
        self._now_ms = now_ms
        self.cache = RiskCache()

    @property
    def risks(self) -> tuple[Risk, ...]:
        return self.cache.risks

    def reset(self) -> None:
        self.cache = RiskCache()

    def should_refresh(self, position: Position, config: TourneeConfig) -> bool:
        cache = self.cache
        if not cache.risks or cache.last_fetch_position is None:
            return True

        if self._now_ms() - cache.last_fetch_time_ms > config.refresh_interval_ms:
            _LOGGER.debug("Risk cache is stale")
            return True

        moved = distance_meters(
            cache.last_fetch_position.latitude,
            cache.last_fetch_position.longitude,
            position.latitude,
            position.longitude,
        )
        if moved > (config.search_radius_km - SEARCH_MARGIN_KM) * 1000:
            _LOGGER.debug("Moved %.0fm since last fetch, refreshing risk cache", moved)
            return True
        return False

    async def async_refresh(self, position: Position, config: TourneeConfig) -> bool:
        """
        Fetch risks around position and replace the cache on success.

        On 401 the credentials are refreshed and the fetch retried exactly once.
        Returns True when the cache was replaced; never raises.
        """
        try:
            base_url = await self._prefs.async_get_active_url()
            if not base_url:
                _LOGGER.error("No active server URL stored, keeping cached risks")
                return False

            headers = await self._credentials.async_get_headers()
            if headers is None:
                _LOGGER.warning("No access token, trying to renew it before fetching")
                if not await self._credentials.async_refresh_credentials():
                    _LOGGER.error("Unable to renew the session, keeping cached risks")
                    return False
                headers = await self._credentials.async_get_headers()

            try:
                risks = await fetch_nearby_risks(
                    base_url, headers, position.latitude, position.longitude, config.search_radius_km
                )
            except ApiResponseError as e:
                if not e.is_unauthorized:
                    raise
                _LOGGER.warning("Access token expired (401), refreshing credentials")
                if not await self._credentials.async_refresh_credentials():
                    _LOGGER.error("Credential refresh failed, session expired; keeping cached risks")
                    return False
                headers = await self._credentials.async_get_headers()
                risks = await fetch_nearby_risks(
                    base_url, headers, position.latitude, position.longitude, config.search_radius_km
                )

        except ApiResponseError as e:
            _LOGGER.error("Risk API error (%s), keeping cached risks", e.status)
            return False
        except TimeoutError:
            _LOGGER.warning("Timeout while fetching risks, keeping cached risks")
            return False
        except Exception as e:  # noqa: BLE001
            _LOGGER.error("Failed to fetch risks, keeping cached risks: %s", e)
            return False

        self.cache = RiskCache(
            risks=tuple(risks),
            last_fetch_time_ms=self._now_ms(),
            last_fetch_position=position,
        )
        _LOGGER.debug("Risk cache refreshed: %s risks", len(risks))
        return True
