"""
EntityPositionSource — current position of the agent read from a Home
Assistant tracker entity (device_tracker.* or person.*).

When the entity's fix is missing, too old or too coarse, waits for the next
state change until the timeout expires.
"""
from __future__ import annotations

import asyncio
import logging
import time

from homeassistant.const import ATTR_GPS_ACCURACY, ATTR_LATITUDE, ATTR_LONGITUDE, STATE_UNAVAILABLE
from homeassistant.core import HomeAssistant, State, callback
from homeassistant.helpers.event import async_track_state_change_event

from .models import Position

_LOGGER = logging.getLogger(__name__)

TIMEOUT = "TIMEOUT"
PERMISSION_DENIED = "PERMISSION_DENIED"
UNAVAILABLE = "UNAVAILABLE"


class PositionError(Exception):
    """Raised when no usable position could be obtained."""
    def __init__(self, code: str, message: str = ""):
        self.code = code
        super().__init__(f"{code}: {message}" if message else code)


class EntityPositionSource:

    def __init__(self, hass: HomeAssistant, entity_id: str) -> None:
        self.hass = hass
        self.entity_id = entity_id

    async def async_get_current_position(
        self,
        timeout: float,
        desired_accuracy: float,
        max_age: float,
    ) -> Position:
        """
        Return a fix no older than max_age seconds and at least as accurate as
        desired_accuracy metres, waiting up to timeout seconds for one.
        """
        state = self.hass.states.get(self.entity_id)
        position = self._usable_position(state, desired_accuracy, max_age)
        if position is not None:
            return position

        loop = asyncio.get_running_loop()
        future: asyncio.Future[Position] = loop.create_future()

        @callback
        def _state_changed(event) -> None:
            if future.done():
                return
            try:
                fix = self._usable_position(event.data.get("new_state"), desired_accuracy, max_age)
            except PositionError as err:
                future.set_exception(err)
                return
            if fix is not None:
                future.set_result(fix)

        unsub = async_track_state_change_event(self.hass, [self.entity_id], _state_changed)
        try:
            async with asyncio.timeout(timeout):
                return await future
        except TimeoutError as err:
            raise PositionError(TIMEOUT, f"no usable fix from {self.entity_id} within {timeout}s") from err
        finally:
            unsub()

    def _usable_position(self, state: State | None, desired_accuracy: float, max_age: float) -> Position | None:
        if state is None:
            raise PositionError(UNAVAILABLE, f"{self.entity_id} does not exist")
        if state.state == STATE_UNAVAILABLE:
            return None

        lat = state.attributes.get(ATTR_LATITUDE)
        lng = state.attributes.get(ATTR_LONGITUDE)
        if lat is None or lng is None:
            # Zone-only trackers never expose coordinates
            raise PositionError(PERMISSION_DENIED, f"{self.entity_id} exposes no coordinates")

        accuracy = float(state.attributes.get(ATTR_GPS_ACCURACY) or 0)
        # last_reported moves on every report, even when nothing changed
        reported = getattr(state, "last_reported", None) or state.last_updated
        timestamp_ms = int(reported.timestamp() * 1000)
        age = time.time() - timestamp_ms / 1000

        if age > max_age:
            _LOGGER.debug("Fix from %s is %.0fs old, waiting for a fresh one", self.entity_id, age)
            return None
        if accuracy > desired_accuracy:
            _LOGGER.debug("Fix from %s too coarse (%.0fm), waiting", self.entity_id, accuracy)
            return None

        return Position(
            latitude=float(lat),
            longitude=float(lng),
            accuracy=accuracy,
            timestamp_ms=timestamp_ms,
        )
