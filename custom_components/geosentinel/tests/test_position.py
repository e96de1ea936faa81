"""
Tests for EntityPositionSource: reading fixes from a tracker entity.
"""

from __future__ import annotations

import asyncio
import unittest
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock, patch

from custom_components.geosentinel.position import (
    EntityPositionSource,
    PositionError,
    PERMISSION_DENIED,
    TIMEOUT,
    UNAVAILABLE,
)

TRACK = "custom_components.geosentinel.position.async_track_state_change_event"


def _state(lat=45.0, lng=6.0, accuracy=10, age_s=5, state="not_home"):
    tracker = MagicMock()
    tracker.state = state
    tracker.attributes = {}
    if lat is not None:
        tracker.attributes["latitude"] = lat
    if lng is not None:
        tracker.attributes["longitude"] = lng
    tracker.attributes["gps_accuracy"] = accuracy
    tracker.last_reported = datetime.now(timezone.utc) - timedelta(seconds=age_s)
    tracker.last_updated = tracker.last_reported
    return tracker


def _source(current):
    hass = MagicMock()
    hass.states.get = MagicMock(return_value=current)
    return EntityPositionSource(hass, "device_tracker.phone")


class TestEntityPositionSource(unittest.IsolatedAsyncioTestCase):

    async def test_current_fix_returned_immediately(self):
        source = _source(_state(lat=45.1, lng=6.2, accuracy=12))
        with patch(TRACK) as mock_track:
            position = await source.async_get_current_position(20, 100, 120)

        mock_track.assert_not_called()
        self.assertEqual((position.latitude, position.longitude, position.accuracy), (45.1, 6.2, 12.0))

    async def test_missing_entity_is_unavailable(self):
        with self.assertRaises(PositionError) as ctx:
            await _source(None).async_get_current_position(20, 100, 120)
        self.assertEqual(ctx.exception.code, UNAVAILABLE)

    async def test_zone_only_tracker_is_permission_denied(self):
        with self.assertRaises(PositionError) as ctx:
            await _source(_state(lat=None, lng=None, state="home")).async_get_current_position(20, 100, 120)
        self.assertEqual(ctx.exception.code, PERMISSION_DENIED)

    async def test_stale_fix_times_out(self):
        unsub = MagicMock()
        source = _source(_state(age_s=600))
        with patch(TRACK, return_value=unsub):
            with self.assertRaises(PositionError) as ctx:
                await source.async_get_current_position(0.05, 100, 120)

        self.assertEqual(ctx.exception.code, TIMEOUT)
        unsub.assert_called_once()

    async def test_waits_for_next_usable_update(self):
        captured = {}

        def _track(hass, entity_ids, action):
            captured["action"] = action
            return MagicMock()

        source = _source(_state(accuracy=500))
        with patch(TRACK, side_effect=_track):
            waiter = asyncio.ensure_future(source.async_get_current_position(2, 100, 120))
            await asyncio.sleep(0)
            event = MagicMock()
            event.data = {"new_state": _state(lat=45.2, accuracy=20, age_s=0)}
            captured["action"](event)
            position = await waiter

        self.assertEqual(position.latitude, 45.2)

    async def test_coarse_update_keeps_waiting(self):
        captured = {}

        def _track(hass, entity_ids, action):
            captured["action"] = action
            return MagicMock()

        source = _source(_state(accuracy=500))
        with patch(TRACK, side_effect=_track):
            waiter = asyncio.ensure_future(source.async_get_current_position(0.1, 100, 120))
            await asyncio.sleep(0)
            event = MagicMock()
            event.data = {"new_state": _state(accuracy=400)}
            captured["action"](event)
            with self.assertRaises(PositionError):
                await waiter
