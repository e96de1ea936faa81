"""
Tests for PreferenceStore, mode configuration resolution and the notification sink.
"""

from __future__ import annotations

import unittest
from unittest.mock import AsyncMock, MagicMock, patch

from custom_components.geosentinel.const import (
    KEY_ACTIVE_API_URL,
    KEY_ALERT_RADIUS_METERS,
    KEY_API_CALL_DELAY_MINUTES,
    KEY_POSITION_DELAY_SECONDS,
    KEY_RISK_LOAD_ZONE_KM,
    KEY_TOURNEE_TYPE,
    MODE_ON_FOOT,
    MODE_VEHICLE,
)
from custom_components.geosentinel.mode_config import fallback_config, resolve_config
from custom_components.geosentinel.models import SystemSetting
from custom_components.geosentinel.notifier import NotificationSink, make_notification

from .test_common import BASE_URL, make_credentials, make_logged_in_prefs, make_prefs

SETTING = "custom_components.geosentinel.mode_config.fetch_setting_for_mode"


class TestPreferenceStore(unittest.IsolatedAsyncioTestCase):

    async def test_set_saves_immediately(self):
        prefs = make_prefs()
        await prefs.async_set("a", 1)
        self.assertEqual(prefs._store.saved, {"a": 1})

    async def test_load_reads_existing_document(self):
        prefs = make_prefs({KEY_TOURNEE_TYPE: "velo"})
        self.assertEqual(await prefs.async_get_mode(), "velo")

    async def test_remove_many_skips_save_when_nothing_removed(self):
        prefs = make_prefs({"a": 1})
        await prefs.async_remove_many(["b"])
        self.assertEqual(prefs._store.save_count, 0)
        await prefs.async_remove_many(["a", "b"])
        self.assertEqual(prefs._store.saved, {})

    async def test_typed_readers(self):
        prefs = make_prefs({"i": "12", "f": "2.5", "bad": "x", "b": "true"})
        self.assertEqual(await prefs.async_get_int("i"), 12)
        self.assertEqual(await prefs.async_get_float("f"), 2.5)
        self.assertIsNone(await prefs.async_get_int("bad"))
        self.assertTrue(await prefs.async_get_bool("b"))
        self.assertFalse(await prefs.async_get_bool("missing"))

    async def test_no_mode_means_no_config(self):
        self.assertIsNone(await make_prefs().async_load_tournee_config())

    async def test_config_round_trip_in_store_units(self):
        prefs = make_prefs({
            KEY_TOURNEE_TYPE: "velo",
            KEY_API_CALL_DELAY_MINUTES: 4,
            KEY_ALERT_RADIUS_METERS: 120,
            KEY_RISK_LOAD_ZONE_KM: 8,
            KEY_POSITION_DELAY_SECONDS: 15,
        })
        config = await prefs.async_load_tournee_config()

        self.assertEqual(config.refresh_interval_ms, 240_000)
        self.assertEqual(config.position_poll_interval_ms, 15_000)
        self.assertEqual(config.search_radius_km, 8)
        self.assertEqual(config.alert_radius_meters, 120)

    async def test_missing_parameters_fall_back_to_mode_table(self):
        prefs = make_prefs({KEY_TOURNEE_TYPE: MODE_VEHICLE})
        config = await prefs.async_load_tournee_config()

        self.assertEqual(config.alert_radius_meters, 250)
        self.assertEqual(config.refresh_interval_ms, 2 * 60_000)

    async def test_delete_removes_document(self):
        prefs = make_prefs({"a": 1})
        await prefs.async_delete()
        self.assertTrue(prefs._store.removed)
        self.assertIsNone(await prefs.async_get("a"))


class TestResolveConfig(unittest.IsolatedAsyncioTestCase):

    async def test_server_setting_wins_and_is_persisted(self):
        prefs = make_logged_in_prefs()
        setting = SystemSetting({
            "tourneeType": "velo",
            "apiCallDelayMinutes": 4,
            "positionTestDelaySeconds": 15,
            "riskLoadZoneKm": 8,
            "alertRadiusMeters": 120,
        })
        with patch(SETTING, new=AsyncMock(return_value=setting)) as mock_setting:
            config = await resolve_config("velo", prefs, make_credentials(prefs))

        self.assertEqual(mock_setting.await_args.args[0], BASE_URL)
        self.assertEqual(config.alert_radius_meters, 120)
        self.assertEqual(config.position_poll_interval_ms, 15_000)
        self.assertEqual(await prefs.async_get(KEY_TOURNEE_TYPE), "velo")
        self.assertEqual(await prefs.async_get(KEY_API_CALL_DELAY_MINUTES), 4)
        self.assertEqual(await prefs.async_get(KEY_POSITION_DELAY_SECONDS), 15)

    async def test_fallback_when_endpoint_fails(self):
        prefs = make_logged_in_prefs()
        with patch(SETTING, new=AsyncMock(return_value=None)):
            config = await resolve_config(MODE_ON_FOOT, prefs, make_credentials(prefs))

        self.assertEqual(config, fallback_config(MODE_ON_FOOT))
        self.assertEqual(config.alert_radius_meters, 60)
        self.assertEqual(config.search_radius_km, 5)
        self.assertEqual(await prefs.async_get(KEY_ALERT_RADIUS_METERS), 60)

    async def test_fallback_without_server_url(self):
        prefs = make_prefs()
        with patch(SETTING, new=AsyncMock()) as mock_setting:
            config = await resolve_config(MODE_VEHICLE, prefs, make_credentials(prefs))

        mock_setting.assert_not_awaited()
        self.assertEqual(config.position_poll_interval_ms, 10_000)
        self.assertIsNone(await prefs.async_get(KEY_ACTIVE_API_URL))


class TestNotificationSink(unittest.IsolatedAsyncioTestCase):

    def _hass(self):
        hass = MagicMock()
        hass.services.async_call = AsyncMock()
        return hass

    async def test_notify_service_carries_channel_and_importance(self):
        hass = self._hass()
        sink = NotificationSink(hass, "notify.mobile_app_pixel")
        await sink.async_send(make_notification("T", "B", data={"tag": "risk_1"}))

        domain, service, data = hass.services.async_call.await_args.args
        self.assertEqual((domain, service), ("notify", "mobile_app_pixel"))
        self.assertEqual(data["title"], "T")
        self.assertEqual(data["message"], "B")
        self.assertEqual(data["data"]["channel"], "risk-alerts-final")
        self.assertEqual(data["data"]["importance"], "high")
        self.assertEqual(data["data"]["tag"], "risk_1")
        self.assertFalse(hass.services.async_call.await_args.kwargs["blocking"])

    async def test_falls_back_to_persistent_notification(self):
        hass = self._hass()
        await NotificationSink(hass, "").async_send(make_notification("T", "B", data={"tag": "slowdown"}))

        domain, service, data = hass.services.async_call.await_args.args
        self.assertEqual((domain, service), ("persistent_notification", "create"))
        self.assertEqual(data["notification_id"], "geosentinel_slowdown")
