"""
Tests for ProximityNotifier: radius selection, ordering, cooldown and eviction.
"""

from __future__ import annotations

import unittest

from custom_components.geosentinel.proximity import ProximityNotifier

from .test_common import FakeClock, make_position, make_risk, make_sink, offset_north


class TestProximityNotifier(unittest.IsolatedAsyncioTestCase):

    def setUp(self):
        self.clock = FakeClock()
        self.sink = make_sink()
        self.notifier = ProximityNotifier(self.sink, self.clock)
        self.position = make_position()
        self.near = make_risk("near", *offset_north(80))
        self.far = make_risk("far", *offset_north(500))

    async def test_returns_only_risks_within_radius_sorted(self):
        closer = make_risk("closer", *offset_north(30))
        nearby = await self.notifier.async_check_proximity(self.position, [self.near, self.far, closer], 100)

        self.assertEqual([n.id for n in nearby], ["closer", "near"])
        self.assertAlmostEqual(nearby[1].distance, 80, delta=0.1)

    async def test_boundary_is_inclusive(self):
        edge = make_risk("edge", *offset_north(100))
        nearby = await self.notifier.async_check_proximity(self.position, [edge], 100.5)
        self.assertEqual(len(nearby), 1)

    async def test_notification_payload(self):
        await self.notifier.async_check_proximity(self.position, [self.near], 100)

        notification = self.sink.async_send.await_args.args[0]
        self.assertEqual(notification.title, "⚠️ Risque : Inondation")
        self.assertEqual(notification.body, "À 80m - Risk near")
        self.assertEqual(notification.data["tag"], "risk_near")
        self.assertEqual(notification.data["risk_id"], "near")
        self.assertEqual(notification.data["severity"], "high")
        self.assertEqual(notification.channel, "risk-alerts-final")

    async def test_suppressed_within_cooldown(self):
        await self.notifier.async_check_proximity(self.position, [self.near], 100)
        self.clock.advance_minutes(1)
        await self.notifier.async_check_proximity(self.position, [self.near], 100)

        self.assertEqual(self.sink.async_send.await_count, 1)

    async def test_renotified_after_cooldown(self):
        await self.notifier.async_check_proximity(self.position, [self.near], 100)
        self.clock.advance_minutes(6)
        await self.notifier.async_check_proximity(self.position, [self.near], 100)

        self.assertEqual(self.sink.async_send.await_count, 2)

    async def test_not_renotified_exactly_at_cooldown(self):
        await self.notifier.async_check_proximity(self.position, [self.near], 100)
        self.clock.advance_minutes(5)
        await self.notifier.async_check_proximity(self.position, [self.near], 100)

        self.assertEqual(self.sink.async_send.await_count, 1)

    async def test_leaving_radius_rearms(self):
        await self.notifier.async_check_proximity(self.position, [self.near], 100)
        # Agent moves away: risk out of range, cooldown forgotten
        away = make_position(*offset_north(1_000))
        await self.notifier.async_check_proximity(away, [self.near], 100)
        self.assertNotIn("near", self.notifier.state.notified)
        self.assertNotIn("near", self.notifier.state.last_notified_at_ms)

        self.clock.advance_minutes(1)
        await self.notifier.async_check_proximity(self.position, [self.near], 100)

        self.assertEqual(self.sink.async_send.await_count, 2)

    async def test_send_failure_leaves_risk_unarmed(self):
        self.sink.async_send.side_effect = RuntimeError("notify down")
        nearby = await self.notifier.async_check_proximity(self.position, [self.near], 100)

        self.assertEqual(len(nearby), 1)
        self.assertNotIn("near", self.notifier.state.notified)

    async def test_reset_clears_state(self):
        await self.notifier.async_check_proximity(self.position, [self.near], 100)
        self.notifier.reset()
        await self.notifier.async_check_proximity(self.position, [self.near], 100)

        self.assertEqual(self.sink.async_send.await_count, 2)
