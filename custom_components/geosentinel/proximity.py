"""
Proximity matcher — selects cached risks inside the alert radius and notifies
the agent, at most once per cooldown while a risk stays in range.

A risk that leaves the alert radius loses its cooldown so coming back to it is
always a fresh encounter.
"""
from __future__ import annotations

import dataclasses
import logging
import time
from typing import Callable, Iterable

from .const import NOTIFICATION_COOLDOWN_MS
from .coordinator_utils import distance_meters
from .models import NearbyRisk, Position, Risk
from .notifier import NotificationSink, make_notification

_LOGGER = logging.getLogger(__name__)


def _now_ms() -> int:
    return int(time.time() * 1000)


@dataclasses.dataclass
class NotificationDedupState:
    # Every key of last_notified_at_ms is also in notified
    notified: set[str] = dataclasses.field(default_factory=set)
    last_notified_at_ms: dict[str, int] = dataclasses.field(default_factory=dict)

    def arm(self, risk_id: str, now_ms: int) -> None:
        self.notified.add(risk_id)
        self.last_notified_at_ms[risk_id] = now_ms

    def evict(self, risk_id: str) -> None:
        self.notified.discard(risk_id)
        self.last_notified_at_ms.pop(risk_id, None)

    def clear(self) -> None:
        self.notified.clear()
        self.last_notified_at_ms.clear()


class ProximityNotifier:

    def __init__(
        self,
        sink: NotificationSink,
        now_ms: Callable[[], int] = _now_ms,
        cooldown_ms: int = NOTIFICATION_COOLDOWN_MS,
    ) -> None:
        self._sink = sink
        self._now_ms = now_ms
        self._cooldown_ms = cooldown_ms
        self.state = NotificationDedupState()

    def reset(self) -> None:
        self.state.clear()

    async def async_check_proximity(
        self,
        position: Position,
        risks: Iterable[Risk],
        alert_radius_meters: float,
    ) -> list[NearbyRisk]:
        """Notify for risks within alert_radius_meters of position and return them by distance."""
        now = self._now_ms()
        nearby = []
        for risk in risks:
            distance = distance_meters(position.latitude, position.longitude, risk.latitude, risk.longitude)
            if distance <= alert_radius_meters:
                nearby.append(NearbyRisk(risk, distance))
        nearby.sort(key=lambda n: n.distance)
        nearby_ids = {n.id for n in nearby}

        for item in nearby:
            last = self.state.last_notified_at_ms.get(item.id)
            cooled_down = last is None or now - last > self._cooldown_ms
            if item.id not in self.state.notified or cooled_down:
                try:
                    await self._sink.async_send(_risk_notification(item))
                except Exception as exc:  # noqa: BLE001
                    _LOGGER.error("Failed to send notification for risk %s: %s", item.id, exc)
                    continue
                self.state.arm(item.id, now)
                _LOGGER.info("Risk %s notified at %.0fm", item.id, item.distance)
            else:
                remaining = (self._cooldown_ms - (now - last)) / 60000
                _LOGGER.debug("Risk %s in cooldown (%.1f min left)", item.id, remaining)

        left = [risk_id for risk_id in self.state.notified if risk_id not in nearby_ids]
        for risk_id in left:
            self.state.evict(risk_id)
        if left:
            _LOGGER.debug("Cleared cooldown for %s risk(s) out of range", len(left))

        return nearby


def _risk_notification(item: NearbyRisk):
    risk = item.risk
    return make_notification(
        title=f"⚠️ Risque : {risk.category}",
        body=f"À {round(item.distance)}m - {risk.title}",
        data={
            "tag": f"risk_{risk.id}",
            "risk_id": risk.id,
            "category": risk.category,
            "severity": risk.severity.value,
            "distance": str(round(item.distance)),
        },
    )
