"""
Execution-health monitor — detects when the host delays the recurring cycle.

The last warning time is kept in memory only; a restart resets it together
with the throttling symptom it reports on.
"""
from __future__ import annotations

import logging
import time
from typing import Callable

from .const import (
    EXPECTED_TASK_INTERVAL_MS,
    KEY_LAST_TASK_RUN,
    SLOWDOWN_NOTIFICATION_COOLDOWN_MS,
)
from .notifier import NotificationSink, make_notification
from .preferences import PreferenceStore

_LOGGER = logging.getLogger(__name__)


def _now_ms() -> int:
    return int(time.time() * 1000)


class ExecutionHealthMonitor:

    def __init__(
        self,
        prefs: PreferenceStore,
        sink: NotificationSink,
        now_ms: Callable[[], int] = _now_ms,
        expected_interval_ms: int = EXPECTED_TASK_INTERVAL_MS,
    ) -> None:
        self._prefs = prefs
        self._sink = sink
        self._now_ms = now_ms
        self._expected_interval_ms = expected_interval_ms
        self._last_warning_ms: int | None = None

    def reset(self) -> None:
        self._last_warning_ms = None

    async def async_check_slowdown(self) -> bool:
        """Return True when the gap since the previous cycle exceeded the expected interval."""
        now = self._now_ms()
        slowed = False
        last_run = await self._prefs.async_get_int(KEY_LAST_TASK_RUN)

        if last_run is None:
            _LOGGER.debug("First cycle of this session")
        else:
            elapsed = now - last_run
            if elapsed > self._expected_interval_ms:
                slowed = True
                delay_s = round(elapsed / 1000)
                _LOGGER.warning("Cycle delayed by the host: %ss since last run", delay_s)
                if (
                    self._last_warning_ms is None
                    or now - self._last_warning_ms > SLOWDOWN_NOTIFICATION_COOLDOWN_MS
                ):
                    try:
                        await self._sink.async_send(make_notification(
                            title="⚠️ Service ralenti",
                            body=(
                                f"Le service de surveillance a été ralenti par le système ({delay_s}s). "
                                "Pour garantir une surveillance optimale, veuillez arrêter puis relancer le tracking."
                            ),
                            data={"tag": "slowdown", "delay_seconds": str(delay_s)},
                        ))
                        self._last_warning_ms = now
                    except Exception as exc:  # noqa: BLE001
                        _LOGGER.error("Failed to send slowdown notification: %s", exc)
            else:
                _LOGGER.debug("Normal interval (%ss)", round(elapsed / 1000))

        await self._prefs.async_set(KEY_LAST_TASK_RUN, self._now_ms())
        return slowed
