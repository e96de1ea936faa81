"""
Session lifetime guard — warns before, then enforces, the maximum duration of
a tracking session.
"""
from __future__ import annotations

import logging
import time
from typing import Callable, Protocol

from .const import (
    DEFAULT_MAX_SESSION_MINUTES,
    DEFAULT_SESSION_WARNING_MINUTES,
    KEY_SESSION_WARNING_SENT,
    MODE_KEYS,
    SESSION_KEYS,
)
from .notifier import NotificationSink, make_notification
from .preferences import PreferenceStore

_LOGGER = logging.getLogger(__name__)


def _now_ms() -> int:
    return int(time.time() * 1000)


class ServiceController(Protocol):
    """Start/stop control over the recurring cycle."""

    async def async_stop_service(self) -> None: ...


class SessionLifetimeGuard:

    def __init__(
        self,
        prefs: PreferenceStore,
        sink: NotificationSink,
        controller: ServiceController,
        now_ms: Callable[[], int] = _now_ms,
        max_duration_minutes: float = DEFAULT_MAX_SESSION_MINUTES,
        warning_lead_minutes: float = DEFAULT_SESSION_WARNING_MINUTES,
    ) -> None:
        self._prefs = prefs
        self._sink = sink
        self._controller = controller
        self._now_ms = now_ms
        self.max_duration_ms = int(max_duration_minutes * 60 * 1000)
        self.warning_lead_ms = int(warning_lead_minutes * 60 * 1000)

    async def async_check_max_duration(self) -> bool:
        """Return True when the session was terminated and the cycle must stop."""
        session = await self._prefs.async_load_session()
        if session is None:
            return False

        elapsed = self._now_ms() - session.start_time_ms

        if elapsed >= self.max_duration_ms - self.warning_lead_ms and not session.warning_sent:
            remaining_min = max(0, round((self.max_duration_ms - elapsed) / 60000))
            await self._send(
                "⏳ Fin de session proche",
                f"Votre session de tracking s'arrêtera automatiquement dans {remaining_min} minutes.",
                "session_warning",
            )
            await self._prefs.async_set(KEY_SESSION_WARNING_SENT, True)
            _LOGGER.info("Session ending warning sent (%s min left)", remaining_min)

        if elapsed >= self.max_duration_ms:
            hours = self.max_duration_ms / 3600000
            _LOGGER.info("Maximum session duration reached (%.1fh), stopping tracking", hours)
            await self._send(
                "🏁 Session terminée",
                f"Le délai de {hours:g}h est expiré. Veuillez relancer le tracking manuellement.",
                "session_ended",
            )
            try:
                await self._controller.async_stop_service()
            except Exception as exc:  # noqa: BLE001
                _LOGGER.error("Failed to stop the tracking service: %s", exc)
            await self._prefs.async_remove_many(MODE_KEYS + SESSION_KEYS)
            return True

        return False

    async def _send(self, title: str, body: str, tag: str) -> None:
        try:
            await self._sink.async_send(make_notification(title, body, data={"tag": tag}))
        except Exception as exc:  # noqa: BLE001
            _LOGGER.error("Failed to send session notification: %s", exc)
