"""
Municipality watcher — tells the agent when they cross into another commune.
"""
from __future__ import annotations

import logging

from .const import KEY_LAST_KNOWN_COMMUNE
from .coordinator_utils import fetch_municipality
from .models import Position
from .notifier import NotificationSink, make_notification
from .preferences import PreferenceStore

_LOGGER = logging.getLogger(__name__)


class MunicipalityWatcher:

    def __init__(self, prefs: PreferenceStore, sink: NotificationSink) -> None:
        self._prefs = prefs
        self._sink = sink

    async def async_is_enabled(self) -> bool:
        return await self._prefs.async_commune_watch_enabled()

    async def async_check_municipality_change(self, position: Position) -> str | None:
        """
        Compare the current municipality with the last one seen.

        Returns the current municipality name, or None when the registry could
        not answer (persisted state is then left as it was).
        """
        current = await fetch_municipality(position.latitude, position.longitude)
        if current is None:
            return None

        last = await self._prefs.async_get_last_commune()
        if last and last != current:
            _LOGGER.info("Municipality changed: %s -> %s", last, current)
            try:
                await self._sink.async_send(make_notification(
                    title="🏘️ Changement de commune",
                    body=(
                        f"Vous êtes maintenant à {current}. "
                        "Veuillez accéder à l'application pour vérifier les risques."
                    ),
                    data={"tag": "commune_change", "commune": current, "previous_commune": last},
                ))
            except Exception as exc:  # noqa: BLE001
                _LOGGER.error("Failed to send municipality notification: %s", exc)
        elif not last:
            _LOGGER.debug("First municipality observed: %s", current)

        await self._prefs.async_set(KEY_LAST_KNOWN_COMMUNE, current)
        return current
