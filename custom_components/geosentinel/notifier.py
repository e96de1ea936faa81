"""
NotificationSink — hands notifications to Home Assistant.

With a configured notify service (typically a Companion app target such as
"mobile_app_pixel_7") the Android channel and importance travel in the
service data. Without one a persistent notification is created instead.
Fire-and-forget: delivery is never awaited.
"""
from __future__ import annotations

import logging

from homeassistant.core import HomeAssistant

from .const import DOMAIN, IMPORTANCE_HIGH, NOTIFICATION_CHANNEL
from .models import Notification

_LOGGER = logging.getLogger(__name__)


class NotificationSink:

    def __init__(self, hass: HomeAssistant, notify_service: str | None = None) -> None:
        self.hass = hass
        self.notify_service = _strip_domain(notify_service)

    async def async_send(self, notification: Notification) -> None:
        """Dispatch one notification. Raises if the service call cannot be scheduled."""
        if self.notify_service:
            data = {
                "channel": notification.channel,
                "importance": notification.importance,
                "priority": "high" if notification.importance == IMPORTANCE_HIGH else "normal",
                "ttl": 0,
                "tag": notification.data.get("tag", notification.title),
                **notification.data,
            }
            await self.hass.services.async_call(
                "notify",
                self.notify_service,
                {"title": notification.title, "message": notification.body, "data": data},
                blocking=False,
            )
        else:
            await self.hass.services.async_call(
                "persistent_notification",
                "create",
                {
                    "title": notification.title,
                    "message": notification.body,
                    "notification_id": f"{DOMAIN}_{notification.data.get('tag', notification.title)}",
                },
                blocking=False,
            )
        _LOGGER.debug("Notification sent: %s", notification.title)


def make_notification(
    title: str,
    body: str,
    importance: str = IMPORTANCE_HIGH,
    data: dict[str, str] | None = None,
) -> Notification:
    return Notification(
        title=title,
        body=body,
        channel=NOTIFICATION_CHANNEL,
        importance=importance,
        data=dict(data or {}),
    )


def _strip_domain(service: str | None) -> str | None:
    if not service:
        return None
    service = service.strip()
    if service.startswith("notify."):
        service = service[len("notify."):]
    return service or None
