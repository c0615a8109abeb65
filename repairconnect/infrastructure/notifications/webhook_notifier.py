from __future__ import annotations

import logging

import httpx

from repairconnect.application.ports.notifier import NotifierPort
from repairconnect.application.utils.notifications import build_notifications
from repairconnect.domain.entities.appointment import AppointmentEvent


class WebhookNotifier(NotifierPort):
    """POSTs one JSON document per recipient to a notification service."""

    def __init__(self, url: str, timeout: float = 10.0, client: httpx.Client | None = None) -> None:
        self._url = url
        self._client = client or httpx.Client(timeout=timeout)
        self._logger = logging.getLogger(__name__)

    def notify(self, event: AppointmentEvent) -> None:
        for notification in build_notifications(event):
            payload = {
                "recipientId": notification.recipient_id,
                "type": "appointment",
                "audience": notification.audience,
                "title": notification.title,
                "message": notification.message,
                "data": {
                    "appointmentId": notification.appointment_id,
                    "status": notification.status.value,
                    "previousStatus": event.previous_status.value if event.previous_status else None,
                },
            }
            resp = self._client.post(self._url, json=payload)
            if resp.status_code >= 400:
                self._logger.error(
                    "Notification delivery failed",
                    extra={
                        "appointment_id": notification.appointment_id,
                        "status": resp.status_code,
                        "error": resp.text,
                    },
                )
                resp.raise_for_status()
