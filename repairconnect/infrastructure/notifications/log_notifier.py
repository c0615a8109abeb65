from __future__ import annotations

import logging

from repairconnect.application.ports.notifier import NotifierPort
from repairconnect.application.utils.notifications import Notification, build_notifications
from repairconnect.domain.entities.appointment import AppointmentEvent


class LogNotifier(NotifierPort):
    """Logs notifications instead of delivering them. Keeps the last ones for inspection."""

    def __init__(self) -> None:
        self.sent: list[Notification] = []
        self._logger = logging.getLogger(__name__)

    def notify(self, event: AppointmentEvent) -> None:
        for notification in build_notifications(event):
            self.sent.append(notification)
            self._logger.info(
                "Mock notification sent",
                extra={
                    "appointment_id": notification.appointment_id,
                    "status": notification.status.value,
                    "reason": f"{notification.audience}:{notification.title}",
                },
            )
