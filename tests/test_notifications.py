from __future__ import annotations

import httpx
import pytest

from repairconnect.application.utils.notifications import build_notifications
from repairconnect.domain.entities.appointment import AppointmentEvent, AppointmentStatus
from repairconnect.infrastructure.notifications.log_notifier import LogNotifier
from repairconnect.infrastructure.notifications.webhook_notifier import WebhookNotifier

from tests.conftest import CUSTOMER, WORKSHOP_USER, make_appointment

S = AppointmentStatus


def event(new_status: S, actor: str, previous: S | None = S.requested, reason: str | None = None) -> AppointmentEvent:
    return AppointmentEvent(
        appointment=make_appointment(status=new_status),
        previous_status=previous,
        new_status=new_status,
        acting_user_id=actor,
        reason=reason,
    )


def test_workshop_action_only_notifies_customer():
    notifications = build_notifications(event(S.confirmed, WORKSHOP_USER))

    assert [n.recipient_id for n in notifications] == [CUSTOMER]
    assert notifications[0].title == "Appointment Confirmed"
    assert "2026-10-19" in notifications[0].message


def test_customer_action_notifies_both_parties():
    notifications = build_notifications(event(S.cancelled, CUSTOMER, reason="Sold the car"))

    assert [(n.audience, n.recipient_id) for n in notifications] == [
        ("customer", CUSTOMER),
        ("workshop", WORKSHOP_USER),
    ]
    assert all(n.message.endswith("Reason: Sold the car") for n in notifications)


@pytest.mark.parametrize("status", list(S))
def test_every_status_has_text(status):
    notifications = build_notifications(event(status, CUSTOMER))

    assert all(n.title and n.message for n in notifications)


def test_log_notifier_keeps_sent():
    notifier = LogNotifier()

    notifier.notify(event(S.requested, CUSTOMER, previous=None))

    assert [n.audience for n in notifier.sent] == ["customer", "workshop"]


def test_webhook_notifier_posts_per_recipient():
    received = []

    def handler(request: httpx.Request) -> httpx.Response:
        received.append(request)
        return httpx.Response(202)

    client = httpx.Client(transport=httpx.MockTransport(handler))
    notifier = WebhookNotifier("https://notify.example.test/events", client=client)

    notifier.notify(event(S.rescheduled, CUSTOMER, previous=S.confirmed))

    assert len(received) == 2
    assert received[0].url == "https://notify.example.test/events"


def test_webhook_notifier_raises_on_failure():
    client = httpx.Client(transport=httpx.MockTransport(lambda request: httpx.Response(500, text="down")))
    notifier = WebhookNotifier("https://notify.example.test/events", client=client)

    with pytest.raises(httpx.HTTPStatusError):
        notifier.notify(event(S.confirmed, WORKSHOP_USER))
