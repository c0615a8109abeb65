"""Shared test fixtures and helpers."""

from __future__ import annotations

from datetime import date, datetime, timezone

import pytest

from repairconnect.application.ports.notifier import NotifierPort
from repairconnect.application.use_cases.manage_appointment import ManageAppointmentUseCase
from repairconnect.application.use_cases.scheduler import AppointmentScheduler
from repairconnect.domain.entities.appointment import (
    Appointment,
    AppointmentEvent,
    AppointmentStatus,
)
from repairconnect.domain.entities.caller import Caller
from repairconnect.domain.entities.operating_hours import DEFAULT_OPERATING_HOURS
from repairconnect.domain.entities.workshop import WorkshopConfig
from repairconnect.infrastructure.store.memory_store import MemoryAppointmentStore

# Monday, before the workshop opens.
NOW = datetime(2026, 10, 19, 7, 0, tzinfo=timezone.utc)
MONDAY = date(2026, 10, 19)
TUESDAY = date(2026, 10, 20)
SATURDAY = date(2026, 10, 24)
SUNDAY = date(2026, 10, 25)

WORKSHOP_USER = "ws-user-1"
WORKSHOP_PROFILE = "ws-profile-1"
CUSTOMER = "cust-1"

CUSTOMER_CALLER = Caller(user_id=CUSTOMER, role="customer")
WORKSHOP_CALLER = Caller(user_id=WORKSHOP_USER, role="workshop")


class RecordingNotifier(NotifierPort):
    def __init__(self) -> None:
        self.events: list[AppointmentEvent] = []

    def notify(self, event: AppointmentEvent) -> None:
        self.events.append(event)


class FailingNotifier(NotifierPort):
    def notify(self, event: AppointmentEvent) -> None:
        raise RuntimeError("notification service down")


class MutableClock:
    def __init__(self, now: datetime = NOW) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now


def make_appointment(
    appointment_id: str = "appt-1",
    day: date = MONDAY,
    start: str = "10:00",
    end: str = "12:00",
    status: AppointmentStatus = AppointmentStatus.confirmed,
    workshop_id: str = WORKSHOP_USER,
    customer_id: str = CUSTOMER,
    duration: float = 2.0,
    multi_day: bool = False,
) -> Appointment:
    """Helper to create an Appointment directly in a store."""
    return Appointment(
        id=appointment_id,
        quotation_id=f"quote-{appointment_id}",
        accepted_quote_id=f"accepted-{appointment_id}",
        customer_id=customer_id,
        workshop_id=workshop_id,
        scheduled_date=day,
        scheduled_start_time=start,
        scheduled_end_time=end,
        estimated_duration=duration,
        status=status,
        is_multi_day_service=multi_day,
        created_at=NOW,
        updated_at=NOW,
    )


@pytest.fixture
def clock():
    return MutableClock()


@pytest.fixture
def store():
    store = MemoryAppointmentStore()
    store.add_workshop(
        WorkshopConfig(
            id=WORKSHOP_PROFILE,
            user_id=WORKSHOP_USER,
            name="Fix It Garage",
            operating_hours=DEFAULT_OPERATING_HOURS,
        )
    )
    return store


@pytest.fixture
def scheduler(store, clock):
    return AppointmentScheduler(store=store, default_hours=DEFAULT_OPERATING_HOURS, clock=clock)


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def use_case(store, scheduler, notifier):
    ids = iter(f"appt-{n}" for n in range(1, 1000))
    return ManageAppointmentUseCase(
        store=store,
        scheduler=scheduler,
        notifier=notifier,
        id_factory=lambda: next(ids),
    )
