from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any


class AppointmentStatus(str, Enum):
    requested = "requested"
    confirmed = "confirmed"
    scheduled = "scheduled"
    in_progress = "in_progress"
    completed = "completed"
    cancelled = "cancelled"
    no_show = "no_show"
    rescheduled = "rescheduled"


class PaymentStatus(str, Enum):
    pending = "pending"
    partial = "partial"
    paid = "paid"
    refunded = "refunded"


# Statuses that hold a workshop's time on the calendar.
OCCUPYING_STATUSES = frozenset(
    {AppointmentStatus.confirmed, AppointmentStatus.scheduled, AppointmentStatus.in_progress}
)


@dataclass(frozen=True)
class StatusChange:
    status: AppointmentStatus
    changed_at: datetime
    changed_by: str
    reason: str | None = None
    notes: str | None = None


@dataclass(frozen=True)
class RescheduleRecord:
    original_date: date
    original_start_time: str
    original_end_time: str
    new_date: date
    new_start_time: str
    new_end_time: str
    reason: str
    requested_by: str  # "customer" | "workshop"
    requested_at: datetime


@dataclass(frozen=True)
class ServiceItem:
    service_type: str
    description: str = ""
    estimated_duration: float = 0.0
    status: str = "pending"  # "pending", "in_progress", "completed", "cancelled"
    actual_start_time: datetime | None = None
    actual_end_time: datetime | None = None
    notes: str | None = None


@dataclass(frozen=True)
class Appointment:
    id: str
    quotation_id: str
    accepted_quote_id: str
    customer_id: str
    workshop_id: str
    scheduled_date: date
    scheduled_start_time: str  # HH:MM
    scheduled_end_time: str  # HH:MM, on the completion day for multi-day services
    estimated_duration: float  # hours
    status: AppointmentStatus = AppointmentStatus.requested
    services: tuple[ServiceItem, ...] = ()
    status_history: tuple[StatusChange, ...] = ()
    reschedule_history: tuple[RescheduleRecord, ...] = ()
    is_multi_day_service: bool = False
    estimated_completion_date: date | None = None
    estimated_work_days: int | None = None
    actual_start_time: datetime | None = None
    actual_end_time: datetime | None = None
    customer_notes: str | None = None
    workshop_notes: str | None = None
    customer_rating: int | None = None
    customer_review: str | None = None
    payment_status: PaymentStatus = PaymentStatus.pending
    created_at: datetime | None = None
    updated_at: datetime | None = None
    confirmed_at: datetime | None = None
    completed_at: datetime | None = None
    cancelled_at: datetime | None = None

    @property
    def is_occupying(self) -> bool:
        return self.status in OCCUPYING_STATUSES


@dataclass(frozen=True)
class AppointmentPatch:
    """
    One atomic document update: field replacements plus at most one entry
    pushed onto each history log. `updated_at` is always set.
    """

    updated_at: datetime
    set_fields: dict[str, Any] = field(default_factory=dict)
    push_status: StatusChange | None = None
    push_reschedule: RescheduleRecord | None = None


@dataclass(frozen=True)
class AppointmentEvent:
    appointment: Appointment
    previous_status: AppointmentStatus | None
    new_status: AppointmentStatus
    acting_user_id: str
    reason: str | None = None
