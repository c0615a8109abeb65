from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta

from repairconnect.application.utils.time_math import combine, is_valid_time
from repairconnect.domain.entities.appointment import Appointment, AppointmentStatus
from repairconnect.domain.entities.booking_request import BookingRequest, ValidationResult

S = AppointmentStatus

VALID_TRANSITIONS: dict[AppointmentStatus, frozenset[AppointmentStatus]] = {
    S.requested: frozenset({S.confirmed, S.cancelled}),
    S.confirmed: frozenset({S.scheduled, S.cancelled}),
    S.scheduled: frozenset({S.in_progress, S.cancelled, S.no_show}),
    S.in_progress: frozenset({S.completed, S.cancelled}),
    S.rescheduled: frozenset({S.confirmed, S.cancelled}),
    S.completed: frozenset(),
    S.cancelled: frozenset(),
    S.no_show: frozenset(),
}

RESCHEDULABLE_STATUSES = frozenset({S.requested, S.confirmed, S.scheduled})
CANCELLABLE_STATUSES = frozenset({S.requested, S.confirmed, S.scheduled, S.rescheduled})


@dataclass(frozen=True)
class BookingRules:
    max_advance_days: int = 90
    min_duration_hours: float = 0.5
    max_duration_hours: float = 12.0
    earliest_start_hour: int = 6
    latest_start_hour: int = 22
    reschedule_notice_hours: int = 24


DEFAULT_RULES = BookingRules()


def validate_booking_request(
    request: BookingRequest,
    now: datetime,
    rules: BookingRules = DEFAULT_RULES,
) -> ValidationResult:
    """Run every booking rule and collect all failures."""
    errors: list[str] = []
    time_ok = is_valid_time(request.start_time)

    if time_ok:
        starts_at = combine(request.date, request.start_time, now.tzinfo)
        is_future = starts_at > now
        too_far = starts_at > now + timedelta(days=rules.max_advance_days)
    else:
        # Without a usable time only the calendar day can be judged.
        is_future = request.date >= now.date()
        too_far = request.date > (now + timedelta(days=rules.max_advance_days)).date()

    if not is_future:
        errors.append("Appointment must be scheduled for a future date and time")
    if too_far:
        errors.append(
            f"Appointment cannot be scheduled more than {rules.max_advance_days} days in advance"
        )

    if not rules.min_duration_hours <= request.duration <= rules.max_duration_hours:
        errors.append(
            "Appointment duration must be between "
            f"{rules.min_duration_hours:g} and {rules.max_duration_hours:g} hours"
        )

    if not time_ok:
        errors.append("Invalid time format. Use HH:MM format")

    hour = _leading_hour(request.start_time)
    if hour is not None and not rules.earliest_start_hour <= hour <= rules.latest_start_hour:
        errors.append(
            "Appointment time must be between "
            f"{rules.earliest_start_hour:02d}:00 and {rules.latest_start_hour:02d}:00"
        )

    return ValidationResult(valid=not errors, errors=errors)


def validate_reschedule_request(
    appointment: Appointment,
    new_date: date,
    new_start_time: str,
    now: datetime,
    rules: BookingRules = DEFAULT_RULES,
) -> ValidationResult:
    """
    Rescheduling needs a reschedulable status and enough notice before the
    *currently* booked start; the new slot must also pass the booking rules.
    """
    errors: list[str] = []

    if appointment.status not in RESCHEDULABLE_STATUSES:
        errors.append(
            f"This appointment cannot be rescheduled (status: {appointment.status.value})"
        )

    current_start = combine(
        appointment.scheduled_date, appointment.scheduled_start_time, now.tzinfo
    )
    hours_until = (current_start - now).total_seconds() / 3600
    if hours_until < rules.reschedule_notice_hours:
        errors.append(
            "Appointments can only be rescheduled with at least "
            f"{rules.reschedule_notice_hours} hours notice"
        )

    booking = validate_booking_request(
        BookingRequest(
            date=new_date,
            start_time=new_start_time,
            duration=appointment.estimated_duration,
            workshop_id=appointment.workshop_id,
            quotation_id=appointment.quotation_id,
            accepted_quote_id=appointment.accepted_quote_id,
        ),
        now,
        rules,
    )
    errors.extend(booking.errors)

    return ValidationResult(valid=not errors, errors=errors)


def validate_status_transition(current: AppointmentStatus, target: AppointmentStatus) -> ValidationResult:
    if target in VALID_TRANSITIONS.get(current, frozenset()):
        return ValidationResult(valid=True, errors=[])
    return ValidationResult(
        valid=False,
        errors=[f"Cannot change status from {current.value} to {target.value}"],
    )


def _leading_hour(value: str) -> int | None:
    head = (value or "").split(":", 1)[0].strip()
    return int(head) if head.isdigit() else None
