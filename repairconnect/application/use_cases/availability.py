from __future__ import annotations

from collections.abc import Iterable
from datetime import date, timedelta

from repairconnect.application.utils.time_math import (
    MINUTES_PER_DAY,
    hours_to_minutes,
    intervals_overlap,
    minutes_to_time,
    time_to_minutes,
)
from repairconnect.domain.entities.appointment import Appointment
from repairconnect.domain.entities.operating_hours import DayHours, OperatingHours
from repairconnect.domain.entities.slots import AvailabilitySlot, ServiceCompletion

CLOSED_REASON = "Workshop closed"
BOOKED_REASON = "Booked"

# Multi-day services only reserve their opening hour on the start day.
MULTI_DAY_WINDOW_MINUTES = 60

MAX_COMPLETION_SCAN_DAYS = 366


def day_hours_for(operating_hours: OperatingHours | DayHours, day: date) -> DayHours:
    if isinstance(operating_hours, OperatingHours):
        return operating_hours.for_day(day)
    return operating_hours


def is_multi_day(duration_hours: float, hours: DayHours) -> bool:
    return duration_hours > hours.daily_hours


def reservation_window(appointment: Appointment) -> tuple[int, int]:
    """Minutes of its scheduled day an appointment holds on the calendar."""
    start = time_to_minutes(appointment.scheduled_start_time)
    if appointment.is_multi_day_service:
        return start, min(start + MULTI_DAY_WINDOW_MINUTES, MINUTES_PER_DAY)
    end = time_to_minutes(appointment.scheduled_end_time)
    if end <= start:
        end = MINUTES_PER_DAY
    return start, end


def overlaps_booking(start: int, end: int, appointment: Appointment) -> bool:
    booked_start, booked_end = reservation_window(appointment)
    return intervals_overlap(start, end, booked_start, booked_end)


def find_conflict(candidate: Appointment, others: Iterable[Appointment]) -> Appointment | None:
    """First occupying appointment that would share the candidate's reserved time."""
    if not candidate.is_occupying:
        return None
    start, end = reservation_window(candidate)
    for other in others:
        if other.id == candidate.id or not other.is_occupying:
            continue
        if other.workshop_id != candidate.workshop_id or other.scheduled_date != candidate.scheduled_date:
            continue
        if overlaps_booking(start, end, other):
            return other
    return None


def compute_available_slots(
    operating_hours: OperatingHours | DayHours,
    day: date,
    existing_appointments: Iterable[Appointment],
    slot_duration_hours: float = 1.0,
) -> list[AvailabilitySlot]:
    """
    Slice a day's opening hours into a slot grid.

    Closed days yield a single unavailable 00:00-23:59 slot. Otherwise
    [open, close) is cut into `slot_duration_hours` windows; a trailing window
    that does not fit is shrunk to end at closing time. When the granularity is
    longer than the day is open (multi-day services), hourly start windows are
    offered instead. A window is unavailable when it overlaps an occupying
    appointment on the same day.
    """
    if slot_duration_hours <= 0:
        raise ValueError(f"Slot duration must be positive, got {slot_duration_hours}")

    hours = day_hours_for(operating_hours, day)
    if hours.closed:
        return [
            AvailabilitySlot(
                date=day,
                start_time="00:00",
                end_time="23:59",
                is_available=False,
                reason=CLOSED_REASON,
            )
        ]

    booked = [
        appointment
        for appointment in existing_appointments
        if appointment.is_occupying and appointment.scheduled_date == day
    ]

    width = hours_to_minutes(slot_duration_hours)
    if is_multi_day(slot_duration_hours, hours):
        width = MULTI_DAY_WINDOW_MINUTES

    slots: list[AvailabilitySlot] = []
    start = hours.open_minutes
    close = hours.close_minutes
    while start < close:
        end = min(start + width, close)
        is_booked = any(overlaps_booking(start, end, appointment) for appointment in booked)
        slots.append(
            AvailabilitySlot(
                date=day,
                start_time=minutes_to_time(start),
                end_time=minutes_to_time(end),
                is_available=not is_booked,
                reason=BOOKED_REASON if is_booked else None,
            )
        )
        start += width
    return slots


def calculate_service_completion(
    start_date: date,
    start_time: str,
    duration_hours: float,
    operating_hours: OperatingHours,
) -> ServiceCompletion:
    """
    Walk open days from the start until `duration_hours` of workshop time is used.
    The first day counts from `start_time`, later days from opening; closed days are skipped.
    """
    remaining = hours_to_minutes(duration_hours)
    current = start_date
    work_days = 0

    for _ in range(MAX_COMPLETION_SCAN_DAYS):
        hours = operating_hours.for_day(current)
        if not hours.closed:
            begin = time_to_minutes(start_time) if current == start_date else hours.open_minutes
            available = max(hours.close_minutes - begin, 0)
            if available > 0:
                work_days += 1
            if remaining <= available:
                return ServiceCompletion(
                    completion_date=current,
                    work_days=work_days,
                    is_multi_day=work_days > 1,
                    end_time=minutes_to_time(begin + remaining),
                )
            remaining -= available
        current += timedelta(days=1)

    raise ValueError("No open day found to complete the service within a year")
