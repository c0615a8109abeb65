from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Iterator, Sequence
from datetime import date, datetime, timedelta
from decimal import ROUND_CEILING, Decimal

from repairconnect.application.exceptions import NotFoundError
from repairconnect.application.ports.appointment_store import AppointmentStorePort
from repairconnect.application.use_cases.availability import (
    BOOKED_REASON,
    CLOSED_REASON,
    MULTI_DAY_WINDOW_MINUTES,
    compute_available_slots,
    is_multi_day,
    overlaps_booking,
)
from repairconnect.application.utils.time_math import (
    MINUTES_PER_DAY,
    as_date,
    hours_to_minutes,
    is_valid_time,
    time_to_minutes,
)
from repairconnect.domain.entities.appointment import OCCUPYING_STATUSES, Appointment
from repairconnect.domain.entities.operating_hours import DEFAULT_OPERATING_HOURS, DayHours, OperatingHours
from repairconnect.domain.entities.slots import (
    AvailabilitySlot,
    BookedSlot,
    OptimalSlots,
    SlotCheck,
    SlotCounts,
    TimeRange,
    TimeSlot,
    UnavailableSlot,
    WorkshopAvailability,
    WorkshopComparison,
    WorkshopStatus,
)
from repairconnect.domain.entities.workshop import WorkshopLookup

# Hours of workshop time per requested service type.
SERVICE_DURATIONS: dict[str, float] = {
    # mechanical
    "engine": 4,
    "transmission": 6,
    "brakes": 2,
    "suspension": 3,
    "clutch": 4,
    # electrical
    "electrical": 2,
    "battery": 0.5,
    "alternator": 2,
    "lights": 1,
    "electronics": 2,
    # body & exterior
    "bodywork": 8,
    "paint": 6,
    "glass": 2,
    "bumper": 3,
    "dents": 2,
    # maintenance
    "maintenance": 1,
    "oil_change": 0.5,
    "inspection": 1,
    "tune_up": 2,
    "filters": 0.5,
    # tires & wheels
    "tires": 1,
    "wheel_alignment": 1,
    "tire_rotation": 0.5,
    "wheel_balancing": 1,
    # other
    "detailing": 3,
    "diagnostic": 1,
    "repair": 2,
    "other": 2,
}
DEFAULT_SERVICE_HOURS = 2
DURATION_BUFFER = Decimal("1.2")

DEFAULT_PREFERRED_RANGE = TimeRange(start="09:00", end="17:00")
MIN_PREFERRED_SLOTS = 3
BACKFILL_DAYS = 7


class AppointmentScheduler:
    """
    Answers availability questions for workshops.

    Every query resolves the workshop (owning-user id first, profile id second)
    and its operating hours, substituting `default_hours` when the workshop has
    none configured. Appointments are always looked up under the workshop's
    owning-user id.
    """

    def __init__(
        self,
        store: AppointmentStorePort,
        default_hours: OperatingHours = DEFAULT_OPERATING_HOURS,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._store = store
        self._default_hours = default_hours
        self._clock = clock or datetime.now
        self._logger = logging.getLogger(__name__)

    def now(self) -> datetime:
        return self._clock()

    def resolve_workshop(self, workshop_id: str) -> tuple[WorkshopLookup, OperatingHours]:
        lookup = self._store.find_workshop(workshop_id)
        if lookup is None:
            raise NotFoundError(f"Workshop not found with ID: {workshop_id}")

        if lookup.matched_by == "profile_id":
            self._logger.warning(
                "Workshop matched by profile id",
                extra={"workshop_id": workshop_id, "matched_by": lookup.matched_by},
            )

        hours = lookup.workshop.operating_hours
        if hours is None:
            self._logger.warning(
                "Workshop has no operating hours, using defaults",
                extra={"workshop_id": workshop_id},
            )
            hours = self._default_hours
        return lookup, hours

    def get_workshop_availability(
        self,
        workshop_id: str,
        start_date: date | datetime,
        end_date: date | datetime,
        slot_duration: float = 1.0,
    ) -> list[WorkshopAvailability]:
        lookup, hours = self.resolve_workshop(workshop_id)
        return self._availability(
            workshop_id, lookup, hours, as_date(start_date), as_date(end_date), slot_duration
        )

    def get_next_available_slots(
        self,
        workshop_id: str,
        required_duration: float,
        days_to_look_ahead: int = 14,
        slots_needed: int = 10,
    ) -> list[TimeSlot]:
        """First bookable slots from now on, scanning one day at a time."""
        lookup, hours = self.resolve_workshop(workshop_id)
        now = self.now()
        found: list[TimeSlot] = []
        if slots_needed <= 0:
            return found

        for offset in range(days_to_look_ahead + 1):
            day = now.date() + timedelta(days=offset)
            (availability,) = self._availability(workshop_id, lookup, hours, day, day, required_duration)
            for slot in _bookable(availability, now, required_duration):
                found.append(_time_slot(slot, required_duration))
                if len(found) >= slots_needed:
                    return found
        return found

    def is_time_slot_available(
        self,
        workshop_id: str,
        day: date | datetime,
        start_time: str,
        duration: float,
        exclude_appointment_id: str | None = None,
    ) -> SlotCheck:
        """
        Check one requested slot against opening hours and existing bookings.

        Services longer than the day is open only need to start within opening
        hours, and only their first hour is checked for conflicts.
        """
        lookup, week = self.resolve_workshop(workshop_id)
        day = as_date(day)
        hours = week.for_day(day)

        if hours.closed:
            return SlotCheck(available=False, reason="Workshop is closed on this day")
        if not is_valid_time(start_time):
            return SlotCheck(available=False, reason="Invalid time format. Use HH:MM format")

        start = time_to_minutes(start_time)
        if start < hours.open_minutes or start >= hours.close_minutes:
            return SlotCheck(
                available=False,
                reason=f"Workshop operates from {hours.open} to {hours.close}",
            )

        if is_multi_day(duration, hours):
            end = min(start + MULTI_DAY_WINDOW_MINUTES, MINUTES_PER_DAY)
        else:
            end = start + hours_to_minutes(duration)
            if end > hours.close_minutes:
                return SlotCheck(
                    available=False,
                    reason=(
                        f"Service duration ({duration:g}h) does not fit within "
                        f"operating hours {hours.open}-{hours.close}"
                    ),
                )

        booked = self._store.find_appointments(lookup.appointment_key, day, day, OCCUPYING_STATUSES)
        for appointment in booked:
            if appointment.id == exclude_appointment_id:
                continue
            if overlaps_booking(start, end, appointment):
                return SlotCheck(
                    available=False,
                    reason="Time slot is already booked",
                    conflicting_appointment=appointment.id,
                )
        return SlotCheck(available=True)

    def suggest_alternatives(
        self,
        workshop_id: str,
        day: date | datetime,
        duration: float,
        limit: int = 5,
    ) -> list[TimeSlot]:
        """Free slots on the same day, or the next free ones within a week when that day is full."""
        lookup, hours = self.resolve_workshop(workshop_id)
        day = as_date(day)
        (availability,) = self._availability(workshop_id, lookup, hours, day, day, duration)
        same_day = [_time_slot(slot, duration) for slot in _bookable(availability, self.now(), duration)]
        if same_day:
            return same_day[:limit]
        return self.get_next_available_slots(workshop_id, duration, BACKFILL_DAYS, limit)

    def find_optimal_slots(
        self,
        workshop_id: str,
        required_duration: float,
        preferred_dates: Sequence[date | datetime],
        preferred_time_ranges: Sequence[TimeRange] | None = None,
        max_alternatives: int = 5,
    ) -> OptimalSlots:
        lookup, hours = self.resolve_workshop(workshop_id)
        ranges = [DEFAULT_PREFERRED_RANGE] if preferred_time_ranges is None else list(preferred_time_ranges)
        now = self.now()

        preferred: list[TimeSlot] = []
        alternative: list[TimeSlot] = []
        checked: set[date] = set()

        for candidate in preferred_dates:
            day = as_date(candidate)
            checked.add(day)
            (availability,) = self._availability(workshop_id, lookup, hours, day, day, required_duration)
            for slot in _bookable(availability, now, required_duration):
                if _in_ranges(slot.start_time, ranges):
                    preferred.append(_time_slot(slot, required_duration))
                else:
                    alternative.append(_time_slot(slot, required_duration))

        if len(preferred) < MIN_PREFERRED_SLOTS:
            today = now.date()
            backfill = self._availability(
                workshop_id, lookup, hours, today, today + timedelta(days=BACKFILL_DAYS), required_duration
            )
            for availability in backfill:
                if availability.date in checked:
                    continue
                for slot in _bookable(availability, now, required_duration):
                    if len(alternative) >= max_alternatives:
                        break
                    alternative.append(_time_slot(slot, required_duration))

        return OptimalSlots(
            preferred_slots=preferred[:max_alternatives],
            alternative_slots=alternative[:max_alternatives],
        )

    def get_workshop_current_status(self, workshop_id: str) -> WorkshopStatus:
        lookup, hours = self.resolve_workshop(workshop_id)
        now = self.now()
        today = now.date()
        now_minutes = now.hour * 60 + now.minute

        booked = self._store.find_appointments(lookup.appointment_key, today, today, OCCUPYING_STATUSES)
        current = next((a for a in booked if _is_running(a, now_minutes)), None)

        today_slots = compute_available_slots(hours, today, booked, 1.0)
        counts = SlotCounts(
            available=sum(1 for slot in today_slots if slot.is_available),
            booked=sum(1 for slot in today_slots if slot.reason == BOOKED_REASON),
            total=len(today_slots),
        )

        next_slot = next(
            (
                _time_slot(slot, 1.0)
                for slot in today_slots
                if slot.is_available
                and time_to_minutes(slot.start_time) > now_minutes
                and _fits(slot, 1.0, hours.for_day(today))
            ),
            None,
        )
        if next_slot is None:
            upcoming = self.get_next_available_slots(workshop_id, 1.0, 7, 1)
            next_slot = upcoming[0] if upcoming else None

        return WorkshopStatus(
            is_open=hours.is_open_at(now),
            today_slots=counts,
            next_available_slot=next_slot,
            current_appointment=current,
        )

    @staticmethod
    def estimate_service_duration(service_types: Iterable[str]) -> float:
        """
        Sum per-service estimates (2h for unknown types), add a 20% buffer and
        round up to the next half hour. Advisory only.
        """
        total = sum(
            (
                Decimal(str(SERVICE_DURATIONS.get(service.lower().strip(), DEFAULT_SERVICE_HOURS)))
                for service in service_types
            ),
            Decimal(0),
        )
        half_hours = (total * DURATION_BUFFER * 2).to_integral_value(rounding=ROUND_CEILING)
        return float(half_hours / 2)

    def compare_workshop_availability(
        self,
        workshop_ids: Sequence[str],
        required_duration: float,
        preferred_date: date | datetime | None = None,
        days_to_check: int = 7,
    ) -> list[WorkshopComparison]:
        """Rank workshops by days until their first free slot. Unknown workshops are skipped."""
        now = self.now()
        start = as_date(preferred_date) if preferred_date else now.date()
        end = start + timedelta(days=days_to_check)
        results: list[WorkshopComparison] = []

        for workshop_id in workshop_ids:
            try:
                lookup, hours = self.resolve_workshop(workshop_id)
            except NotFoundError:
                self._logger.info("Skipping unknown workshop in comparison", extra={"workshop_id": workshop_id})
                continue

            days = self._availability(workshop_id, lookup, hours, start, end, required_duration)
            total = 0
            first: TimeSlot | None = None
            wait_days = days_to_check
            for index, availability in enumerate(days):
                free = list(_bookable(availability, now, required_duration))
                total += len(free)
                if first is None and free:
                    first = _time_slot(free[0], required_duration)
                    wait_days = index

            results.append(
                WorkshopComparison(
                    workshop_id=workshop_id,
                    workshop_name=lookup.workshop.name,
                    available_slots_count=total,
                    wait_days=wait_days,
                    next_available_slot=first,
                )
            )

        results.sort(key=lambda result: result.wait_days)
        return results

    def _availability(
        self,
        workshop_id: str,
        lookup: WorkshopLookup,
        hours: OperatingHours,
        start: date,
        end: date,
        slot_duration: float,
    ) -> list[WorkshopAvailability]:
        booked = self._store.find_appointments(lookup.appointment_key, start, end, OCCUPYING_STATUSES)
        by_day: dict[date, list[Appointment]] = {}
        for appointment in booked:
            by_day.setdefault(appointment.scheduled_date, []).append(appointment)

        days: list[WorkshopAvailability] = []
        current = start
        while current <= end:
            day_hours = hours.for_day(current)
            day_booked = by_day.get(current, [])
            days.append(
                WorkshopAvailability(
                    workshop_id=workshop_id,
                    date=current,
                    operating_hours=day_hours,
                    available_slots=compute_available_slots(hours, current, day_booked, slot_duration),
                    booked_slots=[
                        BookedSlot(
                            start_time=a.scheduled_start_time,
                            end_time=a.scheduled_end_time,
                            appointment_id=a.id,
                        )
                        for a in day_booked
                    ],
                    unavailable_slots=(
                        [UnavailableSlot(start_time="00:00", end_time="23:59", reason=CLOSED_REASON)]
                        if day_hours.closed
                        else []
                    ),
                )
            )
            current += timedelta(days=1)
        return days


def _time_slot(slot: AvailabilitySlot, duration: float) -> TimeSlot:
    return TimeSlot(date=slot.date, start_time=slot.start_time, end_time=slot.end_time, duration=duration)


def _upcoming(slots: Iterable[AvailabilitySlot], now: datetime) -> Iterator[AvailabilitySlot]:
    """Available slots that have not started yet."""
    today = now.date()
    now_minutes = now.hour * 60 + now.minute
    for slot in slots:
        if not slot.is_available or slot.date < today:
            continue
        if slot.date == today and time_to_minutes(slot.start_time) < now_minutes:
            continue
        yield slot


def _fits(slot: AvailabilitySlot, duration: float, hours: DayHours) -> bool:
    """Whether a grid window is long enough to actually book `duration` hours in it."""
    if is_multi_day(duration, hours):
        return True
    start = time_to_minutes(slot.start_time)
    end = time_to_minutes(slot.end_time)
    if end <= start:
        end = MINUTES_PER_DAY
    return end - start >= hours_to_minutes(duration)


def _bookable(availability: WorkshopAvailability, now: datetime, duration: float) -> Iterator[AvailabilitySlot]:
    for slot in _upcoming(availability.available_slots, now):
        if _fits(slot, duration, availability.operating_hours):
            yield slot


def _in_ranges(start_time: str, ranges: Iterable[TimeRange]) -> bool:
    minutes = time_to_minutes(start_time)
    return any(time_to_minutes(r.start) <= minutes <= time_to_minutes(r.end) for r in ranges)


def _is_running(appointment: Appointment, now_minutes: int) -> bool:
    start = time_to_minutes(appointment.scheduled_start_time)
    end = time_to_minutes(appointment.scheduled_end_time)
    if appointment.is_multi_day_service or end <= start:
        end = MINUTES_PER_DAY
    return start <= now_minutes < end
