from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date

from repairconnect.domain.entities.appointment import Appointment
from repairconnect.domain.entities.operating_hours import DayHours


@dataclass(frozen=True)
class TimeSlot:
    date: date
    start_time: str
    end_time: str
    duration: float  # hours


@dataclass(frozen=True)
class AvailabilitySlot:
    date: date
    start_time: str
    end_time: str
    is_available: bool
    reason: str | None = None  # "Booked", "Workshop closed"


@dataclass(frozen=True)
class BookedSlot:
    start_time: str
    end_time: str
    appointment_id: str


@dataclass(frozen=True)
class UnavailableSlot:
    start_time: str
    end_time: str
    reason: str


@dataclass(frozen=True)
class WorkshopAvailability:
    workshop_id: str
    date: date
    operating_hours: DayHours
    available_slots: list[AvailabilitySlot] = field(default_factory=list)
    booked_slots: list[BookedSlot] = field(default_factory=list)
    unavailable_slots: list[UnavailableSlot] = field(default_factory=list)


@dataclass(frozen=True)
class TimeRange:
    start: str
    end: str


@dataclass(frozen=True)
class SlotCheck:
    available: bool
    reason: str | None = None
    conflicting_appointment: str | None = None


@dataclass(frozen=True)
class OptimalSlots:
    preferred_slots: list[TimeSlot]
    alternative_slots: list[TimeSlot]


@dataclass(frozen=True)
class SlotCounts:
    available: int
    booked: int
    total: int


@dataclass(frozen=True)
class WorkshopStatus:
    is_open: bool
    today_slots: SlotCounts
    next_available_slot: TimeSlot | None = None
    current_appointment: Appointment | None = None


@dataclass(frozen=True)
class WorkshopComparison:
    workshop_id: str
    workshop_name: str
    available_slots_count: int
    wait_days: int  # days until the first available slot
    next_available_slot: TimeSlot | None = None


@dataclass(frozen=True)
class ServiceCompletion:
    completion_date: date
    work_days: int
    is_multi_day: bool
    end_time: str
