import datetime as dt
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from repairconnect.domain.entities.appointment import AppointmentStatus, PaymentStatus


class ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


# Requests

class TimeRangeSchema(ApiModel):
    start: str
    end: str


class SlotCheckRequestSchema(ApiModel):
    workshop_id: str
    date: dt.date
    start_time: str
    duration: float = Field(2.0, ge=0.5, le=24)
    exclude_appointment_id: str | None = None


class CompareRequestSchema(ApiModel):
    workshop_ids: list[str] = Field(min_length=1)
    duration: float = Field(2.0, ge=0.5, le=12)
    preferred_date: dt.date | None = None
    days_to_check: int = Field(7, ge=1, le=30)


class OptimalSlotsRequestSchema(ApiModel):
    workshop_id: str
    duration: float = Field(2.0, ge=0.5, le=24)
    preferred_dates: list[dt.date] = Field(min_length=1)
    preferred_time_ranges: list[TimeRangeSchema] | None = None
    max_alternatives: int = Field(5, ge=1, le=20)


class BookAppointmentRequestSchema(ApiModel):
    workshop_id: str
    quotation_id: str
    accepted_quote_id: str
    scheduled_date: dt.date
    scheduled_start_time: str
    estimated_duration: float | None = None
    services: list[str] = Field(default_factory=list)
    customer_notes: str | None = None


class ServiceTimeSchema(ApiModel):
    service_type: str
    actual_start_time: dt.datetime | None = None
    actual_end_time: dt.datetime | None = None
    status: str | None = None
    notes: str | None = None


class UpdateAppointmentRequestSchema(ApiModel):
    update_type: Literal["reschedule", "status", "notes", "service_times", "review", "payment"]
    # reschedule
    new_date: dt.date | None = None
    new_start_time: str | None = None
    new_end_time: str | None = None
    # status
    status: AppointmentStatus | None = None
    reason: str | None = None
    notes: str | None = None
    # service_times
    actual_start_time: dt.datetime | None = None
    actual_end_time: dt.datetime | None = None
    services: list[ServiceTimeSchema] = Field(default_factory=list)
    # review
    rating: int | None = None
    comment: str | None = None
    # payment
    payment_status: str | None = None


# Responses

class TimeSlotSchema(ApiModel):
    date: dt.date
    start_time: str
    end_time: str
    duration: float


class AvailabilitySlotSchema(ApiModel):
    date: dt.date
    start_time: str
    end_time: str
    is_available: bool
    reason: str | None = None


class BookedSlotSchema(ApiModel):
    start_time: str
    end_time: str
    appointment_id: str


class UnavailableSlotSchema(ApiModel):
    start_time: str
    end_time: str
    reason: str


class DayHoursSchema(ApiModel):
    open: str
    close: str
    closed: bool


class WorkshopAvailabilitySchema(ApiModel):
    workshop_id: str
    date: dt.date
    operating_hours: DayHoursSchema
    available_slots: list[AvailabilitySlotSchema]
    booked_slots: list[BookedSlotSchema]
    unavailable_slots: list[UnavailableSlotSchema]


class StatusChangeSchema(ApiModel):
    status: AppointmentStatus
    changed_at: dt.datetime
    changed_by: str
    reason: str | None = None
    notes: str | None = None


class RescheduleRecordSchema(ApiModel):
    original_date: dt.date
    original_start_time: str
    original_end_time: str
    new_date: dt.date
    new_start_time: str
    new_end_time: str
    reason: str
    requested_by: str
    requested_at: dt.datetime


class ServiceItemSchema(ApiModel):
    service_type: str
    description: str
    estimated_duration: float
    status: str
    actual_start_time: dt.datetime | None = None
    actual_end_time: dt.datetime | None = None
    notes: str | None = None


class AppointmentSchema(ApiModel):
    id: str
    quotation_id: str
    accepted_quote_id: str
    customer_id: str
    workshop_id: str
    scheduled_date: dt.date
    scheduled_start_time: str
    scheduled_end_time: str
    estimated_duration: float
    status: AppointmentStatus
    services: list[ServiceItemSchema]
    status_history: list[StatusChangeSchema]
    reschedule_history: list[RescheduleRecordSchema]
    is_multi_day_service: bool
    estimated_completion_date: dt.date | None = None
    estimated_work_days: int | None = None
    actual_start_time: dt.datetime | None = None
    actual_end_time: dt.datetime | None = None
    customer_notes: str | None = None
    workshop_notes: str | None = None
    customer_rating: int | None = None
    customer_review: str | None = None
    payment_status: PaymentStatus
    created_at: dt.datetime | None = None
    updated_at: dt.datetime | None = None
    confirmed_at: dt.datetime | None = None
    completed_at: dt.datetime | None = None
    cancelled_at: dt.datetime | None = None


class SlotCountsSchema(ApiModel):
    available: int
    booked: int
    total: int


class WorkshopStatusSchema(ApiModel):
    is_open: bool
    today_slots: SlotCountsSchema
    next_available_slot: TimeSlotSchema | None = None
    current_appointment: AppointmentSchema | None = None


class WorkshopComparisonSchema(ApiModel):
    workshop_id: str
    workshop_name: str
    available_slots_count: int
    wait_days: int
    next_available_slot: TimeSlotSchema | None = None


class OptimalSlotsSchema(ApiModel):
    preferred_slots: list[TimeSlotSchema]
    alternative_slots: list[TimeSlotSchema]


class AvailabilityDataSchema(ApiModel):
    availability: list[WorkshopAvailabilitySchema]
    next_available_slots: list[TimeSlotSchema]
    workshop_status: WorkshopStatusSchema
    requested_duration: float


class SlotCheckDataSchema(ApiModel):
    is_available: bool
    reason: str | None = None
    conflicting_appointment: str | None = None
    alternatives: list[TimeSlotSchema] = Field(default_factory=list)


class EstimateDataSchema(ApiModel):
    services: list[str]
    estimated_duration: float


class PaginationSchema(ApiModel):
    page: int
    limit: int
    total: int
    total_pages: int
    has_more: bool


class AvailabilityResponseSchema(ApiModel):
    success: bool = True
    data: AvailabilityDataSchema


class SlotCheckResponseSchema(ApiModel):
    success: bool = True
    data: SlotCheckDataSchema


class CompareResponseSchema(ApiModel):
    success: bool = True
    data: list[WorkshopComparisonSchema]


class OptimalSlotsResponseSchema(ApiModel):
    success: bool = True
    data: OptimalSlotsSchema


class EstimateResponseSchema(ApiModel):
    success: bool = True
    data: EstimateDataSchema


class AppointmentResponseSchema(ApiModel):
    success: bool = True
    data: AppointmentSchema
    message: str | None = None


class AppointmentListResponseSchema(ApiModel):
    success: bool = True
    data: list[AppointmentSchema]
    pagination: PaginationSchema
