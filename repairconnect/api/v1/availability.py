from datetime import date, timedelta

from fastapi import APIRouter, Depends, Query

from repairconnect.api.deps import get_caller
from repairconnect.api.v1.schemas import (
    AvailabilityDataSchema,
    AvailabilityResponseSchema,
    CompareRequestSchema,
    CompareResponseSchema,
    EstimateDataSchema,
    EstimateResponseSchema,
    OptimalSlotsRequestSchema,
    OptimalSlotsResponseSchema,
    OptimalSlotsSchema,
    SlotCheckDataSchema,
    SlotCheckRequestSchema,
    SlotCheckResponseSchema,
    TimeSlotSchema,
    WorkshopAvailabilitySchema,
    WorkshopComparisonSchema,
    WorkshopStatusSchema,
)
from repairconnect.application.exceptions import AccessDeniedError, ValidationError
from repairconnect.application.use_cases.scheduler import AppointmentScheduler
from repairconnect.core.config import settings
from repairconnect.domain.entities.caller import Caller
from repairconnect.domain.entities.slots import TimeRange
from repairconnect.wiring.dependencies import get_scheduler

router = APIRouter()

FALLBACK_DURATION_HOURS = 2.0
DEFAULT_WINDOW_DAYS = 7


@router.get("/availability", response_model=AvailabilityResponseSchema)
def get_availability(
    workshop_id: str = Query(..., alias="workshopId"),
    start_date: date | None = Query(None, alias="startDate"),
    end_date: date | None = Query(None, alias="endDate"),
    duration: float | None = Query(None, ge=0.5, le=24),
    services: str | None = Query(None, description="Comma-separated service types"),
    caller: Caller = Depends(get_caller),
    scheduler: AppointmentScheduler = Depends(get_scheduler),
):
    if duration is None:
        service_types = _split(services)
        duration = (
            scheduler.estimate_service_duration(service_types) if service_types else FALLBACK_DURATION_HOURS
        )

    start = start_date or scheduler.now().date()
    end = end_date or start + timedelta(days=DEFAULT_WINDOW_DAYS)
    if end < start:
        raise ValidationError(["endDate must not be before startDate"])

    days = scheduler.get_workshop_availability(workshop_id, start, end, duration)
    next_slots = scheduler.get_next_available_slots(workshop_id, duration, 14, 10)
    status = scheduler.get_workshop_current_status(workshop_id)

    return AvailabilityResponseSchema(
        data=AvailabilityDataSchema(
            availability=[WorkshopAvailabilitySchema.model_validate(day) for day in days],
            next_available_slots=[TimeSlotSchema.model_validate(slot) for slot in next_slots],
            workshop_status=WorkshopStatusSchema.model_validate(status),
            requested_duration=duration,
        )
    )


@router.post("/availability", response_model=SlotCheckResponseSchema)
def check_slot(
    req: SlotCheckRequestSchema,
    caller: Caller = Depends(get_caller),
    scheduler: AppointmentScheduler = Depends(get_scheduler),
):
    check = scheduler.is_time_slot_available(
        req.workshop_id,
        req.date,
        req.start_time,
        req.duration,
        exclude_appointment_id=req.exclude_appointment_id,
    )
    alternatives = []
    if not check.available:
        alternatives = scheduler.suggest_alternatives(req.workshop_id, req.date, req.duration)

    return SlotCheckResponseSchema(
        data=SlotCheckDataSchema(
            is_available=check.available,
            reason=check.reason,
            conflicting_appointment=check.conflicting_appointment,
            alternatives=[TimeSlotSchema.model_validate(slot) for slot in alternatives],
        )
    )


@router.post("/availability/compare", response_model=CompareResponseSchema)
def compare_workshops(
    req: CompareRequestSchema,
    caller: Caller = Depends(get_caller),
    scheduler: AppointmentScheduler = Depends(get_scheduler),
):
    if not caller.is_customer:
        raise AccessDeniedError("Only customers can compare workshops")
    if len(req.workshop_ids) > settings.MAX_COMPARE_WORKSHOPS:
        raise ValidationError([f"Cannot compare more than {settings.MAX_COMPARE_WORKSHOPS} workshops"])

    results = scheduler.compare_workshop_availability(
        req.workshop_ids, req.duration, req.preferred_date, req.days_to_check
    )
    return CompareResponseSchema(data=[WorkshopComparisonSchema.model_validate(r) for r in results])


@router.post("/availability/optimal", response_model=OptimalSlotsResponseSchema)
def optimal_slots(
    req: OptimalSlotsRequestSchema,
    caller: Caller = Depends(get_caller),
    scheduler: AppointmentScheduler = Depends(get_scheduler),
):
    ranges = [TimeRange(start=r.start, end=r.end) for r in req.preferred_time_ranges or []]
    result = scheduler.find_optimal_slots(
        req.workshop_id,
        req.duration,
        req.preferred_dates,
        ranges or None,
        req.max_alternatives,
    )
    return OptimalSlotsResponseSchema(data=OptimalSlotsSchema.model_validate(result))


@router.get("/estimate", response_model=EstimateResponseSchema)
def estimate_duration(services: str = Query(..., description="Comma-separated service types")):
    service_types = _split(services)
    return EstimateResponseSchema(
        data=EstimateDataSchema(
            services=service_types,
            estimated_duration=AppointmentScheduler.estimate_service_duration(service_types),
        )
    )


def _split(value: str | None) -> list[str]:
    return [part.strip() for part in (value or "").split(",") if part.strip()]
