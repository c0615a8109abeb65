from datetime import date

from fastapi import APIRouter, Depends, Query

from repairconnect.api.deps import get_caller
from repairconnect.api.v1.schemas import (
    AppointmentListResponseSchema,
    AppointmentResponseSchema,
    AppointmentSchema,
    BookAppointmentRequestSchema,
    PaginationSchema,
    UpdateAppointmentRequestSchema,
)
from repairconnect.application.exceptions import ValidationError
from repairconnect.application.use_cases.manage_appointment import (
    ManageAppointmentUseCase,
    ServiceTimeUpdate,
)
from repairconnect.domain.entities.appointment import AppointmentStatus
from repairconnect.domain.entities.booking_request import BookingRequest
from repairconnect.domain.entities.caller import Caller
from repairconnect.wiring.dependencies import get_manage_use_case

router = APIRouter()


@router.get("", response_model=AppointmentListResponseSchema)
def list_appointments(
    status: str | None = Query(None, description="Comma-separated statuses"),
    date_from: date | None = Query(None, alias="dateFrom"),
    date_to: date | None = Query(None, alias="dateTo"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    caller: Caller = Depends(get_caller),
    uc: ManageAppointmentUseCase = Depends(get_manage_use_case),
):
    statuses = None
    if status:
        try:
            statuses = [AppointmentStatus(part.strip()) for part in status.split(",") if part.strip()]
        except ValueError:
            raise ValidationError([f"Invalid status filter: {status}"]) from None

    result = uc.list_appointments(caller, statuses, date_from, date_to, page, limit)
    return AppointmentListResponseSchema(
        data=[AppointmentSchema.model_validate(a) for a in result.appointments],
        pagination=PaginationSchema(
            page=result.page,
            limit=result.limit,
            total=result.total,
            total_pages=result.total_pages,
            has_more=result.has_more,
        ),
    )


@router.post("", response_model=AppointmentResponseSchema, status_code=201)
def book_appointment(
    req: BookAppointmentRequestSchema,
    caller: Caller = Depends(get_caller),
    uc: ManageAppointmentUseCase = Depends(get_manage_use_case),
):
    appointment = uc.book_appointment(
        caller,
        BookingRequest(
            date=req.scheduled_date,
            start_time=req.scheduled_start_time,
            duration=req.estimated_duration or 0.0,
            workshop_id=req.workshop_id,
            quotation_id=req.quotation_id,
            accepted_quote_id=req.accepted_quote_id,
            services=tuple(req.services),
            customer_notes=req.customer_notes,
        ),
    )
    return AppointmentResponseSchema(
        data=AppointmentSchema.model_validate(appointment),
        message="Appointment requested successfully",
    )


@router.get("/{appointment_id}", response_model=AppointmentResponseSchema)
def get_appointment(
    appointment_id: str,
    caller: Caller = Depends(get_caller),
    uc: ManageAppointmentUseCase = Depends(get_manage_use_case),
):
    return AppointmentResponseSchema(data=AppointmentSchema.model_validate(uc.get_appointment(appointment_id, caller)))


@router.put("/{appointment_id}", response_model=AppointmentResponseSchema)
def update_appointment(
    appointment_id: str,
    req: UpdateAppointmentRequestSchema,
    caller: Caller = Depends(get_caller),
    uc: ManageAppointmentUseCase = Depends(get_manage_use_case),
):
    if req.update_type == "reschedule":
        if req.new_date is None or not req.new_start_time:
            raise ValidationError(["newDate and newStartTime are required"])
        appointment = uc.reschedule(
            appointment_id,
            caller,
            req.new_date,
            req.new_start_time,
            new_end_time=req.new_end_time,
            reason=req.reason,
            notes=req.notes,
        )
        message = "Appointment rescheduled successfully"
    elif req.update_type == "status":
        if req.status is None:
            raise ValidationError(["status is required"])
        appointment = uc.change_status(appointment_id, caller, req.status, req.reason, req.notes)
        message = f"Appointment {req.status.value}"
    elif req.update_type == "notes":
        appointment = uc.update_notes(appointment_id, caller, req.notes)
        message = "Notes updated"
    elif req.update_type == "service_times":
        appointment = uc.update_service_times(
            appointment_id,
            caller,
            actual_start_time=req.actual_start_time,
            actual_end_time=req.actual_end_time,
            services=[
                ServiceTimeUpdate(
                    service_type=s.service_type,
                    actual_start_time=s.actual_start_time,
                    actual_end_time=s.actual_end_time,
                    status=s.status,
                    notes=s.notes,
                )
                for s in req.services
            ],
        )
        message = "Service times updated"
    elif req.update_type == "review":
        appointment = uc.add_review(appointment_id, caller, req.rating, req.comment)
        message = "Review added"
    else:
        appointment = uc.update_payment(appointment_id, caller, req.payment_status)
        message = "Payment status updated"

    return AppointmentResponseSchema(data=AppointmentSchema.model_validate(appointment), message=message)


@router.delete("/{appointment_id}", response_model=AppointmentResponseSchema)
def cancel_appointment(
    appointment_id: str,
    reason: str | None = Query(None),
    caller: Caller = Depends(get_caller),
    uc: ManageAppointmentUseCase = Depends(get_manage_use_case),
):
    appointment = uc.cancel(appointment_id, caller, reason)
    return AppointmentResponseSchema(
        data=AppointmentSchema.model_validate(appointment),
        message="Appointment cancelled successfully",
    )
