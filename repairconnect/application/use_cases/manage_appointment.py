from __future__ import annotations

import logging
import uuid
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, replace
from datetime import date, datetime

from repairconnect.application.exceptions import (
    AccessDeniedError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from repairconnect.application.ports.appointment_store import AppointmentStorePort
from repairconnect.application.ports.notifier import NotifierPort
from repairconnect.application.use_cases.availability import calculate_service_completion, is_multi_day
from repairconnect.application.use_cases.booking_rules import (
    CANCELLABLE_STATUSES,
    DEFAULT_RULES,
    BookingRules,
    validate_booking_request,
    validate_reschedule_request,
    validate_status_transition,
)
from repairconnect.application.use_cases.scheduler import (
    DEFAULT_SERVICE_HOURS,
    SERVICE_DURATIONS,
    AppointmentScheduler,
)
from repairconnect.application.utils.time_math import hours_to_minutes, is_valid_time, time_to_minutes
from repairconnect.domain.entities.appointment import (
    Appointment,
    AppointmentEvent,
    AppointmentPatch,
    AppointmentStatus,
    PaymentStatus,
    RescheduleRecord,
    ServiceItem,
    StatusChange,
)
from repairconnect.domain.entities.booking_request import BookingRequest
from repairconnect.domain.entities.caller import Caller

MAX_PAGE_SIZE = 100
MIN_REVIEW_LENGTH = 10


@dataclass(frozen=True)
class AppointmentPage:
    appointments: list[Appointment]
    page: int
    limit: int
    total: int

    @property
    def has_more(self) -> bool:
        return self.page * self.limit < self.total

    @property
    def total_pages(self) -> int:
        return -(-self.total // self.limit) if self.limit else 0


@dataclass(frozen=True)
class ServiceTimeUpdate:
    service_type: str
    actual_start_time: datetime | None = None
    actual_end_time: datetime | None = None
    status: str | None = None
    notes: str | None = None


class ManageAppointmentUseCase:
    """
    Every state-changing operation on an appointment.

    Each mutation is a single store patch; committed status changes and
    reschedules are then handed to the notifier, whose failures are logged
    and never undo the mutation.
    """

    def __init__(
        self,
        store: AppointmentStorePort,
        scheduler: AppointmentScheduler,
        notifier: NotifierPort,
        rules: BookingRules = DEFAULT_RULES,
        id_factory: Callable[[], str] | None = None,
    ) -> None:
        self._store = store
        self._scheduler = scheduler
        self._notifier = notifier
        self._rules = rules
        self._new_id = id_factory or (lambda: uuid.uuid4().hex)
        self._logger = logging.getLogger(__name__)

    def get_appointment(self, appointment_id: str, caller: Caller) -> Appointment:
        return self._load_for(appointment_id, caller)

    def list_appointments(
        self,
        caller: Caller,
        statuses: Iterable[AppointmentStatus] | None = None,
        date_from: date | None = None,
        date_to: date | None = None,
        page: int = 1,
        limit: int = 20,
    ) -> AppointmentPage:
        if caller.is_customer:
            owner = {"customer_id": caller.user_id}
        elif caller.is_workshop:
            owner = {"workshop_id": caller.user_id}
        else:
            raise AccessDeniedError("Invalid user role for appointments")

        page = max(page, 1)
        limit = min(max(limit, 1), MAX_PAGE_SIZE)
        appointments, total = self._store.search_appointments(
            statuses=statuses,
            date_from=date_from,
            date_to=date_to,
            skip=(page - 1) * limit,
            limit=limit,
            **owner,
        )
        return AppointmentPage(appointments=appointments, page=page, limit=limit, total=total)

    def book_appointment(self, caller: Caller, request: BookingRequest) -> Appointment:
        """Create a `requested` appointment for an accepted quote."""
        if not caller.is_customer:
            raise ConflictError("Only customers can create appointments")

        missing = [
            f"{name} is required"
            for name, value in (
                ("workshopId", request.workshop_id),
                ("quotationId", request.quotation_id),
                ("acceptedQuoteId", request.accepted_quote_id),
            )
            if not value
        ]
        if missing:
            raise ValidationError(missing)

        duration = request.duration or self._scheduler.estimate_service_duration(request.services)
        request = replace(request, duration=duration)
        now = self._scheduler.now()

        result = validate_booking_request(request, now, self._rules)
        if not result.valid:
            raise ValidationError(result.errors)

        lookup, hours = self._scheduler.resolve_workshop(request.workshop_id)
        check = self._scheduler.is_time_slot_available(
            request.workshop_id, request.date, request.start_time, duration
        )
        if not check.available:
            raise ConflictError(check.reason or "Time slot not available")

        completion = calculate_service_completion(request.date, request.start_time, duration, hours)
        reason = "Initial appointment request"
        appointment = Appointment(
            id=self._new_id(),
            quotation_id=request.quotation_id,
            accepted_quote_id=request.accepted_quote_id,
            customer_id=caller.user_id,
            workshop_id=lookup.appointment_key,
            scheduled_date=request.date,
            scheduled_start_time=request.start_time,
            scheduled_end_time=completion.end_time,
            estimated_duration=duration,
            status=AppointmentStatus.requested,
            services=tuple(
                ServiceItem(
                    service_type=service,
                    description=f"{service} service",
                    estimated_duration=SERVICE_DURATIONS.get(service, DEFAULT_SERVICE_HOURS),
                )
                for service in request.services
            ),
            status_history=(
                StatusChange(
                    status=AppointmentStatus.requested,
                    changed_at=now,
                    changed_by=caller.user_id,
                    reason=reason,
                ),
            ),
            is_multi_day_service=completion.is_multi_day,
            estimated_completion_date=completion.completion_date,
            estimated_work_days=completion.work_days,
            customer_notes=request.customer_notes,
            created_at=now,
            updated_at=now,
        )

        stored = self._store.insert_appointment(appointment)
        self._logger.info(
            "Appointment requested",
            extra={"appointment_id": stored.id, "workshop_id": stored.workshop_id, "status": stored.status.value},
        )
        self._notify(AppointmentEvent(stored, None, stored.status, caller.user_id, reason))
        return stored

    def reschedule(
        self,
        appointment_id: str,
        caller: Caller,
        new_date: date,
        new_start_time: str,
        new_end_time: str | None = None,
        reason: str | None = None,
        notes: str | None = None,
    ) -> Appointment:
        appointment = self._load_for(appointment_id, caller)
        now = self._scheduler.now()

        result = validate_reschedule_request(appointment, new_date, new_start_time, now, self._rules)
        errors = list(result.errors)
        if new_end_time is not None and not is_valid_time(new_end_time):
            errors.append("Invalid end time format. Use HH:MM format")
        elif new_end_time is not None and is_valid_time(new_start_time):
            _, week = self._scheduler.resolve_workshop(appointment.workshop_id)
            duration = appointment.estimated_duration
            # Multi-day work only reserves its opening hour, so the end time does not bound it.
            if not is_multi_day(duration, week.for_day(new_date)):
                start = time_to_minutes(new_start_time)
                if time_to_minutes(new_end_time) < start + hours_to_minutes(duration):
                    errors.append(
                        f"End time must be at least {duration:g}h after the start time"
                    )
        if errors:
            raise ValidationError(errors)

        check = self._scheduler.is_time_slot_available(
            appointment.workshop_id,
            new_date,
            new_start_time,
            appointment.estimated_duration,
            exclude_appointment_id=appointment.id,
        )
        if not check.available:
            raise ConflictError(check.reason or "New time slot not available")

        _, hours = self._scheduler.resolve_workshop(appointment.workshop_id)
        completion = calculate_service_completion(
            new_date, new_start_time, appointment.estimated_duration, hours
        )
        end_time = new_end_time or completion.end_time

        patch = AppointmentPatch(
            updated_at=now,
            set_fields={
                "scheduled_date": new_date,
                "scheduled_start_time": new_start_time,
                "scheduled_end_time": end_time,
                "status": AppointmentStatus.rescheduled,
                "is_multi_day_service": completion.is_multi_day,
                "estimated_completion_date": completion.completion_date,
                "estimated_work_days": completion.work_days,
            },
            push_status=StatusChange(
                status=AppointmentStatus.rescheduled,
                changed_at=now,
                changed_by=caller.user_id,
                reason=reason or "Appointment rescheduled",
                notes=notes,
            ),
            push_reschedule=RescheduleRecord(
                original_date=appointment.scheduled_date,
                original_start_time=appointment.scheduled_start_time,
                original_end_time=appointment.scheduled_end_time,
                new_date=new_date,
                new_start_time=new_start_time,
                new_end_time=end_time,
                reason=reason or "Rescheduled by user request",
                requested_by=caller.role,
                requested_at=now,
            ),
        )
        updated = self._store.update_appointment(appointment.id, patch, expected_status=appointment.status)
        self._logger.info(
            "Appointment rescheduled",
            extra={"appointment_id": updated.id, "previous_status": appointment.status.value, "reason": reason},
        )
        self._notify(
            AppointmentEvent(
                updated,
                appointment.status,
                AppointmentStatus.rescheduled,
                caller.user_id,
                reason or "Appointment rescheduled",
            )
        )
        return updated

    def change_status(
        self,
        appointment_id: str,
        caller: Caller,
        status: AppointmentStatus,
        reason: str | None = None,
        notes: str | None = None,
    ) -> Appointment:
        appointment = self._load_for(appointment_id, caller)
        if not caller.is_workshop:
            raise ConflictError("Only the workshop can update appointment status")

        result = validate_status_transition(appointment.status, status)
        if not result.valid:
            raise ConflictError(result.errors[0], result.errors)

        return self._transition(appointment, caller, status, reason or f"Status changed to {status.value}", notes)

    def cancel(
        self,
        appointment_id: str,
        caller: Caller,
        reason: str | None = None,
        notes: str | None = None,
    ) -> Appointment:
        appointment = self._load_for(appointment_id, caller)
        if appointment.status not in CANCELLABLE_STATUSES:
            raise ConflictError("This appointment cannot be cancelled")

        return self._transition(
            appointment, caller, AppointmentStatus.cancelled, reason or "Cancelled by user request", notes
        )

    def update_notes(self, appointment_id: str, caller: Caller, notes: str | None) -> Appointment:
        appointment = self._load_for(appointment_id, caller)
        field_name = "customer_notes" if caller.is_customer else "workshop_notes"
        return self._store.update_appointment(
            appointment.id,
            AppointmentPatch(updated_at=self._scheduler.now(), set_fields={field_name: notes}),
        )

    def update_service_times(
        self,
        appointment_id: str,
        caller: Caller,
        actual_start_time: datetime | None = None,
        actual_end_time: datetime | None = None,
        services: Sequence[ServiceTimeUpdate] = (),
    ) -> Appointment:
        appointment = self._load_for(appointment_id, caller)
        if not caller.is_workshop:
            raise ConflictError("Only the workshop can record service times")

        fields: dict[str, object] = {}
        if actual_start_time:
            fields["actual_start_time"] = actual_start_time
        if actual_end_time:
            fields["actual_end_time"] = actual_end_time
        if services:
            updates = {update.service_type: update for update in services}
            fields["services"] = tuple(
                _apply_service_update(item, updates.get(item.service_type)) for item in appointment.services
            )

        return self._store.update_appointment(
            appointment.id, AppointmentPatch(updated_at=self._scheduler.now(), set_fields=fields)
        )

    def add_review(self, appointment_id: str, caller: Caller, rating: int | None, comment: str | None) -> Appointment:
        appointment = self._load_for(appointment_id, caller)
        if not caller.is_customer:
            raise ConflictError("Only the customer can review an appointment")
        if appointment.status != AppointmentStatus.completed:
            raise ConflictError("Can only review completed appointments")

        errors: list[str] = []
        if rating is None or not 1 <= rating <= 5:
            errors.append("Rating must be between 1 and 5")
        text = (comment or "").strip()
        if len(text) < MIN_REVIEW_LENGTH:
            errors.append(f"Review comment must be at least {MIN_REVIEW_LENGTH} characters")
        if errors:
            raise ValidationError(errors)

        return self._store.update_appointment(
            appointment.id,
            AppointmentPatch(
                updated_at=self._scheduler.now(),
                set_fields={"customer_rating": rating, "customer_review": text},
            ),
        )

    def update_payment(self, appointment_id: str, caller: Caller, payment_status: str | None) -> Appointment:
        appointment = self._load_for(appointment_id, caller)
        if not caller.is_workshop:
            raise ConflictError("Only the workshop can update payment status")
        if appointment.status != AppointmentStatus.completed:
            raise ConflictError("Can only confirm payment for completed appointments")

        try:
            status = PaymentStatus(payment_status)
        except ValueError:
            raise ValidationError(["Invalid payment status"]) from None

        return self._store.update_appointment(
            appointment.id,
            AppointmentPatch(updated_at=self._scheduler.now(), set_fields={"payment_status": status}),
        )

    def _transition(
        self,
        appointment: Appointment,
        caller: Caller,
        status: AppointmentStatus,
        reason: str,
        notes: str | None,
    ) -> Appointment:
        now = self._scheduler.now()
        fields: dict[str, object] = {"status": status}
        if status == AppointmentStatus.confirmed:
            fields["confirmed_at"] = now
        elif status == AppointmentStatus.in_progress:
            fields["actual_start_time"] = now
        elif status == AppointmentStatus.completed:
            fields["completed_at"] = now
            fields["actual_end_time"] = now
        elif status == AppointmentStatus.cancelled:
            fields["cancelled_at"] = now

        patch = AppointmentPatch(
            updated_at=now,
            set_fields=fields,
            push_status=StatusChange(
                status=status, changed_at=now, changed_by=caller.user_id, reason=reason, notes=notes
            ),
        )
        updated = self._store.update_appointment(appointment.id, patch, expected_status=appointment.status)
        self._logger.info(
            "Appointment status changed",
            extra={
                "appointment_id": updated.id,
                "previous_status": appointment.status.value,
                "status": status.value,
                "reason": reason,
            },
        )
        self._notify(AppointmentEvent(updated, appointment.status, status, caller.user_id, reason))
        return updated

    def _load_for(self, appointment_id: str, caller: Caller) -> Appointment:
        appointment = self._store.get_appointment(appointment_id)
        if appointment is None:
            raise NotFoundError("Appointment not found")

        is_customer = caller.is_customer and appointment.customer_id == caller.user_id
        is_workshop = caller.is_workshop and appointment.workshop_id == caller.user_id
        if not (is_customer or is_workshop):
            raise AccessDeniedError("Access denied")
        return appointment

    def _notify(self, event: AppointmentEvent) -> None:
        try:
            self._notifier.notify(event)
        except Exception as e:
            self._logger.exception(
                "Failed to send appointment notification",
                extra={"appointment_id": event.appointment.id, "status": event.new_status.value, "error": str(e)},
            )


def _apply_service_update(item: ServiceItem, update: ServiceTimeUpdate | None) -> ServiceItem:
    if update is None:
        return item
    return replace(
        item,
        actual_start_time=update.actual_start_time or item.actual_start_time,
        actual_end_time=update.actual_end_time or item.actual_end_time,
        status=update.status or item.status,
        notes=update.notes or item.notes,
    )
