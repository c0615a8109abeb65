from __future__ import annotations

from datetime import date, datetime, timezone

import pytest

from repairconnect.application.exceptions import (
    AccessDeniedError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from repairconnect.application.use_cases.manage_appointment import (
    ManageAppointmentUseCase,
    ServiceTimeUpdate,
)
from repairconnect.domain.entities.appointment import AppointmentStatus, PaymentStatus
from repairconnect.domain.entities.booking_request import BookingRequest
from repairconnect.domain.entities.caller import Caller

from tests.conftest import (
    CUSTOMER_CALLER,
    MONDAY,
    NOW,
    TUESDAY,
    WORKSHOP_CALLER,
    WORKSHOP_PROFILE,
    WORKSHOP_USER,
    FailingNotifier,
    make_appointment,
)

S = AppointmentStatus
THURSDAY = date(2026, 10, 22)
FRIDAY = date(2026, 10, 23)


def booking(
    day: date = TUESDAY,
    start: str = "10:00",
    duration: float = 2.0,
    quote: str = "q-1",
    services: tuple[str, ...] = ("brakes",),
    workshop_id: str = WORKSHOP_USER,
) -> BookingRequest:
    return BookingRequest(
        date=day,
        start_time=start,
        duration=duration,
        workshop_id=workshop_id,
        quotation_id=quote,
        accepted_quote_id=f"accepted-{quote}",
        services=services,
    )


class TestBook:
    def test_books_requested_appointment(self, use_case, notifier):
        appointment = use_case.book_appointment(CUSTOMER_CALLER, booking())

        assert appointment.status == S.requested
        assert appointment.scheduled_end_time == "12:00"
        assert appointment.customer_id == CUSTOMER_CALLER.user_id
        assert [h.status for h in appointment.status_history] == [S.requested]
        assert appointment.services[0].service_type == "brakes"
        assert appointment.created_at == NOW
        assert notifier.events[0].previous_status is None
        assert notifier.events[0].new_status == S.requested

    def test_profile_id_is_stored_under_owner(self, use_case):
        appointment = use_case.book_appointment(CUSTOMER_CALLER, booking(workshop_id=WORKSHOP_PROFILE))

        assert appointment.workshop_id == WORKSHOP_USER

    def test_only_customers_book(self, use_case):
        with pytest.raises(ConflictError):
            use_case.book_appointment(WORKSHOP_CALLER, booking())

    def test_missing_quote_fields(self, use_case):
        request = BookingRequest(date=TUESDAY, start_time="10:00", duration=2.0, workshop_id=WORKSHOP_USER)

        with pytest.raises(ValidationError) as exc:
            use_case.book_appointment(CUSTOMER_CALLER, request)

        assert exc.value.errors == ["quotationId is required", "acceptedQuoteId is required"]

    def test_every_rule_violation_is_reported(self, use_case):
        with pytest.raises(ValidationError) as exc:
            use_case.book_appointment(CUSTOMER_CALLER, booking(day=date(2026, 10, 18), duration=13))

        assert len(exc.value.errors) == 2

    def test_duration_defaults_to_estimate(self, use_case):
        appointment = use_case.book_appointment(CUSTOMER_CALLER, booking(duration=0, services=("engine",)))

        assert appointment.estimated_duration == 5.0
        assert appointment.scheduled_end_time == "15:00"

    def test_unavailable_slot(self, use_case, store):
        store.insert_appointment(make_appointment(day=TUESDAY, start="09:00", end="11:00"))

        with pytest.raises(ConflictError) as exc:
            use_case.book_appointment(CUSTOMER_CALLER, booking())

        assert str(exc.value) == "Time slot is already booked"

    def test_same_quote_cannot_be_booked_twice(self, use_case):
        use_case.book_appointment(CUSTOMER_CALLER, booking())

        with pytest.raises(ConflictError):
            use_case.book_appointment(CUSTOMER_CALLER, booking(start="13:00"))

    def test_multi_day_service(self, use_case):
        appointment = use_case.book_appointment(CUSTOMER_CALLER, booking(day=FRIDAY, start="14:00", duration=12.0))

        assert appointment.is_multi_day_service
        assert appointment.estimated_completion_date == date(2026, 10, 26)
        assert appointment.estimated_work_days == 3
        assert appointment.scheduled_end_time == "13:00"


class TestStatus:
    def test_full_lifecycle(self, use_case, notifier):
        appointment = use_case.book_appointment(CUSTOMER_CALLER, booking())

        for status in (S.confirmed, S.scheduled, S.in_progress, S.completed):
            appointment = use_case.change_status(appointment.id, WORKSHOP_CALLER, status)

        assert appointment.status == S.completed
        assert [h.status for h in appointment.status_history] == [
            S.requested,
            S.confirmed,
            S.scheduled,
            S.in_progress,
            S.completed,
        ]
        assert appointment.confirmed_at == NOW
        assert appointment.actual_start_time == NOW
        assert appointment.completed_at == NOW
        assert appointment.actual_end_time == NOW
        assert [e.new_status for e in notifier.events][-1] == S.completed

    def test_illegal_transition(self, use_case, store):
        store.insert_appointment(make_appointment(status=S.completed))

        with pytest.raises(ConflictError) as exc:
            use_case.change_status("appt-1", WORKSHOP_CALLER, S.scheduled)

        assert exc.value.errors == ["Cannot change status from completed to scheduled"]
        assert store.get_appointment("appt-1").status == S.completed

    def test_customer_cannot_change_status(self, use_case):
        appointment = use_case.book_appointment(CUSTOMER_CALLER, booking())

        with pytest.raises(ConflictError):
            use_case.change_status(appointment.id, CUSTOMER_CALLER, S.confirmed)

    def test_confirming_into_taken_slot_is_rejected(self, use_case, store):
        first = use_case.book_appointment(CUSTOMER_CALLER, booking(quote="q-1"))
        second = use_case.book_appointment(Caller(user_id="cust-2", role="customer"), booking(quote="q-2"))
        use_case.change_status(first.id, WORKSHOP_CALLER, S.confirmed)

        with pytest.raises(ConflictError):
            use_case.change_status(second.id, WORKSHOP_CALLER, S.confirmed)

        assert store.get_appointment(second.id).status == S.requested

    def test_notification_failure_does_not_undo_change(self, store, scheduler):
        use_case = ManageAppointmentUseCase(store=store, scheduler=scheduler, notifier=FailingNotifier())
        store.insert_appointment(make_appointment(status=S.requested))

        updated = use_case.change_status("appt-1", WORKSHOP_CALLER, S.confirmed)

        assert updated.status == S.confirmed
        assert store.get_appointment("appt-1").status == S.confirmed


class TestAccess:
    def test_unknown_appointment(self, use_case):
        with pytest.raises(NotFoundError):
            use_case.get_appointment("missing", CUSTOMER_CALLER)

    def test_other_customer_is_denied(self, use_case, store):
        store.insert_appointment(make_appointment())

        with pytest.raises(AccessDeniedError):
            use_case.get_appointment("appt-1", Caller(user_id="someone-else", role="customer"))

    def test_workshop_sees_own_appointment(self, use_case, store):
        store.insert_appointment(make_appointment())

        assert use_case.get_appointment("appt-1", WORKSHOP_CALLER).id == "appt-1"

    def test_list_is_scoped_and_paginated(self, use_case, store):
        for n, day in enumerate((MONDAY, TUESDAY, THURSDAY, FRIDAY), start=1):
            store.insert_appointment(make_appointment(f"appt-{n}", day=day))
        store.insert_appointment(make_appointment("other", customer_id="cust-9", day=FRIDAY, start="14:00", end="15:00"))

        page = use_case.list_appointments(CUSTOMER_CALLER, page=1, limit=3)

        assert page.total == 4
        assert page.has_more
        assert page.total_pages == 2
        assert [a.id for a in page.appointments] == ["appt-4", "appt-3", "appt-2"]

        workshop_page = use_case.list_appointments(WORKSHOP_CALLER, statuses=[S.confirmed])
        assert workshop_page.total == 5


class TestReschedule:
    def test_reschedule(self, use_case, store, notifier):
        store.insert_appointment(make_appointment(day=THURSDAY))

        updated = use_case.reschedule("appt-1", CUSTOMER_CALLER, FRIDAY, "09:00", reason="Car not ready")

        assert updated.status == S.rescheduled
        assert updated.scheduled_date == FRIDAY
        assert updated.scheduled_end_time == "11:00"
        assert updated.status_history[-1].status == S.rescheduled
        record = updated.reschedule_history[-1]
        assert (record.original_date, record.original_start_time) == (THURSDAY, "10:00")
        assert (record.new_date, record.new_start_time) == (FRIDAY, "09:00")
        assert record.requested_by == "customer"
        assert notifier.events[-1].previous_status == S.confirmed
        assert notifier.events[-1].reason == "Car not ready"

    def test_same_slot_shift_ignores_itself(self, use_case, store):
        store.insert_appointment(make_appointment(day=THURSDAY, start="10:00", end="12:00"))

        updated = use_case.reschedule("appt-1", WORKSHOP_CALLER, THURSDAY, "11:00")

        assert updated.scheduled_start_time == "11:00"

    def test_taken_slot(self, use_case, store):
        store.insert_appointment(make_appointment(day=THURSDAY))
        store.insert_appointment(make_appointment("appt-2", day=FRIDAY, start="08:00", end="10:00"))

        with pytest.raises(ConflictError):
            use_case.reschedule("appt-1", CUSTOMER_CALLER, FRIDAY, "09:00")

    def test_end_time_shorter_than_service_is_rejected(self, use_case, store, scheduler):
        store.insert_appointment(make_appointment(day=TUESDAY, start="08:00", end="12:00", duration=4.0))

        with pytest.raises(ValidationError) as exc:
            use_case.reschedule("appt-1", CUSTOMER_CALLER, THURSDAY, "10:00", new_end_time="10:30")

        assert exc.value.errors == ["End time must be at least 4h after the start time"]
        assert store.get_appointment("appt-1").scheduled_date == TUESDAY
        assert scheduler.is_time_slot_available(WORKSHOP_USER, THURSDAY, "11:00", 1.0).available

    def test_end_time_covering_service_is_kept(self, use_case, store, scheduler):
        store.insert_appointment(make_appointment(day=TUESDAY, start="08:00", end="12:00", duration=4.0))

        updated = use_case.reschedule("appt-1", CUSTOMER_CALLER, THURSDAY, "10:00", new_end_time="15:00")
        use_case.change_status("appt-1", WORKSHOP_CALLER, S.confirmed)

        assert updated.scheduled_end_time == "15:00"
        check = scheduler.is_time_slot_available(WORKSHOP_USER, THURSDAY, "14:00", 1.0)
        assert check.conflicting_appointment == "appt-1"

    def test_short_notice_and_bad_slot_reported_together(self, use_case, store):
        store.insert_appointment(make_appointment(day=MONDAY, start="16:00", end="17:00"))

        with pytest.raises(ValidationError) as exc:
            use_case.reschedule("appt-1", CUSTOMER_CALLER, FRIDAY, "05:00")

        assert len(exc.value.errors) == 2


class TestCancel:
    def test_cancel(self, use_case, store):
        store.insert_appointment(make_appointment())

        cancelled = use_case.cancel("appt-1", CUSTOMER_CALLER, reason="Sold the car")

        assert cancelled.status == S.cancelled
        assert cancelled.cancelled_at == NOW
        assert cancelled.status_history[-1].reason == "Sold the car"

    def test_cannot_cancel_completed(self, use_case, store):
        store.insert_appointment(make_appointment(status=S.completed))

        with pytest.raises(ConflictError):
            use_case.cancel("appt-1", WORKSHOP_CALLER)


class TestDetails:
    def test_notes_are_per_role(self, use_case, store):
        store.insert_appointment(make_appointment())

        use_case.update_notes("appt-1", CUSTOMER_CALLER, "Please call first")
        updated = use_case.update_notes("appt-1", WORKSHOP_CALLER, "Parts ordered")

        assert updated.customer_notes == "Please call first"
        assert updated.workshop_notes == "Parts ordered"
        assert len(updated.status_history) == 0

    def test_service_times(self, use_case):
        appointment = use_case.book_appointment(CUSTOMER_CALLER, booking(services=("brakes", "tires")))
        started = datetime(2026, 10, 20, 10, 5, tzinfo=timezone.utc)

        updated = use_case.update_service_times(
            appointment.id,
            WORKSHOP_CALLER,
            services=[ServiceTimeUpdate(service_type="tires", actual_start_time=started, status="in_progress")],
        )

        assert updated.services[0].status == "pending"
        assert updated.services[1].status == "in_progress"
        assert updated.services[1].actual_start_time == started

    def test_review_requires_completed(self, use_case, store):
        store.insert_appointment(make_appointment())

        with pytest.raises(ConflictError):
            use_case.add_review("appt-1", CUSTOMER_CALLER, 5, "Great work, thanks!")

    def test_review_validation(self, use_case, store):
        store.insert_appointment(make_appointment(status=S.completed))

        with pytest.raises(ValidationError) as exc:
            use_case.add_review("appt-1", CUSTOMER_CALLER, 6, "  meh  ")

        assert len(exc.value.errors) == 2

    def test_review(self, use_case, store):
        store.insert_appointment(make_appointment(status=S.completed))

        updated = use_case.add_review("appt-1", CUSTOMER_CALLER, 4, "  Quick and friendly service ")

        assert updated.customer_rating == 4
        assert updated.customer_review == "Quick and friendly service"

    def test_payment(self, use_case, store):
        store.insert_appointment(make_appointment(status=S.completed))

        with pytest.raises(ValidationError):
            use_case.update_payment("appt-1", WORKSHOP_CALLER, "bitcoin")

        updated = use_case.update_payment("appt-1", WORKSHOP_CALLER, "paid")
        assert updated.payment_status == PaymentStatus.paid
