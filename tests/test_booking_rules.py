from __future__ import annotations

from datetime import date, timedelta

import pytest

from repairconnect.application.use_cases.booking_rules import (
    BookingRules,
    validate_booking_request,
    validate_reschedule_request,
    validate_status_transition,
)
from repairconnect.domain.entities.appointment import AppointmentStatus
from repairconnect.domain.entities.booking_request import BookingRequest

from tests.conftest import MONDAY, NOW, TUESDAY, make_appointment

S = AppointmentStatus


def request(day: date = TUESDAY, start: str = "10:00", duration: float = 2.0) -> BookingRequest:
    return BookingRequest(date=day, start_time=start, duration=duration)


class TestValidateBookingRequest:
    def test_valid_request(self):
        result = validate_booking_request(request(), NOW)

        assert result.valid
        assert result.errors == []

    def test_past_date_is_rejected(self):
        result = validate_booking_request(request(day=MONDAY - timedelta(days=1)), NOW)

        assert not result.valid
        assert any("future" in error for error in result.errors)

    def test_earlier_today_is_rejected(self):
        result = validate_booking_request(request(day=MONDAY, start="06:30"), NOW)

        assert any("future" in error for error in result.errors)

    def test_too_far_ahead_is_rejected(self):
        result = validate_booking_request(request(day=MONDAY + timedelta(days=91)), NOW)

        assert result.errors == ["Appointment cannot be scheduled more than 90 days in advance"]

    @pytest.mark.parametrize("duration", [0.25, 13])
    def test_duration_bounds(self, duration):
        result = validate_booking_request(request(duration=duration), NOW)

        assert result.errors == ["Appointment duration must be between 0.5 and 12 hours"]

    def test_all_violations_are_collected(self):
        result = validate_booking_request(request(day=MONDAY - timedelta(days=1), duration=13), NOW)

        assert len(result.errors) == 2
        assert any("future" in error for error in result.errors)
        assert any("duration" in error for error in result.errors)

    @pytest.mark.parametrize("start", ["25:00", "9am", "10:60", ""])
    def test_malformed_time(self, start):
        result = validate_booking_request(request(start=start), NOW)

        assert "Invalid time format. Use HH:MM format" in result.errors

    @pytest.mark.parametrize("start", ["05:30", "23:00"])
    def test_start_hour_outside_window(self, start):
        result = validate_booking_request(request(start=start), NOW)

        assert result.errors == ["Appointment time must be between 06:00 and 22:00"]

    def test_single_digit_hour_is_accepted(self):
        assert validate_booking_request(request(start="9:30"), NOW).valid

    def test_rules_are_injectable(self):
        rules = BookingRules(max_duration_hours=4)

        result = validate_booking_request(request(duration=5), NOW, rules)

        assert result.errors == ["Appointment duration must be between 0.5 and 4 hours"]


class TestValidateRescheduleRequest:
    def test_reschedule_with_notice(self):
        appointment = make_appointment(day=MONDAY + timedelta(days=3))

        result = validate_reschedule_request(appointment, MONDAY + timedelta(days=4), "10:00", NOW)

        assert result.valid

    def test_notice_is_measured_against_current_slot(self):
        # Current slot is tomorrow 06:00, 23h away; new slot is far out.
        appointment = make_appointment(day=TUESDAY, start="06:00", end="08:00")

        result = validate_reschedule_request(appointment, MONDAY + timedelta(days=20), "10:00", NOW)

        assert result.errors == ["Appointments can only be rescheduled with at least 24 hours notice"]

    @pytest.mark.parametrize("status", [S.in_progress, S.completed, S.cancelled, S.no_show, S.rescheduled])
    def test_non_reschedulable_status(self, status):
        appointment = make_appointment(day=MONDAY + timedelta(days=3), status=status)

        result = validate_reschedule_request(appointment, MONDAY + timedelta(days=4), "10:00", NOW)

        assert result.errors == [f"This appointment cannot be rescheduled (status: {status.value})"]

    def test_new_slot_booking_errors_are_appended(self):
        appointment = make_appointment(day=MONDAY + timedelta(days=3), status=S.completed)

        result = validate_reschedule_request(appointment, MONDAY - timedelta(days=1), "05:00", NOW)

        assert len(result.errors) == 3


class TestStatusTransitions:
    @pytest.mark.parametrize(
        "current,target",
        [
            (S.requested, S.confirmed),
            (S.confirmed, S.scheduled),
            (S.scheduled, S.in_progress),
            (S.scheduled, S.no_show),
            (S.in_progress, S.completed),
            (S.rescheduled, S.confirmed),
            (S.requested, S.cancelled),
        ],
    )
    def test_allowed(self, current, target):
        assert validate_status_transition(current, target).valid

    @pytest.mark.parametrize(
        "current,target",
        [
            (S.completed, S.scheduled),
            (S.cancelled, S.confirmed),
            (S.requested, S.completed),
            (S.confirmed, S.requested),
            (S.no_show, S.scheduled),
        ],
    )
    def test_rejected(self, current, target):
        result = validate_status_transition(current, target)

        assert not result.valid
        assert result.errors == [f"Cannot change status from {current.value} to {target.value}"]
