from __future__ import annotations

from dataclasses import dataclass

from repairconnect.domain.entities.appointment import AppointmentEvent, AppointmentStatus

S = AppointmentStatus

# (title, message) per status and audience; "{date}" and "{time}" are filled per appointment.
_CUSTOMER_TEXT: dict[AppointmentStatus, tuple[str, str]] = {
    S.requested: ("Appointment Requested", "Your appointment request for {date} at {time} has been sent to the workshop."),
    S.confirmed: ("Appointment Confirmed", "Your appointment on {date} at {time} has been confirmed by the workshop."),
    S.scheduled: ("Appointment Scheduled", "Your appointment is scheduled for {date} at {time}."),
    S.in_progress: ("Service Started", "The workshop has started working on your vehicle."),
    S.completed: ("Service Completed", "Your service is complete. Please leave a review."),
    S.cancelled: ("Appointment Cancelled", "Your appointment on {date} at {time} has been cancelled."),
    S.no_show: ("Missed Appointment", "You were marked as a no-show for your appointment on {date} at {time}."),
    S.rescheduled: ("Appointment Rescheduled", "Your appointment has been moved to {date} at {time}."),
}

_WORKSHOP_TEXT: dict[AppointmentStatus, tuple[str, str]] = {
    S.requested: ("New Appointment Request", "A customer requested an appointment on {date} at {time}."),
    S.confirmed: ("Appointment Confirmed", "The appointment on {date} at {time} is confirmed."),
    S.scheduled: ("Appointment Scheduled", "The appointment on {date} at {time} is scheduled."),
    S.in_progress: ("Service In Progress", "The appointment on {date} is in progress."),
    S.completed: ("Service Completed", "The appointment on {date} was marked as completed."),
    S.cancelled: ("Appointment Cancelled", "The appointment on {date} at {time} was cancelled."),
    S.no_show: ("Customer No-Show", "The customer did not show up on {date} at {time}."),
    S.rescheduled: ("Appointment Rescheduled", "The customer moved the appointment to {date} at {time}."),
}


@dataclass(frozen=True)
class Notification:
    recipient_id: str
    audience: str  # "customer" | "workshop"
    title: str
    message: str
    appointment_id: str
    status: AppointmentStatus


def build_notifications(event: AppointmentEvent) -> list[Notification]:
    """
    The customer always hears about a change; the workshop only when someone
    else made it.
    """
    appointment = event.appointment
    recipients = [("customer", appointment.customer_id, _CUSTOMER_TEXT)]
    if event.acting_user_id != appointment.workshop_id:
        recipients.append(("workshop", appointment.workshop_id, _WORKSHOP_TEXT))

    notifications = []
    for audience, recipient_id, texts in recipients:
        title, template = texts[event.new_status]
        message = template.format(
            date=appointment.scheduled_date.isoformat(),
            time=appointment.scheduled_start_time,
        )
        if event.reason and event.new_status in (S.cancelled, S.rescheduled):
            message = f"{message} Reason: {event.reason}"
        notifications.append(
            Notification(
                recipient_id=recipient_id,
                audience=audience,
                title=title,
                message=message,
                appointment_id=appointment.id,
                status=event.new_status,
            )
        )
    return notifications
