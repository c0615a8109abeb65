from __future__ import annotations

import threading
from collections.abc import Iterable
from dataclasses import replace
from datetime import date

from repairconnect.application.exceptions import ConflictError, NotFoundError
from repairconnect.application.ports.appointment_store import AppointmentStorePort
from repairconnect.application.use_cases.availability import find_conflict
from repairconnect.domain.entities.appointment import Appointment, AppointmentPatch, AppointmentStatus
from repairconnect.domain.entities.workshop import WorkshopConfig, WorkshopLookup


class MemoryAppointmentStore(AppointmentStorePort):
    def __init__(self) -> None:
        self._workshops: dict[str, WorkshopConfig] = {}
        self._appointments: dict[str, Appointment] = {}
        self._lock = threading.RLock()

    def add_workshop(self, workshop: WorkshopConfig) -> None:
        with self._lock:
            self._commit(self._workshops, workshop.id, workshop)

    def find_workshop(self, owner_key: str) -> WorkshopLookup | None:
        with self._lock:
            active = [workshop for workshop in self._workshops.values() if workshop.is_active]
        for workshop in active:
            if workshop.user_id == owner_key:
                return WorkshopLookup(workshop=workshop, matched_by="user_id")
        for workshop in active:
            if workshop.id == owner_key:
                return WorkshopLookup(workshop=workshop, matched_by="profile_id")
        return None

    def find_appointments(
        self,
        workshop_id: str,
        start_date: date,
        end_date: date,
        statuses: Iterable[AppointmentStatus] | None = None,
    ) -> list[Appointment]:
        wanted = set(statuses) if statuses is not None else None
        with self._lock:
            found = [
                appointment
                for appointment in self._appointments.values()
                if appointment.workshop_id == workshop_id
                and start_date <= appointment.scheduled_date <= end_date
                and (wanted is None or appointment.status in wanted)
            ]
        return sorted(found, key=lambda a: (a.scheduled_date, a.scheduled_start_time))

    def get_appointment(self, appointment_id: str) -> Appointment | None:
        with self._lock:
            return self._appointments.get(appointment_id)

    def search_appointments(
        self,
        customer_id: str | None = None,
        workshop_id: str | None = None,
        statuses: Iterable[AppointmentStatus] | None = None,
        date_from: date | None = None,
        date_to: date | None = None,
        skip: int = 0,
        limit: int = 20,
    ) -> tuple[list[Appointment], int]:
        wanted = set(statuses) if statuses else None
        with self._lock:
            matches = [
                appointment
                for appointment in self._appointments.values()
                if (customer_id is None or appointment.customer_id == customer_id)
                and (workshop_id is None or appointment.workshop_id == workshop_id)
                and (wanted is None or appointment.status in wanted)
                and (date_from is None or appointment.scheduled_date >= date_from)
                and (date_to is None or appointment.scheduled_date <= date_to)
            ]
        matches.sort(key=lambda a: (a.scheduled_date, a.scheduled_start_time), reverse=True)
        return matches[skip : skip + limit], len(matches)

    def insert_appointment(self, appointment: Appointment) -> Appointment:
        with self._lock:
            if appointment.id in self._appointments:
                raise ConflictError(f"Appointment {appointment.id} already exists")
            for existing in self._appointments.values():
                if (
                    existing.quotation_id == appointment.quotation_id
                    and existing.accepted_quote_id == appointment.accepted_quote_id
                ):
                    raise ConflictError("Appointment already exists for this quote")
            self._check_slot(appointment)
            self._commit(self._appointments, appointment.id, appointment)
            return appointment

    def update_appointment(
        self,
        appointment_id: str,
        patch: AppointmentPatch,
        expected_status: AppointmentStatus | None = None,
    ) -> Appointment:
        with self._lock:
            current = self._appointments.get(appointment_id)
            if current is None:
                raise NotFoundError("Appointment not found")
            if expected_status is not None and current.status != expected_status:
                raise ConflictError(
                    f"Appointment status changed to {current.status.value} while updating"
                )

            updated = replace(current, **patch.set_fields, updated_at=patch.updated_at)
            if patch.push_status is not None:
                updated = replace(updated, status_history=updated.status_history + (patch.push_status,))
            if patch.push_reschedule is not None:
                updated = replace(
                    updated, reschedule_history=updated.reschedule_history + (patch.push_reschedule,)
                )

            self._check_slot(updated)
            self._commit(self._appointments, appointment_id, updated)
            return updated

    def _check_slot(self, appointment: Appointment) -> None:
        conflict = find_conflict(appointment, self._appointments.values())
        if conflict is not None:
            raise ConflictError(
                f"Time slot is already booked by appointment {conflict.id}",
                ["Time slot is already booked"],
            )

    def _commit(self, table: dict, key: str, value) -> None:
        """Apply one write and persist it; the write is undone if persisting fails."""
        missing = object()
        previous = table.get(key, missing)
        table[key] = value
        try:
            self._after_write()
        except Exception:
            if previous is missing:
                del table[key]
            else:
                table[key] = previous
            raise

    def _after_write(self) -> None:
        """Hook for persistent subclasses; runs with the lock held."""
