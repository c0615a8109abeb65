from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable
from datetime import date

from repairconnect.domain.entities.appointment import Appointment, AppointmentPatch, AppointmentStatus
from repairconnect.domain.entities.workshop import WorkshopLookup


class AppointmentStorePort(ABC):
    @abstractmethod
    def find_workshop(self, owner_key: str) -> WorkshopLookup | None:
        """
        Find an active workshop by owning-user id, then by profile id.
        Returns the match tagged with the key that found it, or None.
        """
        raise NotImplementedError

    @abstractmethod
    def find_appointments(
        self,
        workshop_id: str,
        start_date: date,
        end_date: date,
        statuses: Iterable[AppointmentStatus] | None = None,
    ) -> list[Appointment]:
        """Appointments of a workshop scheduled within [start_date, end_date]."""
        raise NotImplementedError

    @abstractmethod
    def get_appointment(self, appointment_id: str) -> Appointment | None:
        raise NotImplementedError

    @abstractmethod
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
        """Newest first. Returns (page, total matching)."""
        raise NotImplementedError

    @abstractmethod
    def insert_appointment(self, appointment: Appointment) -> Appointment:
        """
        Insert atomically. Raises ConflictError when the quote already has an
        appointment or when an occupying appointment overlaps the same slot.
        """
        raise NotImplementedError

    @abstractmethod
    def update_appointment(
        self,
        appointment_id: str,
        patch: AppointmentPatch,
        expected_status: AppointmentStatus | None = None,
    ) -> Appointment:
        """
        Apply one patch atomically and return the updated document.
        Raises NotFoundError if absent, ConflictError if the current status is
        not `expected_status` or the result would double-book the slot.
        """
        raise NotImplementedError
