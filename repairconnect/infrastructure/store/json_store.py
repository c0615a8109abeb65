from __future__ import annotations

import json
import logging
from datetime import date, datetime
from pathlib import Path
from typing import Any

from repairconnect.domain.entities.appointment import (
    Appointment,
    AppointmentStatus,
    PaymentStatus,
    RescheduleRecord,
    ServiceItem,
    StatusChange,
)
from repairconnect.domain.entities.operating_hours import OperatingHours
from repairconnect.domain.entities.workshop import WorkshopConfig
from repairconnect.infrastructure.store.memory_store import MemoryAppointmentStore


class JsonAppointmentStore(MemoryAppointmentStore):
    """
    Memory store mirrored to `workshops.json` and `appointments.json`.

    Every write rewrites both files atomically while the store lock is held,
    so readers of the directory never see a half-written document.
    """

    def __init__(self, data_dir: str = "./data/scheduling") -> None:
        super().__init__()
        self._data_dir = Path(data_dir)
        self._data_dir.mkdir(parents=True, exist_ok=True)
        self._logger = logging.getLogger(__name__)

        for raw in self._load("workshops.json"):
            workshop = self._deserialize_workshop(raw)
            self._workshops[workshop.id] = workshop
        for raw in self._load("appointments.json"):
            appointment = self._deserialize_appointment(raw)
            self._appointments[appointment.id] = appointment

    def _after_write(self) -> None:
        self._save("workshops.json", [self._serialize_workshop(w) for w in self._workshops.values()])
        self._save(
            "appointments.json",
            [self._serialize_appointment(a) for a in self._appointments.values()],
        )

    def _load(self, name: str) -> list[dict[str, Any]]:
        file_path = self._data_dir / name
        if not file_path.exists():
            return []
        try:
            with open(file_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, IOError) as e:
            self._logger.warning("Ignoring unreadable store file", extra={"reason": name, "error": str(e)})
            return []
        return data if isinstance(data, list) else []

    def _save(self, name: str, data: list[dict[str, Any]]) -> None:
        """Write to a temp file, then rename over the target."""
        file_path = self._data_dir / name
        temp_path = file_path.with_suffix(".json.tmp")
        try:
            with open(temp_path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
            temp_path.replace(file_path)
        except Exception:
            temp_path.unlink(missing_ok=True)
            raise

    def _serialize_workshop(self, workshop: WorkshopConfig) -> dict[str, Any]:
        return {
            "id": workshop.id,
            "user_id": workshop.user_id,
            "name": workshop.name,
            "operating_hours": workshop.operating_hours.to_mapping() if workshop.operating_hours else None,
            "is_active": workshop.is_active,
        }

    def _deserialize_workshop(self, data: dict[str, Any]) -> WorkshopConfig:
        hours = data.get("operating_hours")
        return WorkshopConfig(
            id=data["id"],
            user_id=data["user_id"],
            name=data.get("name", ""),
            operating_hours=OperatingHours.from_mapping(hours) if hours else None,
            is_active=data.get("is_active", True),
        )

    def _serialize_appointment(self, appointment: Appointment) -> dict[str, Any]:
        return {
            "id": appointment.id,
            "quotation_id": appointment.quotation_id,
            "accepted_quote_id": appointment.accepted_quote_id,
            "customer_id": appointment.customer_id,
            "workshop_id": appointment.workshop_id,
            "scheduled_date": appointment.scheduled_date.isoformat(),
            "scheduled_start_time": appointment.scheduled_start_time,
            "scheduled_end_time": appointment.scheduled_end_time,
            "estimated_duration": appointment.estimated_duration,
            "status": appointment.status.value,
            "services": [
                {
                    "service_type": s.service_type,
                    "description": s.description,
                    "estimated_duration": s.estimated_duration,
                    "status": s.status,
                    "actual_start_time": _iso(s.actual_start_time),
                    "actual_end_time": _iso(s.actual_end_time),
                    "notes": s.notes,
                }
                for s in appointment.services
            ],
            "status_history": [
                {
                    "status": h.status.value,
                    "changed_at": h.changed_at.isoformat(),
                    "changed_by": h.changed_by,
                    "reason": h.reason,
                    "notes": h.notes,
                }
                for h in appointment.status_history
            ],
            "reschedule_history": [
                {
                    "original_date": r.original_date.isoformat(),
                    "original_start_time": r.original_start_time,
                    "original_end_time": r.original_end_time,
                    "new_date": r.new_date.isoformat(),
                    "new_start_time": r.new_start_time,
                    "new_end_time": r.new_end_time,
                    "reason": r.reason,
                    "requested_by": r.requested_by,
                    "requested_at": r.requested_at.isoformat(),
                }
                for r in appointment.reschedule_history
            ],
            "is_multi_day_service": appointment.is_multi_day_service,
            "estimated_completion_date": _iso(appointment.estimated_completion_date),
            "estimated_work_days": appointment.estimated_work_days,
            "actual_start_time": _iso(appointment.actual_start_time),
            "actual_end_time": _iso(appointment.actual_end_time),
            "customer_notes": appointment.customer_notes,
            "workshop_notes": appointment.workshop_notes,
            "customer_rating": appointment.customer_rating,
            "customer_review": appointment.customer_review,
            "payment_status": appointment.payment_status.value,
            "created_at": _iso(appointment.created_at),
            "updated_at": _iso(appointment.updated_at),
            "confirmed_at": _iso(appointment.confirmed_at),
            "completed_at": _iso(appointment.completed_at),
            "cancelled_at": _iso(appointment.cancelled_at),
        }

    def _deserialize_appointment(self, data: dict[str, Any]) -> Appointment:
        return Appointment(
            id=data["id"],
            quotation_id=data["quotation_id"],
            accepted_quote_id=data["accepted_quote_id"],
            customer_id=data["customer_id"],
            workshop_id=data["workshop_id"],
            scheduled_date=date.fromisoformat(data["scheduled_date"]),
            scheduled_start_time=data["scheduled_start_time"],
            scheduled_end_time=data["scheduled_end_time"],
            estimated_duration=float(data["estimated_duration"]),
            status=AppointmentStatus(data.get("status", "requested")),
            services=tuple(
                ServiceItem(
                    service_type=s["service_type"],
                    description=s.get("description", ""),
                    estimated_duration=s.get("estimated_duration", 0.0),
                    status=s.get("status", "pending"),
                    actual_start_time=_datetime(s.get("actual_start_time")),
                    actual_end_time=_datetime(s.get("actual_end_time")),
                    notes=s.get("notes"),
                )
                for s in data.get("services", [])
            ),
            status_history=tuple(
                StatusChange(
                    status=AppointmentStatus(h["status"]),
                    changed_at=datetime.fromisoformat(h["changed_at"]),
                    changed_by=h["changed_by"],
                    reason=h.get("reason"),
                    notes=h.get("notes"),
                )
                for h in data.get("status_history", [])
            ),
            reschedule_history=tuple(
                RescheduleRecord(
                    original_date=date.fromisoformat(r["original_date"]),
                    original_start_time=r["original_start_time"],
                    original_end_time=r["original_end_time"],
                    new_date=date.fromisoformat(r["new_date"]),
                    new_start_time=r["new_start_time"],
                    new_end_time=r["new_end_time"],
                    reason=r.get("reason", ""),
                    requested_by=r.get("requested_by", ""),
                    requested_at=datetime.fromisoformat(r["requested_at"]),
                )
                for r in data.get("reschedule_history", [])
            ),
            is_multi_day_service=data.get("is_multi_day_service", False),
            estimated_completion_date=_date(data.get("estimated_completion_date")),
            estimated_work_days=data.get("estimated_work_days"),
            actual_start_time=_datetime(data.get("actual_start_time")),
            actual_end_time=_datetime(data.get("actual_end_time")),
            customer_notes=data.get("customer_notes"),
            workshop_notes=data.get("workshop_notes"),
            customer_rating=data.get("customer_rating"),
            customer_review=data.get("customer_review"),
            payment_status=PaymentStatus(data.get("payment_status", "pending")),
            created_at=_datetime(data.get("created_at")),
            updated_at=_datetime(data.get("updated_at")),
            confirmed_at=_datetime(data.get("confirmed_at")),
            completed_at=_datetime(data.get("completed_at")),
            cancelled_at=_datetime(data.get("cancelled_at")),
        )


def _iso(value: date | datetime | None) -> str | None:
    return value.isoformat() if value else None


def _datetime(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


def _date(value: str | None) -> date | None:
    return date.fromisoformat(value) if value else None
