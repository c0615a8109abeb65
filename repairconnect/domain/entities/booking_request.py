from __future__ import annotations

from dataclasses import dataclass
from datetime import date


@dataclass(frozen=True)
class BookingRequest:
    date: date
    start_time: str  # HH:MM
    duration: float  # hours
    workshop_id: str | None = None
    quotation_id: str | None = None
    accepted_quote_id: str | None = None
    services: tuple[str, ...] = ()
    customer_notes: str | None = None


@dataclass(frozen=True)
class ValidationResult:
    valid: bool
    errors: list[str]
