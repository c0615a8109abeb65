from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from repairconnect.domain.entities.operating_hours import OperatingHours


@dataclass(frozen=True)
class WorkshopConfig:
    id: str  # profile id
    user_id: str  # owning user; appointments are keyed by this
    name: str
    operating_hours: OperatingHours | None = None
    is_active: bool = True


@dataclass(frozen=True)
class WorkshopLookup:
    workshop: WorkshopConfig
    matched_by: Literal["user_id", "profile_id"]

    @property
    def appointment_key(self) -> str:
        return self.workshop.user_id
