from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Caller:
    user_id: str
    role: str  # "customer" | "workshop"

    @property
    def is_customer(self) -> bool:
        return self.role == "customer"

    @property
    def is_workshop(self) -> bool:
        return self.role == "workshop"
