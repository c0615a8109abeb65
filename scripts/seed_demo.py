#!/usr/bin/env python3
"""Seed demo workshops into the JSON store used by STORE_PROVIDER=json."""
from __future__ import annotations

import argparse

from repairconnect.core.config import settings
from repairconnect.domain.entities.operating_hours import DayHours, OperatingHours
from repairconnect.domain.entities.workshop import WorkshopConfig
from repairconnect.infrastructure.store.json_store import JsonAppointmentStore

LONG_WEEK = OperatingHours(
    monday=DayHours(open="07:00", close="19:00"),
    tuesday=DayHours(open="07:00", close="19:00"),
    wednesday=DayHours(open="07:00", close="19:00"),
    thursday=DayHours(open="07:00", close="19:00"),
    friday=DayHours(open="07:00", close="19:00"),
    saturday=DayHours(open="09:00", close="14:00"),
    sunday=DayHours(closed=True),
)

DEMO_WORKSHOPS = [
    # No hours configured: the default week applies.
    WorkshopConfig(id="ws-profile-1", user_id="ws-user-1", name="Fix It Garage"),
    WorkshopConfig(id="ws-profile-2", user_id="ws-user-2", name="Quick Lane Tyres", operating_hours=LONG_WEEK),
]


def main() -> None:
    parser = argparse.ArgumentParser(description="Seed demo workshops")
    parser.add_argument("--data-dir", default=settings.DATA_DIR)
    args = parser.parse_args()

    store = JsonAppointmentStore(data_dir=args.data_dir)
    for workshop in DEMO_WORKSHOPS:
        store.add_workshop(workshop)
        print(f"Seeded {workshop.name} (user={workshop.user_id}, profile={workshop.id})")


if __name__ == "__main__":
    main()
