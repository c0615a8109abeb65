from __future__ import annotations

from dataclasses import dataclass, fields
from datetime import date, datetime
from typing import Any

from repairconnect.application.utils.time_math import time_to_minutes

WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")


@dataclass(frozen=True)
class DayHours:
    open: str = "00:00"
    close: str = "00:00"
    closed: bool = False

    def __post_init__(self) -> None:
        if self.closed:
            return
        if time_to_minutes(self.open) >= time_to_minutes(self.close):
            raise ValueError(f"Opening time {self.open} must be before closing time {self.close}")

    @property
    def open_minutes(self) -> int:
        return time_to_minutes(self.open)

    @property
    def close_minutes(self) -> int:
        return time_to_minutes(self.close)

    @property
    def daily_hours(self) -> float:
        if self.closed:
            return 0.0
        return (self.close_minutes - self.open_minutes) / 60


CLOSED_DAY = DayHours(open="00:00", close="00:00", closed=True)


@dataclass(frozen=True)
class OperatingHours:
    monday: DayHours
    tuesday: DayHours
    wednesday: DayHours
    thursday: DayHours
    friday: DayHours
    saturday: DayHours
    sunday: DayHours

    def for_day(self, day: date | datetime) -> DayHours:
        return getattr(self, WEEKDAYS[day.weekday()])

    def is_open_at(self, moment: datetime) -> bool:
        """Closing minute counts as open."""
        hours = self.for_day(moment)
        if hours.closed:
            return False
        now = moment.hour * 60 + moment.minute
        return hours.open_minutes <= now <= hours.close_minutes

    def to_mapping(self) -> dict[str, dict[str, Any]]:
        return {
            f.name: {
                "open": getattr(self, f.name).open,
                "close": getattr(self, f.name).close,
                "closed": getattr(self, f.name).closed,
            }
            for f in fields(self)
        }

    @classmethod
    def from_mapping(cls, data: dict[str, Any] | list[dict[str, Any]]) -> "OperatingHours":
        """
        Build from the stored document shape.

        Accepts either {"monday": {"open", "close", "closed"}, ...} or the older
        list shape [{"day", "openTime", "closeTime", "isClosed"}, ...]. Days
        missing from the data are treated as closed.
        """
        if isinstance(data, list):
            data = {
                str(item.get("day", "")).lower(): {
                    "open": item.get("openTime") or "09:00",
                    "close": item.get("closeTime") or "17:00",
                    "closed": bool(item.get("isClosed", False)),
                }
                for item in data
            }

        days: dict[str, DayHours] = {}
        for name in WEEKDAYS:
            raw = data.get(name)
            if not raw:
                days[name] = CLOSED_DAY
                continue
            closed = bool(raw.get("closed", False))
            days[name] = DayHours(
                open=raw.get("open") or "00:00",
                close=raw.get("close") or "00:00",
                closed=closed,
            )
        return cls(**days)


_WEEKDAY_HOURS = DayHours(open="08:00", close="17:00")

DEFAULT_OPERATING_HOURS = OperatingHours(
    monday=_WEEKDAY_HOURS,
    tuesday=_WEEKDAY_HOURS,
    wednesday=_WEEKDAY_HOURS,
    thursday=_WEEKDAY_HOURS,
    friday=_WEEKDAY_HOURS,
    saturday=DayHours(open="08:00", close="12:00"),
    sunday=CLOSED_DAY,
)
