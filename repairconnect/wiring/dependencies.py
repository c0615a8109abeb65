from functools import lru_cache
import json
import logging
from datetime import datetime
from zoneinfo import ZoneInfo

from repairconnect.core.config import settings
from repairconnect.application.ports.appointment_store import AppointmentStorePort
from repairconnect.application.ports.notifier import NotifierPort
from repairconnect.application.use_cases.booking_rules import BookingRules
from repairconnect.application.use_cases.manage_appointment import ManageAppointmentUseCase
from repairconnect.application.use_cases.scheduler import AppointmentScheduler
from repairconnect.domain.entities.operating_hours import DEFAULT_OPERATING_HOURS, OperatingHours
from repairconnect.infrastructure.notifications.log_notifier import LogNotifier
from repairconnect.infrastructure.notifications.webhook_notifier import WebhookNotifier
from repairconnect.infrastructure.store.json_store import JsonAppointmentStore
from repairconnect.infrastructure.store.memory_store import MemoryAppointmentStore


_store: MemoryAppointmentStore | JsonAppointmentStore | None = None


def get_store() -> AppointmentStorePort:
    global _store
    if _store is None:
        if settings.STORE_PROVIDER.lower() == "json":
            _store = JsonAppointmentStore(data_dir=settings.DATA_DIR)
        else:
            _store = MemoryAppointmentStore()
    return _store


@lru_cache
def get_notifier() -> NotifierPort:
    if settings.NOTIFICATION_WEBHOOK_URL:
        return WebhookNotifier(
            url=settings.NOTIFICATION_WEBHOOK_URL,
            timeout=settings.NOTIFICATION_TIMEOUT_SECONDS,
        )
    logger = logging.getLogger(__name__)
    if settings.ENV.lower() in {"dev", "local"}:
        logger.info("Using LogNotifier (NOTIFICATION_WEBHOOK_URL not set, ENV=dev/local)")
    else:
        logger.warning("NOTIFICATION_WEBHOOK_URL not set, notifications will only be logged")
    return LogNotifier()


def get_clock():
    tz = ZoneInfo(settings.BUSINESS_TIMEZONE)
    return lambda: datetime.now(tz)


@lru_cache
def get_default_hours() -> OperatingHours:
    if not settings.DEFAULT_OPERATING_HOURS:
        return DEFAULT_OPERATING_HOURS
    try:
        return OperatingHours.from_mapping(json.loads(settings.DEFAULT_OPERATING_HOURS))
    except (ValueError, AttributeError) as e:
        logging.getLogger(__name__).warning(
            "Invalid DEFAULT_OPERATING_HOURS, using built-in week", extra={"error": str(e)}
        )
        return DEFAULT_OPERATING_HOURS


def get_rules() -> BookingRules:
    return BookingRules(
        max_advance_days=settings.MAX_ADVANCE_DAYS,
        min_duration_hours=settings.MIN_DURATION_HOURS,
        max_duration_hours=settings.MAX_DURATION_HOURS,
        earliest_start_hour=settings.EARLIEST_START_HOUR,
        latest_start_hour=settings.LATEST_START_HOUR,
        reschedule_notice_hours=settings.RESCHEDULE_NOTICE_HOURS,
    )


def get_scheduler() -> AppointmentScheduler:
    return AppointmentScheduler(
        store=get_store(),
        default_hours=get_default_hours(),
        clock=get_clock(),
    )


def get_manage_use_case() -> ManageAppointmentUseCase:
    return ManageAppointmentUseCase(
        store=get_store(),
        scheduler=get_scheduler(),
        notifier=get_notifier(),
        rules=get_rules(),
    )
