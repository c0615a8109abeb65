import logging

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError

from repairconnect.api.v1.appointments import router as appointments_router
from repairconnect.api.v1.availability import router as availability_router
from repairconnect.api.v1.errors import request_validation_handler, scheduling_error_handler
from repairconnect.application.exceptions import SchedulingError
from repairconnect.core.config import settings

CONTEXT_KEYS = ("workshop_id", "appointment_id", "status", "previous_status", "reason", "matched_by", "error")


class ContextFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        extras = []
        for key in CONTEXT_KEYS:
            value = getattr(record, key, None)
            if value not in (None, ""):
                extras.append(f"{key}={value}")
        base = super().format(record)
        if extras:
            return f"{base} | " + " ".join(extras)
        return base


handler = logging.StreamHandler()
handler.setFormatter(ContextFormatter("%(levelname)s:%(name)s:%(message)s"))

root = logging.getLogger()
root.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
root.handlers.clear()
root.addHandler(handler)

app = FastAPI(title="RepairConnect Scheduling", version="1.0.0")

app.add_exception_handler(SchedulingError, scheduling_error_handler)
app.add_exception_handler(RequestValidationError, request_validation_handler)

# Availability routes first so "/availability" is not captured by "/{appointment_id}".
app.include_router(availability_router, prefix="/api/v1/appointments", tags=["availability"])
app.include_router(appointments_router, prefix="/api/v1/appointments", tags=["appointments"])


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}
