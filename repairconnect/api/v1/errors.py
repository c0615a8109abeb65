import logging

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from repairconnect.application.exceptions import (
    AccessDeniedError,
    ConflictError,
    NotFoundError,
    SchedulingError,
    ValidationError,
)

logger = logging.getLogger(__name__)

STATUS_CODES: dict[type[SchedulingError], int] = {
    NotFoundError: 404,
    ValidationError: 400,
    ConflictError: 409,
    AccessDeniedError: 403,
}


def error_body(errors: list[str]) -> dict[str, object]:
    return {"success": False, "error": "; ".join(errors), "errors": errors}


async def scheduling_error_handler(request: Request, exc: SchedulingError) -> JSONResponse:
    status_code = next(
        (code for error_type, code in STATUS_CODES.items() if isinstance(exc, error_type)),
        400,
    )
    logger.info(
        "Request rejected",
        extra={"reason": str(exc), "status": status_code},
    )
    return JSONResponse(status_code=status_code, content=error_body(exc.errors))


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        f"{'.'.join(str(part) for part in error.get('loc', ()) if part != 'body')}: {error.get('msg')}"
        for error in exc.errors()
    ]
    logger.info("Invalid request payload", extra={"reason": request.url.path})
    return JSONResponse(status_code=400, content=error_body(errors))
