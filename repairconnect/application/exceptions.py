
class SchedulingError(Exception):
    """Base for errors the scheduling core resolves into a structured rejection."""

    def __init__(self, message: str, errors: list[str] | None = None) -> None:
        super().__init__(message)
        self.errors = list(errors) if errors else [message]


class NotFoundError(SchedulingError):
    """Raised when a workshop or appointment does not exist."""
    pass


class ValidationError(SchedulingError):
    """Raised with every violated booking rule, never just the first."""

    def __init__(self, errors: list[str]) -> None:
        super().__init__("; ".join(errors), errors)


class ConflictError(SchedulingError):
    """Raised for taken slots, illegal status transitions and actions outside the caller's permission."""
    pass


class AccessDeniedError(SchedulingError):
    """Raised when the caller is neither the appointment's customer nor its workshop."""
    pass
