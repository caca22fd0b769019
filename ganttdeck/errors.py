"""Error taxonomy for the scheduling core.

Every error carries the HTTP status the API boundary should answer with.
None of them are retried internally.
"""


class SchedulingError(Exception):
    """Base class for domain errors raised by the scheduling core."""

    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(SchedulingError):
    """Malformed or logically inconsistent input (bad date order, self-reference, ...)."""

    status_code = 400


class PermissionDeniedError(SchedulingError):
    """The caller's project role forbids the action."""

    status_code = 403


class NotFoundError(SchedulingError):
    """Referenced row does not exist, is soft-deleted, or is not visible to the caller."""

    status_code = 404


class ConflictError(SchedulingError):
    """Uniqueness violation, e.g. a duplicate dependency edge."""

    status_code = 409


_ERRORS_BY_STATUS = {
    cls.status_code: cls
    for cls in (ValidationError, PermissionDeniedError, NotFoundError, ConflictError)
}


def error_for_status(status_code: int, message: str) -> SchedulingError:
    """Rebuild a domain error from an HTTP status (used by HTTP clients)."""
    cls = _ERRORS_BY_STATUS.get(status_code, SchedulingError)
    error = cls(message)
    if cls is SchedulingError:
        error.status_code = status_code
    return error
