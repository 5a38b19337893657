"""Error kinds documented on every API and the HTTP status each one maps to."""

from enum import Enum

DEFAULT_ERROR_STATUS = 500


class ErrorName(str, Enum):
    """Closed set of error kinds an operation can declare."""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    PAYLOAD_TOO_LARGE = "PAYLOAD_TOO_LARGE"
    TOO_MANY_REQUESTS = "TOO_MANY_REQUESTS"
    INTERNAL_SERVER_ERROR = "INTERNAL_SERVER_ERROR"
    DATABASE_ERROR = "DATABASE_ERROR"


ERROR_STATUS_MAP: dict[ErrorName, int] = {
    ErrorName.VALIDATION_ERROR: 400,
    ErrorName.UNAUTHORIZED: 401,
    ErrorName.FORBIDDEN: 403,
    ErrorName.NOT_FOUND: 404,
    ErrorName.CONFLICT: 409,
    ErrorName.PAYLOAD_TOO_LARGE: 413,
    ErrorName.TOO_MANY_REQUESTS: 429,
    ErrorName.INTERNAL_SERVER_ERROR: 500,
}


def error_status(kind: ErrorName) -> int:
    """Return the HTTP status for an error kind, 500 when the kind is unmapped."""
    return ERROR_STATUS_MAP.get(ErrorName(kind), DEFAULT_ERROR_STATUS)
