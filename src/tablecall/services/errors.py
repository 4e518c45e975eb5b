"""Domain errors raised by services, mapped to HTTP status codes by the API."""

import uuid


class ServiceError(Exception):
    """Base class for expected business-rule failures."""


class NotFoundError(ServiceError):
    """The entity does not exist."""


class ForbiddenError(ServiceError):
    """The entity exists but belongs to another owner."""


class ConflictError(ServiceError):
    """The change would violate a uniqueness rule."""


class InvalidInputError(ServiceError):
    """The input is well-formed but not acceptable."""


class InvalidQRCodeError(InvalidInputError):
    """The QR proof does not match the claimed table coordinates."""


def parse_uuid(value, what: str) -> uuid.UUID:
    """Parse an id from untrusted input, raising InvalidInputError."""
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except ValueError:
        raise InvalidInputError(f"Invalid {what} ID")
