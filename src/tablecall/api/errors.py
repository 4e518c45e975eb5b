"""Translate service errors into HTTP errors."""

from fastapi import HTTPException

from tablecall.services.errors import (
    ConflictError,
    ForbiddenError,
    InvalidInputError,
    NotFoundError,
    ServiceError,
)

_STATUS = {
    NotFoundError: 404,
    ForbiddenError: 403,
    ConflictError: 409,
    InvalidInputError: 400,
}


def http_error(exc: ServiceError) -> HTTPException:
    for cls in type(exc).__mro__:
        if cls in _STATUS:
            return HTTPException(status_code=_STATUS[cls], detail=str(exc))
    return HTTPException(status_code=400, detail=str(exc))
