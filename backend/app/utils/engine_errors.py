"""
Translate room engine errors into HTTP errors.

    NotFoundError              -> 404
    InvalidInputError          -> 422
    PermissionDeniedError      -> 403
    ConfirmationRequiredError  -> 409
    PreconditionError          -> 400
"""

from fastapi import HTTPException

from app.services.errors import (
    ConfirmationRequiredError,
    InvalidInputError,
    NotFoundError,
    PermissionDeniedError,
    PreconditionError,
    RoomEngineError,
)


def to_http_exception(exc: RoomEngineError) -> HTTPException:
    if isinstance(exc, NotFoundError):
        return HTTPException(status_code=404, detail=str(exc))
    if isinstance(exc, InvalidInputError):
        return HTTPException(status_code=422, detail=str(exc))
    if isinstance(exc, PermissionDeniedError):
        return HTTPException(status_code=403, detail=str(exc))
    if isinstance(exc, ConfirmationRequiredError):
        return HTTPException(status_code=409, detail=str(exc))
    if isinstance(exc, PreconditionError):
        return HTTPException(status_code=400, detail=str(exc))
    return HTTPException(status_code=400, detail=str(exc))
