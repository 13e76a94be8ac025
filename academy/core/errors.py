from __future__ import annotations

from fastapi import HTTPException


class NotFoundError(LookupError):
    pass


class StateConflictError(ValueError):
    """Raised when a record is not in a state that allows the transition."""


def to_http_exception(exc: Exception) -> HTTPException:
    if isinstance(exc, NotFoundError):
        return HTTPException(status_code=404, detail=str(exc))
    if isinstance(exc, StateConflictError):
        return HTTPException(status_code=409, detail=str(exc))
    return HTTPException(status_code=400, detail=str(exc))
