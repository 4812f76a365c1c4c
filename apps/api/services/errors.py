"""Typed service errors.

Each error is an ``HTTPException`` so routers can let it propagate unchanged
while callers outside a request still see a distinct exception type per kind.
"""

from fastapi import HTTPException


class ServiceError(HTTPException):
    status_code = 500
    kind = "internal"

    def __init__(self, detail: str):
        super().__init__(status_code=type(self).status_code, detail=detail)


class InvalidArgumentError(ServiceError):
    """Malformed key, out-of-range page/limit or unknown enum value."""

    status_code = 422
    kind = "invalid_argument"


class NotFoundError(ServiceError):
    status_code = 404
    kind = "not_found"


class UnauthorizedError(ServiceError):
    """Viewer may not access or mutate the resource."""

    status_code = 403
    kind = "unauthorized"


class ConflictError(ServiceError):
    """Write rejected by a store uniqueness constraint."""

    status_code = 409
    kind = "conflict"


class InternalError(ServiceError):
    status_code = 500
    kind = "internal"
