"""Typed failures raised by the authorization engine and entity services.

Each error carries the HTTP status it maps to; the API layer translates them
1:1 and only ever sends ``message`` to the client.
"""

from __future__ import annotations

from typing import ClassVar


class ServiceError(Exception):
    kind: ClassVar[str] = "Internal"
    status_code: ClassVar[int] = 500
    default_message: ClassVar[str] = "Internal server error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class Unauthorized(ServiceError):
    kind = "Unauthorized"
    status_code = 401
    default_message = "Unauthorized"


class AccessDenied(ServiceError):
    kind = "AccessDenied"
    status_code = 403
    default_message = "Access denied"


class NotFound(ServiceError):
    kind = "NotFound"
    status_code = 404
    default_message = "Not found"


class ValidationError(ServiceError):
    kind = "ValidationError"
    status_code = 400
    default_message = "Invalid request"


class Internal(ServiceError):
    pass
