"""Service-level error taxonomy.

Services raise these; routes translate them to HTTP responses with
``http_error``. ``status_code`` is the HTTP status each error maps to.
"""

from __future__ import annotations

from fastapi import HTTPException


class ServiceError(Exception):
    """Base class for errors raised by the service layer."""

    status_code = 500

    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(detail)


class NotFoundError(ServiceError):
    """Requested row does not exist (or is not visible)."""

    status_code = 404


class InvalidInputError(ServiceError):
    """Input failed a business rule (missing field, bad transition, ...)."""

    status_code = 400


class ForbiddenError(ServiceError):
    """Caller or entity is not allowed to perform the operation."""

    status_code = 403


class ConflictError(ServiceError):
    """Operation conflicts with existing state (duplicate, already processed)."""

    status_code = 409


class ConfigurationError(ServiceError):
    """A required setting (usually an API key) is missing."""

    status_code = 400


class UpstreamError(ServiceError):
    """A third-party API failed or returned an unusable response."""

    status_code = 502


def http_error(exc: ServiceError) -> HTTPException:
    """Map a ServiceError to the HTTPException raised by route handlers."""
    return HTTPException(status_code=exc.status_code, detail=exc.detail)
