"""Domain error taxonomy shared by services and routers."""

from __future__ import annotations

from http import HTTPStatus
from typing import Any

from fastapi import Request, status
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException


class PortalError(Exception):
    """Base class for errors surfaced to portal users."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    default_details: str = "Check the request and try again"

    def __init__(self, message: str, *, details: Any | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details if details is not None else self.default_details

    def to_payload(self) -> dict[str, Any]:
        return {"error": self.message, "details": self.details}


class ValidationError(PortalError):
    """Bad or missing input; the action is blocked entirely."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_details = "Invalid input"


class AccessError(PortalError):
    """The caller is unauthenticated or lacks the required role."""

    status_code = status.HTTP_403_FORBIDDEN
    default_details = "Access denied"

    def __init__(
        self,
        message: str,
        *,
        details: Any | None = None,
        authenticated: bool = True,
    ) -> None:
        super().__init__(message, details=details)
        if not authenticated:
            self.status_code = status.HTTP_401_UNAUTHORIZED


class NotFoundError(PortalError):
    status_code = status.HTTP_404_NOT_FOUND
    default_details = "Resource not found"


class ConflictError(PortalError):
    """The request was already decided and cannot transition again."""

    status_code = status.HTTP_409_CONFLICT
    default_details = "Request already processed"


class UpstreamError(PortalError):
    """Storage, database or notification backend failure."""

    status_code = status.HTTP_502_BAD_GATEWAY
    default_details = "Check service logs for more information"


async def portal_error_handler(_: Request, exc: PortalError) -> JSONResponse:
    """Render a :class:`PortalError` as ``{"error", "details"}``."""

    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


async def http_error_handler(_: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Render framework and auth errors with the same ``{"error", "details"}`` shape."""

    if isinstance(exc.detail, str):
        message, details = exc.detail, HTTPStatus(exc.status_code).phrase
    else:
        message, details = HTTPStatus(exc.status_code).phrase, exc.detail
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": message, "details": details},
        headers=getattr(exc, "headers", None),
    )


__all__ = [
    "AccessError",
    "ConflictError",
    "NotFoundError",
    "PortalError",
    "UpstreamError",
    "ValidationError",
    "http_error_handler",
    "portal_error_handler",
]
