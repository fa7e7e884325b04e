"""Public API routers exposed by the FastAPI application."""

from . import (
    auth,
    health,
    reimbursement,
    request_management,
    requests,
    users,
)

__all__ = [
    "auth",
    "health",
    "reimbursement",
    "request_management",
    "requests",
    "users",
]
