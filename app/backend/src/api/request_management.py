"""Privileged decision endpoint for managers."""

from __future__ import annotations

from typing import Annotated

import structlog
from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from app.backend.src.core.security import require_manager_user
from app.backend.src.db import get_session_dependency
from app.backend.src.models import User
from app.backend.src.schemas.request import (
    RequestRead,
    StatusUpdate,
    StatusUpdateResponse,
)
from app.backend.src.services import approval_workflow

LOGGER = structlog.get_logger(__name__)

router = APIRouter(prefix="/request-management", tags=["request-management"])


@router.options("")
def request_management_preflight() -> Response:
    """Answer bare preflight requests with an empty 200."""

    return Response(status_code=status.HTTP_200_OK)


@router.post("", response_model=StatusUpdateResponse)
def update_request_status(
    payload: StatusUpdate,
    session: Annotated[Session, Depends(get_session_dependency)],
    manager: Annotated[User, Depends(require_manager_user)],
) -> StatusUpdateResponse:
    """Approve or reject a pending request."""

    LOGGER.info(
        "request_status_update_received",
        request_id=payload.request_id,
        status=payload.status,
        manager_id=manager.id,
    )
    updated = approval_workflow.transition(
        session,
        payload.request_id,
        payload.status,
        reviewer=manager,
        rejection_reason=payload.rejection_reason,
    )
    return StatusUpdateResponse(
        success=True,
        data=RequestRead.model_validate(updated),
        message=f"Request {updated.status} successfully",
    )


__all__ = ["router"]
