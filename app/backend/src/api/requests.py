"""Benefit request endpoints."""

from __future__ import annotations

import json
from typing import Annotated, Any

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session

from app.backend.src.core.errors import ValidationError
from app.backend.src.core.security import get_current_user, require_manager_user
from app.backend.src.db import get_session_dependency
from app.backend.src.models import User
from app.backend.src.schemas.comment import CommentCreate, CommentRead
from app.backend.src.schemas.invoice import InvoiceRead
from app.backend.src.schemas.request import (
    RequestCreateResponse,
    RequestRead,
    RequestSummary,
)
from app.backend.src.services import comments as comment_service
from app.backend.src.services import requests as request_service
from app.backend.src.services.s3 import get_attachment_storage

router = APIRouter(prefix="/requests", tags=["requests"])


def _parse_dependents(raw: str | None) -> list[Any]:
    if not raw or not raw.strip():
        return []
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValidationError(
            "Dependentes inválidos", details="dependents must be a JSON list"
        ) from exc
    if not isinstance(parsed, list):
        raise ValidationError(
            "Dependentes inválidos", details="dependents must be a JSON list"
        )
    return parsed


@router.get("", response_model=list[RequestRead])
def list_requests(
    session: Annotated[Session, Depends(get_session_dependency)],
    current_user: Annotated[User, Depends(get_current_user)],
    polo: Annotated[str | None, Query()] = None,
    status_filter: Annotated[str | None, Query(alias="status")] = None,
) -> list[RequestRead]:
    """Return the caller's requests, or every request for managers."""

    rows = request_service.list_requests(
        session, current_user, polo=polo, status=status_filter
    )
    return [RequestRead.model_validate(row) for row in rows]


@router.post(
    "",
    response_model=RequestCreateResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_request(
    session: Annotated[Session, Depends(get_session_dependency)],
    current_user: Annotated[User, Depends(get_current_user)],
    request_type: Annotated[str | None, Form(alias="type")] = None,
    description: Annotated[str | None, Form()] = None,
    amount: Annotated[str | None, Form()] = None,
    polo: Annotated[str | None, Form()] = None,
    dependents: Annotated[str | None, Form()] = None,
    files: Annotated[list[UploadFile] | None, File()] = None,
) -> RequestCreateResponse:
    """Submit a new request with optional supporting documents."""

    payload = {
        "type": request_type,
        "description": description,
        "amount": amount,
        "polo": polo,
        "dependents": _parse_dependents(dependents),
    }
    # Validate before reading any upload so bad input never touches storage.
    request_service.validate_payload(payload)

    uploads = []
    for upload in files or []:
        uploads.append(
            request_service.AttachmentUpload(
                filename=upload.filename or "arquivo",
                content=await upload.read(),
                content_type=upload.content_type,
            )
        )

    result = await run_in_threadpool(
        request_service.create_request,
        session,
        current_user,
        payload,
        uploads,
    )
    return RequestCreateResponse(
        request=RequestRead.model_validate(result.request),
        warnings=result.warnings,
    )


@router.get("/summary", response_model=RequestSummary)
def summarize_requests(
    session: Annotated[Session, Depends(get_session_dependency)],
    manager: Annotated[User, Depends(require_manager_user)],
    status_filter: Annotated[str | None, Query(alias="status")] = None,
) -> RequestSummary:
    """Return dashboard counts per status and per polo."""

    rows = request_service.list_requests(session, manager, status=status_filter)
    return request_service.summarize(rows)


@router.get("/{request_id}", response_model=RequestRead)
def read_request(
    request_id: int,
    session: Annotated[Session, Depends(get_session_dependency)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> RequestRead:
    return RequestRead.model_validate(
        request_service.get_request(session, current_user, request_id)
    )


@router.get("/{request_id}/invoices", response_model=list[InvoiceRead])
def list_request_invoices(
    request_id: int,
    session: Annotated[Session, Depends(get_session_dependency)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> list[InvoiceRead]:
    """Return attachment metadata with short-lived download links."""

    benefit_request = request_service.get_request(session, current_user, request_id)
    storage = get_attachment_storage()
    return [
        InvoiceRead(
            id=invoice.id,
            request_id=invoice.request_id,
            file_name=invoice.file_name,
            file_url=invoice.file_url,
            file_size=invoice.file_size,
            mime_type=invoice.mime_type,
            uploaded_at=invoice.uploaded_at,
            download_url=storage.url(invoice.storage_key),
        )
        for invoice in request_service.get_attachments_of(session, benefit_request.id)
    ]


@router.get("/{request_id}/comments", response_model=list[CommentRead])
def list_request_comments(
    request_id: int,
    session: Annotated[Session, Depends(get_session_dependency)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> list[CommentRead]:
    rows = comment_service.list_comments(session, current_user, request_id)
    return [CommentRead.model_validate(row) for row in rows]


@router.post(
    "/{request_id}/comments",
    response_model=CommentRead,
    status_code=status.HTTP_201_CREATED,
)
def add_request_comment(
    request_id: int,
    payload: CommentCreate,
    session: Annotated[Session, Depends(get_session_dependency)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> CommentRead:
    comment = comment_service.add_comment(session, current_user, request_id, payload)
    return CommentRead.model_validate(comment)


__all__ = ["router"]
