"""Query and mutation layer for benefit requests."""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

import structlog
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.orm import Session, selectinload

from app.backend.src.core.errors import (
    AccessError,
    NotFoundError,
    UpstreamError,
    ValidationError,
)
from app.backend.src.core.storage import StorageBackend
from app.backend.src.models import BenefitRequest, Invoice, User
from app.backend.src.models.choices import (
    POLOS,
    REQUEST_STATUSES,
    STATUS_PENDING,
    UNASSIGNED_POLO,
)
from app.backend.src.schemas.request import RequestCreate, RequestSummary, StatusCounts
from app.backend.src.services import audit
from app.backend.src.services.metrics import (
    attachment_upload_failures_total,
    requests_created_total,
)
from app.backend.src.services.s3 import (
    build_attachment_key,
    determine_content_type,
    get_attachment_storage,
)

LOGGER = structlog.get_logger(__name__)

UPLOAD_WARNING = "Erro ao fazer upload dos anexos, mas a solicitação será criada."


@dataclass
class AttachmentUpload:
    """A file received with a new request."""

    filename: str
    content: bytes
    content_type: str | None = None


@dataclass
class CreateResult:
    """The persisted request and any non-fatal upload warnings."""

    request: BenefitRequest
    warnings: list[str] = field(default_factory=list)


def _require_viewer(viewer: User | None) -> User:
    if viewer is None:
        raise AccessError("Usuário não autenticado", authenticated=False)
    return viewer


def _validation_details(exc: PydanticValidationError) -> list[dict[str, str]]:
    details = []
    for error in exc.errors():
        message = str(error.get("msg", ""))
        if message.startswith("Value error, "):
            message = message[len("Value error, ") :]
        details.append(
            {
                "field": ".".join(str(part) for part in error.get("loc", ())),
                "message": message,
            }
        )
    return details


def validate_payload(payload: RequestCreate | Mapping[str, Any]) -> RequestCreate:
    """Return a validated :class:`RequestCreate` or raise ``ValidationError``."""

    if isinstance(payload, RequestCreate):
        return payload
    try:
        return RequestCreate.model_validate(dict(payload))
    except PydanticValidationError as exc:
        details = _validation_details(exc)
        message = details[0]["message"] if details else "Dados inválidos"
        raise ValidationError(message, details=details) from exc


def list_requests(
    session: Session,
    viewer: User | None,
    *,
    polo: str | None = None,
    status: str | None = None,
) -> list[BenefitRequest]:
    """Return the requests visible to ``viewer``, newest first.

    Requesters only see their own rows. Managers see every row, optionally
    narrowed to a branch (``"unassigned"`` selects rows without one) or status.
    """

    viewer = _require_viewer(viewer)

    query = session.query(BenefitRequest).options(selectinload(BenefitRequest.owner))
    if not viewer.is_manager:
        query = query.filter(BenefitRequest.user_id == viewer.id)

    if polo:
        if polo == UNASSIGNED_POLO:
            query = query.filter(BenefitRequest.polo.is_(None))
        elif polo in POLOS:
            query = query.filter(BenefitRequest.polo == polo)
        else:
            raise ValidationError("Polo inválido", details={"polo": polo})

    if status:
        if status not in REQUEST_STATUSES:
            raise ValidationError("Status inválido", details={"status": status})
        query = query.filter(BenefitRequest.status == status)

    return query.order_by(
        BenefitRequest.created_at.desc(), BenefitRequest.id.desc()
    ).all()


def get_request(session: Session, viewer: User | None, request_id: int) -> BenefitRequest:
    """Return a single request if ``viewer`` owns it or is a manager."""

    viewer = _require_viewer(viewer)
    benefit_request = (
        session.query(BenefitRequest)
        .options(selectinload(BenefitRequest.owner))
        .filter(BenefitRequest.id == request_id)
        .one_or_none()
    )
    if benefit_request is None:
        raise NotFoundError("Solicitação não encontrada", details={"request_id": request_id})
    if not viewer.is_manager and benefit_request.user_id != viewer.id:
        raise AccessError("Sem permissão para acessar esta solicitação")
    return benefit_request


def _upload_attachments(
    storage: StorageBackend,
    owner_id: int,
    files: Sequence[AttachmentUpload],
) -> tuple[list[tuple[AttachmentUpload, str, str]], list[str]]:
    """Store files one at a time; stop at the first failure."""

    stored: list[tuple[AttachmentUpload, str, str]] = []
    warnings: list[str] = []
    for upload in files:
        content_type = determine_content_type(upload.filename, upload.content_type)
        key = build_attachment_key(owner_id, upload.filename)
        try:
            stored_key = storage.put(key, upload.content, content_type)
        except (UpstreamError, OSError) as exc:
            attachment_upload_failures_total.inc()
            LOGGER.warning(
                "attachment_upload_failed",
                owner_id=owner_id,
                filename=upload.filename,
                stored=len(stored),
                skipped=len(files) - len(stored),
                error=str(exc),
            )
            warnings.append(UPLOAD_WARNING)
            break
        stored.append((upload, stored_key, content_type))
    return stored, warnings


def create_request(
    session: Session,
    owner: User | None,
    payload: RequestCreate | Mapping[str, Any],
    files: Iterable[AttachmentUpload] = (),
    *,
    storage: StorageBackend | None = None,
) -> CreateResult:
    """Validate, upload attachments and insert a new ``pending`` request."""

    owner = _require_viewer(owner)
    data = validate_payload(payload)

    uploads = list(files)
    stored: list[tuple[AttachmentUpload, str, str]] = []
    warnings: list[str] = []
    if uploads:
        stored, warnings = _upload_attachments(
            storage or get_attachment_storage(), owner.id, uploads
        )

    attachment_keys = list(data.attachments) + [key for _, key, _ in stored]
    benefit_request = BenefitRequest(
        user_id=owner.id,
        type=data.type,
        description=data.description,
        amount=data.amount,
        status=STATUS_PENDING,
        polo=data.polo,
        dependents=[dependent.model_dump() for dependent in data.dependents],
        attachments=attachment_keys,
    )
    session.add(benefit_request)
    session.flush()

    for upload, key, content_type in stored:
        session.add(
            Invoice(
                request_id=benefit_request.id,
                file_name=upload.filename,
                file_url=key,
                file_size=len(upload.content),
                mime_type=content_type,
            )
        )

    audit.record(
        session,
        "request_created",
        request_id=benefit_request.id,
        user_id=owner.id,
        new_values={
            "type": data.type,
            "amount": str(data.amount),
            "polo": data.polo,
            "status": STATUS_PENDING,
            "attachments": attachment_keys,
        },
    )
    session.commit()
    session.refresh(benefit_request)

    requests_created_total.labels(type=data.type).inc()
    LOGGER.info(
        "request_created",
        request_id=benefit_request.id,
        owner_id=owner.id,
        type=data.type,
        polo=data.polo,
        attachments=len(attachment_keys),
        warnings=len(warnings),
    )
    return CreateResult(request=benefit_request, warnings=warnings)


def get_attachments_of(session: Session, request_id: int) -> list[Invoice]:
    """Return the attachment metadata stored for a request."""

    return (
        session.query(Invoice)
        .filter(Invoice.request_id == request_id)
        .order_by(Invoice.uploaded_at.asc(), Invoice.id.asc())
        .all()
    )


def group_by_polo(
    requests: Iterable[BenefitRequest],
) -> dict[str, list[BenefitRequest]]:
    """Bucket requests by branch; rows without a known branch go to ``unassigned``."""

    grouped: dict[str, list[BenefitRequest]] = {polo: [] for polo in POLOS}
    grouped[UNASSIGNED_POLO] = []
    for benefit_request in requests:
        key = benefit_request.polo if benefit_request.polo in POLOS else UNASSIGNED_POLO
        grouped[key].append(benefit_request)
    return grouped


def _count_statuses(requests: Iterable[BenefitRequest]) -> StatusCounts:
    counts = {status: 0 for status in REQUEST_STATUSES}
    for benefit_request in requests:
        counts[benefit_request.status] = counts.get(benefit_request.status, 0) + 1
    return StatusCounts(**counts)


def summarize(requests: Sequence[BenefitRequest]) -> RequestSummary:
    """Return status counts overall and per branch."""

    return RequestSummary(
        total=len(requests),
        by_status=_count_statuses(requests),
        by_polo={
            polo: _count_statuses(bucket)
            for polo, bucket in group_by_polo(requests).items()
        },
    )


__all__ = [
    "AttachmentUpload",
    "CreateResult",
    "UPLOAD_WARNING",
    "create_request",
    "get_attachments_of",
    "get_request",
    "group_by_polo",
    "list_requests",
    "summarize",
    "validate_payload",
]
