"""Status transitions for benefit requests.

A request starts ``pending`` and is decided exactly once, becoming either
``approved`` or ``rejected``. The decision is persisted with a single
conditional UPDATE, so a request that was already decided (including by a
concurrent reviewer) is refused with :class:`ConflictError` instead of being
overwritten. After the commit the requester is notified; notification failures
are logged and never undo the decision.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timezone

import structlog
from sqlalchemy import update
from sqlalchemy.orm import Session, selectinload

from app.backend.src.core.errors import (
    AccessError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from app.backend.src.models import BenefitRequest, User
from app.backend.src.models.choices import (
    STATUS_PENDING,
    STATUS_REJECTED,
    TERMINAL_STATUSES,
)
from app.backend.src.services import audit, notifications
from app.backend.src.services.metrics import (
    notification_failures_total,
    request_transitions_total,
)

LOGGER = structlog.get_logger(__name__)

Notifier = Callable[[int, str, str | None], object]


def _validate_transition(
    reviewer: User | None, target_status: str, rejection_reason: str | None
) -> str | None:
    if reviewer is None:
        raise AccessError("Usuário não autenticado", authenticated=False)
    if not reviewer.is_manager:
        raise AccessError("Apenas gestoras podem aprovar ou recusar solicitações")

    if target_status not in TERMINAL_STATUSES:
        raise ValidationError(
            "Status inválido",
            details={"status": target_status, "allowed": sorted(TERMINAL_STATUSES)},
        )

    reason = (rejection_reason or "").strip() or None
    if target_status == STATUS_REJECTED and reason is None:
        raise ValidationError("Motivo obrigatório", details="Informe o motivo da recusa.")
    return reason


def _notify(
    notifier: Notifier, request_id: int, action: str, rejection_reason: str | None
) -> None:
    try:
        notifier(request_id, action, rejection_reason)
    except Exception as exc:
        notification_failures_total.labels(stage="dispatch").inc()
        LOGGER.warning(
            "notification_dispatch_failed",
            request_id=request_id,
            action=action,
            error=str(exc),
        )
        return
    LOGGER.info("notification_dispatched", request_id=request_id, action=action)


def transition(
    session: Session,
    request_id: int,
    target_status: str,
    *,
    reviewer: User | None,
    rejection_reason: str | None = None,
    notifier: Notifier | None = None,
) -> BenefitRequest:
    """Approve or reject a pending request on behalf of ``reviewer``."""

    reason = _validate_transition(reviewer, target_status, rejection_reason)

    benefit_request = session.get(BenefitRequest, request_id)
    if benefit_request is None:
        raise NotFoundError(
            "Solicitação não encontrada", details={"request_id": request_id}
        )
    previous_status = benefit_request.status
    if previous_status != STATUS_PENDING:
        raise ConflictError(
            "Solicitação já processada",
            details={"request_id": request_id, "status": previous_status},
        )

    now = datetime.now(timezone.utc)
    values = {
        "status": target_status,
        "approved_at": now,
        "approved_by": reviewer.id,
        "rejection_reason": reason if target_status == STATUS_REJECTED else None,
        "updated_at": now,
    }
    result = session.execute(
        update(BenefitRequest)
        .where(
            BenefitRequest.id == request_id,
            BenefitRequest.status == STATUS_PENDING,
        )
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        session.rollback()
        raise ConflictError(
            "Solicitação já processada", details={"request_id": request_id}
        )

    audit.record(
        session,
        f"request_{target_status}",
        request_id=request_id,
        user_id=reviewer.id,
        old_values={"status": previous_status},
        new_values={
            "status": target_status,
            "approved_at": now.isoformat(),
            "rejection_reason": values["rejection_reason"],
        },
    )
    session.commit()

    session.expire(benefit_request)
    benefit_request = (
        session.query(BenefitRequest)
        .options(selectinload(BenefitRequest.owner))
        .filter(BenefitRequest.id == request_id)
        .one()
    )

    request_transitions_total.labels(status=target_status).inc()
    LOGGER.info(
        "request_transitioned",
        request_id=request_id,
        reviewer_id=reviewer.id,
        status=target_status,
    )

    _notify(
        notifier or notifications.dispatch_decision_notification,
        request_id,
        target_status,
        values["rejection_reason"],
    )
    return benefit_request


__all__ = ["Notifier", "transition"]
