"""Celery tasks for decision notifications."""

from __future__ import annotations

from typing import Any

import structlog

from app.backend.src.core.errors import PortalError
from app.backend.src.db import session_scope
from app.backend.src.services import notifications
from app.backend.src.services.metrics import notification_failures_total
from .worker import celery

LOGGER = structlog.get_logger(__name__)


@celery.task(name="tasks.send_decision_email")
def send_decision_email(
    request_id: int,
    action: str,
    rejection_reason: str | None = None,
) -> dict[str, Any]:
    """Render and send the decision e-mail for a request. Never retried."""

    try:
        with session_scope() as session:
            email = notifications.deliver_decision_email(
                session, request_id, action, rejection_reason
            )
    except PortalError as exc:
        notification_failures_total.labels(stage="delivery").inc()
        LOGGER.error(
            "decision_email_failed",
            request_id=request_id,
            action=action,
            error=exc.message,
        )
        raise

    LOGGER.info("decision_email_delivered", request_id=request_id, action=action)
    return {"request_id": request_id, "action": action, "recipient": email.recipient}


__all__ = ["send_decision_email"]
