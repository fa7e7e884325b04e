"""Audit trail helpers."""

from __future__ import annotations

from typing import Any

from sqlalchemy.orm import Session

from app.backend.src.models import AuditLog


def record(
    session: Session,
    action: str,
    *,
    request_id: int | None,
    user_id: int | None,
    old_values: dict[str, Any] | None = None,
    new_values: dict[str, Any] | None = None,
) -> AuditLog:
    """Add an audit row to the session; the caller commits."""

    entry = AuditLog(
        action=action,
        request_id=request_id,
        user_id=user_id,
        old_values=old_values,
        new_values=new_values,
    )
    session.add(entry)
    return entry


def list_for_request(session: Session, request_id: int) -> list[AuditLog]:
    return (
        session.query(AuditLog)
        .filter(AuditLog.request_id == request_id)
        .order_by(AuditLog.timestamp.asc(), AuditLog.id.asc())
        .all()
    )


__all__ = ["list_for_request", "record"]
