"""Comments left on benefit requests."""

from __future__ import annotations

import structlog
from sqlalchemy.orm import Session

from app.backend.src.core.errors import AccessError, ValidationError
from app.backend.src.models import Comment, User
from app.backend.src.schemas.comment import CommentCreate
from app.backend.src.services.requests import get_request

LOGGER = structlog.get_logger(__name__)


def list_comments(session: Session, viewer: User | None, request_id: int) -> list[Comment]:
    """Return comments on a request; internal notes are hidden from requesters."""

    benefit_request = get_request(session, viewer, request_id)
    query = session.query(Comment).filter(Comment.request_id == benefit_request.id)
    if not viewer.is_manager:
        query = query.filter(Comment.is_internal.is_(False))
    return query.order_by(Comment.created_at.asc(), Comment.id.asc()).all()


def add_comment(
    session: Session, viewer: User | None, request_id: int, payload: CommentCreate
) -> Comment:
    benefit_request = get_request(session, viewer, request_id)
    if payload.is_internal and not viewer.is_manager:
        raise AccessError("Apenas gestoras podem registrar comentários internos")

    text = payload.comment.strip()
    if not text:
        raise ValidationError("Comentário não pode ser vazio")

    comment = Comment(
        request_id=benefit_request.id,
        user_id=viewer.id,
        comment=text,
        is_internal=payload.is_internal,
    )
    session.add(comment)
    session.commit()
    session.refresh(comment)
    LOGGER.info(
        "comment_added",
        request_id=benefit_request.id,
        user_id=viewer.id,
        internal=comment.is_internal,
    )
    return comment


__all__ = ["add_comment", "list_comments"]
