"""Service layer functions for user provisioning and profile edits."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

import structlog
from sqlalchemy.orm import Session

from app.backend.src.core.errors import NotFoundError, ValidationError
from app.backend.src.models import User
from app.backend.src.models.choices import POLOS, ROLE_REQUESTER
from app.backend.src.schemas.user import UserProfileUpdate

LOGGER = structlog.get_logger(__name__)


def _get_user_or_404(session: Session, user_id: int) -> User:
    user = session.get(User, user_id)
    if not user:
        raise NotFoundError("Usuário não encontrado", details={"user_id": user_id})
    return user


def provision_user(session: Session, claims: dict[str, Any]) -> User | None:
    """Return the user for verified token claims, creating one on first login.

    Lookup order is the token subject, then the e-mail address (which links the
    subject to a pre-provisioned account). New accounts are always requesters.
    """

    subject = claims.get("sub")
    if not subject:
        return None

    user = session.query(User).filter(User.auth_id == subject).one_or_none()
    if user:
        return user

    email = claims.get("email")
    if not email:
        return None

    user = session.query(User).filter(User.email == email).one_or_none()
    if user:
        if user.auth_id != subject:
            user.auth_id = subject
            session.add(user)
            session.commit()
            LOGGER.info("user_auth_linked", user_id=user.id)
        return user

    polo = claims.get("polo")
    display_name = (claims.get("name") or claims.get("nickname") or email).strip()
    user = User(
        auth_id=subject,
        email=email,
        name=display_name,
        role=ROLE_REQUESTER,
        polo=polo if polo in POLOS else None,
        department=claims.get("department"),
    )
    session.add(user)
    session.commit()
    LOGGER.info("user_provisioned", user_id=user.id, role=user.role, polo=user.polo)
    return user


def update_profile(session: Session, user_id: int, payload: UserProfileUpdate) -> User:
    """Apply profile edits. Role never changes and polo may only be set once."""

    user = _get_user_or_404(session, user_id)
    changes = payload.model_dump(exclude_unset=True)

    if "name" in changes:
        if not changes["name"]:
            raise ValidationError("Nome não pode ser vazio")
        user.name = changes["name"]
    if "phone" in changes:
        user.phone = changes["phone"]
    if "department" in changes:
        user.department = changes["department"]
    if changes.get("polo") and changes["polo"] != user.polo:
        if user.polo is not None:
            raise ValidationError(
                "O polo já foi definido e não pode ser alterado",
                details={"polo": user.polo},
            )
        user.polo = changes["polo"]
    if "privacy_consent" in changes and changes["privacy_consent"] is not None:
        consent = bool(changes["privacy_consent"])
        if consent and not user.privacy_consent:
            user.privacy_consent_date = datetime.now(timezone.utc)
        elif not consent:
            user.privacy_consent_date = None
        user.privacy_consent = consent

    session.add(user)
    session.commit()
    session.refresh(user)
    LOGGER.info("user_profile_updated", user_id=user.id, fields=sorted(changes))
    return user


__all__ = ["provision_user", "update_profile"]
