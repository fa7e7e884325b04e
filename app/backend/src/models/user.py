"""User model."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    Integer,
    String,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base
from .choices import POLOS, ROLE_MANAGER, ROLE_REQUESTER, USER_ROLES, sql_in


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(Base):
    """Represents a portal user (requester or manager)."""

    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint(
            f"role IN ({sql_in(USER_ROLES)})",
            name="ck_users_role_valid",
        ),
        CheckConstraint(
            f"(polo IS NULL) OR (polo IN ({sql_in(POLOS)}))",
            name="ck_users_polo_valid",
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    auth_id: Mapped[str | None] = mapped_column(
        String(255), unique=True, nullable=True, index=True
    )
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    role: Mapped[str] = mapped_column(
        String(50), nullable=False, default=ROLE_REQUESTER, server_default=ROLE_REQUESTER
    )
    polo: Mapped[str | None] = mapped_column(String(64), nullable=True, index=True)
    department: Mapped[str | None] = mapped_column(String(255), nullable=True)
    privacy_consent: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default="false"
    )
    privacy_consent_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False
    )

    requests: Mapped[list["BenefitRequest"]] = relationship(
        "BenefitRequest",
        back_populates="owner",
        foreign_keys="BenefitRequest.user_id",
    )
    comments: Mapped[list["Comment"]] = relationship("Comment", back_populates="author")

    @property
    def is_manager(self) -> bool:
        """Return ``True`` when the user may decide requests."""

        return self.role == ROLE_MANAGER
