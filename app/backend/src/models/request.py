"""Benefit request model."""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import (
    JSON,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base
from .choices import POLOS, REQUEST_STATUSES, REQUEST_TYPES, STATUS_PENDING, sql_in


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BenefitRequest(Base):
    """An aid request submitted by an employee."""

    __tablename__ = "requests"
    __table_args__ = (
        CheckConstraint(
            f"type IN ({sql_in(REQUEST_TYPES)})", name="ck_requests_type_valid"
        ),
        CheckConstraint(
            f"status IN ({sql_in(REQUEST_STATUSES)})", name="ck_requests_status_valid"
        ),
        CheckConstraint(
            f"(polo IS NULL) OR (polo IN ({sql_in(POLOS)}))",
            name="ck_requests_polo_valid",
        ),
        CheckConstraint("amount > 0", name="ck_requests_amount_positive"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    type: Mapped[str] = mapped_column(String(32), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    status: Mapped[str] = mapped_column(
        String(16), nullable=False, default=STATUS_PENDING, index=True
    )
    polo: Mapped[str | None] = mapped_column(String(64), nullable=True, index=True)
    dependents: Mapped[list[dict[str, str]]] = mapped_column(
        JSON, nullable=False, default=list
    )
    attachments: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    approved_by: Mapped[int | None] = mapped_column(ForeignKey("users.id"), nullable=True)
    approved_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    rejection_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, nullable=False, index=True
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False
    )

    owner: Mapped["User"] = relationship(
        "User", back_populates="requests", foreign_keys=[user_id]
    )
    invoices: Mapped[list["Invoice"]] = relationship(
        "Invoice",
        back_populates="request",
        cascade="all, delete-orphan",
        order_by="Invoice.uploaded_at",
    )
    comments: Mapped[list["Comment"]] = relationship(
        "Comment",
        back_populates="request",
        cascade="all, delete-orphan",
        order_by="Comment.created_at",
    )


__all__ = ["BenefitRequest"]
