"""Benefit request schemas."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .user import PoloName, RequesterSummary

RequestType = Literal["psicológico", "médico", "odontológico", "fisioterapia", "outros"]
RequestStatus = Literal["pending", "approved", "rejected"]

MIN_DESCRIPTION_LENGTH = 10
MIN_DEPENDENT_NAME_LENGTH = 2


class Dependent(BaseModel):
    """A family member covered by the request."""

    name: str
    relationship: str

    @field_validator("name")
    @classmethod
    def _validate_name(cls, value: str) -> str:
        value = value.strip()
        if len(value) < MIN_DEPENDENT_NAME_LENGTH:
            raise ValueError("Nome do dependente deve ter pelo menos 2 caracteres")
        return value

    @field_validator("relationship")
    @classmethod
    def _validate_relationship(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Selecione o parentesco")
        return value


class RequestCreate(BaseModel):
    """Payload accepted when an employee submits a request."""

    type: RequestType
    description: str
    amount: Decimal = Field(gt=0, max_digits=12, decimal_places=2)
    polo: PoloName
    dependents: list[Dependent] = Field(default_factory=list)
    attachments: list[str] = Field(default_factory=list)

    @field_validator("description")
    @classmethod
    def _validate_description(cls, value: str) -> str:
        value = value.strip()
        if len(value) < MIN_DESCRIPTION_LENGTH:
            raise ValueError("Descrição deve ter pelo menos 10 caracteres")
        return value

    @field_validator("dependents", mode="before")
    @classmethod
    def _drop_blank_dependents(cls, value: Any) -> Any:
        if value is None:
            return []
        if not isinstance(value, list):
            return value
        kept = []
        for entry in value:
            if isinstance(entry, dict):
                name = str(entry.get("name") or "").strip()
                relationship = str(entry.get("relationship") or "").strip()
                if not name and not relationship:
                    continue
            kept.append(entry)
        return kept

    @field_validator("attachments", mode="before")
    @classmethod
    def _default_attachments(cls, value: Any) -> Any:
        return [] if value is None else value


class RequestRead(BaseModel):
    """Serialized request, with the owner's public profile when loaded."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    type: RequestType
    description: str
    amount: float
    status: RequestStatus
    polo: PoloName | None
    dependents: list[Dependent]
    attachments: list[str]
    approved_by: int | None
    approved_at: datetime | None
    rejection_reason: str | None
    created_at: datetime
    updated_at: datetime
    requester: RequesterSummary | None = Field(default=None, validation_alias="owner")


class RequestCreateResponse(BaseModel):
    """Created request plus any non-fatal attachment warnings."""

    request: RequestRead
    warnings: list[str] = Field(default_factory=list)


class StatusCounts(BaseModel):
    pending: int = 0
    approved: int = 0
    rejected: int = 0


class RequestSummary(BaseModel):
    """Dashboard aggregates for managers."""

    total: int
    by_status: StatusCounts
    by_polo: dict[str, StatusCounts]


class StatusUpdate(BaseModel):
    """Body accepted by the request management endpoint."""

    model_config = ConfigDict(populate_by_name=True)

    request_id: int = Field(alias="requestId")
    status: str
    rejection_reason: str | None = Field(default=None, alias="rejectionReason")


class StatusUpdateResponse(BaseModel):
    success: bool
    data: RequestRead
    message: str
