"""Pydantic schemas for users."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, field_validator

PoloName = Literal["3M Sumaré", "Manaus", "Ribeirão Preto", "Itapetininga"]
RoleName = Literal["solicitante", "gestora"]


class UserRead(BaseModel):
    """Public user representation."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    name: str
    role: RoleName
    polo: PoloName | None
    department: str | None
    phone: str | None
    privacy_consent: bool
    privacy_consent_date: datetime | None


class RequesterSummary(BaseModel):
    """Owner fields joined onto requests for managers."""

    model_config = ConfigDict(from_attributes=True)

    name: str
    email: str
    department: str | None
    polo: PoloName | None


class UserProfileUpdate(BaseModel):
    """Fields a user may edit on their own profile."""

    name: str | None = None
    phone: str | None = None
    department: str | None = None
    polo: PoloName | None = None
    privacy_consent: bool | None = None

    @field_validator("name", "phone", "department")
    @classmethod
    def _strip(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return value.strip() or None
