"""Utilities for seeding development data."""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.orm import Session

from app.backend.src.models import User
from app.backend.src.models.choices import POLOS, ROLE_MANAGER, ROLE_REQUESTER

DEFAULT_REQUESTER_EMAIL = "solicitante@ombroamigo.example.com"
DEFAULT_REQUESTER_NAME = "Solicitante Demo"
DEFAULT_MANAGER_EMAIL = "gestora@ombroamigo.example.com"
DEFAULT_MANAGER_NAME = "Gestora Demo"
DEFAULT_POLO = POLOS[0]


@dataclass
class SeedResult:
    """The seeded user and whether it was created or updated."""

    user: User
    created: bool
    updated: bool


def ensure_user(
    session: Session,
    *,
    email: str,
    name: str,
    role: str,
    polo: str | None = DEFAULT_POLO,
    department: str | None = None,
    auth_id: str | None = None,
) -> SeedResult:
    """Create or update a user so it matches the given provisioning data.

    This is the only place a role is assigned after signup; the API never
    changes roles.
    """

    if role not in (ROLE_REQUESTER, ROLE_MANAGER):
        raise ValueError(f"Unknown role: {role}")

    user = session.query(User).filter(User.email == email).one_or_none()
    if user is None:
        user = User(
            email=email,
            name=name,
            role=role,
            polo=polo,
            department=department,
            auth_id=auth_id,
        )
        session.add(user)
        session.flush()
        return SeedResult(user=user, created=True, updated=False)

    updated = False
    for attribute, value in (
        ("name", name),
        ("role", role),
        ("polo", polo),
        ("department", department),
    ):
        if value is not None and getattr(user, attribute) != value:
            setattr(user, attribute, value)
            updated = True
    if auth_id and user.auth_id != auth_id:
        user.auth_id = auth_id
        updated = True
    if updated:
        session.flush()
    return SeedResult(user=user, created=False, updated=updated)


def seed_development_users(
    session: Session,
    *,
    requester_auth_id: str | None = None,
    manager_auth_id: str | None = None,
) -> tuple[SeedResult, SeedResult]:
    """Ensure a demo requester and a demo manager exist."""

    requester = ensure_user(
        session,
        email=DEFAULT_REQUESTER_EMAIL,
        name=DEFAULT_REQUESTER_NAME,
        role=ROLE_REQUESTER,
        department="Operações",
        auth_id=requester_auth_id,
    )
    manager = ensure_user(
        session,
        email=DEFAULT_MANAGER_EMAIL,
        name=DEFAULT_MANAGER_NAME,
        role=ROLE_MANAGER,
        department="Recursos Humanos",
        auth_id=manager_auth_id,
    )
    return requester, manager


__all__ = ["SeedResult", "ensure_user", "seed_development_users"]
