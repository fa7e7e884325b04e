"""Service-level tests for user provisioning, profile edits and seeding."""

from __future__ import annotations

import os
import sys
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parents[4]))

os.environ.setdefault("DATABASE_URL", "sqlite:///./test_ombro_amigo.db")

import pytest

from app.backend.src.core.errors import NotFoundError, ValidationError
from app.backend.src.db import Base, get_engine, session_scope
from app.backend.src.models import User
from app.backend.src.schemas.user import UserProfileUpdate
from app.backend.src.services import seed
from app.backend.src.services import users as user_service


@pytest.fixture(autouse=True)
def setup_database() -> None:  # type: ignore[no-untyped-def]
    engine = get_engine()
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


def test_first_login_provisions_a_requester() -> None:
    with session_scope() as session:
        user = user_service.provision_user(
            session,
            {"sub": "auth|123", "email": "nova@example.com", "name": "Nova", "polo": "Manaus"},
        )
        assert user is not None
        user_id = user.id

    with session_scope() as session:
        stored = session.get(User, user_id)
        assert stored.role == "solicitante"
        assert stored.auth_id == "auth|123"
        assert stored.polo == "Manaus"
        assert stored.name == "Nova"


def test_provisioning_ignores_unknown_polo_and_role_claims() -> None:
    with session_scope() as session:
        user = user_service.provision_user(
            session,
            {
                "sub": "auth|999",
                "email": "x@example.com",
                "polo": "Curitiba",
                "role": "gestora",
            },
        )
        assert user.polo is None
        assert user.role == "solicitante"
        assert user.name == "x@example.com"


def test_returning_user_is_found_by_subject() -> None:
    with session_scope() as session:
        first = user_service.provision_user(session, {"sub": "auth|1", "email": "a@example.com"})
        again = user_service.provision_user(session, {"sub": "auth|1"})
        assert again.id == first.id
        assert session.query(User).count() == 1


def test_seeded_user_is_linked_by_email() -> None:
    with session_scope() as session:
        seeded = seed.ensure_user(
            session, email="gestora@example.com", name="Carla", role="gestora"
        ).user
        seeded_id = seeded.id

    with session_scope() as session:
        linked = user_service.provision_user(
            session, {"sub": "auth|carla", "email": "gestora@example.com"}
        )
        assert linked.id == seeded_id
        assert linked.role == "gestora"
        assert linked.auth_id == "auth|carla"


@pytest.mark.parametrize("claims", [{}, {"email": "a@example.com"}, {"sub": "auth|2"}])
def test_incomplete_claims_resolve_to_nobody(claims: dict[str, str]) -> None:
    with session_scope() as session:
        assert user_service.provision_user(session, claims) is None
        assert session.query(User).count() == 0


def test_polo_can_only_be_chosen_once() -> None:
    with session_scope() as session:
        user = User(email="ana@example.com", name="Ana", role="solicitante")
        session.add(user)
        session.flush()

        updated = user_service.update_profile(
            session, user.id, UserProfileUpdate(polo="Itapetininga")
        )
        assert updated.polo == "Itapetininga"

        same = user_service.update_profile(
            session, user.id, UserProfileUpdate(polo="Itapetininga")
        )
        assert same.polo == "Itapetininga"

        with pytest.raises(ValidationError):
            user_service.update_profile(session, user.id, UserProfileUpdate(polo="Manaus"))


def test_privacy_consent_sets_and_clears_date() -> None:
    with session_scope() as session:
        user = User(email="ana@example.com", name="Ana", role="solicitante")
        session.add(user)
        session.flush()

        granted = user_service.update_profile(
            session, user.id, UserProfileUpdate(privacy_consent=True)
        )
        assert granted.privacy_consent is True
        assert granted.privacy_consent_date is not None

        revoked = user_service.update_profile(
            session, user.id, UserProfileUpdate(privacy_consent=False)
        )
        assert revoked.privacy_consent is False
        assert revoked.privacy_consent_date is None


def test_blank_name_is_rejected() -> None:
    with session_scope() as session:
        user = User(email="ana@example.com", name="Ana", role="solicitante")
        session.add(user)
        session.flush()

        with pytest.raises(ValidationError):
            user_service.update_profile(session, user.id, UserProfileUpdate(name="   "))


def test_update_unknown_user() -> None:
    with session_scope() as session:
        with pytest.raises(NotFoundError):
            user_service.update_profile(session, 404, UserProfileUpdate(phone="123"))


def test_seed_development_users_is_idempotent() -> None:
    with session_scope() as session:
        first = seed.seed_development_users(session)
    with session_scope() as session:
        second = seed.seed_development_users(session)
        roles = sorted(user.role for user in session.query(User).all())

    assert all(result.created for result in first)
    assert not any(result.created or result.updated for result in second)
    assert roles == ["gestora", "solicitante"]


def test_ensure_user_rejects_unknown_role() -> None:
    with session_scope() as session:
        with pytest.raises(ValueError):
            seed.ensure_user(session, email="z@example.com", name="Z", role="admin")
