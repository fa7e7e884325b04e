"""Unit tests for the benefit request repository."""

from __future__ import annotations

import os
import re
import sys
from decimal import Decimal
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parents[4]))

os.environ.setdefault("DATABASE_URL", "sqlite:///./test_ombro_amigo.db")
os.environ.setdefault("AWS_S3_BUCKET", "local")
os.environ.setdefault("LOCAL_STORAGE_PATH", "/tmp/ombro-amigo-tests")
os.environ.setdefault("NOTIFICATIONS_ENABLED", "false")

import pytest

from app.backend.src.core.errors import (
    AccessError,
    NotFoundError,
    UpstreamError,
    ValidationError,
)
from app.backend.src.core.storage import InMemoryStorage
from app.backend.src.db import Base, get_engine, session_scope
from app.backend.src.models import AuditLog, BenefitRequest, Invoice, User
from app.backend.src.models.choices import POLOS, UNASSIGNED_POLO
from app.backend.src.services import requests as request_service
from app.backend.src.services.requests import AttachmentUpload


class FlakyStorage(InMemoryStorage):
    """Fails on the n-th upload (1-based)."""

    def __init__(self, fail_on: int) -> None:
        super().__init__()
        self.fail_on = fail_on
        self.attempts = 0

    def put(self, key: str, data: bytes, content_type: str) -> str:
        self.attempts += 1
        if self.attempts == self.fail_on:
            raise UpstreamError("storage offline")
        return super().put(key, data, content_type)


@pytest.fixture(autouse=True)
def setup_database() -> None:  # type: ignore[no-untyped-def]
    engine = get_engine()
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def users() -> dict[str, User]:
    with session_scope() as session:
        seeded = {
            "ana": User(email="ana@example.com", name="Ana", role="solicitante", polo="Manaus"),
            "bruno": User(
                email="bruno@example.com", name="Bruno", role="solicitante", polo="Itapetininga"
            ),
            "gestora": User(
                email="gestora@example.com", name="Carla", role="gestora", polo="3M Sumaré"
            ),
        }
        session.add_all(seeded.values())
    return seeded


def _payload(**overrides: object) -> dict[str, object]:
    payload: dict[str, object] = {
        "type": "médico",
        "description": "Consulta com cardiologista",
        "amount": "350.00",
        "polo": "Manaus",
    }
    payload.update(overrides)
    return payload


def _create(owner: User, **overrides: object) -> BenefitRequest:
    with session_scope() as session:
        return request_service.create_request(session, owner, _payload(**overrides)).request


def test_create_request_is_always_pending(users: dict[str, User]) -> None:
    with session_scope() as session:
        result = request_service.create_request(
            session,
            users["ana"],
            _payload(status="approved", approved_by=users["gestora"].id),
        )

    assert result.request.status == "pending"
    assert result.request.approved_by is None
    assert result.request.approved_at is None
    assert result.request.amount == Decimal("350.00")
    assert result.warnings == []


@pytest.mark.parametrize(
    ("overrides", "field"),
    [
        ({"description": "curta"}, "description"),
        ({"description": "          x         "}, "description"),
        ({"amount": "0"}, "amount"),
        ({"amount": "-10"}, "amount"),
        ({"amount": "10.999"}, "amount"),
        ({"polo": "Curitiba"}, "polo"),
        ({"type": "estético"}, "type"),
        ({"type": None}, "type"),
    ],
)
def test_create_request_rejects_invalid_payload(
    users: dict[str, User], overrides: dict[str, object], field: str
) -> None:
    with session_scope() as session:
        with pytest.raises(ValidationError) as exc_info:
            request_service.create_request(session, users["ana"], _payload(**overrides))

    assert any(detail["field"].startswith(field) for detail in exc_info.value.details)
    with session_scope() as session:
        assert session.query(BenefitRequest).count() == 0


def test_short_description_reports_readable_message(users: dict[str, User]) -> None:
    with session_scope() as session:
        with pytest.raises(ValidationError) as exc_info:
            request_service.create_request(session, users["ana"], _payload(description="curta"))

    assert exc_info.value.message == "Descrição deve ter pelo menos 10 caracteres"


def test_create_request_requires_an_owner() -> None:
    with session_scope() as session:
        with pytest.raises(AccessError) as exc_info:
            request_service.create_request(session, None, _payload())

    assert exc_info.value.status_code == 401


def test_blank_dependents_are_dropped(users: dict[str, User]) -> None:
    created = _create(
        users["ana"],
        dependents=[
            {"name": "Lucas", "relationship": "filho"},
            {"name": "", "relationship": ""},
            {"name": "  ", "relationship": " "},
        ],
    )

    assert created.dependents == [{"name": "Lucas", "relationship": "filho"}]


def test_dependent_without_relationship_is_invalid(users: dict[str, User]) -> None:
    with session_scope() as session:
        with pytest.raises(ValidationError):
            request_service.create_request(
                session,
                users["ana"],
                _payload(dependents=[{"name": "Lucas", "relationship": ""}]),
            )


def test_create_request_uploads_files_and_records_invoices(users: dict[str, User]) -> None:
    storage = InMemoryStorage()
    files = [
        AttachmentUpload("nota fiscal (1).pdf", b"%PDF-1.4 a", "application/pdf"),
        AttachmentUpload("recibo.png", b"\x89PNG"),
    ]

    with session_scope() as session:
        result = request_service.create_request(
            session, users["ana"], _payload(), files, storage=storage
        )
        request_id = result.request.id

    owner_id = users["ana"].id
    assert result.warnings == []
    assert len(result.request.attachments) == 2
    assert re.fullmatch(rf"{owner_id}/\d+-notafiscal1\.pdf", result.request.attachments[0])
    assert re.fullmatch(rf"{owner_id}/\d+-recibo\.png", result.request.attachments[1])
    assert storage.read(result.request.attachments[0]) == b"%PDF-1.4 a"

    with session_scope() as session:
        invoices = request_service.get_attachments_of(session, request_id)

    assert [invoice.file_name for invoice in invoices] == ["nota fiscal (1).pdf", "recibo.png"]
    assert invoices[0].file_size == len(b"%PDF-1.4 a")
    assert invoices[0].mime_type == "application/pdf"
    assert invoices[1].mime_type == "image/png"


def test_failed_upload_is_demoted_to_warning(users: dict[str, User]) -> None:
    storage = FlakyStorage(fail_on=2)
    files = [
        AttachmentUpload("a.pdf", b"a"),
        AttachmentUpload("b.pdf", b"b"),
        AttachmentUpload("c.pdf", b"c"),
    ]

    with session_scope() as session:
        result = request_service.create_request(
            session, users["ana"], _payload(), files, storage=storage
        )
        request_id = result.request.id

    assert result.request.status == "pending"
    assert result.warnings == [request_service.UPLOAD_WARNING]
    assert len(result.request.attachments) == 1
    assert result.request.attachments[0].endswith("-a.pdf")
    assert storage.attempts == 2

    with session_scope() as session:
        assert session.query(Invoice).filter(Invoice.request_id == request_id).count() == 1


def test_validation_happens_before_any_upload(users: dict[str, User]) -> None:
    storage = InMemoryStorage()

    with session_scope() as session:
        with pytest.raises(ValidationError):
            request_service.create_request(
                session,
                users["ana"],
                _payload(amount="0"),
                [AttachmentUpload("a.pdf", b"a")],
                storage=storage,
            )

    assert storage.keys() == []


def test_create_request_writes_audit_log(users: dict[str, User]) -> None:
    created = _create(users["ana"])

    with session_scope() as session:
        entries = session.query(AuditLog).filter(AuditLog.request_id == created.id).all()

    assert [entry.action for entry in entries] == ["request_created"]
    assert entries[0].user_id == users["ana"].id
    assert entries[0].new_values["status"] == "pending"


def test_requester_only_lists_own_requests(users: dict[str, User]) -> None:
    _create(users["ana"])
    _create(users["bruno"], polo="Itapetininga")
    _create(users["ana"], type="odontológico")

    with session_scope() as session:
        rows = request_service.list_requests(session, users["ana"])

    assert len(rows) == 2
    assert {row.user_id for row in rows} == {users["ana"].id}


def test_manager_lists_all_requests_newest_first_with_owner(users: dict[str, User]) -> None:
    first = _create(users["ana"])
    second = _create(users["bruno"], polo="Itapetininga")
    third = _create(users["ana"], type="fisioterapia")

    with session_scope() as session:
        rows = request_service.list_requests(session, users["gestora"])
        owners = [(row.owner.name, row.owner.email) for row in rows]

    assert [row.id for row in rows] == [third.id, second.id, first.id]
    assert owners == [
        ("Ana", "ana@example.com"),
        ("Bruno", "bruno@example.com"),
        ("Ana", "ana@example.com"),
    ]


def test_list_requests_requires_a_viewer() -> None:
    with session_scope() as session:
        with pytest.raises(AccessError):
            request_service.list_requests(session, None)


def test_polo_filters_partition_the_manager_list(users: dict[str, User]) -> None:
    _create(users["ana"], polo="Manaus")
    _create(users["ana"], polo="Manaus")
    _create(users["bruno"], polo="Itapetininga")
    _create(users["bruno"], polo="Ribeirão Preto")
    with session_scope() as session:
        orphan = session.get(BenefitRequest, _create(users["bruno"]).id)
        orphan.polo = None

    with session_scope() as session:
        everything = {row.id for row in request_service.list_requests(session, users["gestora"])}
        buckets = {
            polo: {
                row.id
                for row in request_service.list_requests(session, users["gestora"], polo=polo)
            }
            for polo in (*POLOS, UNASSIGNED_POLO)
        }
        manaus = request_service.list_requests(session, users["gestora"], polo="Manaus")

    assert all(row.polo == "Manaus" for row in manaus)
    assert len(manaus) == 2
    assert len(buckets[UNASSIGNED_POLO]) == 1
    assert set().union(*buckets.values()) == everything
    assert sum(len(ids) for ids in buckets.values()) == len(everything)


def test_unknown_polo_filter_is_rejected(users: dict[str, User]) -> None:
    with session_scope() as session:
        with pytest.raises(ValidationError):
            request_service.list_requests(session, users["gestora"], polo="Curitiba")


def test_status_filter(users: dict[str, User]) -> None:
    created = _create(users["ana"])
    _create(users["ana"])
    with session_scope() as session:
        session.get(BenefitRequest, created.id).status = "approved"

    with session_scope() as session:
        approved = request_service.list_requests(session, users["gestora"], status="approved")
        pending = request_service.list_requests(session, users["ana"], status="pending")

    assert [row.id for row in approved] == [created.id]
    assert len(pending) == 1


def test_get_request_enforces_ownership(users: dict[str, User]) -> None:
    created = _create(users["ana"])

    with session_scope() as session:
        assert request_service.get_request(session, users["ana"], created.id).id == created.id
        assert request_service.get_request(session, users["gestora"], created.id).id == created.id
        with pytest.raises(AccessError):
            request_service.get_request(session, users["bruno"], created.id)
        with pytest.raises(NotFoundError):
            request_service.get_request(session, users["ana"], 999)


def test_summarize_counts_statuses_per_polo(users: dict[str, User]) -> None:
    approved = _create(users["ana"], polo="Manaus")
    _create(users["ana"], polo="Manaus")
    _create(users["bruno"], polo="Itapetininga")
    with session_scope() as session:
        session.get(BenefitRequest, approved.id).status = "approved"

    with session_scope() as session:
        summary = request_service.summarize(
            request_service.list_requests(session, users["gestora"])
        )

    assert summary.total == 3
    assert summary.by_status.pending == 2
    assert summary.by_status.approved == 1
    assert summary.by_polo["Manaus"].approved == 1
    assert summary.by_polo["Manaus"].pending == 1
    assert summary.by_polo["Itapetininga"].pending == 1
    assert summary.by_polo[UNASSIGNED_POLO].pending == 0
