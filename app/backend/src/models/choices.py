"""Enumerated values shared by models, schemas and services."""

from __future__ import annotations

POLOS: tuple[str, ...] = ("3M Sumaré", "Manaus", "Ribeirão Preto", "Itapetininga")
UNASSIGNED_POLO = "unassigned"

REQUEST_TYPES: tuple[str, ...] = (
    "psicológico",
    "médico",
    "odontológico",
    "fisioterapia",
    "outros",
)

STATUS_PENDING = "pending"
STATUS_APPROVED = "approved"
STATUS_REJECTED = "rejected"
REQUEST_STATUSES: tuple[str, ...] = (STATUS_PENDING, STATUS_APPROVED, STATUS_REJECTED)
TERMINAL_STATUSES: frozenset[str] = frozenset({STATUS_APPROVED, STATUS_REJECTED})

ROLE_REQUESTER = "solicitante"
ROLE_MANAGER = "gestora"
USER_ROLES: tuple[str, ...] = (ROLE_REQUESTER, ROLE_MANAGER)


def sql_in(values: tuple[str, ...]) -> str:
    """Return a quoted SQL ``IN`` list for check constraints."""

    return ", ".join("'" + value.replace("'", "''") + "'" for value in values)


__all__ = [
    "POLOS",
    "REQUEST_STATUSES",
    "REQUEST_TYPES",
    "ROLE_MANAGER",
    "ROLE_REQUESTER",
    "STATUS_APPROVED",
    "STATUS_PENDING",
    "STATUS_REJECTED",
    "TERMINAL_STATUSES",
    "UNASSIGNED_POLO",
    "USER_ROLES",
    "sql_in",
]
