"""Seed the development database with a demo solicitante and gestora."""

import os

from app.backend.src.db import create_all, session_scope
from app.backend.src.services.seed import seed_development_users


def _status(result) -> str:
    if result.created:
        return "created"
    if result.updated:
        return "updated"
    return "unchanged"


def main() -> None:
    """Create tables (if needed) and ensure the demo users exist."""

    create_all()

    with session_scope() as session:
        requester, manager = seed_development_users(
            session,
            requester_auth_id=os.environ.get("DEMO_REQUESTER_SUB"),
            manager_auth_id=os.environ.get("DEMO_MANAGER_SUB"),
        )

        print("✅ Development data ready!")
        for label, result in (("Solicitante", requester), ("Gestora", manager)):
            user = result.user
            print(
                f"{label} ({_status(result)}): {user.name} <{user.email}> "
                f"[id={user.id}, role={user.role}, polo={user.polo}]"
            )
        print()
        print("Set DEMO_REQUESTER_SUB / DEMO_MANAGER_SUB to link identity provider subjects.")


if __name__ == "__main__":
    main()
