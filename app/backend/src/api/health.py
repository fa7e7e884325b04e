"""Liveness, readiness and Prometheus endpoints."""

from __future__ import annotations

from typing import Annotated

import structlog
from fastapi import APIRouter, Depends, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.backend.src.core.config import get_settings
from app.backend.src.core.errors import UpstreamError
from app.backend.src.db import get_session_dependency

LOGGER = structlog.get_logger(__name__)

router = APIRouter(tags=["health"])


@router.get("/health/live")
def liveness() -> dict[str, str]:
    return {"status": "live"}


@router.get("/health/ready")
def readiness(
    session: Annotated[Session, Depends(get_session_dependency)],
) -> dict[str, str]:
    """Ping the database and report where attachments are stored."""

    try:
        session.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        LOGGER.error("readiness_database_failed", error=str(exc))
        raise UpstreamError("Banco de dados indisponível", details=str(exc)) from exc

    bucket = get_settings().aws_s3_bucket
    return {
        "status": "ready",
        "database": "ok",
        "storage": "local" if bucket.lower() == "local" else "s3",
    }


@router.get("/metrics")
def metrics() -> Response:
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)


__all__ = ["router"]
