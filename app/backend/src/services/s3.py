"""S3 (or local filesystem) storage for request attachments."""

from __future__ import annotations

import mimetypes
import re
import urllib.parse
from datetime import datetime, timezone
from pathlib import Path

import boto3
import structlog
from botocore.client import BaseClient
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError, NoCredentialsError

from app.backend.src.core.config import get_settings
from app.backend.src.core.errors import UpstreamError

LOGGER = structlog.get_logger(__name__)

ATTACHMENTS_PREFIX = "request-attachments"


def _local_bucket_root() -> Path:
    settings = get_settings()
    root = Path(settings.local_storage_path)
    root.mkdir(parents=True, exist_ok=True)
    return root


def _is_local_mode() -> bool:
    return get_settings().aws_s3_bucket.lower() == "local"


def _client() -> BaseClient:
    settings = get_settings()
    client_kwargs: dict[str, object] = {
        "config": Config(
            signature_version="s3v4",
            s3={"addressing_style": "virtual"},
        ),
        "region_name": settings.aws_region,
    }

    if settings.aws_access_key_id and settings.aws_secret_access_key:
        client_kwargs["aws_access_key_id"] = settings.aws_access_key_id
        client_kwargs["aws_secret_access_key"] = settings.aws_secret_access_key

    return boto3.client("s3", **client_kwargs)


def sanitize_filename(filename: str | None) -> str:
    """Drop every character outside ``[A-Za-z0-9._-]`` from a file name."""

    sanitized = re.sub(r"[^A-Za-z0-9.\-_]", "", filename or "")
    return sanitized or "arquivo"


def build_attachment_key(
    owner_id: int, filename: str, *, uploaded_at: datetime | None = None
) -> str:
    """Return ``<owner id>/<epoch ms>-<sanitized name>`` for an upload."""

    moment = uploaded_at or datetime.now(timezone.utc)
    epoch_ms = int(moment.timestamp() * 1000)
    return f"{owner_id}/{epoch_ms}-{sanitize_filename(filename)}"


def determine_content_type(filename: str, content_type: str | None = None) -> str:
    """Infer a best-effort content type for uploads."""
    return (
        content_type
        or mimetypes.guess_type(filename)[0]
        or "application/octet-stream"
    )


def sanitize_object_key(key: str) -> str:
    """Minimal, safe normalization that preserves exact S3 key semantics."""

    if not key:
        return ""

    sanitized = str(key).strip().strip('"').strip("'")
    sanitized = urllib.parse.unquote(sanitized)
    sanitized = re.sub(r"/+", "/", sanitized)
    if sanitized.startswith("/"):
        sanitized = sanitized[1:]
    return sanitized


class S3AttachmentStorage:
    """Attachment storage backed by the configured S3 bucket.

    When ``AWS_S3_BUCKET`` is ``local`` files are written below
    ``LOCAL_STORAGE_PATH`` and URLs are ``file://`` URIs.
    """

    def put(self, key: str, data: bytes, content_type: str) -> str:
        settings = get_settings()
        object_key = f"{ATTACHMENTS_PREFIX}/{sanitize_object_key(key)}"

        if _is_local_mode():
            destination = _local_bucket_root() / object_key
            try:
                destination.parent.mkdir(parents=True, exist_ok=True)
                destination.write_bytes(data)
            except OSError as exc:
                LOGGER.error("local_store_failed", key=object_key, error=str(exc))
                raise UpstreamError(
                    "Não foi possível armazenar o arquivo", details=str(exc)
                ) from exc
            LOGGER.info("stored_local", key=object_key, path=str(destination))
            return key

        try:
            _client().put_object(
                Bucket=settings.aws_s3_bucket,
                Key=object_key,
                Body=data,
                ContentType=content_type,
                CacheControl="max-age=3600",
            )
        except (BotoCoreError, NoCredentialsError, ClientError) as exc:
            LOGGER.error("s3_upload_failed", key=object_key, error=str(exc))
            raise UpstreamError(
                "Não foi possível armazenar o arquivo", details=str(exc)
            ) from exc

        LOGGER.info("uploaded_s3", bucket=settings.aws_s3_bucket, key=object_key)
        return key

    def url(self, key: str) -> str:
        settings = get_settings()
        object_key = f"{ATTACHMENTS_PREFIX}/{sanitize_object_key(key)}"

        if _is_local_mode():
            return (_local_bucket_root() / object_key).resolve().as_uri()

        try:
            return _client().generate_presigned_url(
                "get_object",
                Params={"Bucket": settings.aws_s3_bucket, "Key": object_key},
                ExpiresIn=settings.attachment_url_ttl,
            )
        except (BotoCoreError, NoCredentialsError, ClientError) as exc:
            LOGGER.error("s3_presign_failed", key=object_key, error=str(exc))
            raise UpstreamError(
                "Não foi possível gerar o link do arquivo", details=str(exc)
            ) from exc


def get_attachment_storage() -> S3AttachmentStorage:
    """Return the configured attachment storage backend."""

    return S3AttachmentStorage()


__all__ = [
    "ATTACHMENTS_PREFIX",
    "S3AttachmentStorage",
    "build_attachment_key",
    "determine_content_type",
    "get_attachment_storage",
    "sanitize_filename",
    "sanitize_object_key",
]
