"""Celery application factory."""

from __future__ import annotations

from typing import Any

import structlog
from celery import Celery, signals
from kombu import Queue

from app.backend.src.core.config import get_settings
from app.backend.src.core.logging import configure_logging

LOGGER = structlog.get_logger(__name__)

settings = get_settings()

celery = Celery(
    "ombro_amigo",
    broker=settings.broker_url,
    backend=settings.result_backend,
)

# Registered explicitly so workers started from any entrypoint see the tasks.
celery.conf.update(include=["tasks.notification_tasks"])

celery.conf.update(
    task_default_queue="notifications",
    task_queues=(Queue("notifications"),),
    task_routes={"tasks.send_decision_email": {"queue": "notifications"}},
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    task_acks_late=False,
    task_publish_retry=False,
    worker_prefetch_multiplier=1,
    broker_transport_options={"global_keyprefix": "ombro-amigo-broker:"},
    result_backend_transport_options={"global_keyprefix": "ombro-amigo-result:"},
    broker_connection_retry_on_startup=True,
)

LOGGER.info(
    "celery_bootstrap_ready",
    broker=settings.broker_url,
    backend=settings.result_backend,
)


@signals.worker_process_init.connect
def _configure_worker_logging(**_: Any) -> None:
    configure_logging()


@signals.worker_ready.connect
def _log_worker_configuration(sender: Any | None = None, **_: Any) -> None:
    """Emit structured worker configuration details after startup."""

    app = sender.app if sender is not None else celery
    registered_tasks = sorted(
        task_name for task_name in app.tasks.keys() if task_name.startswith("tasks.")
    )
    LOGGER.info(
        "celery_worker_configuration",
        default_queue=app.conf.task_default_queue,
        registered_tasks=registered_tasks,
    )


@signals.task_postrun.connect
def _log_task_postrun(
    sender: Any | None = None,
    task_id: str | None = None,
    task: Any | None = None,
    state: str | None = None,
    **_: Any,
) -> None:
    """Emit completion information after a task finishes."""

    task_name = getattr(task, "name", None) or ""
    if not task_name.startswith("tasks."):
        return
    LOGGER.info("celery_task_postrun", task_id=task_id, task_name=task_name, state=state)


__all__ = ["celery"]
