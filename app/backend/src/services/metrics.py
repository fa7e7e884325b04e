"""Prometheus metric definitions for the benefits portal."""

from __future__ import annotations

from prometheus_client import Counter

requests_created_total = Counter(
    "requests_created_total",
    "Total benefit requests submitted, by request type.",
    labelnames=["type"],
)

request_transitions_total = Counter(
    "request_transitions_total",
    "Total decisions recorded on benefit requests, by resulting status.",
    labelnames=["status"],
)

notification_failures_total = Counter(
    "notification_failures_total",
    "Decision notifications that could not be dispatched or delivered.",
    labelnames=["stage"],
)

attachment_upload_failures_total = Counter(
    "attachment_upload_failures_total",
    "Attachment uploads that failed and were skipped.",
)

__all__ = [
    "attachment_upload_failures_total",
    "notification_failures_total",
    "request_transitions_total",
    "requests_created_total",
]
