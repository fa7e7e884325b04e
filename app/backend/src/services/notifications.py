"""Decision e-mails sent to requesters."""

from __future__ import annotations

import smtplib
from dataclasses import dataclass
from decimal import Decimal
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from pathlib import Path

import structlog
from jinja2 import Environment, FileSystemLoader, StrictUndefined
from sqlalchemy.orm import Session, selectinload

from app.backend.src.core.config import get_settings
from app.backend.src.core.errors import NotFoundError, UpstreamError
from app.backend.src.models import BenefitRequest
from app.backend.src.models.choices import STATUS_APPROVED, STATUS_REJECTED

LOGGER = structlog.get_logger(__name__)

_TEMPLATES_DIR = Path(__file__).parent / "templates"
_ENV = Environment(
    loader=FileSystemLoader(_TEMPLATES_DIR),
    autoescape=False,
    undefined=StrictUndefined,
    keep_trailing_newline=True,
)

SUBJECTS = {
    STATUS_APPROVED: "Sua solicitação foi aprovada",
    STATUS_REJECTED: "Sua solicitação foi recusada",
}

AUTO_NOTICE = "\n\nEsta é uma mensagem automática. Por favor, não responda este e-mail."


@dataclass
class DecisionEmail:
    recipient: str
    subject: str
    body: str


def format_brl(amount: Decimal | float) -> str:
    """Format an amount as Brazilian reais, e.g. ``R$ 2.018,36``."""

    formatted = f"{Decimal(str(amount)):,.2f}"
    return "R$ " + formatted.replace(",", "_").replace(".", ",").replace("_", ".")


def render_decision_email(
    benefit_request: BenefitRequest, action: str, rejection_reason: str | None = None
) -> DecisionEmail:
    """Render the notification for a decided request."""

    if action not in SUBJECTS:
        raise ValueError(f"Unsupported notification action: {action}")

    owner = benefit_request.owner
    decided_at = benefit_request.approved_at
    template = _ENV.get_template(f"decision_{action}.txt.j2")
    body = template.render(
        requester_name=owner.name,
        request_id=benefit_request.id,
        request_type=benefit_request.type,
        amount=format_brl(benefit_request.amount),
        polo=benefit_request.polo,
        decided_at=decided_at.strftime("%d/%m/%Y") if decided_at else "",
        rejection_reason=rejection_reason or benefit_request.rejection_reason or "",
    )
    return DecisionEmail(
        recipient=owner.email,
        subject=f"{SUBJECTS[action]} (nº {benefit_request.id})",
        body=body,
    )


def send_email(recipient: str, subject: str, body: str) -> None:
    """Send a plain-text e-mail through the configured SMTP server."""

    settings = get_settings()

    message = MIMEMultipart()
    message["From"] = settings.mail_from
    message["To"] = recipient
    message["Subject"] = subject
    message.attach(MIMEText(body + AUTO_NOTICE, "plain", "utf-8"))

    try:
        with smtplib.SMTP(settings.smtp_host, settings.smtp_port, timeout=10) as server:
            if settings.smtp_use_tls:
                server.starttls()
            if settings.smtp_username and settings.smtp_password:
                server.login(settings.smtp_username, settings.smtp_password)
            server.sendmail(settings.mail_from, [recipient], message.as_string())
    except (smtplib.SMTPException, OSError) as exc:
        LOGGER.error("email_send_failed", recipient=recipient, error=str(exc))
        raise UpstreamError("Falha ao enviar e-mail de notificação", details=str(exc)) from exc

    LOGGER.info("email_sent", recipient=recipient, subject=subject)


def deliver_decision_email(
    session: Session,
    request_id: int,
    action: str,
    rejection_reason: str | None = None,
) -> DecisionEmail:
    """Load the request, render its decision e-mail and send it."""

    benefit_request = (
        session.query(BenefitRequest)
        .options(selectinload(BenefitRequest.owner))
        .filter(BenefitRequest.id == request_id)
        .one_or_none()
    )
    if benefit_request is None:
        raise NotFoundError("Solicitação não encontrada", details={"request_id": request_id})

    email = render_decision_email(benefit_request, action, rejection_reason)
    send_email(email.recipient, email.subject, email.body)
    return email


def dispatch_decision_notification(
    request_id: int, action: str, rejection_reason: str | None = None
) -> None:
    """Queue the decision e-mail on the Celery worker without waiting for it."""

    if not get_settings().notifications_enabled:
        LOGGER.info("notification_skipped", request_id=request_id, action=action)
        return

    from tasks.notification_tasks import send_decision_email

    send_decision_email.delay(request_id, action, rejection_reason)


__all__ = [
    "DecisionEmail",
    "deliver_decision_email",
    "dispatch_decision_notification",
    "format_brl",
    "render_decision_email",
    "send_email",
]
