"""ORM models exposed for easy imports."""

from .audit_log import AuditLog
from .comment import Comment
from .invoice import Invoice
from .request import BenefitRequest
from .user import User

__all__ = [
    "AuditLog",
    "BenefitRequest",
    "Comment",
    "Invoice",
    "User",
]
