"""Audit trail: stage history, access attempts and their query surface."""

from .recorder import AuditRecorder
from .guard import AccessGuard

__all__ = ["AuditRecorder", "AccessGuard"]
