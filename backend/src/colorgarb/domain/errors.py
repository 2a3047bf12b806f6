"""Error taxonomy for the order workflow engine.

Every error raised by the engine is a WorkflowError carrying a stable
`error_code` tag, the HTTP status the API layer should use, and a
human-readable message. Single updates surface these as structured error
responses; bulk updates turn them into per-item failures.
"""

from typing import Optional
from uuid import UUID


class WorkflowError(Exception):
    """Base class for all order workflow errors."""

    error_code = "workflow_error"
    http_status = 500

    def __init__(self, message: str, order_id: Optional[UUID] = None):
        super().__init__(message)
        self.message = message
        self.order_id = order_id

    def to_dict(self) -> dict:
        """Structured error body (taxonomy tag + message)."""
        return {"error": self.error_code, "message": self.message}


class AuthenticationError(WorkflowError):
    """Missing or invalid identity."""

    error_code = "authentication_error"
    http_status = 401


class AuthorizationError(WorkflowError):
    """Valid identity, insufficient scope (organization boundary or role)."""

    error_code = "authorization_error"
    http_status = 403


class ValidationError(WorkflowError):
    """Malformed request: missing reason, unknown stage, no-op update."""

    error_code = "validation_error"
    http_status = 400


class NotFoundError(WorkflowError):
    """Order (or organization) id does not resolve."""

    error_code = "not_found"
    http_status = 404


class ConflictError(WorkflowError):
    """Valid request rejected by the stage rules or a concurrent write."""

    error_code = "conflict"
    http_status = 409


class AuditWriteError(WorkflowError):
    """The audit store rejected a write; the triggering operation failed."""

    error_code = "audit_write_failed"
    http_status = 500
