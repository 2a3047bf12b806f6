"""Per-request correlation state.

Each request gets an id (taken from the X-Request-ID header when the caller
sends one). Once the caller's identity is resolved it is bound here too, so
every log line and every access-attempt entry written while handling the
request can be tied back to the same request and caller.
"""

import uuid
from contextvars import ContextVar
from dataclasses import dataclass
from typing import Optional

NO_REQUEST_ID = "no-request-id"

request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)
caller_var: ContextVar[Optional["CallerInfo"]] = ContextVar("caller", default=None)


@dataclass(frozen=True)
class CallerInfo:
    user_id: Optional[str]
    org_id: Optional[str]
    role: str


def generate_request_id() -> str:
    return uuid.uuid4().hex


def get_request_id() -> str:
    return request_id_var.get() or NO_REQUEST_ID


def start_request(request_id: Optional[str] = None) -> str:
    """Begin correlation for a new request and clear any previous caller."""
    request_id = (request_id or "").strip()[:128] or generate_request_id()
    request_id_var.set(request_id)
    caller_var.set(None)
    return request_id


def bind_caller(user_id, org_id, role: str) -> None:
    caller_var.set(CallerInfo(
        user_id=str(user_id) if user_id else None,
        org_id=str(org_id) if org_id else None,
        role=role,
    ))


def get_caller() -> Optional[CallerInfo]:
    return caller_var.get()
