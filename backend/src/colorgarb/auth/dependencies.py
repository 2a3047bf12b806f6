"""FastAPI dependencies that resolve the caller's AuthorizationContext.

Resolution never raises for a bad identity. A missing, expired or tampered
token, an unknown user, a disabled account or a role mismatch all yield a
context without a valid identity. The order service then records the
denied attempt and raises AuthenticationError, so every failed
authentication ends up in the access-attempt log.
"""

from typing import Optional
from uuid import UUID

import jwt
from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from ..database import get_db
from ..models.user import User
from ..observability.logging_config import get_logger
from ..observability.correlation import get_request_id
from .context import AuthorizationContext, ClientInfo
from .jwt import decode_token
from .roles import UserRole, parse_role

logger = get_logger(__name__)

# auto_error=False: missing credentials must still reach the attempt log
security = HTTPBearer(auto_error=False)


def resolve_context(db: Session, claims: dict) -> AuthorizationContext:
    """Build an AuthorizationContext from verified token claims.

    Re-validates role membership against the stored user record.

    Args:
        db: Database session
        claims: Decoded token payload

    Returns:
        AuthorizationContext (possibly without a valid identity)
    """
    claimed_role = claims.get("role")
    role = parse_role(claimed_role)

    try:
        user_id = UUID(str(claims.get("sub")))
    except ValueError:
        logger.warning("Token has malformed subject claim")
        return AuthorizationContext.anonymous(claimed_role)

    if role is None:
        logger.warning(f"Unrecognized role claim '{claimed_role}' for user {user_id}")
        return AuthorizationContext(user_id=user_id, role=None, claimed_role=claimed_role)

    user = db.query(User).filter(User.id == user_id).first()
    if not user or not user.is_active:
        logger.warning(f"Token subject {user_id} is unknown or disabled")
        return AuthorizationContext(user_id=user_id, role=None, claimed_role=claimed_role)

    if user.role != role.value:
        logger.warning(f"Role claim {role.value} does not match stored role for user {user_id}")
        return AuthorizationContext(user_id=user_id, role=None, claimed_role=claimed_role)

    org_id = None if role == UserRole.COLORGARB_STAFF else user.organization_id
    return AuthorizationContext(user_id=user_id, role=role, org_id=org_id, claimed_role=claimed_role)


def get_authorization_context(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> AuthorizationContext:
    """Resolve the caller from the Authorization: Bearer header."""
    if credentials is None:
        return AuthorizationContext.anonymous()

    try:
        claims = decode_token(credentials.credentials)
    except jwt.InvalidTokenError as e:
        # ExpiredSignatureError is a subclass
        logger.warning(f"Rejected bearer token: {e}")
        return AuthorizationContext.anonymous()

    return resolve_context(db, claims)


def get_client_info(request: Request) -> ClientInfo:
    """Collect method/path and client metadata for the access-attempt log."""
    # Extract client IP (handle proxies via X-Forwarded-For)
    ip_address = request.client.host if request.client else None
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        ip_address = forwarded_for.split(",")[0].strip()

    return ClientInfo(
        http_method=request.method,
        path=request.url.path,
        ip_address=ip_address,
        user_agent=request.headers.get("User-Agent"),
        request_id=get_request_id(),
    )
