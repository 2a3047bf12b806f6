"""Bearer token claims for the authorization context.

Token issuance belongs to the identity provider; this module only mints
tokens for seeding and tests and verifies tokens presented to the API.

Claims:
- sub: User ID as UUID string
- role: "Director" | "Finance" | "ColorGarbStaff"
- org_id: Home organization UUID string (absent for ColorGarbStaff)
- email: User's email address
- iat / exp: Issued-at and expiry Unix timestamps
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional
from uuid import UUID

import jwt

from ..config import get_settings


def create_access_token(
    user_id: UUID,
    role: str,
    org_id: Optional[UUID] = None,
    email: Optional[str] = None,
    expires_in_minutes: Optional[int] = None,
) -> str:
    """Create a signed access token.

    Args:
        user_id: User's UUID
        role: Role claim (not validated here, so tests can mint bad roles)
        org_id: Home organization, omitted for staff
        email: Optional email claim
        expires_in_minutes: Override JWT_EXPIRY_MINUTES

    Returns:
        str: Signed JWT token
    """
    settings = get_settings()
    expiry_minutes = expires_in_minutes if expires_in_minutes is not None else settings.JWT_EXPIRY_MINUTES

    now = datetime.now(timezone.utc)
    payload: Dict[str, Any] = {
        "sub": str(user_id),
        "role": role,
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(minutes=expiry_minutes)).timestamp()),
    }
    if org_id is not None:
        payload["org_id"] = str(org_id)
    if email:
        payload["email"] = email

    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_token(token: str) -> Dict[str, Any]:
    """Decode and validate a JWT token.

    Raises:
        jwt.ExpiredSignatureError: If token has expired
        jwt.InvalidTokenError: If token is invalid or tampered
    """
    settings = get_settings()
    return jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
