"""SQLAlchemy Models for the order portal"""

from .base import Base, PortableJSONB, as_utc, utcnow
from .organization import Organization
from .user import User
from .order import OrderModel
from .order_stage_history import OrderStageHistoryModel
from .role_access_audit import RoleAccessAuditModel

__all__ = [
    "Base",
    "PortableJSONB",
    "as_utc",
    "utcnow",
    "Organization",
    "User",
    "OrderModel",
    "OrderStageHistoryModel",
    "RoleAccessAuditModel",
]
