"""User SQLAlchemy model"""

import re
import uuid

from sqlalchemy import Column, Text, Boolean, DateTime, ForeignKey, CheckConstraint, Uuid
from sqlalchemy.orm import validates

from .base import Base, utcnow


class User(Base):
    """Portal user.

    Directors and Finance users belong to exactly one organization.
    ColorGarb staff have no home organization (cross-organization access).
    The role is fixed at creation.
    """
    __tablename__ = "app_user"
    __table_args__ = (
        CheckConstraint(
            "role IN ('Director', 'Finance', 'ColorGarbStaff')",
            name='ck_app_user_role'
        ),
        CheckConstraint(
            "role = 'ColorGarbStaff' OR organization_id IS NOT NULL",
            name='ck_app_user_org_scoped_role_has_org'
        ),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    email = Column(Text, nullable=False, unique=True)
    name = Column(Text, nullable=False)
    role = Column(Text, nullable=False)
    organization_id = Column(Uuid, ForeignKey("organization.id", ondelete="RESTRICT"), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    @validates('email')
    def validate_email(self, key, value):
        """Basic email format validation"""
        if not re.match(r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$', value):
            raise ValueError("Invalid email format")
        return value.lower()
