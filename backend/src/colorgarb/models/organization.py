"""Organization model - owning tenant of orders and users"""

import uuid

from sqlalchemy import Column, Text, Boolean, DateTime, Uuid
from sqlalchemy.orm import validates

from .base import Base, utcnow


class Organization(Base):
    """Client organization (school, theater, dance company).

    Each organization is an isolated tenant. Orders and non-staff users
    reference it by id; there are no ORM back-references.
    """
    __tablename__ = "organization"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(Text, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    @validates('name')
    def validate_name(self, key, value):
        """Ensure organization name is not empty and within length limits."""
        if not value or len(value.strip()) == 0:
            raise ValueError("Organization name cannot be empty")
        if len(value) > 200:
            raise ValueError("Organization name cannot exceed 200 characters")
        return value.strip()

    def __repr__(self):
        return f"<Organization(id={self.id}, name='{self.name}')>"
