"""RoleAccessAudit SQLAlchemy model"""

import uuid

from sqlalchemy import Column, Text, Boolean, DateTime, Index, Uuid

from .base import Base, PortableJSONB, utcnow


class RoleAccessAuditModel(Base):
    """Access-attempt log: one row per authorization decision.

    Granted and denied decisions are both recorded. user_id is nullable so
    that attempts with a missing or unverifiable identity are still kept.
    """
    __tablename__ = "role_access_audit"
    __table_args__ = (
        Index("ix_role_access_audit_user_id_timestamp", "user_id", "timestamp"),
        Index("ix_role_access_audit_organization_id_timestamp", "organization_id", "timestamp"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, nullable=True)
    user_role = Column(Text, nullable=False)
    organization_id = Column(Uuid, nullable=True)
    resource = Column(Text, nullable=False)
    http_method = Column(Text, nullable=False)
    access_granted = Column(Boolean, nullable=False)
    details = Column(Text, nullable=True)
    metadata_json = Column(PortableJSONB, nullable=True)
    ip_address = Column(Text, nullable=True)
    user_agent = Column(Text, nullable=True)
    request_id = Column(Text, nullable=True)
    timestamp = Column(DateTime(timezone=True), nullable=False, default=utcnow)
