"""Audit log model for tracking billing changes."""
from sqlalchemy import Column, String, JSON, Uuid

from firm_billing.models.base import Base


class AuditLog(Base):
    """
    Audit log for compliance.

    Tracks charge transitions and billing configuration updates with user context.
    """

    __tablename__ = "audit_logs"

    entity_type = Column(String, nullable=False, index=True)  # billing_charge, billing_rule, split_billing_config
    entity_id = Column(Uuid(as_uuid=True), nullable=False, index=True)
    action = Column(String, nullable=False)  # create, update, approve, cancel, ...
    user_id = Column(String, nullable=True)  # User who performed action
    changes = Column(JSON, nullable=False, default=dict)  # {field: {old: X, new: Y}}
    request_id = Column(String, nullable=True)  # Correlation ID from request

    def __repr__(self) -> str:
        """String representation."""
        return f"<AuditLog(entity_type={self.entity_type}, entity_id={self.entity_id}, action={self.action})>"
