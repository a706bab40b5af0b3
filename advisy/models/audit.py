"""
AuditLog model for tracking CRM actions.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy import DateTime, Integer, JSON, String, func
from sqlalchemy import Enum as SQLAlchemyEnum
from sqlalchemy.orm import Mapped, mapped_column

from advisy.models.base import Base, TenantMixin


class AuditAction(str, Enum):
    """Types of auditable actions."""
    SCAN_VALIDATED = "scan_validated"
    POLICIES_RECONCILED = "policies_reconciled"
    CONTRACT_CREATED = "contract_created"
    COMMISSION_CREATED = "commission_created"
    COMMISSION_UPDATED = "commission_updated"
    PRODUCT_AUTO_CREATED = "product_auto_created"


class AuditLog(Base, TenantMixin):
    """
    Audit trail of write operations.

    IA-scan validations keep a snapshot of the validated values so the
    AI extraction can be compared with what the broker accepted.
    """

    __tablename__ = "audit_logs"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[Optional[str]] = mapped_column(
        String(36),
        nullable=True,
        index=True,
    )
    role: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    action: Mapped[AuditAction] = mapped_column(
        SQLAlchemyEnum(
            AuditAction,
            values_callable=lambda x: [e.value for e in x],
        ),
        nullable=False,
        index=True,
    )
    target_type: Mapped[Optional[str]] = mapped_column(
        String(50),
        nullable=True,
        comment="Type of entity affected (scan, policy, commission, product)",
    )
    target_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        nullable=True,
        comment="ID of the affected entity",
    )
    action_metadata: Mapped[Optional[dict]] = mapped_column(
        JSON,
        nullable=True,
        comment="Additional context about the action",
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
        index=True,
    )

    def __repr__(self) -> str:
        return f"<AuditLog(id={self.id}, action={self.action}, target={self.target_type}:{self.target_id})>"
