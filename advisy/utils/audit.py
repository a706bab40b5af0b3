"""
Audit logging utilities.

Every write performed on behalf of a broker is traced.
"""

from typing import Any, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from advisy.context import SessionContext
from advisy.models.audit import AuditAction, AuditLog


async def log_action(
    db: AsyncSession,
    context: SessionContext,
    action: AuditAction,
    target_type: Optional[str] = None,
    target_id: Optional[int] = None,
    action_metadata: Optional[dict[str, Any]] = None,
) -> AuditLog:
    """
    Log an auditable action.

    Args:
        db: Database session
        context: Tenant and user performing the action
        action: Type of action being performed
        target_type: Type of entity affected (e.g., "scan", "policy")
        target_id: ID of the affected entity
        action_metadata: Additional context about the action

    Returns:
        Created AuditLog entry
    """
    log_entry = AuditLog(
        tenant_id=context.tenant_id,
        user_id=context.user_id,
        role=context.role.value,
        action=action,
        target_type=target_type,
        target_id=target_id,
        action_metadata=action_metadata,
    )
    db.add(log_entry)
    # Note: commit should happen in the calling context
    return log_entry
