"""
FastAPI dependencies for the request context.

Authentication happens upstream; the gateway forwards the tenant, the
user and the role the user is acting as in headers.
"""

from typing import Optional

from fastapi import Header, HTTPException, status

from advisy.config import settings
from advisy.context import Role, SessionContext


async def get_session_context(
    x_tenant_id: Optional[str] = Header(None),
    x_user_id: Optional[str] = Header(None),
    x_active_role: Optional[str] = Header(None),
) -> SessionContext:
    """
    Build the SessionContext of the request.

    Raises 400 when no tenant can be resolved or the role is unknown.
    """
    tenant_id = x_tenant_id or settings.default_tenant_id
    if not tenant_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Missing X-Tenant-Id header",
        )

    role = Role.AGENT
    if x_active_role:
        try:
            role = Role(x_active_role.lower())
        except ValueError:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Unknown role: {x_active_role}",
            )

    return SessionContext(tenant_id=tenant_id, user_id=x_user_id, role=role)
