"""
Per-request session context.

Tenant, acting user and active role are resolved once at the edge
(see advisy.api.dependencies) and handed to services explicitly.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class Role(str, Enum):
    """CRM roles, from platform owner down to end client."""
    KING = "king"
    ADMIN = "admin"
    MANAGER = "manager"
    AGENT = "agent"
    PARTNER = "partner"
    CLIENT = "client"


@dataclass(frozen=True)
class SessionContext:
    """Who is acting, for which tenant."""

    tenant_id: str
    user_id: Optional[str] = None
    role: Role = Role.AGENT
