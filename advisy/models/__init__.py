"""
Database models for the Advisy CRM.

All models are exported here for convenient imports:
    from advisy.models import Client, Policy, InsuranceProduct, etc.
"""

from advisy.models.audit import AuditAction, AuditLog
from advisy.models.base import Base, TenantMixin, TimestampMixin
from advisy.models.catalog import InsuranceCompany, InsuranceProduct, ProductAlias
from advisy.models.client import COLLABORATOR_TYPE, Client, FamilyMember
from advisy.models.commission import Commission, CommissionPartAgent
from advisy.models.document import Document, DocumentScan, DocumentScanResult
from advisy.models.policy import Policy, PolicyStatus
from advisy.models.settings import SystemSetting
from advisy.models.suivi import Suivi

__all__ = [
    # Base
    "Base",
    "TenantMixin",
    "TimestampMixin",
    # Clients
    "COLLABORATOR_TYPE",
    "Client",
    "FamilyMember",
    # Catalog
    "InsuranceCompany",
    "InsuranceProduct",
    "ProductAlias",
    # Policies
    "Policy",
    "PolicyStatus",
    # Commissions
    "Commission",
    "CommissionPartAgent",
    # Documents
    "Document",
    "DocumentScan",
    "DocumentScanResult",
    # Follow-ups
    "Suivi",
    # Settings
    "SystemSetting",
    # Audit
    "AuditLog",
    "AuditAction",
]
