"""Initial database schema

Revision ID: 000_initial_schema
Revises:
Create Date: 2026-10-18

"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "000_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps():
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), onupdate=sa.func.now()),
    ]


def upgrade() -> None:
    """Create all initial tables."""

    # Clients and collaborators
    op.create_table(
        "clients",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("tenant_id", sa.String(36), nullable=True),
        sa.Column("first_name", sa.String(100), nullable=True),
        sa.Column("last_name", sa.String(100), nullable=True),
        sa.Column("company_name", sa.String(255), nullable=True),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("phone", sa.String(50), nullable=True),
        sa.Column("birthdate", sa.Date(), nullable=True),
        sa.Column("nationality", sa.String(100), nullable=True),
        sa.Column("profession", sa.String(100), nullable=True),
        sa.Column("address", sa.String(255), nullable=True),
        sa.Column("postal_code", sa.String(20), nullable=True),
        sa.Column("city", sa.String(100), nullable=True),
        sa.Column("canton", sa.String(50), nullable=True),
        sa.Column("status", sa.String(30), nullable=False, server_default="prospect"),
        sa.Column("type_adresse", sa.String(30), nullable=False, server_default="client"),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("assigned_agent_id", sa.Integer(), sa.ForeignKey("clients.id"), nullable=True),
        sa.Column("commission_rate", sa.Float(), nullable=True),
        sa.Column("commission_rate_lca", sa.Float(), nullable=True),
        sa.Column("commission_rate_vie", sa.Float(), nullable=True),
        sa.Column("manager_id", sa.Integer(), sa.ForeignKey("clients.id"), nullable=True),
        sa.Column("manager_commission_rate_lca", sa.Float(), nullable=True),
        sa.Column("manager_commission_rate_vie", sa.Float(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_clients_tenant_id", "clients", ["tenant_id"])
    op.create_index("ix_clients_email", "clients", ["email"])
    op.create_index("ix_clients_type_adresse", "clients", ["type_adresse"])
    op.create_index("ix_clients_assigned_agent_id", "clients", ["assigned_agent_id"])

    op.create_table(
        "family_members",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("client_id", sa.Integer(), sa.ForeignKey("clients.id", ondelete="CASCADE"), nullable=False),
        sa.Column("first_name", sa.String(100), nullable=True),
        sa.Column("last_name", sa.String(100), nullable=True),
        sa.Column("birthdate", sa.Date(), nullable=True),
        sa.Column("relation_type", sa.String(30), nullable=False, server_default="enfant"),
        *_timestamps(),
    )
    op.create_index("ix_family_members_client_id", "family_members", ["client_id"])

    # Product catalog
    op.create_table(
        "insurance_companies",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="active"),
        sa.Column("category", sa.String(50), nullable=False, server_default="health"),
        sa.Column("insurance_types", sa.JSON(), nullable=True),
        sa.Column("website", sa.String(255), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_insurance_companies_name", "insurance_companies", ["name"])

    op.create_table(
        "insurance_products",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("company_id", sa.Integer(), sa.ForeignKey("insurance_companies.id"), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("category", sa.String(50), nullable=False),
        sa.Column("subcategory", sa.String(50), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="active"),
        sa.Column("source", sa.String(20), nullable=False, server_default="manual"),
        sa.Column("description", sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_insurance_products_company_id", "insurance_products", ["company_id"])
    op.create_index("ix_insurance_products_name", "insurance_products", ["name"])
    op.create_index("ix_insurance_products_status", "insurance_products", ["status"])

    op.create_table(
        "insurance_product_aliases",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("product_id", sa.Integer(), sa.ForeignKey("insurance_products.id", ondelete="CASCADE"), nullable=False),
        sa.Column("alias", sa.String(255), nullable=False),
    )
    op.create_index("ix_insurance_product_aliases_product_id", "insurance_product_aliases", ["product_id"])
    op.create_index("ix_insurance_product_aliases_alias", "insurance_product_aliases", ["alias"])

    # Policies
    op.create_table(
        "policies",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("tenant_id", sa.String(36), nullable=True),
        sa.Column("client_id", sa.Integer(), sa.ForeignKey("clients.id"), nullable=True),
        sa.Column("product_id", sa.Integer(), sa.ForeignKey("insurance_products.id"), nullable=False),
        sa.Column("policy_number", sa.String(100), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="active"),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=True),
        sa.Column("premium_monthly", sa.Float(), nullable=True),
        sa.Column("premium_yearly", sa.Float(), nullable=True),
        sa.Column("deductible", sa.Float(), nullable=True),
        sa.Column("currency", sa.String(3), nullable=False, server_default="CHF"),
        sa.Column("company_name", sa.String(255), nullable=True),
        sa.Column("product_type", sa.String(50), nullable=True),
        sa.Column("products_data", sa.JSON(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_policies_tenant_id", "policies", ["tenant_id"])
    op.create_index("ix_policies_client_id", "policies", ["client_id"])
    op.create_index("ix_policies_status", "policies", ["status"])

    # Commissions
    op.create_table(
        "commissions",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("tenant_id", sa.String(36), nullable=True),
        sa.Column("policy_id", sa.Integer(), sa.ForeignKey("policies.id"), nullable=False),
        sa.Column("amount", sa.Float(), nullable=False),
        sa.Column("total_amount", sa.Float(), nullable=True),
        sa.Column("type", sa.String(30), nullable=False, server_default="acquisition"),
        sa.Column("status", sa.String(20), nullable=False, server_default="due"),
        sa.Column("date", sa.Date(), nullable=True),
        sa.Column("period_month", sa.Integer(), nullable=True),
        sa.Column("period_year", sa.Integer(), nullable=True),
        sa.Column("paid_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_commissions_tenant_id", "commissions", ["tenant_id"])
    op.create_index("ix_commissions_policy_id", "commissions", ["policy_id"])

    op.create_table(
        "commission_part_agent",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("commission_id", sa.Integer(), sa.ForeignKey("commissions.id", ondelete="CASCADE"), nullable=False),
        sa.Column("agent_id", sa.Integer(), sa.ForeignKey("clients.id"), nullable=False),
        sa.Column("rate", sa.Float(), nullable=False),
        sa.Column("amount", sa.Float(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_commission_part_agent_commission_id", "commission_part_agent", ["commission_id"])
    op.create_index("ix_commission_part_agent_agent_id", "commission_part_agent", ["agent_id"])

    # Documents and IA scans
    op.create_table(
        "documents",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("tenant_id", sa.String(36), nullable=True),
        sa.Column("owner_type", sa.String(30), nullable=False),
        sa.Column("owner_id", sa.Integer(), nullable=False),
        sa.Column("file_name", sa.String(255), nullable=False),
        sa.Column("file_key", sa.String(500), nullable=False),
        sa.Column("mime_type", sa.String(100), nullable=True),
        sa.Column("doc_kind", sa.String(50), nullable=True),
        sa.Column("category", sa.String(50), nullable=True),
        sa.Column("created_by", sa.String(36), nullable=True),
        sa.Column("metadata", sa.JSON(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_documents_tenant_id", "documents", ["tenant_id"])
    op.create_index("ix_documents_owner_id", "documents", ["owner_id"])

    op.create_table(
        "document_scans",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("tenant_id", sa.String(36), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("original_file_name", sa.String(255), nullable=True),
        sa.Column("original_file_key", sa.String(500), nullable=True),
        sa.Column("detected_doc_type", sa.String(50), nullable=True),
        sa.Column("overall_confidence", sa.Float(), nullable=True),
        sa.Column("detected_products", sa.JSON(), nullable=True),
        sa.Column("family_members", sa.JSON(), nullable=True),
        sa.Column("validated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("validated_by", sa.String(36), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_document_scans_tenant_id", "document_scans", ["tenant_id"])
    op.create_index("ix_document_scans_status", "document_scans", ["status"])

    op.create_table(
        "document_scan_results",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("scan_id", sa.Integer(), sa.ForeignKey("document_scans.id", ondelete="CASCADE"), nullable=False),
        sa.Column("field_name", sa.String(50), nullable=False),
        sa.Column("field_category", sa.String(30), nullable=False),
        sa.Column("extracted_value", sa.Text(), nullable=True),
        sa.Column("validated_value", sa.Text(), nullable=True),
        sa.Column("confidence", sa.String(10), nullable=False, server_default="medium"),
    )
    op.create_index("ix_document_scan_results_scan_id", "document_scan_results", ["scan_id"])

    # Follow-ups
    op.create_table(
        "suivis",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("tenant_id", sa.String(36), nullable=True),
        sa.Column("client_id", sa.Integer(), sa.ForeignKey("clients.id"), nullable=False),
        sa.Column("assigned_agent_id", sa.Integer(), sa.ForeignKey("clients.id"), nullable=True),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("type", sa.String(30), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="ouvert"),
        sa.Column("reminder_date", sa.Date(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_suivis_tenant_id", "suivis", ["tenant_id"])
    op.create_index("ix_suivis_client_id", "suivis", ["client_id"])
    op.create_index("ix_suivis_status", "suivis", ["status"])

    # Audit logs
    op.create_table(
        "audit_logs",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("tenant_id", sa.String(36), nullable=True),
        sa.Column("user_id", sa.String(36), nullable=True),
        sa.Column("role", sa.String(20), nullable=True),
        sa.Column(
            "action",
            sa.Enum(
                "scan_validated",
                "policies_reconciled",
                "contract_created",
                "commission_created",
                "commission_updated",
                "product_auto_created",
                name="auditaction",
            ),
            nullable=False,
        ),
        sa.Column("target_type", sa.String(50), nullable=True),
        sa.Column("target_id", sa.Integer(), nullable=True),
        sa.Column("action_metadata", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_audit_logs_tenant_id", "audit_logs", ["tenant_id"])
    op.create_index("ix_audit_logs_user_id", "audit_logs", ["user_id"])
    op.create_index("ix_audit_logs_action", "audit_logs", ["action"])
    op.create_index("ix_audit_logs_created_at", "audit_logs", ["created_at"])

    # System settings
    op.create_table(
        "system_settings",
        sa.Column("key", sa.String(100), primary_key=True),
        sa.Column("value", sa.JSON(), nullable=False),
    )


def downgrade() -> None:
    """Drop all tables in reverse order."""
    op.drop_table("system_settings")
    op.drop_table("audit_logs")
    op.drop_table("suivis")
    op.drop_table("document_scan_results")
    op.drop_table("document_scans")
    op.drop_table("documents")
    op.drop_table("commission_part_agent")
    op.drop_table("commissions")
    op.drop_table("policies")
    op.drop_table("insurance_product_aliases")
    op.drop_table("insurance_products")
    op.drop_table("insurance_companies")
    op.drop_table("family_members")
    op.drop_table("clients")

    # Drop enums
    op.execute("DROP TYPE IF EXISTS auditaction")
