"""
Policy (contract) model.
"""

from datetime import date
from enum import Enum
from typing import TYPE_CHECKING, Optional

from sqlalchemy import JSON, Date, Float, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from advisy.models.base import Base, TenantMixin, TimestampMixin

if TYPE_CHECKING:
    from advisy.models.catalog import InsuranceProduct
    from advisy.models.client import Client


class PolicyStatus(str, Enum):
    """Lifecycle of a policy."""
    ACTIVE = "active"
    PENDING = "pending"
    RESILIE = "resilie"        # Terminated, replaced by a new contract
    EXPIRED = "expired"


class Policy(Base, TenantMixin, TimestampMixin):
    """
    Insurance contract held by a client.

    A multi-product contract (e.g. LAMal + LCA at the same company) is
    stored as one policy: product_id points to the main product and
    products_data keeps the per-product detail.
    """

    __tablename__ = "policies"

    id: Mapped[int] = mapped_column(primary_key=True)
    client_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("clients.id"),
        nullable=True,
        index=True,
    )
    product_id: Mapped[int] = mapped_column(
        ForeignKey("insurance_products.id"),
        nullable=False,
        index=True,
    )
    policy_number: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    status: Mapped[str] = mapped_column(
        String(20),
        default=PolicyStatus.ACTIVE.value,
        nullable=False,
        index=True,
    )
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)

    # Premiums in policy currency
    premium_monthly: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    premium_yearly: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    deductible: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    currency: Mapped[str] = mapped_column(String(3), default="CHF", nullable=False)

    company_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    product_type: Mapped[Optional[str]] = mapped_column(
        String(50),
        nullable=True,
        comment="Category of the single product, or 'multi'",
    )
    products_data: Mapped[Optional[list]] = mapped_column(
        JSON,
        nullable=True,
        comment="[{productId, name, category, premium, deductible, durationYears}]",
    )
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    client: Mapped[Optional["Client"]] = relationship("Client", back_populates="policies")
    product: Mapped["InsuranceProduct"] = relationship("InsuranceProduct")

    def __repr__(self) -> str:
        return f"<Policy(id={self.id}, company='{self.company_name}', status={self.status})>"
