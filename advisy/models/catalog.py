"""
Insurance catalog: companies, products and the aliases used to match
product names extracted by the IA scan.

The catalog is shared by all tenants.
"""

from typing import List, Optional

from sqlalchemy import JSON, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from advisy.models.base import Base, TimestampMixin


class InsuranceCompany(Base, TimestampMixin):
    """Insurance company (CSS, AXA, Helsana...)."""

    __tablename__ = "insurance_companies"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        index=True,
    )
    status: Mapped[str] = mapped_column(
        String(20),
        default="active",
        nullable=False,
    )
    category: Mapped[str] = mapped_column(
        String(30),
        default="health",
        nullable=False,
        comment="Main line of business",
    )
    insurance_types: Mapped[Optional[list]] = mapped_column(JSON, nullable=True)
    website: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    products: Mapped[List["InsuranceProduct"]] = relationship(
        "InsuranceProduct",
        back_populates="company",
    )

    def __repr__(self) -> str:
        return f"<InsuranceCompany(id={self.id}, name='{self.name}')>"


class InsuranceProduct(Base, TimestampMixin):
    """Catalog product sold by a company."""

    __tablename__ = "insurance_products"

    id: Mapped[int] = mapped_column(primary_key=True)
    company_id: Mapped[int] = mapped_column(
        ForeignKey("insurance_companies.id"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        index=True,
    )
    category: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        comment="health, life, auto, LAMal...",
    )
    subcategory: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    status: Mapped[str] = mapped_column(
        String(20),
        default="active",
        nullable=False,
        index=True,
    )
    source: Mapped[str] = mapped_column(
        String(20),
        default="manual",
        nullable=False,
        comment="manual | import | ia_scan",
    )
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    company: Mapped["InsuranceCompany"] = relationship(
        "InsuranceCompany",
        back_populates="products",
    )
    aliases: Mapped[List["ProductAlias"]] = relationship(
        "ProductAlias",
        back_populates="product",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<InsuranceProduct(id={self.id}, name='{self.name}', category='{self.category}')>"


class ProductAlias(Base):
    """Alternative spelling of a product name as it appears on contracts."""

    __tablename__ = "insurance_product_aliases"

    id: Mapped[int] = mapped_column(primary_key=True)
    product_id: Mapped[int] = mapped_column(
        ForeignKey("insurance_products.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    alias: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        index=True,
    )

    product: Mapped["InsuranceProduct"] = relationship(
        "InsuranceProduct",
        back_populates="aliases",
    )

    def __repr__(self) -> str:
        return f"<ProductAlias(product_id={self.product_id}, alias='{self.alias}')>"
