"""
Client model.

The clients table holds both end customers and collaborators
(agents/managers, type_adresse = "collaborateur"). Collaborators carry
their commission rates, expressed as percentages (20 = 20%).
"""

from datetime import date
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import Date, Float, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from advisy.models.base import Base, TenantMixin, TimestampMixin

if TYPE_CHECKING:
    from advisy.models.policy import Policy

COLLABORATOR_TYPE = "collaborateur"


class Client(Base, TenantMixin, TimestampMixin):
    """Customer or collaborator record."""

    __tablename__ = "clients"

    id: Mapped[int] = mapped_column(primary_key=True)

    # Identity
    first_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    last_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    company_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True, index=True)
    phone: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    birthdate: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    nationality: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    profession: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    # Address
    address: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    postal_code: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    city: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    canton: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)

    status: Mapped[str] = mapped_column(
        String(30),
        default="prospect",
        nullable=False,
    )
    type_adresse: Mapped[str] = mapped_column(
        String(30),
        default="client",
        nullable=False,
        index=True,
        comment="client | collaborateur | partenaire",
    )
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Agent in charge of this client
    assigned_agent_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("clients.id"),
        nullable=True,
        index=True,
    )

    # Collaborator commission settings (percentages)
    commission_rate: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    commission_rate_lca: Mapped[Optional[float]] = mapped_column(
        Float,
        nullable=True,
        comment="Rate on health (LAMal/LCA) business",
    )
    commission_rate_vie: Mapped[Optional[float]] = mapped_column(
        Float,
        nullable=True,
        comment="Rate on life business",
    )
    manager_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("clients.id"),
        nullable=True,
    )
    manager_commission_rate_lca: Mapped[Optional[float]] = mapped_column(
        Float,
        nullable=True,
        comment="Manager override on health business",
    )
    manager_commission_rate_vie: Mapped[Optional[float]] = mapped_column(
        Float,
        nullable=True,
        comment="Manager override on life business",
    )

    # Relationships
    family_members: Mapped[List["FamilyMember"]] = relationship(
        "FamilyMember",
        back_populates="client",
        cascade="all, delete-orphan",
    )
    policies: Mapped[List["Policy"]] = relationship(
        "Policy",
        back_populates="client",
    )

    @property
    def display_name(self) -> str:
        if self.company_name:
            return self.company_name
        full_name = f"{self.first_name or ''} {self.last_name or ''}".strip()
        return full_name or "Sans nom"

    def __repr__(self) -> str:
        return f"<Client(id={self.id}, name='{self.display_name}', type={self.type_adresse})>"


class FamilyMember(Base, TimestampMixin):
    """Spouse/child of a client, detected on a scanned contract or entered by hand."""

    __tablename__ = "family_members"

    id: Mapped[int] = mapped_column(primary_key=True)
    client_id: Mapped[int] = mapped_column(
        ForeignKey("clients.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    first_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    last_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    birthdate: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    relation_type: Mapped[str] = mapped_column(
        String(30),
        default="enfant",
        nullable=False,
        comment="conjoint | enfant | autre",
    )

    client: Mapped["Client"] = relationship("Client", back_populates="family_members")

    def __repr__(self) -> str:
        return f"<FamilyMember(id={self.id}, client_id={self.client_id}, relation={self.relation_type})>"
