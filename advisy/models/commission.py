"""
Commission models: the commission received on a policy and its split
between collaborators.
"""

from datetime import date, datetime
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import Date, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from advisy.models.base import Base, TenantMixin, TimestampMixin

if TYPE_CHECKING:
    from advisy.models.client import Client
    from advisy.models.policy import Policy


class Commission(Base, TenantMixin, TimestampMixin):
    """Commission paid by a company for a policy."""

    __tablename__ = "commissions"

    id: Mapped[int] = mapped_column(primary_key=True)
    policy_id: Mapped[int] = mapped_column(
        ForeignKey("policies.id"),
        nullable=False,
        index=True,
    )
    amount: Mapped[float] = mapped_column(Float, nullable=False)
    total_amount: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    type: Mapped[str] = mapped_column(
        String(30),
        default="acquisition",
        nullable=False,
        comment="acquisition | renewal | bonus",
    )
    status: Mapped[str] = mapped_column(
        String(20),
        default="due",
        nullable=False,
        index=True,
    )
    commission_date: Mapped[Optional[date]] = mapped_column("date", Date, nullable=True)
    period_month: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    period_year: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    paid_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    policy: Mapped["Policy"] = relationship("Policy")
    parts: Mapped[List["CommissionPartAgent"]] = relationship(
        "CommissionPartAgent",
        back_populates="commission",
        cascade="all, delete-orphan",
        order_by="CommissionPartAgent.id",
    )

    def __repr__(self) -> str:
        return f"<Commission(id={self.id}, policy_id={self.policy_id}, amount={self.amount})>"


class CommissionPartAgent(Base):
    """Share of a commission allocated to one collaborator."""

    __tablename__ = "commission_part_agent"

    id: Mapped[int] = mapped_column(primary_key=True)
    commission_id: Mapped[int] = mapped_column(
        ForeignKey("commissions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    agent_id: Mapped[int] = mapped_column(
        ForeignKey("clients.id"),
        nullable=False,
        index=True,
    )
    rate: Mapped[float] = mapped_column(
        Float,
        nullable=False,
        comment="Percentage of the commission (0-100)",
    )
    amount: Mapped[float] = mapped_column(Float, nullable=False)
    created_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        default=datetime.utcnow,
        nullable=True,
    )

    commission: Mapped["Commission"] = relationship("Commission", back_populates="parts")
    agent: Mapped["Client"] = relationship("Client")

    def __repr__(self) -> str:
        return f"<CommissionPartAgent(commission_id={self.commission_id}, agent_id={self.agent_id}, rate={self.rate})>"
