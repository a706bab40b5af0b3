"""
Suivi (follow-up task) model.
"""

from datetime import date
from typing import Optional

from sqlalchemy import Date, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from advisy.models.base import Base, TenantMixin, TimestampMixin


class Suivi(Base, TenantMixin, TimestampMixin):
    """Follow-up reminder attached to a client."""

    __tablename__ = "suivis"

    id: Mapped[int] = mapped_column(primary_key=True)
    client_id: Mapped[int] = mapped_column(
        ForeignKey("clients.id"),
        nullable=False,
        index=True,
    )
    assigned_agent_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("clients.id"),
        nullable=True,
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    type: Mapped[Optional[str]] = mapped_column(
        String(30),
        nullable=True,
        comment="activation | resiliation | relance",
    )
    status: Mapped[str] = mapped_column(
        String(20),
        default="ouvert",
        nullable=False,
        index=True,
    )
    reminder_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)

    def __repr__(self) -> str:
        return f"<Suivi(id={self.id}, client_id={self.client_id}, title='{self.title}')>"
