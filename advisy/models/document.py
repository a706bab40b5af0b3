"""
Documents and IA-scan records.

A DocumentScan is produced by the scan-document function: the uploaded
file, the detected document type and one DocumentScanResult per
extracted field. Multi-product contracts also carry the detected
products, split into the old (terminated) and new contract sets.
"""

from datetime import datetime
from typing import List, Optional

from sqlalchemy import JSON, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from advisy.models.base import Base, TenantMixin, TimestampMixin


class Document(Base, TenantMixin, TimestampMixin):
    """File attached to a client, policy or collaborator."""

    __tablename__ = "documents"

    id: Mapped[int] = mapped_column(primary_key=True)
    owner_type: Mapped[str] = mapped_column(
        String(30),
        nullable=False,
        comment="client | policy | collaborateur",
    )
    owner_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    file_name: Mapped[str] = mapped_column(String(255), nullable=False)
    file_key: Mapped[str] = mapped_column(
        String(500),
        nullable=False,
        comment="Object key in the storage bucket",
    )
    mime_type: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    doc_kind: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    category: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    created_by: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
    doc_metadata: Mapped[Optional[dict]] = mapped_column(
        "metadata",
        JSON,
        nullable=True,
    )

    def __repr__(self) -> str:
        return f"<Document(id={self.id}, owner={self.owner_type}:{self.owner_id}, file='{self.file_name}')>"


class DocumentScan(Base, TenantMixin, TimestampMixin):
    """AI extraction run over one uploaded document."""

    __tablename__ = "document_scans"

    id: Mapped[int] = mapped_column(primary_key=True)
    status: Mapped[str] = mapped_column(
        String(20),
        default="pending",
        nullable=False,
        index=True,
        comment="pending | validated | rejected",
    )
    original_file_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    original_file_key: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    detected_doc_type: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    overall_confidence: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    detected_products: Mapped[Optional[dict]] = mapped_column(
        JSON,
        nullable=True,
        comment="{'old': [...], 'new': [...], 'termination': bool}",
    )
    family_members: Mapped[Optional[list]] = mapped_column(JSON, nullable=True)
    validated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    validated_by: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)

    fields: Mapped[List["DocumentScanResult"]] = relationship(
        "DocumentScanResult",
        back_populates="scan",
        cascade="all, delete-orphan",
        order_by="DocumentScanResult.id",
    )

    def __repr__(self) -> str:
        return f"<DocumentScan(id={self.id}, status={self.status}, type={self.detected_doc_type})>"


class DocumentScanResult(Base):
    """Single field extracted from a scanned document."""

    __tablename__ = "document_scan_results"

    id: Mapped[int] = mapped_column(primary_key=True)
    scan_id: Mapped[int] = mapped_column(
        ForeignKey("document_scans.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    field_name: Mapped[str] = mapped_column(String(50), nullable=False)
    field_category: Mapped[str] = mapped_column(
        String(30),
        nullable=False,
        comment="client | contract | premium | guarantees",
    )
    extracted_value: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    validated_value: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    confidence: Mapped[str] = mapped_column(
        String(10),
        default="medium",
        nullable=False,
        comment="high | medium | low",
    )

    scan: Mapped["DocumentScan"] = relationship("DocumentScan", back_populates="fields")

    def __repr__(self) -> str:
        return f"<DocumentScanResult(scan_id={self.scan_id}, field='{self.field_name}')>"
