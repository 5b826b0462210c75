"""
SQLAlchemy ORM models for eco-manager.

Uses SQLAlchemy 2.0 declarative style with Mapped[] type annotations.
All timestamps are stored as UTC strings in ISO-8601 format.
Affected part references are stored as a text column (JSON array or
comma-separated IPNs) and parsed on read.

Relationships:
    ecos (1) ──< eco_revisions
    parts      (independent inventory table, referenced by IPN only)
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import (
    CheckConstraint,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


def _utcnow_str() -> str:
    """Return current UTC time as ISO-8601 string."""
    return datetime.now(timezone.utc).isoformat()


class Base(DeclarativeBase):
    """Declarative base for all ORM models."""
    pass


class Part(Base):
    """
    Inventory part, identified by its IPN (internal part number).
    Populated at DB initialization from parts_catalog.json.
    """
    __tablename__ = "parts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    ipn: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    description: Mapped[str] = mapped_column(String(512), nullable=False, default="")
    category: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    manufacturer: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    mpn: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    created_at: Mapped[str] = mapped_column(String(32), nullable=False, default=_utcnow_str)

    def __repr__(self) -> str:
        return f"<Part ipn={self.ipn!r} desc={self.description[:30]!r}>"


class ECO(Base):
    """
    An Engineering Change Order.
    The status column only changes through the lifecycle transitions;
    title/description/reason/priority/affected_ipns are editable while draft.
    """
    __tablename__ = "ecos"
    __table_args__ = (
        CheckConstraint(
            "status IN ('draft', 'open', 'approved', 'rejected', 'implemented')",
            name="ck_ecos_status",
        ),
        CheckConstraint(
            "priority IN ('low', 'normal', 'high')",
            name="ck_ecos_priority",
        ),
    )

    id: Mapped[str] = mapped_column(String(16), primary_key=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    reason: Mapped[str] = mapped_column(Text, nullable=False, default="")
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="draft")
    priority: Mapped[str] = mapped_column(String(16), nullable=False, default="normal")
    affected_ipns: Mapped[str] = mapped_column(Text, nullable=False, default="")
    ncr_id: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    created_by: Mapped[str] = mapped_column(String(64), nullable=False, default="engineer")
    created_at: Mapped[str] = mapped_column(String(32), nullable=False, default=_utcnow_str)
    updated_at: Mapped[str] = mapped_column(String(32), nullable=False, default=_utcnow_str)
    approved_at: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    approved_by: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)

    revisions: Mapped[list[ECORevision]] = relationship(
        "ECORevision", back_populates="eco", order_by="ECORevision.id"
    )

    @property
    def latest_revision(self) -> Optional[ECORevision]:
        """Returns the most recently created revision, or None."""
        return self.revisions[-1] if self.revisions else None

    def __repr__(self) -> str:
        return f"<ECO id={self.id!r} status={self.status!r} title={self.title[:30]!r}>"


class ECORevision(Base):
    """
    One entry in an ECO's revision history.
    Approval and implementation stamps are written onto the latest revision.
    """
    __tablename__ = "eco_revisions"
    __table_args__ = (
        UniqueConstraint("eco_id", "revision", name="uq_eco_revisions_eco_rev"),
        CheckConstraint(
            "status IN ('created', 'approved', 'implemented')",
            name="ck_eco_revisions_status",
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    eco_id: Mapped[str] = mapped_column(String(16), ForeignKey("ecos.id"), nullable=False)
    revision: Mapped[str] = mapped_column(String(8), nullable=False, default="A")
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="created")
    changes_summary: Mapped[str] = mapped_column(Text, nullable=False, default="")
    created_by: Mapped[str] = mapped_column(String(64), nullable=False, default="engineer")
    created_at: Mapped[str] = mapped_column(String(32), nullable=False, default=_utcnow_str)
    approved_by: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    approved_at: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    implemented_by: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    implemented_at: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    effectivity_date: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    notes: Mapped[str] = mapped_column(Text, nullable=False, default="")

    eco: Mapped[ECO] = relationship("ECO", back_populates="revisions")

    def __repr__(self) -> str:
        return (
            f"<ECORevision eco_id={self.eco_id!r} rev={self.revision!r} "
            f"status={self.status!r}>"
        )


# Explicit index definitions (SQLAlchemy emits CREATE INDEX on create_all)
Index("idx_ecos_status", ECO.status)
Index("idx_eco_revisions_eco_id", ECORevision.eco_id)
