"""
Tariff Models for Procedure Pricing.

A tariff is a versioned price catalogue (ISS, SOAT or a negotiated payer
contract) mapping procedure codes to a contracted unit price.
"""

from datetime import date
from decimal import Decimal
from typing import Optional
from uuid import UUID

from sqlalchemy import (
    Boolean,
    Date,
    Enum,
    ForeignKey,
    Index,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from glosa_audit.core.enums import TariffType
from glosa_audit.models.base import Base, TimeStampedModel, UUIDModel


class Tariff(Base, UUIDModel, TimeStampedModel):
    """
    Price catalogue with an effective window.

    payer_id NULL means the tariff is a general reference manual usable by
    any payer; otherwise it is scoped to that payer.
    """

    __tablename__ = "tariffs"

    name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        index=True,
        comment="Tariff name (e.g. ISS 2004)",
    )
    tariff_type: Mapped[TariffType] = mapped_column(
        Enum(TariffType),
        nullable=False,
        comment="ISS, SOAT, CONTRACT or CUSTOM",
    )
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    payer_id: Mapped[Optional[str]] = mapped_column(
        String(30),
        nullable=True,
        index=True,
        comment="Payer scope; NULL for reference manuals",
    )

    # Effective window
    effective_start: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    effective_end: Mapped[Optional[date]] = mapped_column(Date, nullable=True)

    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    is_default_reference: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
        comment="Fallback tariff when no payer tariff applies",
    )

    entries: Mapped[list["TariffEntry"]] = relationship(
        back_populates="tariff",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        Index("ix_tariffs_payer_window", "payer_id", "effective_start", "effective_end"),
    )

    def __repr__(self) -> str:
        return f"<Tariff(id={self.id}, name='{self.name}', payer='{self.payer_id}')>"

    def is_effective(self, on_date: date) -> bool:
        """Check whether the tariff window contains the date."""
        if not self.is_active:
            return False
        if on_date < self.effective_start:
            return False
        if self.effective_end and on_date > self.effective_end:
            return False
        return True

    def price_map(self) -> dict[str, Decimal]:
        """Procedure code -> unit price lookup over the loaded entries."""
        return {entry.procedure_code: entry.unit_price for entry in self.entries}


class TariffEntry(Base, UUIDModel):
    """Contracted unit price of one procedure code within a tariff."""

    __tablename__ = "tariff_entries"

    tariff_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("tariffs.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    procedure_code: Mapped[str] = mapped_column(String(20), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    unit_price: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)

    tariff: Mapped["Tariff"] = relationship(back_populates="entries")

    __table_args__ = (
        UniqueConstraint("tariff_id", "procedure_code", name="uq_tariff_entries_tariff_code"),
    )

    def __repr__(self) -> str:
        return f"<TariffEntry(code='{self.procedure_code}', unit_price={self.unit_price})>"
