"""
Glosa Model.

A glosa is a priced deduction against one line item, produced by one audit
rule. At most one glosa exists per (line item, rule).
"""

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Optional
from uuid import UUID

from sqlalchemy import (
    Boolean,
    DateTime,
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

from glosa_audit.core.enums import GlosaCategory, GlosaStatus
from glosa_audit.models.base import Base, TimeStampedModel, UUIDModel, utcnow

if TYPE_CHECKING:
    from glosa_audit.models.claim import LineItem


class Glosa(Base, UUIDModel, TimeStampedModel):
    """Deduction applied to a line item."""

    __tablename__ = "glosas"

    line_item_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("line_items.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    encounter_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("encounters.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    claim_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("claims.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    rule_code: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        comment="Code of the audit rule that produced this glosa",
    )

    # Classification
    code: Mapped[str] = mapped_column(String(20), nullable=False, comment="Glosa code, e.g. G001")
    category: Mapped[GlosaCategory] = mapped_column(Enum(GlosaCategory), nullable=False, index=True)
    description: Mapped[str] = mapped_column(Text, nullable=False)

    # Amounts
    amount: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    percentage: Mapped[Optional[Decimal]] = mapped_column(Numeric(5, 2), nullable=True)

    observations: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    justification: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Negotiation
    status: Mapped[GlosaStatus] = mapped_column(
        Enum(GlosaStatus),
        default=GlosaStatus.PENDING,
        nullable=False,
        index=True,
    )
    auto_generated: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    generated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    provider_response: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    responded_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    line_item: Mapped["LineItem"] = relationship(back_populates="glosas")

    __table_args__ = (
        UniqueConstraint("line_item_id", "rule_code", name="uq_glosas_line_item_rule"),
        Index("ix_glosas_claim_category", "claim_id", "category"),
    )

    def __repr__(self) -> str:
        return f"<Glosa(code='{self.code}', rule='{self.rule_code}', amount={self.amount})>"
