"""
Claim Models for Medical Billing Audit.

A claim (invoice) owns encounters; each encounter owns the billed line items
and the supporting documents filed with it.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Optional
from uuid import UUID

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from glosa_audit.core.enums import ClaimStatus, PatientDocumentType
from glosa_audit.models.base import Base, JSONType, TimeStampedModel, UUIDModel, utcnow

if TYPE_CHECKING:
    from glosa_audit.models.glosa import Glosa

ZERO = Decimal("0")


class Claim(Base, UUIDModel, TimeStampedModel):
    """
    Invoice submitted by a provider to a payer.

    Aggregate totals (total_deductions, accepted_amount) are written by the
    audit engine and by glosa edits; accepted_amount always equals
    total_amount - total_deductions after either.
    """

    __tablename__ = "claims"

    # Identification
    claim_number: Mapped[str] = mapped_column(
        String(50),
        unique=True,
        nullable=False,
        index=True,
        comment="Invoice number issued by the provider",
    )
    issue_date: Mapped[date] = mapped_column(
        Date,
        nullable=False,
        comment="Invoice issue date (tariff reference date)",
    )
    filed_date: Mapped[Optional[date]] = mapped_column(
        Date,
        nullable=True,
        comment="Date the invoice was filed with the payer",
    )

    # Parties
    provider_tax_id: Mapped[str] = mapped_column(
        String(30),
        nullable=False,
        comment="Issuing provider tax ID",
    )
    provider_name: Mapped[str] = mapped_column(String(255), nullable=False)
    payer_id: Mapped[str] = mapped_column(
        String(30),
        nullable=False,
        index=True,
        comment="Payer identifier (tax ID or code)",
    )
    payer_name: Mapped[str] = mapped_column(String(255), nullable=False)

    # Contract
    contract_number: Mapped[Optional[str]] = mapped_column(
        String(50),
        nullable=True,
        comment="Contract reference between provider and payer",
    )
    tariff_id: Mapped[Optional[UUID]] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("tariffs.id", ondelete="SET NULL"),
        nullable=True,
        comment="Tariff pinned for this claim (overrides resolution)",
    )

    # Amounts
    gross_amount: Mapped[Decimal] = mapped_column(Numeric(14, 2), default=ZERO, nullable=False)
    tax_amount: Mapped[Decimal] = mapped_column(Numeric(14, 2), default=ZERO, nullable=False)
    total_amount: Mapped[Decimal] = mapped_column(
        Numeric(14, 2),
        nullable=False,
        comment="Net invoice amount",
    )

    # Status
    status: Mapped[ClaimStatus] = mapped_column(
        Enum(ClaimStatus),
        default=ClaimStatus.FILED,
        nullable=False,
        index=True,
    )

    # Audit outcome
    total_deductions: Mapped[Decimal] = mapped_column(
        Numeric(14, 2),
        default=ZERO,
        nullable=False,
        comment="Sum of all glosa amounts",
    )
    accepted_amount: Mapped[Decimal] = mapped_column(
        Numeric(14, 2),
        default=ZERO,
        nullable=False,
        comment="total_amount - total_deductions",
    )
    audit_completed: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    audited_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    observations: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Relationships
    encounters: Mapped[list["Encounter"]] = relationship(
        back_populates="claim",
        cascade="all, delete-orphan",
        order_by="Encounter.encounter_number",
    )
    status_history: Mapped[list["ClaimStatusHistory"]] = relationship(
        back_populates="claim",
        cascade="all, delete-orphan",
        order_by="ClaimStatusHistory.changed_at",
    )

    __table_args__ = (
        Index("ix_claims_status_issue_date", "status", "issue_date"),
        Index("ix_claims_payer_status", "payer_id", "status"),
    )

    def __repr__(self) -> str:
        return f"<Claim(id={self.id}, number='{self.claim_number}', status='{self.status}')>"

    @property
    def line_items(self) -> list["LineItem"]:
        """All line items across encounters, in encounter then line order."""
        return [item for encounter in self.encounters for item in encounter.line_items]

    def apply_totals(self, total_deductions: Decimal) -> None:
        """Set the aggregate deduction and keep accepted_amount consistent."""
        self.total_deductions = total_deductions
        self.accepted_amount = self.total_amount - total_deductions


class ClaimStatusHistory(Base, UUIDModel):
    """Status change history for a claim."""

    __tablename__ = "claim_status_history"

    claim_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("claims.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    previous_status: Mapped[Optional[ClaimStatus]] = mapped_column(Enum(ClaimStatus), nullable=True)
    new_status: Mapped[ClaimStatus] = mapped_column(Enum(ClaimStatus), nullable=False)
    changed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
        index=True,
    )
    actor_type: Mapped[str] = mapped_column(
        String(20),
        default="system",
        nullable=False,
        comment="Actor type: system, user, api",
    )
    reason: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    claim: Mapped["Claim"] = relationship(back_populates="status_history")

    def __repr__(self) -> str:
        return f"<ClaimStatusHistory(claim_id={self.claim_id}, {self.previous_status} -> {self.new_status})>"


class Encounter(Base, UUIDModel, TimeStampedModel):
    """
    One care episode for one patient under a claim.

    Authorization flags are written by the authorization validator.
    """

    __tablename__ = "encounters"

    claim_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("claims.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    encounter_number: Mapped[str] = mapped_column(String(50), nullable=False)

    # Authorization
    authorization_number: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    authorization_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)

    # Patient (minimal identification only)
    patient_document_type: Mapped[PatientDocumentType] = mapped_column(
        Enum(PatientDocumentType),
        default=PatientDocumentType.CC,
        nullable=False,
    )
    patient_document_number: Mapped[str] = mapped_column(
        String(30),
        nullable=False,
        comment="Masked or hashed in production",
    )

    # Diagnoses (ICD-10)
    principal_diagnosis: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)
    principal_diagnosis_description: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    secondary_diagnoses: Mapped[list] = mapped_column(JSONType, default=list, nullable=False)

    # Dates
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)

    # Patient payments
    copayment: Mapped[Decimal] = mapped_column(Numeric(14, 2), default=ZERO, nullable=False)
    moderating_fee: Mapped[Decimal] = mapped_column(Numeric(14, 2), default=ZERO, nullable=False)

    # Validation flags
    authorization_required: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    has_authorization: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    authorization_valid: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # Relationships
    claim: Mapped["Claim"] = relationship(back_populates="encounters")
    line_items: Mapped[list["LineItem"]] = relationship(
        back_populates="encounter",
        cascade="all, delete-orphan",
        order_by="LineItem.line_number",
    )
    supporting_documents: Mapped[list["SupportingDocument"]] = relationship(
        back_populates="encounter",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        Index("ix_encounters_claim_number", "claim_id", "encounter_number"),
    )

    def __repr__(self) -> str:
        return f"<Encounter(id={self.id}, number='{self.encounter_number}')>"


class SupportingDocument(Base, UUIDModel, TimeStampedModel):
    """Document filed to support an encounter (clinical history, authorization, etc.)."""

    __tablename__ = "supporting_documents"

    encounter_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("encounters.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    document_type: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        comment="clinical_history, authorization, invoice, etc.",
    )
    filename: Mapped[str] = mapped_column(String(255), nullable=False)

    encounter: Mapped["Encounter"] = relationship(back_populates="supporting_documents")


class LineItem(Base, UUIDModel, TimeStampedModel):
    """
    One billed procedure row within an encounter.

    billed_total = quantity * billed_unit_price
    payable_amount = billed_total - deducted_total (not clamped)
    """

    __tablename__ = "line_items"

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
    line_number: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        comment="Position within the encounter (1-based, stable input order)",
    )

    # Procedure (CUPS)
    procedure_code: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    description: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    quantity: Mapped[int] = mapped_column(Integer, default=1, nullable=False)

    # Billed values
    billed_unit_price: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    billed_total: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)

    # Contracted values
    contracted_unit_price: Mapped[Decimal] = mapped_column(Numeric(14, 2), default=ZERO, nullable=False)
    contracted_total: Mapped[Decimal] = mapped_column(Numeric(14, 2), default=ZERO, nullable=False)
    tariff_delta: Mapped[Decimal] = mapped_column(
        Numeric(14, 2),
        default=ZERO,
        nullable=False,
        comment="billed_total - contracted_total",
    )

    # Deductions
    deducted_total: Mapped[Decimal] = mapped_column(Numeric(14, 2), default=ZERO, nullable=False)
    payable_amount: Mapped[Decimal] = mapped_column(Numeric(14, 2), default=ZERO, nullable=False)

    # Validation flags
    requires_authorization: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    duplicate: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    tariff_validated: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    pertinence_validated: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # Relationships
    encounter: Mapped["Encounter"] = relationship(back_populates="line_items")
    glosas: Mapped[list["Glosa"]] = relationship(
        back_populates="line_item",
        cascade="all, delete-orphan",
        order_by="Glosa.generated_at",
    )

    __table_args__ = (
        Index("ix_line_items_encounter_line", "encounter_id", "line_number"),
        Index("ix_line_items_claim_code", "claim_id", "procedure_code"),
    )

    def __repr__(self) -> str:
        return f"<LineItem(encounter_id={self.encounter_id}, line={self.line_number}, code='{self.procedure_code}')>"

    def set_contracted_price(self, unit_price: Decimal) -> None:
        self.contracted_unit_price = unit_price
        self.contracted_total = unit_price * self.quantity
        self.tariff_delta = self.billed_total - self.contracted_total
        self.tariff_validated = True

    def clear_contracted_price(self) -> None:
        self.contracted_unit_price = ZERO
        self.contracted_total = ZERO
        self.tariff_delta = ZERO
        self.tariff_validated = False

    def add_deduction(self, amount: Decimal) -> None:
        self.deducted_total = (self.deducted_total or ZERO) + amount
        self.payable_amount = self.billed_total - self.deducted_total

    def recompute_deductions(self) -> None:
        """Recompute deducted_total and payable_amount from the loaded glosas."""
        self.deducted_total = sum((glosa.amount for glosa in self.glosas), ZERO)
        self.payable_amount = self.billed_total - self.deducted_total
