"""
Audit Session Models.

An audit session walks a claim through the six audit steps one operator
request at a time and keeps an inspectable record of each step.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from sqlalchemy import (
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from glosa_audit.core.enums import SessionStatus, StepStatus
from glosa_audit.models.base import Base, JSONType, TimeStampedModel, UUIDModel

TOTAL_STEPS = 6


class AuditSession(Base, UUIDModel, TimeStampedModel):
    """Step-by-step audit of one claim."""

    __tablename__ = "audit_sessions"

    claim_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("claims.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    current_step: Mapped[int] = mapped_column(
        Integer,
        default=0,
        nullable=False,
        comment="Last step executed (0 before the first)",
    )
    total_steps: Mapped[int] = mapped_column(Integer, default=TOTAL_STEPS, nullable=False)
    status: Mapped[SessionStatus] = mapped_column(
        Enum(SessionStatus),
        default=SessionStatus.STARTED,
        nullable=False,
        index=True,
    )

    # Final result
    original_amount: Mapped[Optional[Decimal]] = mapped_column(Numeric(14, 2), nullable=True)
    total_deductions: Mapped[Optional[Decimal]] = mapped_column(Numeric(14, 2), nullable=True)
    accepted_amount: Mapped[Optional[Decimal]] = mapped_column(Numeric(14, 2), nullable=True)
    glosa_count: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    steps: Mapped[list["AuditSessionStep"]] = relationship(
        back_populates="session",
        cascade="all, delete-orphan",
        order_by="AuditSessionStep.number",
    )

    def __repr__(self) -> str:
        return f"<AuditSession(id={self.id}, step={self.current_step}/{self.total_steps}, status='{self.status}')>"

    @property
    def is_terminal(self) -> bool:
        return self.status in (SessionStatus.COMPLETED, SessionStatus.ERROR)

    def step(self, number: int) -> Optional["AuditSessionStep"]:
        for step in self.steps:
            if step.number == number:
                return step
        return None


class AuditSessionStep(Base, UUIDModel, TimeStampedModel):
    """Record of one executed audit step."""

    __tablename__ = "audit_session_steps"

    session_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("audit_sessions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    number: Mapped[int] = mapped_column(Integer, nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[StepStatus] = mapped_column(
        Enum(StepStatus),
        default=StepStatus.PENDING,
        nullable=False,
    )

    data_used: Mapped[list] = mapped_column(JSONType, default=list, nullable=False)
    evidence: Mapped[list] = mapped_column(
        JSONType,
        default=list,
        nullable=False,
        comment="List of {field, value, source, location, explanation}",
    )
    process_notes: Mapped[list] = mapped_column(JSONType, default=list, nullable=False)
    results: Mapped[list] = mapped_column(
        JSONType,
        default=list,
        nullable=False,
        comment="List of {label, value, tone}",
    )

    started_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    finished_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    duration_ms: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    error: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    session: Mapped["AuditSession"] = relationship(back_populates="steps")

    __table_args__ = (
        UniqueConstraint("session_id", "number", name="uq_audit_session_steps_number"),
        Index("ix_audit_session_steps_status", "session_id", "status"),
    )

    def __repr__(self) -> str:
        return f"<AuditSessionStep(number={self.number}, status='{self.status}')>"
