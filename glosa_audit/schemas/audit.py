"""
Pydantic Schemas for Audit Runs and Audit Sessions.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from glosa_audit.core.enums import GlosaCategory, ResultTone, SessionStatus, StepStatus


# =============================================================================
# Audit Result Schemas
# =============================================================================


class CategoryTotal(BaseModel):
    """Deductions aggregated by glosa category."""

    category: GlosaCategory
    amount: Decimal
    count: int


class AuditResult(BaseModel):
    """Outcome of a full audit run."""

    claim_id: UUID
    claim_number: str
    original_amount: Decimal = Field(..., description="Claim total before deductions")
    total_deductions: Decimal
    accepted_amount: Decimal
    glosa_count: int
    deductions_by_category: list[CategoryTotal] = Field(default_factory=list)
    observations: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    audited_at: Optional[datetime] = None
    processing_time_ms: int = 0


class ClaimAuditOutcome(BaseModel):
    """Per-claim outcome within a batch audit."""

    claim_id: UUID
    success: bool
    result: Optional[AuditResult] = None
    error: Optional[str] = None


class BatchAuditRequest(BaseModel):
    """Request to audit several claims independently."""

    claim_ids: list[UUID] = Field(..., min_length=1, max_length=500)


# =============================================================================
# Audit Session Schemas
# =============================================================================


class EvidenceItem(BaseModel):
    """A piece of data an audit step relied on."""

    field: str
    value: Any = None
    source: str
    location: Optional[str] = None
    explanation: Optional[str] = None


class StepResultLine(BaseModel):
    """A labelled result shown for an audit step."""

    label: str
    value: str
    tone: ResultTone = ResultTone.SUCCESS


class AdvanceSessionRequest(BaseModel):
    """Optional explicit step number when advancing a session."""

    step_number: Optional[int] = Field(None, ge=1, le=6)


class AuditStepRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    number: int
    title: str
    description: Optional[str] = None
    status: StepStatus
    data_used: list[str] = Field(default_factory=list)
    evidence: list[EvidenceItem] = Field(default_factory=list)
    process_notes: list[str] = Field(default_factory=list)
    results: list[StepResultLine] = Field(default_factory=list)
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None
    duration_ms: Optional[int] = None
    error: Optional[str] = None


class AuditSessionRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    claim_id: UUID
    current_step: int
    total_steps: int
    status: SessionStatus
    original_amount: Optional[Decimal] = None
    total_deductions: Optional[Decimal] = None
    accepted_amount: Optional[Decimal] = None
    glosa_count: Optional[int] = None
    completed_at: Optional[datetime] = None
    steps: list[AuditStepRead] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime
