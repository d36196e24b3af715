"""
Pydantic Schemas for Glosas.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from glosa_audit.core.enums import GlosaCategory, GlosaStatus


class GlosaUpdate(BaseModel):
    """
    Manual edit of a glosa by an auditor.

    Only the fields that are set are applied. Changing the amount
    recomputes the line item and claim totals; rules are not re-run.
    """

    amount: Optional[Decimal] = Field(None, ge=0, description="New deducted amount")
    status: Optional[GlosaStatus] = None
    justification: Optional[str] = Field(None, max_length=2000)
    observations: Optional[str] = Field(None, max_length=2000)
    provider_response: Optional[str] = Field(None, max_length=4000)


class GlosaRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    line_item_id: UUID
    encounter_id: UUID
    claim_id: UUID
    rule_code: str
    code: str
    category: GlosaCategory
    description: str
    amount: Decimal
    percentage: Optional[Decimal] = None
    observations: Optional[str] = None
    justification: Optional[str] = None
    status: GlosaStatus
    auto_generated: bool
    generated_at: datetime
    provider_response: Optional[str] = None
    responded_at: Optional[datetime] = None
