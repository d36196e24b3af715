"""
Pydantic Schemas for Audit Rules.

A rule is a list of field conditions combined with AND/OR plus a glosa
template. The template's pricing is a tagged union keyed by ``strategy`` so
a percentage rule always carries a percentage and a fixed-amount rule always
carries an amount.
"""

from datetime import datetime
from decimal import Decimal
from typing import Annotated, Any, Literal, Optional, Union
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from glosa_audit.core.enums import (
    ConditionOperator,
    GlosaCategory,
    LogicalOperator,
    PricingStrategy,
)
from glosa_audit.utils.money import ZERO, to_money


# =============================================================================
# Conditions
# =============================================================================


class RuleConditionSchema(BaseModel):
    """One `{field, operator, value}` condition."""

    field: str = Field(..., min_length=1, description="Fact name, e.g. delta")
    operator: ConditionOperator
    value: Any = Field(default=None, description="Comparison value (unused by exists/not_exists)")


# =============================================================================
# Pricing Strategies
# =============================================================================


class DifferencePricing(BaseModel):
    """Deduct the positive tariff deviation."""

    strategy: Literal[PricingStrategy.DIFFERENCE] = PricingStrategy.DIFFERENCE

    def amount(self, billed_total: Decimal, delta: Decimal) -> Decimal:
        return to_money(max(ZERO, delta))

    @property
    def percentage(self) -> Optional[Decimal]:
        return None


class FullAmountPricing(BaseModel):
    """Deduct the whole billed amount."""

    strategy: Literal[PricingStrategy.FULL_AMOUNT] = PricingStrategy.FULL_AMOUNT

    def amount(self, billed_total: Decimal, delta: Decimal) -> Decimal:
        return to_money(billed_total)

    @property
    def percentage(self) -> Optional[Decimal]:
        return None


class PercentagePricing(BaseModel):
    """Deduct a percentage of the billed amount."""

    strategy: Literal[PricingStrategy.PERCENTAGE] = PricingStrategy.PERCENTAGE
    percentage: Decimal = Field(..., gt=0, le=100)

    def amount(self, billed_total: Decimal, delta: Decimal) -> Decimal:
        return to_money(billed_total * self.percentage / Decimal(100))


class FixedAmountPricing(BaseModel):
    """Deduct a fixed amount regardless of the billed value."""

    strategy: Literal[PricingStrategy.FIXED_AMOUNT] = PricingStrategy.FIXED_AMOUNT
    fixed_amount: Decimal = Field(..., ge=0)

    def amount(self, billed_total: Decimal, delta: Decimal) -> Decimal:
        return to_money(self.fixed_amount)

    @property
    def percentage(self) -> Optional[Decimal]:
        return None


GlosaPricing = Annotated[
    Union[DifferencePricing, FullAmountPricing, PercentagePricing, FixedAmountPricing],
    Field(discriminator="strategy"),
]


class GlosaTemplate(BaseModel):
    """What a matching rule produces."""

    code: str = Field(..., min_length=1, max_length=20, description="Glosa code, e.g. G001")
    category: GlosaCategory
    description: str = Field(..., min_length=1)
    pricing: GlosaPricing


# =============================================================================
# Rule Definitions
# =============================================================================


class AuditRuleCreate(BaseModel):
    """Schema for creating an audit rule."""

    code: str = Field(..., min_length=1, max_length=50)
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    version: int = Field(default=1, ge=1)
    priority: int = Field(default=100, description="Lower runs first")
    is_active: bool = True
    rule_group: Optional[str] = Field(None, max_length=50)
    conditions: list[RuleConditionSchema] = Field(default_factory=list)
    logical_operator: LogicalOperator = LogicalOperator.AND
    glosa: GlosaTemplate


class AuditRuleRead(BaseModel):
    """Schema for audit rule response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    code: str
    name: str
    description: Optional[str] = None
    version: int
    priority: int
    is_active: bool
    rule_group: Optional[str] = None
    conditions: list[RuleConditionSchema]
    logical_operator: LogicalOperator
    glosa_code: str
    glosa_category: GlosaCategory
    glosa_description: str
    pricing_strategy: PricingStrategy
    percentage: Optional[Decimal] = None
    fixed_amount: Optional[Decimal] = None
    created_at: datetime
    updated_at: datetime
