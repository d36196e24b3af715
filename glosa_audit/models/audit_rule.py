"""
Audit Rule Model.

Configurable rule rows: conditions over line-item facts plus the template of
the glosa produced when they hold.
"""

from decimal import Decimal
from typing import Optional

from pydantic import ValidationError
from sqlalchemy import Boolean, CheckConstraint, Enum, Index, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from glosa_audit.core.enums import GlosaCategory, LogicalOperator, PricingStrategy
from glosa_audit.core.exceptions import RuleConfigurationError
from glosa_audit.models.base import Base, JSONType, TimeStampedModel, UUIDModel
from glosa_audit.schemas.rule import (
    AuditRuleCreate,
    DifferencePricing,
    FixedAmountPricing,
    FullAmountPricing,
    GlosaPricing,
    PercentagePricing,
    RuleConditionSchema,
)


class AuditRule(Base, UUIDModel, TimeStampedModel):
    """
    Audit rule definition.

    Rules run in priority order (lower first), ties broken by code.
    """

    __tablename__ = "audit_rules"

    code: Mapped[str] = mapped_column(String(50), unique=True, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    version: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    priority: Mapped[int] = mapped_column(
        Integer,
        default=100,
        nullable=False,
        comment="Evaluation order, lower first",
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    rule_group: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)

    # Conditions
    conditions: Mapped[list] = mapped_column(
        JSONType,
        default=list,
        nullable=False,
        comment="List of {field, operator, value}",
    )
    logical_operator: Mapped[LogicalOperator] = mapped_column(
        Enum(LogicalOperator),
        default=LogicalOperator.AND,
        nullable=False,
    )

    # Glosa template
    glosa_code: Mapped[str] = mapped_column(String(20), nullable=False)
    glosa_category: Mapped[GlosaCategory] = mapped_column(Enum(GlosaCategory), nullable=False)
    glosa_description: Mapped[str] = mapped_column(Text, nullable=False)
    pricing_strategy: Mapped[PricingStrategy] = mapped_column(
        Enum(PricingStrategy),
        default=PricingStrategy.FULL_AMOUNT,
        nullable=False,
    )
    percentage: Mapped[Optional[Decimal]] = mapped_column(Numeric(5, 2), nullable=True)
    fixed_amount: Mapped[Optional[Decimal]] = mapped_column(Numeric(14, 2), nullable=True)

    __table_args__ = (
        CheckConstraint(
            "pricing_strategy != 'PERCENTAGE' OR percentage IS NOT NULL",
            name="ck_audit_rules_percentage_required",
        ),
        CheckConstraint(
            "pricing_strategy != 'FIXED_AMOUNT' OR fixed_amount IS NOT NULL",
            name="ck_audit_rules_fixed_amount_required",
        ),
        Index("ix_audit_rules_active_priority", "is_active", "priority"),
    )

    def __repr__(self) -> str:
        return f"<AuditRule(code='{self.code}', priority={self.priority}, active={self.is_active})>"

    def condition_list(self) -> list[RuleConditionSchema]:
        """Parse the stored JSON conditions."""
        try:
            return [RuleConditionSchema.model_validate(c) for c in (self.conditions or [])]
        except ValidationError as e:
            raise RuleConfigurationError(self.code, f"invalid conditions: {e}") from e

    def pricing(self) -> GlosaPricing:
        """Build the pricing variant of the glosa template."""
        try:
            if self.pricing_strategy == PricingStrategy.DIFFERENCE:
                return DifferencePricing()
            if self.pricing_strategy == PricingStrategy.FULL_AMOUNT:
                return FullAmountPricing()
            if self.pricing_strategy == PricingStrategy.PERCENTAGE:
                return PercentagePricing(percentage=self.percentage)
            if self.pricing_strategy == PricingStrategy.FIXED_AMOUNT:
                return FixedAmountPricing(fixed_amount=self.fixed_amount)
        except ValidationError as e:
            raise RuleConfigurationError(self.code, f"invalid pricing parameters: {e}") from e
        raise RuleConfigurationError(self.code, f"unknown pricing strategy {self.pricing_strategy}")

    @classmethod
    def from_definition(cls, definition: AuditRuleCreate) -> "AuditRule":
        """Create a rule row from a validated definition."""
        pricing = definition.glosa.pricing
        return cls(
            code=definition.code,
            name=definition.name,
            description=definition.description,
            version=definition.version,
            priority=definition.priority,
            is_active=definition.is_active,
            rule_group=definition.rule_group,
            conditions=[c.model_dump(mode="json") for c in definition.conditions],
            logical_operator=definition.logical_operator,
            glosa_code=definition.glosa.code,
            glosa_category=definition.glosa.category,
            glosa_description=definition.glosa.description,
            pricing_strategy=pricing.strategy,
            percentage=pricing.percentage,
            fixed_amount=getattr(pricing, "fixed_amount", None),
        )
