"""
Audit Rule Engine.

Evaluates configurable audit rules against the facts of each line item and
materialises a priced glosa for every (line item, rule) match.

Rules:
- Conditions are `{field, operator, value}` over LineItemFacts
- AND requires every condition, OR requires at least one
- Active rules run in priority order (lower first), ties broken by code
- At most one glosa per (line item, rule); re-running is a no-op
- Deductions are additive and not capped at the billed amount
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Optional, Sequence
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from glosa_audit.core.enums import ConditionOperator, GlosaCategory, LogicalOperator
from glosa_audit.models.audit_rule import AuditRule
from glosa_audit.models.claim import Encounter, LineItem
from glosa_audit.models.glosa import Glosa
from glosa_audit.schemas.rule import GlosaPricing, RuleConditionSchema
from glosa_audit.utils.money import ZERO, to_money

logger = logging.getLogger(__name__)

OBSERVATION_TEMPLATE = "Generated by rule: {name}"


# =============================================================================
# Facts
# =============================================================================


@dataclass(frozen=True)
class LineItemFacts:
    """Closed set of facts a rule condition can reference."""

    procedure_code: str
    quantity: int
    billed_total: Decimal
    contracted_total: Decimal
    delta: Decimal
    percentage_delta: Decimal
    requires_authorization: bool
    has_authorization: bool
    authorization_valid: bool
    duplicate: bool
    pertinence_validated: bool
    tariff_validated: bool
    supporting_documents: Optional[tuple[str, ...]] = None
    line_item_id: Optional[UUID] = None

    @classmethod
    def from_line_item(cls, line_item: LineItem, encounter: Encounter) -> "LineItemFacts":
        contracted_total = line_item.contracted_total or ZERO
        delta = line_item.tariff_delta or ZERO
        if contracted_total != 0:
            percentage_delta = delta / contracted_total * Decimal(100)
        else:
            percentage_delta = ZERO

        documents = tuple(doc.document_type for doc in encounter.supporting_documents)

        return cls(
            procedure_code=line_item.procedure_code,
            quantity=line_item.quantity,
            billed_total=line_item.billed_total,
            contracted_total=contracted_total,
            delta=delta,
            percentage_delta=percentage_delta,
            requires_authorization=bool(line_item.requires_authorization),
            has_authorization=bool(encounter.has_authorization),
            authorization_valid=bool(encounter.authorization_valid),
            duplicate=bool(line_item.duplicate),
            pertinence_validated=bool(line_item.pertinence_validated),
            tariff_validated=bool(line_item.tariff_validated),
            supporting_documents=documents or None,
            line_item_id=line_item.id,
        )

    def get(self, name: str) -> Any:
        """Resolve a fact by name. Unknown names never raise."""
        accessor = FACT_ACCESSORS.get(name)
        if accessor is None:
            return FACT_FALLBACKS.get(name)
        return accessor(self)


FACT_ACCESSORS: dict[str, Callable[[LineItemFacts], Any]] = {
    "procedure_code": lambda f: f.procedure_code,
    "quantity": lambda f: f.quantity,
    "billed_total": lambda f: f.billed_total,
    "contracted_total": lambda f: f.contracted_total,
    "delta": lambda f: f.delta,
    "tariff_delta": lambda f: f.delta,
    "percentage_delta": lambda f: f.percentage_delta,
    "requires_authorization": lambda f: f.requires_authorization,
    "has_authorization": lambda f: f.has_authorization,
    "authorization_valid": lambda f: f.authorization_valid,
    "duplicate": lambda f: f.duplicate,
    "pertinence_validated": lambda f: f.pertinence_validated,
    "tariff_validated": lambda f: f.tariff_validated,
    "supporting_documents": lambda f: f.supporting_documents,
}

# Field names rules may reference that no step computes yet
FACT_FALLBACKS: dict[str, Any] = {
    "incompatible_procedures": False,
}


# =============================================================================
# Rule Definitions
# =============================================================================


@dataclass(frozen=True)
class CompiledRule:
    """Validated, immutable view of an active AuditRule row."""

    code: str
    name: str
    priority: int
    conditions: tuple[RuleConditionSchema, ...]
    logical_operator: LogicalOperator
    glosa_code: str
    glosa_category: GlosaCategory
    glosa_description: str
    pricing: GlosaPricing

    @classmethod
    def from_model(cls, rule: AuditRule) -> "CompiledRule":
        return cls(
            code=rule.code,
            name=rule.name,
            priority=rule.priority,
            conditions=tuple(rule.condition_list()),
            logical_operator=rule.logical_operator,
            glosa_code=rule.glosa_code,
            glosa_category=rule.glosa_category,
            glosa_description=rule.glosa_description,
            pricing=rule.pricing(),
        )


@dataclass
class RuleMatch:
    """A rule whose conditions held for a line item, with its priced amount."""

    rule: CompiledRule
    amount: Decimal
    percentage: Optional[Decimal] = None


@dataclass
class RuleEngineReport:
    """Outcome of applying the rules to a set of line items."""

    rules_evaluated: int = 0
    line_items_evaluated: int = 0
    glosas_created: list[Glosa] = field(default_factory=list)
    skipped_existing: int = 0
    observations: list[str] = field(default_factory=list)

    @property
    def created_amount(self) -> Decimal:
        return sum((g.amount for g in self.glosas_created), ZERO)


# =============================================================================
# Condition Evaluation
# =============================================================================


def _as_decimal(value: Any) -> Optional[Decimal]:
    if isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        return value
    if isinstance(value, (int, float, str)):
        try:
            return Decimal(str(value))
        except InvalidOperation:
            return None
    return None


def _normalize(actual: Any, target: Any) -> tuple[Any, Any]:
    """Bring numeric facts and JSON-decoded targets onto Decimal."""
    if isinstance(actual, (Decimal, int)) and not isinstance(actual, bool):
        coerced = _as_decimal(target)
        if coerced is not None:
            return Decimal(actual), coerced
    return actual, target


def evaluate_condition(condition: RuleConditionSchema, facts: LineItemFacts) -> bool:
    """Evaluate one condition. Incomparable values never match."""
    actual = facts.get(condition.field)
    op = condition.operator

    if op == ConditionOperator.EXISTS:
        return actual is not None
    if op == ConditionOperator.NOT_EXISTS:
        return actual is None

    if op == ConditionOperator.CONTAINS:
        if actual is None or condition.value is None:
            return False
        if isinstance(actual, (list, tuple, set)):
            return condition.value in actual
        return str(condition.value) in str(actual)

    actual, target = _normalize(actual, condition.value)

    if op == ConditionOperator.EQ:
        return actual == target
    if op == ConditionOperator.NE:
        return actual != target

    if actual is None or target is None:
        return False
    try:
        if op == ConditionOperator.GT:
            return actual > target
        if op == ConditionOperator.LT:
            return actual < target
        if op == ConditionOperator.GTE:
            return actual >= target
        if op == ConditionOperator.LTE:
            return actual <= target
    except TypeError:
        return False

    return False


def rule_matches(rule: CompiledRule, facts: LineItemFacts) -> bool:
    results = (evaluate_condition(c, facts) for c in rule.conditions)
    if rule.logical_operator == LogicalOperator.OR:
        return any(results)
    return all(results)


# =============================================================================
# Rule Engine
# =============================================================================


class RuleEngine:
    """
    Applies audit rules to line items.

    evaluate() is pure; apply() adds Glosa rows to the session and updates
    the line item deduction fields in memory. The caller owns the transaction.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def load_active_rules(self) -> list[CompiledRule]:
        """Active rules ordered by priority, then code."""
        query = (
            select(AuditRule)
            .where(AuditRule.is_active.is_(True))
            .order_by(AuditRule.priority.asc(), AuditRule.code.asc())
        )
        result = await self.session.execute(query)
        return [CompiledRule.from_model(rule) for rule in result.scalars().all()]

    @staticmethod
    def evaluate(facts: LineItemFacts, rules: Sequence[CompiledRule]) -> list[RuleMatch]:
        """Return the matching rules with their priced amounts, in rule order."""
        matches = []
        for rule in rules:
            if not rule_matches(rule, facts):
                continue
            amount = rule.pricing.amount(facts.billed_total, facts.delta)
            matches.append(RuleMatch(rule=rule, amount=amount, percentage=rule.pricing.percentage))
        return matches

    def apply(
        self,
        encounters: Sequence[Encounter],
        rules: Sequence[CompiledRule],
    ) -> RuleEngineReport:
        """
        Materialise glosas for every match not already recorded.

        Line items must have their glosas loaded; existing (line item, rule)
        pairs are skipped.
        """
        report = RuleEngineReport(rules_evaluated=len(rules))

        for encounter in encounters:
            for line_item in encounter.line_items:
                report.line_items_evaluated += 1
                facts = LineItemFacts.from_line_item(line_item, encounter)
                existing = {g.rule_code for g in line_item.glosas}

                for match in self.evaluate(facts, rules):
                    if match.rule.code in existing:
                        report.skipped_existing += 1
                        continue
                    glosa = self._create_glosa(line_item, match)
                    existing.add(match.rule.code)
                    report.glosas_created.append(glosa)

                if line_item.payable_amount is not None and line_item.payable_amount < 0:
                    message = (
                        f"Line {line_item.line_number} ({line_item.procedure_code}) in encounter "
                        f"{encounter.encounter_number}: deductions {line_item.deducted_total} exceed "
                        f"billed {line_item.billed_total}"
                    )
                    logger.warning(message)
                    report.observations.append(message)

        logger.info(
            f"Rules applied: {report.rules_evaluated} rules, {report.line_items_evaluated} line items, "
            f"{len(report.glosas_created)} glosas created, {report.skipped_existing} already present"
        )
        return report

    def _create_glosa(self, line_item: LineItem, match: RuleMatch) -> Glosa:
        rule = match.rule
        glosa = Glosa(
            line_item_id=line_item.id,
            encounter_id=line_item.encounter_id,
            claim_id=line_item.claim_id,
            rule_code=rule.code,
            code=rule.glosa_code,
            category=rule.glosa_category,
            description=rule.glosa_description,
            amount=to_money(match.amount),
            percentage=match.percentage,
            observations=OBSERVATION_TEMPLATE.format(name=rule.name),
            auto_generated=True,
        )
        line_item.glosas.append(glosa)
        self.session.add(glosa)
        line_item.add_deduction(glosa.amount)
        return glosa
