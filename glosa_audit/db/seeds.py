"""
Reference Data Seeds.

Procedure catalogue (CUPS), reference tariffs (ISS 2001, ISS 2004, SOAT 2024),
example payer contracts and the default audit rules. Seeding is idempotent:
rows whose code or name already exists are skipped.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from glosa_audit.core.enums import (
    ConditionOperator,
    GlosaCategory,
    LogicalOperator,
    TariffType,
)
from glosa_audit.models.audit_rule import AuditRule
from glosa_audit.models.procedure import ProcedureCode
from glosa_audit.models.tariff import Tariff, TariffEntry
from glosa_audit.schemas.rule import (
    AuditRuleCreate,
    DifferencePricing,
    FullAmountPricing,
    GlosaTemplate,
    PercentagePricing,
    RuleConditionSchema,
)
from glosa_audit.utils.logging import get_logger

logger = get_logger(__name__)


# =============================================================================
# Procedure Catalogue
# =============================================================================


# code -> (description, requires_authorization)
PROCEDURE_CODES: dict[str, tuple[str, bool]] = {
    "890201": ("First-time general medicine consultation", False),
    "890202": ("Follow-up general medicine consultation", False),
    "890301": ("First-time specialist consultation", True),
    "890302": ("Follow-up specialist consultation", True),
    "902210": ("Complete blood count IV", False),
    "903841": ("Glycemia", False),
    "903895": ("Creatinine", False),
    "871101": ("Chest X-ray", False),
    "876001": ("Total abdominal ultrasound", True),
    "890801": ("Wound suture up to 5 cm", False),
    "890802": ("Wound suture over 5 cm", True),
    "334101": ("Appendectomy", True),
    "363100": ("Caesarean section", True),
    "878100": ("Electrocardiogram", False),
    "879120": ("Transthoracic echocardiogram with color doppler", True),
    "931100": ("Individual physical therapy", True),
}


# =============================================================================
# Tariffs
# =============================================================================


@dataclass(frozen=True)
class TariffSeed:
    name: str
    tariff_type: TariffType
    effective_start: date
    prices: dict[str, int]
    payer_id: Optional[str] = None
    effective_end: Optional[date] = None
    is_default_reference: bool = False


_CODES = (
    "890201", "890202", "890301", "890302", "902210", "903841", "903895", "871101",
    "876001", "890801", "890802", "334101", "363100", "878100", "879120", "931100",
)


def _prices(*values: int) -> dict[str, int]:
    return dict(zip(_CODES, values))


TARIFFS: list[TariffSeed] = [
    TariffSeed(
        name="ISS 2001",
        tariff_type=TariffType.ISS,
        effective_start=date(2001, 1, 1),
        prices=_prices(
            38500, 32500, 58000, 49500, 21500, 12800, 13700, 36000,
            81300, 72800, 107000, 2440000, 2740000, 27400, 158400, 30000,
        ),
    ),
    TariffSeed(
        name="ISS 2004",
        tariff_type=TariffType.ISS,
        effective_start=date(2004, 1, 1),
        is_default_reference=True,
        prices=_prices(
            42000, 35500, 63000, 54000, 23500, 14000, 15000, 39300,
            88800, 79500, 116900, 2665000, 2993000, 29900, 173000, 32700,
        ),
    ),
    TariffSeed(
        name="SOAT 2024",
        tariff_type=TariffType.SOAT,
        effective_start=date(2024, 1, 1),
        prices=_prices(
            45000, 38000, 68000, 58000, 25000, 15000, 16000, 42000,
            95000, 85000, 125000, 2850000, 3200000, 32000, 185000, 35000,
        ),
    ),
    TariffSeed(
        name="Contract EPS Sura 2024",
        tariff_type=TariffType.CONTRACT,
        payer_id="800088702",
        effective_start=date(2024, 1, 1),
        effective_end=date(2024, 12, 31),
        prices=_prices(
            43000, 36500, 65000, 56000, 24000, 14500, 15500, 40000,
            92000, 82000, 120000, 2750000, 3100000, 31000, 180000, 34000,
        ),
    ),
]


# =============================================================================
# Audit Rules
# =============================================================================


def _condition(field: str, operator: ConditionOperator, value: object = None) -> RuleConditionSchema:
    return RuleConditionSchema(field=field, operator=operator, value=value)


AUDIT_RULES: list[AuditRuleCreate] = [
    AuditRuleCreate(
        code="REGLA_001",
        name="Tariff difference above zero",
        description="Billed value is higher than the contracted value",
        priority=10,
        rule_group="tariffs",
        conditions=[_condition("delta", ConditionOperator.GT, 0)],
        glosa=GlosaTemplate(
            code="G001",
            category=GlosaCategory.TARIFF,
            description="Difference between billed and contracted value",
            pricing=DifferencePricing(),
        ),
    ),
    AuditRuleCreate(
        code="REGLA_002",
        name="Procedure without authorization",
        description="Procedure requires prior authorization and none was filed",
        priority=5,
        rule_group="authorizations",
        conditions=[
            _condition("has_authorization", ConditionOperator.EQ, False),
            _condition("requires_authorization", ConditionOperator.EQ, True),
        ],
        glosa=GlosaTemplate(
            code="G002",
            category=GlosaCategory.AUTHORIZATION,
            description="Missing authorization for a procedure that requires it",
            pricing=FullAmountPricing(),
        ),
    ),
    AuditRuleCreate(
        code="REGLA_003",
        name="Duplicate procedure",
        description="Procedure billed more than once in the same encounter",
        priority=8,
        rule_group="billing",
        conditions=[_condition("duplicate", ConditionOperator.EQ, True)],
        glosa=GlosaTemplate(
            code="G004",
            category=GlosaCategory.DUPLICATE,
            description="Duplicate procedure in the same encounter",
            pricing=FullAmountPricing(),
        ),
    ),
    AuditRuleCreate(
        code="REGLA_004",
        name="Missing supporting documents",
        description="Encounter has no supporting documents",
        priority=20,
        rule_group="support",
        conditions=[_condition("supporting_documents", ConditionOperator.NOT_EXISTS)],
        glosa=GlosaTemplate(
            code="G007",
            category=GlosaCategory.SUPPORT,
            description="Missing supporting documents",
            pricing=FullAmountPricing(),
        ),
    ),
    AuditRuleCreate(
        code="REGLA_005",
        name="Procedure not pertinent to diagnosis",
        description="Procedure is not pertinent to the principal diagnosis",
        priority=15,
        rule_group="pertinence",
        conditions=[_condition("pertinence_validated", ConditionOperator.EQ, False)],
        glosa=GlosaTemplate(
            code="G003",
            category=GlosaCategory.PERTINENCE,
            description="Procedure not pertinent to the recorded diagnosis",
            pricing=FullAmountPricing(),
        ),
    ),
    AuditRuleCreate(
        code="REGLA_006",
        name="Overcharge above 20%",
        description="Tariff difference exceeds 20% of the contracted value",
        priority=5,
        rule_group="tariffs",
        conditions=[_condition("percentage_delta", ConditionOperator.GT, 20)],
        glosa=GlosaTemplate(
            code="G001-A",
            category=GlosaCategory.TARIFF,
            description="Overcharge above 20% of the contracted value",
            pricing=DifferencePricing(),
        ),
    ),
    AuditRuleCreate(
        code="REGLA_007",
        name="Expired authorization",
        description="Authorization exists but is outside the validity window",
        priority=6,
        rule_group="authorizations",
        conditions=[
            _condition("authorization_valid", ConditionOperator.EQ, False),
            _condition("has_authorization", ConditionOperator.EQ, True),
        ],
        glosa=GlosaTemplate(
            code="G002-A",
            category=GlosaCategory.AUTHORIZATION,
            description="Authorization expired or outside its validity window",
            pricing=FullAmountPricing(),
        ),
    ),
    AuditRuleCreate(
        code="REGLA_008",
        name="Incompatible procedures",
        description="Procedures that cannot be billed together",
        priority=12,
        rule_group="billing",
        conditions=[_condition("incompatible_procedures", ConditionOperator.EQ, True)],
        glosa=GlosaTemplate(
            code="G005",
            category=GlosaCategory.BILLING,
            description="Procedures incompatible with each other",
            pricing=PercentagePricing(percentage=Decimal("50")),
        ),
    ),
    AuditRuleCreate(
        code="REGLA_009",
        name="Excessive quantity",
        description="Quantity billed above the usual maximum",
        priority=18,
        is_active=False,
        rule_group="billing",
        conditions=[_condition("quantity", ConditionOperator.GT, 10)],
        glosa=GlosaTemplate(
            code="G006",
            category=GlosaCategory.BILLING,
            description="Excessive quantity for the procedure",
            pricing=PercentagePricing(percentage=Decimal("30")),
        ),
    ),
]


# =============================================================================
# Seeding
# =============================================================================


async def seed_procedure_codes(session: AsyncSession) -> int:
    result = await session.execute(select(ProcedureCode.code))
    existing = set(result.scalars().all())

    created = 0
    for code, (description, requires_authorization) in PROCEDURE_CODES.items():
        if code in existing:
            continue
        session.add(
            ProcedureCode(code=code, description=description, requires_authorization=requires_authorization)
        )
        created += 1
    return created


async def seed_tariffs(session: AsyncSession) -> int:
    result = await session.execute(select(Tariff.name))
    existing = set(result.scalars().all())

    created = 0
    for seed in TARIFFS:
        if seed.name in existing:
            continue
        session.add(
            Tariff(
                name=seed.name,
                tariff_type=seed.tariff_type,
                payer_id=seed.payer_id,
                effective_start=seed.effective_start,
                effective_end=seed.effective_end,
                is_active=True,
                is_default_reference=seed.is_default_reference,
                entries=[
                    TariffEntry(
                        procedure_code=code,
                        description=PROCEDURE_CODES.get(code, ("", False))[0] or None,
                        unit_price=Decimal(price),
                    )
                    for code, price in seed.prices.items()
                ],
            )
        )
        created += 1
    return created


async def seed_audit_rules(session: AsyncSession) -> int:
    result = await session.execute(select(AuditRule.code))
    existing = set(result.scalars().all())

    created = 0
    for definition in AUDIT_RULES:
        if definition.code in existing:
            continue
        session.add(AuditRule.from_definition(definition))
        created += 1
    return created


async def seed_reference_data(session: AsyncSession) -> dict[str, int]:
    """
    Insert missing reference data and commit.

    Returns:
        Number of rows created per kind
    """
    created = {
        "procedure_codes": await seed_procedure_codes(session),
        "tariffs": await seed_tariffs(session),
        "audit_rules": await seed_audit_rules(session),
    }
    await session.commit()
    logger.info(f"Reference data seeded: {created}")
    return created
